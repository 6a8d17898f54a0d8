"""
Observation layer: where images come from and where annotated ones go.
"""

from .paths import (
    IMAGE_EXTENSIONS,
    InputKind,
    ensure_output_dir,
    list_images,
    output_path_for,
    require_exists,
    resolve_input,
)
from .images import read_image, to_bgr, write_image

__all__ = [
    "IMAGE_EXTENSIONS",
    "InputKind",
    "ensure_output_dir",
    "list_images",
    "output_path_for",
    "require_exists",
    "resolve_input",
    "read_image",
    "to_bgr",
    "write_image",
]
