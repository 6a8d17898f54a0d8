"""
Input and output path resolution.

The input of a run is either a single image file or a directory scanned
(non-recursively) for images with an allowed extension. Extension matching
is case-sensitive and the order is whatever os.scandir yields, which is not
stable across platforms.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import List

from trtdetect.errors import (
    EmptyDirectoryError,
    InvalidInputError,
    OutputPathError,
    PathNotFoundError,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".bmp"})


class InputKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


def require_exists(path: str, what: str) -> None:
    """Raise PathNotFoundError naming the role of the missing path."""
    if not path or not os.path.exists(path):
        raise PathNotFoundError(f"{what} path does not exist: {path}")


def resolve_input(path: str) -> InputKind:
    """Classify the input path as a regular file or a directory."""
    if not os.path.exists(path):
        raise PathNotFoundError(f"Input path does not exist: {path}")
    if os.path.isfile(path):
        return InputKind.FILE
    if os.path.isdir(path):
        return InputKind.DIRECTORY
    raise InvalidInputError(f"Input path is not a regular file or directory: {path}")


def is_image_file(name: str) -> bool:
    return os.path.splitext(name)[1] in IMAGE_EXTENSIONS


def list_images(directory: str) -> List[str]:
    """Return paths of the eligible images directly inside directory."""
    if not os.path.exists(directory):
        raise PathNotFoundError(f"Input path does not exist: {directory}")
    if not os.path.isdir(directory):
        raise InvalidInputError(f"Not a directory: {directory}")

    with os.scandir(directory) as entries:
        files = [
            entry.path
            for entry in entries
            if entry.is_file() and is_image_file(entry.name)
        ]

    if not files:
        raise EmptyDirectoryError(f"No image files found in the directory: {directory}")

    logger.info(f"Found {len(files)} images in {directory}")
    return files


def ensure_output_dir(path: str) -> None:
    """Create the output directory (and parents) unless it already exists."""
    if os.path.exists(path):
        if not os.path.isdir(path):
            raise OutputPathError(f"Output path exists but is not a directory: {path}")
        return
    try:
        os.makedirs(path)
    except OSError as e:
        raise OutputPathError(f"Failed to create output directory: {path}: {e}") from e
    logger.info(f"Created output directory {path}")


def output_path_for(output_dir: str, input_path: str) -> str:
    """Place the input's basename under output_dir."""
    return os.path.join(output_dir, os.path.basename(input_path))
