"""
Image decoding and encoding with OpenCV.

OpenCV works in BGR; detectors consume RGB. Decoding converts to RGB,
rendering and saving work on BGR copies.
"""

from __future__ import annotations

import os

import cv2
import numpy as np

from trtdetect.errors import ImageDecodeError, ImageEncodeError
from trtdetect.models.image import Image


def read_image(path: str) -> Image:
    """Decode an image file into an RGB Image."""
    bgr = cv2.imread(path, cv2.IMREAD_COLOR)
    if bgr is None or bgr.size == 0:
        raise ImageDecodeError(path)
    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    return Image.from_numpy(rgb, name=os.path.basename(path))


def to_bgr(image: Image) -> np.ndarray:
    """Return a BGR copy of the image pixels for drawing and saving."""
    return cv2.cvtColor(image.pixels, cv2.COLOR_RGB2BGR)


def write_image(path: str, bgr: np.ndarray) -> None:
    """Encode a BGR array to path; the format follows the extension."""
    try:
        ok = cv2.imwrite(path, bgr)
    except cv2.error as e:
        raise ImageEncodeError(path, f"Failed to write image to path: {path}: {e}") from e
    if not ok:
        raise ImageEncodeError(path)
