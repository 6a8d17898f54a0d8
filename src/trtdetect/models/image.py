"""
Image model handed to detectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class Image:
    """
    Packed pixel data for one inference input.

    Attributes:
        pixels: HxWx3 uint8 array in RGB order. Callers convert before
            construction; detectors never convert or keep a reference.
        width: Image width in pixels.
        height: Image height in pixels.
        name: Optional file name the image was read from.
    """
    pixels: np.ndarray
    width: int
    height: int
    name: Optional[str] = None

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(f"Expected an HxWx3 image, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Image size {self.width}x{self.height} does not match pixel shape {self.pixels.shape}"
            )

    @classmethod
    def from_numpy(cls, pixels: np.ndarray, name: Optional[str] = None) -> "Image":
        """Create an Image from an RGB numpy array."""
        h, w = pixels.shape[:2]
        return cls(pixels=pixels, width=w, height=h, name=name)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Return (height, width, channels)."""
        return self.pixels.shape

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
