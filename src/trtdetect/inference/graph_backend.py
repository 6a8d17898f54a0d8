"""
CUDA graph backend.

Construction captures one engine launch for a fixed shape (batch size and
image size) and precomputes the letterbox transform for that image size.
Every predict call replays the capture. Calls that do not match the
captured shape exactly raise ShapeMismatchError instead of being reshaped.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from trtdetect.errors import ShapeMismatchError
from trtdetect.models.detection import DetectionResult
from trtdetect.models.image import Image

from .backend import Detector, InferenceEngine
from .engine import TensorRTEngine
from .processing import build_results, letterbox, to_blob

logger = logging.getLogger(__name__)


class GraphCapturedBackend(Detector):
    """
    Replays a captured engine launch.

    Args:
        engine: Loaded engine.
        image_size: (width, height) every input image must have. Defaults to
            the network input size.
    """

    def __init__(self, engine: InferenceEngine, image_size: Optional[Tuple[int, int]] = None):
        super().__init__(engine)
        in_h, in_w = engine.input_hw
        width, height = image_size or (in_w, in_h)
        self._captured_shape = (int(engine.batch), int(height), int(width))
        self._transform = letterbox(width, height, in_w, in_h)
        self._graph = engine.capture(self._captured_shape[0])
        logger.info(f"Graph backend ready: captured shape (batch, h, w)={self._captured_shape}")

    @classmethod
    def from_engine_path(
        cls,
        engine_path: str,
        image_size: Optional[Tuple[int, int]] = None,
    ) -> "GraphCapturedBackend":
        return cls(TensorRTEngine(engine_path), image_size=image_size)

    @property
    def captured_shape(self) -> Tuple[int, int, int]:
        """(batch, height, width) fixed at capture time."""
        return self._captured_shape

    def _check_shape(self, images: List[Image]) -> None:
        batch, height, width = self._captured_shape
        if len(images) != batch:
            raise ShapeMismatchError(
                f"Captured for a batch of {batch} images, got {len(images)}",
                expected=self._captured_shape,
                actual=(len(images), images[0].height, images[0].width),
            )
        for img in images:
            if (img.height, img.width) != (height, width):
                raise ShapeMismatchError(
                    f"Captured for {width}x{height} images, got {img.width}x{img.height}"
                    + (f" ({img.name})" if img.name else ""),
                    expected=self._captured_shape,
                    actual=(len(images), img.height, img.width),
                )

    def _predict_batch(self, images: List[Image]) -> List[DetectionResult]:
        self._check_shape(images)
        blob = to_blob([self._transform.apply(img.pixels) for img in images])
        outputs = self._graph.replay(blob)
        return build_results(outputs, [self._transform] * len(images))
