"""
Standard inference backend: preprocess, execute, postprocess on every call.
"""

from __future__ import annotations

from typing import List

from trtdetect.models.detection import DetectionResult
from trtdetect.models.image import Image

from .backend import Detector
from .engine import TensorRTEngine
from .processing import build_results, letterbox, to_blob


class StandardBackend(Detector):
    """Accepts any image sizes and any batch up to the engine maximum."""

    @classmethod
    def from_engine_path(cls, engine_path: str) -> "StandardBackend":
        return cls(TensorRTEngine(engine_path))

    def _predict_batch(self, images: List[Image]) -> List[DetectionResult]:
        in_h, in_w = self._engine.input_hw
        transforms = [letterbox(img.width, img.height, in_w, in_h) for img in images]
        blob = to_blob([t.apply(img.pixels) for t, img in zip(transforms, images)])
        outputs = self._engine.infer(blob)
        return build_results(outputs, transforms)
