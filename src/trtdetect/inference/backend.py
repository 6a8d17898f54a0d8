"""
Detector interface.

A detector turns RGB images into DetectionResults through an engine. Two
implementations share this contract:
- StandardBackend runs the whole engine on every call
- GraphCapturedBackend replays a CUDA graph captured for one fixed shape

The variant is chosen once, at construction (see create_detector).
Detectors are not safe for concurrent predict calls; callers serialize.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union, overload

import numpy as np

from trtdetect.errors import InferenceError, ShapeMismatchError
from trtdetect.models.detection import DetectionResult
from trtdetect.models.image import Image


class InferenceEngine(Protocol):
    """What a detector needs from an engine (TensorRTEngine in production)."""

    batch: int
    input_hw: Tuple[int, int]

    def infer(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        ...

    def capture(self, batch_size: int) -> Any:
        ...


class Detector(ABC):
    """Batched detector over an engine with a fixed maximum batch."""

    def __init__(self, engine: InferenceEngine):
        self._engine = engine

    @property
    def batch(self) -> int:
        """Maximum number of images per predict call."""
        return int(self._engine.batch)

    @property
    def stream(self) -> Optional[Any]:
        """CUDA stream the engine executes on, for device timing."""
        return getattr(self._engine, "stream", None)

    @overload
    def predict(self, images: Image) -> DetectionResult:
        ...

    @overload
    def predict(self, images: Sequence[Image]) -> List[DetectionResult]:
        ...

    def predict(self, images: Union[Image, Sequence[Image]]) -> Union[DetectionResult, List[DetectionResult]]:
        """
        Detect objects in one image or a batch of images.

        Results are returned in input order. A batch may be shorter than
        `batch`; a longer one raises ShapeMismatchError.
        """
        if isinstance(images, Image):
            return self._run([images])[0]
        images = list(images)
        if not images:
            return []
        return self._run(images)

    def _run(self, images: List[Image]) -> List[DetectionResult]:
        if len(images) > self.batch:
            raise ShapeMismatchError(
                f"Batch of {len(images)} images exceeds detector batch {self.batch}",
                expected=(self.batch,),
                actual=(len(images),),
            )
        results = self._predict_batch(images)
        if len(results) != len(images):
            raise InferenceError(
                f"Detector returned {len(results)} results for {len(images)} images"
            )
        return results

    @abstractmethod
    def _predict_batch(self, images: List[Image]) -> List[DetectionResult]:
        """Run inference on 1..batch images."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(batch={self.batch})"
