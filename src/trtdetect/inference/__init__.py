"""
Inference layer: detectors over TensorRT engines.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .backend import Detector, InferenceEngine
from .engine import TensorRTEngine
from .graph_backend import GraphCapturedBackend
from .standard_backend import StandardBackend


def create_detector(
    engine_path: str,
    use_cuda_graph: bool = False,
    image_size: Optional[Tuple[int, int]] = None,
) -> Detector:
    """
    Load an engine and wrap it in the requested backend.

    Args:
        engine_path: Serialized engine file.
        use_cuda_graph: Use GraphCapturedBackend instead of StandardBackend.
        image_size: (width, height) to capture for; only used with CUDA graphs.
    """
    if use_cuda_graph:
        return GraphCapturedBackend.from_engine_path(engine_path, image_size=image_size)
    return StandardBackend.from_engine_path(engine_path)


__all__ = [
    "Detector",
    "InferenceEngine",
    "TensorRTEngine",
    "StandardBackend",
    "GraphCapturedBackend",
    "create_detector",
]
