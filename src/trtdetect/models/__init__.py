"""
Typed models shared by the inference, pipeline and rendering layers.
"""

from .image import Image
from .detection import BoundingBox, Detection, DetectionResult
from .labels import LabelTable
from .config import Settings, BenchmarkConfig

__all__ = [
    # Image
    "Image",
    # Detection
    "BoundingBox",
    "Detection",
    "DetectionResult",
    # Labels
    "LabelTable",
    # Config
    "Settings",
    "BenchmarkConfig",
]
