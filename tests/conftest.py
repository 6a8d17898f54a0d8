"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from typing import Dict, List, Optional, Sequence

import cv2
import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from trtdetect.inference.backend import Detector  # noqa: E402
from trtdetect.models.detection import BoundingBox, DetectionResult  # noqa: E402
from trtdetect.ops.timing import Timer  # noqa: E402


class FakeEngine:
    """
    Engine stand-in computing outputs on the host.

    Every batch slot reports one detection covering the whole network input,
    class 0, with the slot's mean pixel value as score. Images of different
    brightness therefore produce distinguishable results.
    """

    def __init__(self, batch: int = 4, input_hw=(64, 64), max_det: int = 10):
        self.batch = batch
        self.input_hw = input_hw
        self.max_det = max_det
        self.infer_calls: List[int] = []
        self.captures: List[int] = []
        self.fail = False

    def compute(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        if self.fail:
            from trtdetect.errors import InferenceError
            raise InferenceError("device error")
        n = blob.shape[0]
        h, w = self.input_hw
        num_dets = np.ones((n, 1), dtype=np.int32)
        boxes = np.zeros((n, self.max_det, 4), dtype=np.float32)
        boxes[:, 0] = [0, 0, w, h]
        scores = np.zeros((n, self.max_det), dtype=np.float32)
        scores[:, 0] = blob.reshape(n, -1).mean(axis=1)
        classes = np.zeros((n, self.max_det), dtype=np.int32)
        return {
            "num_dets": num_dets,
            "det_boxes": boxes,
            "det_scores": scores,
            "det_classes": classes,
        }

    def infer(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        self.infer_calls.append(blob.shape[0])
        return self.compute(blob)

    def capture(self, batch_size: int) -> "FakeGraph":
        self.captures.append(batch_size)
        return FakeGraph(self, batch_size)


class FakeGraph:
    def __init__(self, engine: FakeEngine, batch_size: int):
        self.engine = engine
        self.batch_size = batch_size
        self.replays = 0

    def replay(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        assert blob.shape[0] == self.batch_size
        self.replays += 1
        return self.engine.compute(blob)


class RecordingDetector(Detector):
    """Detector that records batch sizes and returns one fixed box per image."""

    def __init__(self, batch: int = 4, class_id: int = 0):
        super().__init__(FakeEngine(batch=batch))
        self.calls: List[int] = []
        self.names: List[List[Optional[str]]] = []
        self._class_id = class_id

    def _predict_batch(self, images):
        self.calls.append(len(images))
        self.names.append([img.name for img in images])
        return [
            DetectionResult(
                boxes=(BoundingBox(2, 12, 20, 28),),
                class_ids=(self._class_id,),
                scores=(0.5,),
            )
            for _ in images
        ]


class StubTimer(Timer):
    """Timer returning preset spans (milliseconds) on each stop."""

    def __init__(self, spans: Sequence[float] = ()):
        super().__init__()
        self._spans = list(spans)
        self.starts = 0

    def _mark_start(self) -> None:
        self.starts += 1

    def _mark_stop(self) -> float:
        return self._spans.pop(0) if self._spans else 1.0


def write_images(directory, count: int, size=(32, 24), ext: str = ".jpg", prefix: str = "img"):
    """Write count solid-colour images of (width, height) size and return their paths."""
    os.makedirs(directory, exist_ok=True)
    paths = []
    w, h = size
    for i in range(count):
        path = os.path.join(str(directory), f"{prefix}{i:02d}{ext}")
        img = np.full((h, w, 3), (i * 20) % 256, dtype=np.uint8)
        assert cv2.imwrite(path, img)
        paths.append(path)
    return paths


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def image_dir(tmp_path):
    """Directory holding 7 jpg images."""
    directory = tmp_path / "images"
    write_images(directory, 7)
    return directory


@pytest.fixture
def labels_file(tmp_path):
    path = tmp_path / "labels.txt"
    path.write_text("person\nbicycle\ncar\nmotorcycle\nbus\n")
    return path


@pytest.fixture
def engine_file(tmp_path):
    path = tmp_path / "model.engine"
    path.write_bytes(b"\x00engine")
    return path
