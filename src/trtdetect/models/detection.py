"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        left: Left edge x coordinate.
        top: Top edge y coordinate.
        right: Right edge x coordinate.
        bottom: Bottom edge y coordinate.
    """
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (left, top, right, bottom) tuple."""
        return (self.left, self.top, self.right, self.bottom)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (left, top, right, bottom) tuple."""
        return (int(self.left), int(self.top), int(self.right), int(self.bottom))

    @classmethod
    def from_tuple(cls, t: Sequence[float]) -> "BoundingBox":
        """Create from (left, top, right, bottom) tuple."""
        return cls(left=float(t[0]), top=float(t[1]), right=float(t[2]), bottom=float(t[3]))


@dataclass(frozen=True)
class Detection:
    """One row of a DetectionResult."""
    bbox: BoundingBox
    class_id: int
    score: float


@dataclass(frozen=True)
class DetectionResult:
    """
    Detections for a single image.

    Boxes, class ids and scores are parallel sequences; construction fails
    if their lengths differ, so `num` always describes all three.

    Attributes:
        boxes: Bounding boxes in source image pixel coordinates.
        class_ids: Integer class ids, indices into a LabelTable.
        scores: Confidence scores in [0, 1].
    """
    boxes: Tuple[BoundingBox, ...] = ()
    class_ids: Tuple[int, ...] = ()
    scores: Tuple[float, ...] = ()

    def __post_init__(self):
        boxes = tuple(self.boxes)
        class_ids = tuple(int(c) for c in self.class_ids)
        scores = tuple(float(s) for s in self.scores)
        if not (len(boxes) == len(class_ids) == len(scores)):
            raise ValueError(
                f"DetectionResult sequences differ in length: boxes={len(boxes)}, "
                f"class_ids={len(class_ids)}, scores={len(scores)}"
            )
        object.__setattr__(self, "boxes", boxes)
        object.__setattr__(self, "class_ids", class_ids)
        object.__setattr__(self, "scores", scores)

    @property
    def num(self) -> int:
        return len(self.boxes)

    def __len__(self) -> int:
        return self.num

    def __iter__(self) -> Iterator[Detection]:
        for bbox, class_id, score in zip(self.boxes, self.class_ids, self.scores):
            yield Detection(bbox=bbox, class_id=class_id, score=score)

    @classmethod
    def empty(cls) -> "DetectionResult":
        return cls()

    @classmethod
    def from_arrays(
        cls,
        boxes: np.ndarray,
        class_ids: np.ndarray,
        scores: np.ndarray,
    ) -> "DetectionResult":
        """
        Adapter: build from numpy arrays.

        Args:
            boxes: (N, 4) array of [left, top, right, bottom].
            class_ids: (N,) integer array.
            scores: (N,) float array.
        """
        boxes = np.asarray(boxes, dtype=float).reshape(-1, 4)
        return cls(
            boxes=tuple(BoundingBox.from_tuple(row) for row in boxes),
            class_ids=tuple(int(c) for c in np.asarray(class_ids).reshape(-1)),
            scores=tuple(float(s) for s in np.asarray(scores).reshape(-1)),
        )

    def to_numpy(self) -> np.ndarray:
        """Return an (N, 6) array of [left, top, right, bottom, score, class_id]."""
        if not self.boxes:
            return np.empty((0, 6), dtype=float)
        return np.array(
            [
                [*b.as_tuple(), s, c]
                for b, c, s in zip(self.boxes, self.class_ids, self.scores)
            ],
            dtype=float,
        )
