"""
Host-side pre- and post-processing around the engine.

Images are letterboxed into the network input with a single affine warp
(uniform scale, centered, grey padding). Engines end in an NMS stage and
report, per batch slot, a detection count and fixed-size box/score/class
tensors; boxes are mapped back through the inverse of the letterbox.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

import cv2
import numpy as np

from trtdetect.errors import InferenceError
from trtdetect.models.detection import DetectionResult

# Output tensors of an engine with an NMS head.
NUM_DETS = "num_dets"
DET_BOXES = "det_boxes"
DET_SCORES = "det_scores"
DET_CLASSES = "det_classes"
OUTPUT_NAMES = (NUM_DETS, DET_BOXES, DET_SCORES, DET_CLASSES)

PAD_VALUE = (114, 114, 114)


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Affine mapping from a source image into the network input.

    Attributes:
        scale: Uniform scale factor applied to the source.
        pad_x: Horizontal offset of the scaled image inside the input.
        pad_y: Vertical offset of the scaled image inside the input.
        src_width, src_height: Source image size.
        dst_width, dst_height: Network input size.
    """
    scale: float
    pad_x: float
    pad_y: float
    src_width: int
    src_height: int
    dst_width: int
    dst_height: int

    @property
    def matrix(self) -> np.ndarray:
        return np.array(
            [[self.scale, 0.0, self.pad_x], [0.0, self.scale, self.pad_y]],
            dtype=np.float32,
        )

    def apply(self, pixels: np.ndarray) -> np.ndarray:
        """Warp HxWx3 pixels into a dst_height x dst_width x 3 array."""
        return cv2.warpAffine(
            pixels,
            self.matrix,
            (self.dst_width, self.dst_height),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=PAD_VALUE,
        )

    def unmap_boxes(self, boxes: np.ndarray) -> np.ndarray:
        """Map (N, 4) input-space boxes back to source pixels, clipped to the image."""
        boxes = np.asarray(boxes, dtype=np.float32).reshape(-1, 4).copy()
        boxes[:, [0, 2]] = (boxes[:, [0, 2]] - self.pad_x) / self.scale
        boxes[:, [1, 3]] = (boxes[:, [1, 3]] - self.pad_y) / self.scale
        boxes[:, [0, 2]] = boxes[:, [0, 2]].clip(0, self.src_width)
        boxes[:, [1, 3]] = boxes[:, [1, 3]].clip(0, self.src_height)
        return boxes


def letterbox(src_width: int, src_height: int, dst_width: int, dst_height: int) -> LetterboxTransform:
    """Compute the transform fitting a src image into dst while keeping its aspect ratio."""
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Invalid source size {src_width}x{src_height}")
    scale = min(dst_width / src_width, dst_height / src_height)
    pad_x = (dst_width - round(src_width * scale)) / 2
    pad_y = (dst_height - round(src_height * scale)) / 2
    return LetterboxTransform(
        scale=scale,
        pad_x=pad_x,
        pad_y=pad_y,
        src_width=src_width,
        src_height=src_height,
        dst_width=dst_width,
        dst_height=dst_height,
    )


def to_blob(letterboxed: Sequence[np.ndarray]) -> np.ndarray:
    """Stack HWC uint8 arrays into a contiguous NCHW float32 blob scaled to [0, 1]."""
    batch = np.stack(letterboxed).astype(np.float32) / 255.0
    return np.ascontiguousarray(batch.transpose(0, 3, 1, 2))


def build_results(
    outputs: Dict[str, np.ndarray],
    transforms: Sequence[LetterboxTransform],
) -> List[DetectionResult]:
    """
    Turn engine outputs into one DetectionResult per transform, in order.

    Slot i of every output tensor belongs to the i-th image of the batch.
    """
    missing = [name for name in OUTPUT_NAMES if name not in outputs]
    if missing:
        raise InferenceError(f"Engine outputs are missing: {', '.join(missing)}")

    num_dets = np.asarray(outputs[NUM_DETS]).reshape(-1)
    if len(num_dets) < len(transforms):
        raise InferenceError(
            f"Engine returned {len(num_dets)} results for a batch of {len(transforms)}"
        )

    results: List[DetectionResult] = []
    for i, transform in enumerate(transforms):
        n = int(num_dets[i])
        boxes = transform.unmap_boxes(outputs[DET_BOXES][i][:n])
        results.append(
            DetectionResult.from_arrays(
                boxes=boxes,
                class_ids=outputs[DET_CLASSES][i][:n],
                scores=outputs[DET_SCORES][i][:n],
            )
        )
    return results
