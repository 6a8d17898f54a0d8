"""
Detection overlays.

Draws on BGR images (the save-time colour order) in place.
"""

from __future__ import annotations

from typing import List

import cv2
import numpy as np

from trtdetect.models.detection import DetectionResult
from trtdetect.models.labels import LabelTable

# Colors (BGR)
COLOR_BOX = (251, 81, 163)
COLOR_LABEL_BG = (125, 40, 81)
COLOR_TEXT = (253, 168, 208)

FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6


def format_label(label: str, score: float) -> str:
    return f"{label} {score:.3f}"


def draw_detections(image: np.ndarray, result: DetectionResult, labels: LabelTable) -> np.ndarray:
    """
    Draw every detection of result onto image and return it.

    Each detection gets a box, a filled label background and the text
    "<label> <score>". Labels are looked up before anything is drawn, so an
    out-of-range class id raises RenderError and leaves the image untouched.
    """
    texts: List[str] = [
        format_label(labels.name_for(class_id), score)
        for class_id, score in zip(result.class_ids, result.scores)
    ]

    for box, text in zip(result.boxes, texts):
        left, top, right, bottom = box.as_int_tuple()
        (tw, th), _ = cv2.getTextSize(text, FONT, FONT_SCALE, 1)
        cv2.rectangle(image, (left, top), (right, bottom), COLOR_BOX, 2, cv2.LINE_AA)
        cv2.rectangle(image, (left, top - th), (left + tw, top), COLOR_LABEL_BG, -1)
        cv2.putText(image, text, (left, top), FONT, FONT_SCALE, COLOR_TEXT, 1)

    return image
