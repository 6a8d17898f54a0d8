"""
Tests for detection overlays.
"""

import numpy as np
import pytest

from trtdetect.errors import RenderError
from trtdetect.models.detection import BoundingBox, DetectionResult
from trtdetect.models.labels import LabelTable
from trtdetect.render.visualize import COLOR_BOX, draw_detections, format_label

LABELS = LabelTable(["person", "bicycle", "car", "motorcycle", "bus"])


def _canvas():
    return np.zeros((120, 160, 3), dtype=np.uint8)


def test_format_label_three_decimals():
    assert format_label("car", 0.87654) == "car 0.877"
    assert format_label("bus", 1) == "bus 1.000"


def test_empty_result_leaves_image_identical():
    image = _canvas()
    image[10:20, 10:20] = 77
    before = image.copy()
    out = draw_detections(image, DetectionResult.empty(), LABELS)
    assert out is image
    np.testing.assert_array_equal(image, before)


def test_draws_box_and_label():
    image = _canvas()
    result = DetectionResult(
        boxes=(BoundingBox(40, 50, 120, 110),), class_ids=(2,), scores=(0.9,)
    )
    draw_detections(image, result, LABELS)
    # Bottom edge drawn, interior left alone.
    assert image[107:114, 80].any()
    assert not image[80, 80].any()
    # Label background sits above the box.
    assert image[40:50, 40:60].any()


def test_box_colour_is_dominant_on_edge():
    image = _canvas()
    result = DetectionResult(
        boxes=(BoundingBox(40, 50, 120, 110),), class_ids=(2,), scores=(0.9,)
    )
    draw_detections(image, result, LABELS)
    column = image[107:114, 80].astype(int)
    brightest = column[column.sum(axis=1).argmax()]
    # Anti-aliasing dims the edge but keeps the hue ordering of the colour.
    assert brightest[0] >= brightest[2] >= brightest[1]
    assert COLOR_BOX[0] >= COLOR_BOX[2] >= COLOR_BOX[1]


def test_out_of_range_class_raises_without_drawing():
    image = _canvas()
    result = DetectionResult(
        boxes=(BoundingBox(10, 30, 50, 60), BoundingBox(60, 30, 90, 60)),
        class_ids=(0, 7),
        scores=(0.5, 0.6),
    )
    with pytest.raises(RenderError):
        draw_detections(image, result, LABELS)
    assert not image.any()


def test_render_does_not_change_result():
    result = DetectionResult(
        boxes=(BoundingBox(10, 30, 50, 60),), class_ids=(1,), scores=(0.5,)
    )
    draw_detections(_canvas(), result, LABELS)
    assert result.num == 1
    assert result.class_ids == (1,)
