"""
Tests for letterbox pre-processing and engine output decoding.
"""

import numpy as np
import pytest

from trtdetect.errors import InferenceError
from trtdetect.inference.processing import build_results, letterbox, to_blob


class TestLetterbox:
    def test_wide_image(self):
        t = letterbox(200, 100, 64, 64)
        assert t.scale == pytest.approx(0.32)
        assert t.pad_x == 0
        assert t.pad_y == pytest.approx(16)

    def test_tall_image(self):
        t = letterbox(100, 200, 64, 64)
        assert t.pad_x == pytest.approx(16)
        assert t.pad_y == 0

    def test_apply_output_shape_and_padding(self):
        t = letterbox(200, 100, 64, 64)
        out = t.apply(np.full((100, 200, 3), 255, dtype=np.uint8))
        assert out.shape == (64, 64, 3)
        assert out.dtype == np.uint8
        assert tuple(out[0, 32]) == (114, 114, 114)
        assert tuple(out[32, 32]) == (255, 255, 255)

    def test_unmap_inverts_mapping(self):
        t = letterbox(200, 100, 64, 64)
        src = np.array([[20, 10, 180, 90]], dtype=np.float32)
        mapped = src * t.scale + np.array([t.pad_x, t.pad_y, t.pad_x, t.pad_y])
        np.testing.assert_allclose(t.unmap_boxes(mapped), src, atol=1e-4)

    def test_unmap_clips_to_image(self):
        t = letterbox(200, 100, 64, 64)
        out = t.unmap_boxes(np.array([[0, 0, 64, 64]]))
        np.testing.assert_allclose(out, [[0, 0, 200, 100]])

    def test_invalid_source(self):
        with pytest.raises(ValueError):
            letterbox(0, 10, 64, 64)


def test_to_blob_layout():
    imgs = [np.full((8, 6, 3), v, dtype=np.uint8) for v in (0, 255)]
    blob = to_blob(imgs)
    assert blob.shape == (2, 3, 8, 6)
    assert blob.dtype == np.float32
    assert blob.flags["C_CONTIGUOUS"]
    assert blob[0].max() == 0.0
    assert blob[1].min() == 1.0


def _outputs(num, boxes, scores, classes):
    return {
        "num_dets": np.array(num, dtype=np.int32).reshape(-1, 1),
        "det_boxes": np.array(boxes, dtype=np.float32),
        "det_scores": np.array(scores, dtype=np.float32),
        "det_classes": np.array(classes, dtype=np.int32),
    }


class TestBuildResults:
    def test_respects_num_dets_and_order(self):
        t = letterbox(64, 64, 64, 64)
        outputs = _outputs(
            num=[2, 0],
            boxes=[[[1, 2, 3, 4], [5, 6, 7, 8], [0, 0, 0, 0]], [[9, 9, 9, 9]] * 3],
            scores=[[0.9, 0.8, 0.1], [0.7, 0.7, 0.7]],
            classes=[[3, 1, 0], [2, 2, 2]],
        )
        results = build_results(outputs, [t, t])
        assert [r.num for r in results] == [2, 0]
        assert results[0].class_ids == (3, 1)
        assert results[0].scores[0] == pytest.approx(0.9)
        assert results[0].boxes[1].as_tuple() == (5, 6, 7, 8)

    def test_missing_output(self):
        outputs = _outputs([1], [[[0, 0, 1, 1]]], [[0.5]], [[0]])
        del outputs["det_scores"]
        with pytest.raises(InferenceError):
            build_results(outputs, [letterbox(64, 64, 64, 64)])

    def test_too_few_slots(self):
        t = letterbox(64, 64, 64, 64)
        outputs = _outputs([1], [[[0, 0, 1, 1]]], [[0.5]], [[0]])
        with pytest.raises(InferenceError):
            build_results(outputs, [t, t])
