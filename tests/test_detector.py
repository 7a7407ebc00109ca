"""Tests for detection preprocessing and the TextDetector stage."""

import numpy as np
import pytest

from photo_ocr.config import DetectorConfig
from photo_ocr.errors import ConfigError
from photo_ocr.preprocess import DetResizeForTest
from photo_ocr.text_detector import TextDetector

from conftest import FakeEngine, det_from_mask


@pytest.mark.parametrize(
    "limit_type, side, src, expected",
    [
        ("max", 960, (1080, 1920), (544, 960)),
        ("max", 960, (200, 300), (192, 288)),
        ("max", 960, (10, 10), (32, 32)),
        ("min", 736, (100, 50), (1472, 736)),
        ("min", 736, (800, 900), (800, 896)),
    ],
)
def test_det_resize_target_size(limit_type, side, src, expected):
    op = DetResizeForTest(limit_side_len=side, limit_type=limit_type)

    assert op.target_size(*src) == expected


def test_det_resize_rounds_halves_up():
    # 80 / 32 = 2.5 -> 3 * 32
    assert DetResizeForTest(limit_side_len=960).target_size(80, 80) == (96, 96)


def test_det_resize_unknown_limit_type():
    with pytest.raises(ConfigError):
        DetResizeForTest(limit_type="both").target_size(100, 100)


def test_det_resize_records_ratios():
    img = np.zeros((200, 300, 3), dtype=np.uint8)

    data = DetResizeForTest(limit_side_len=960)({"image": img})

    assert data["image"].shape == (192, 288, 3)
    src_h, src_w, ratio_h, ratio_w = data["shape"]
    assert (src_h, src_w) == (200, 300)
    assert ratio_h == pytest.approx(0.96)
    assert ratio_w == pytest.approx(0.96)


def test_filter_tag_det_res_rescales_and_clamps():
    boxes = np.array([
        [[10, 10], [60, 10], [60, 30], [10, 30]],
        [[40, 40], [120, 40], [120, 60], [40, 60]],
    ])

    kept = TextDetector.filter_tag_det_res(boxes, (100, 200, 3), ratio_h=0.5, ratio_w=0.5)

    np.testing.assert_array_equal(kept[0], [[20, 20], [120, 20], [120, 60], [20, 60]])
    np.testing.assert_array_equal(kept[1], [[80, 80], [199, 80], [199, 99], [80, 99]])


def test_filter_tag_det_res_drops_small_boxes():
    boxes = np.array([
        [[10, 10], [14, 10], [14, 40], [10, 40]],   # 4 px wide
        [[10, 10], [40, 10], [40, 14], [10, 14]],   # 4 px high
        [[10, 10], [15, 10], [15, 15], [10, 15]],   # 5 x 5
    ])

    kept = TextDetector.filter_tag_det_res(boxes, (100, 100, 3))

    assert kept.shape == (1, 4, 2)
    np.testing.assert_array_equal(kept[0], boxes[2])


def test_filter_tag_det_res_orders_corners():
    boxes = np.array([[[60, 30], [10, 10], [10, 30], [60, 10]]])

    kept = TextDetector.filter_tag_det_res(boxes, (100, 100, 3))

    np.testing.assert_array_equal(kept[0], [[10, 10], [60, 10], [60, 30], [10, 30]])


def test_detect_single_blob_end_to_end(blank_image):
    mask = np.zeros(blank_image.shape[:2], dtype=np.float32)
    mask[50:100, 100:200] = 1.0
    engine = FakeEngine(det=det_from_mask(mask))
    detector = TextDetector(engine, DetectorConfig(unclip_ratio=0.0))

    boxes = detector.detect_single(blank_image)

    assert engine.shapes("det") == [(1, 3, 192, 288)]
    assert engine.calls[0][2] == np.float32
    assert boxes.shape == (1, 4, 2)
    np.testing.assert_allclose(boxes[0], [[100, 50], [199, 50], [199, 99], [100, 99]], atol=2)


def test_detect_boxes_are_clockwise_and_in_bounds(blank_image):
    mask = np.zeros(blank_image.shape[:2], dtype=np.float32)
    mask[0:30, 0:120] = 1.0        # touches the top-left corner
    mask[150:200, 180:300] = 1.0   # touches the bottom-right corner
    mask[80:110, 60:90] = 1.0
    engine = FakeEngine(det=det_from_mask(mask))
    detector = TextDetector(engine, DetectorConfig())

    boxes = detector.detect_single(blank_image)

    assert len(boxes) == 3
    h, w = blank_image.shape[:2]
    for box in boxes:
        assert box[:, 0].min() >= 0 and box[:, 0].max() <= w - 1
        assert box[:, 1].min() >= 0 and box[:, 1].max() <= h - 1
        tl, tr, br, bl = box
        assert tl[0] <= tr[0] and bl[0] <= br[0]
        assert tl[1] <= bl[1] and tr[1] <= br[1]


def test_detect_without_text(blank_image):
    engine = FakeEngine(det=det_from_mask(np.zeros(blank_image.shape[:2])))
    detector = TextDetector(engine)

    assert detector.detect_single(blank_image).shape == (0, 4, 2)
    assert len(detector([blank_image, blank_image])) == 2
