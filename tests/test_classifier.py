"""Tests for the orientation classifier stage."""

import numpy as np
import pytest

from photo_ocr.config import ClassifierConfig
from photo_ocr.text_classifier import TextClassifier

from conftest import FakeEngine


def upside_down_if_bright(tensor):
    """Bright crops are reported as rotated with 0.95 confidence."""
    out = []
    for row in tensor:
        if row.mean() > 0:
            out.append([0.05, 0.95])
        else:
            out.append([0.99, 0.01])
    return np.array(out, dtype=np.float32)


def bright_crop(width, height=24):
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    img[:4, :4] = 100  # marker in the top-left corner
    return img


def dark_crop(width, height=24):
    return np.zeros((height, width, 3), dtype=np.uint8)


def test_rotates_confident_upside_down_crops():
    engine = FakeEngine(cls=upside_down_if_bright)
    classifier = TextClassifier(engine, ClassifierConfig(enabled=True, thresh=0.9))
    crops = [bright_crop(60), dark_crop(80)]

    images, directions = classifier(crops)

    assert [d.label for d in directions] == [1, 0]
    assert directions[0].score == pytest.approx(0.95)
    # Marker moved to the bottom-right corner
    assert (images[0][-4:, -4:] == 100).all()
    assert (images[0][:4, :4] == 255).all()
    np.testing.assert_array_equal(images[1], crops[1])
    # Inputs untouched
    assert (crops[0][:4, :4] == 100).all()


def test_low_confidence_keeps_orientation():
    engine = FakeEngine(cls=upside_down_if_bright)
    classifier = TextClassifier(engine, ClassifierConfig(enabled=True, thresh=0.96))
    crops = [bright_crop(60)]

    images, directions = classifier(crops)

    assert directions[0].label == 1
    np.testing.assert_array_equal(images[0], crops[0])


def test_classify_only_never_rotates():
    engine = FakeEngine(cls=upside_down_if_bright)
    classifier = TextClassifier(engine, ClassifierConfig(enabled=True))
    crop = bright_crop(60)

    directions = classifier.classify_only([crop])

    assert directions[0].label == 1


def test_batches_and_fixed_input_shape():
    engine = FakeEngine(cls=upside_down_if_bright)
    classifier = TextClassifier(engine, ClassifierConfig(enabled=True, batch_num=2))
    crops = [bright_crop(w) if i % 2 else dark_crop(w) for i, w in enumerate([30, 200, 90, 500, 45])]

    _, directions = classifier(crops)

    assert engine.shapes("cls") == [(2, 3, 48, 192), (2, 3, 48, 192), (1, 3, 48, 192)]
    assert [d.label for d in directions] == [0, 1, 0, 1, 0]


def test_narrow_crop_is_zero_padded():
    classifier = TextClassifier(FakeEngine(), ClassifierConfig(enabled=True))

    norm = classifier.resize_norm_img(bright_crop(24))

    assert norm.shape == (3, 48, 192)
    assert norm[:, :, 48:].max() == 0.0
    assert norm[:, 10:, 10:40].min() == pytest.approx(1.0)


def test_empty_input():
    classifier = TextClassifier(FakeEngine(), ClassifierConfig(enabled=True))

    assert classifier([]) == ([], [])
