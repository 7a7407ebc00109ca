"""Shared fixtures: a scriptable inference engine and synthetic images."""

import cv2
import numpy as np
import pytest

from photo_ocr.engine import InferenceEngine

# Default alphabet: index 0 blank, '0'-'9' at 1..10, 'a'-'z' at 11..36
NUM_DEFAULT_CLASSES = 37


class FakeEngine(InferenceEngine):
    """Returns outputs computed by per-stage handlers and records every call."""

    def __init__(self, **handlers):
        self.handlers = handlers
        self.calls = []

    def has_stage(self, stage):
        return stage in self.handlers

    def infer(self, stage, tensor):
        self.calls.append((stage, tensor.shape, tensor.dtype))
        return [self.handlers[stage](tensor)]

    def shapes(self, stage):
        return [shape for s, shape, _ in self.calls if s == stage]


def det_from_mask(mask):
    """Detection handler producing ``mask`` resized to the input tensor size."""
    def handler(tensor):
        n, _, h, w = tensor.shape
        resized = cv2.resize(mask.astype(np.float32), (w, h), interpolation=cv2.INTER_NEAREST)
        return np.repeat(resized[np.newaxis, np.newaxis], n, axis=0)
    return handler


def one_hot_sequence(indices, num_classes=NUM_DEFAULT_CLASSES, prob=0.9):
    """A (timesteps, num_classes) tensor whose argmax follows ``indices``."""
    seq = np.full((len(indices), num_classes), (1.0 - prob) / (num_classes - 1), dtype=np.float32)
    for t, idx in enumerate(indices):
        seq[t, idx] = prob
    return seq


def text_to_indices(text):
    """Default-alphabet class indices for ``text``, blanks between characters."""
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    indices = []
    for ch in text:
        indices.extend([alphabet.index(ch) + 1, 0])
    return indices


def rec_from_texts(texts_fn, timesteps=40, prob=0.9):
    """Recognition handler emitting ``texts_fn(row_tensor)`` for every batch row."""
    def handler(tensor):
        out = []
        for row in tensor:
            indices = text_to_indices(texts_fn(row))
            indices += [0] * (timesteps - len(indices))
            out.append(one_hot_sequence(indices, prob=prob))
        return np.stack(out)
    return handler


def valid_width(row, pad_value=-1.0):
    """Number of columns of a (3, H, W) recognizer row that are not padding."""
    return int((row != pad_value).any(axis=(0, 1)).sum())


@pytest.fixture
def blank_image():
    return np.zeros((200, 300, 3), dtype=np.uint8)
