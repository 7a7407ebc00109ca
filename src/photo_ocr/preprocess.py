"""Preprocessing operations for OCR."""

import math
from typing import Dict, List, Tuple

import cv2
import numpy as np

from .errors import ConfigError


class DetResizeForTest:
    """Resize image for text detection."""

    def __init__(self, limit_side_len=960, limit_type='max', **kwargs):
        self.limit_side_len = limit_side_len
        self.limit_type = limit_type

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        src_h, src_w, _ = img.shape
        resize_h, resize_w = self.target_size(src_h, src_w)

        img = cv2.resize(img, (resize_w, resize_h))

        ratio_h = resize_h / float(src_h)
        ratio_w = resize_w / float(src_w)

        data['image'] = img
        data['shape'] = np.array([src_h, src_w, ratio_h, ratio_w])
        return data

    def target_size(self, src_h: int, src_w: int) -> Tuple[int, int]:
        """Compute the (height, width) the detector runs at."""
        ratio = 1.0
        if self.limit_type == 'max':
            # Resize so the longer side = limit_side_len
            if max(src_h, src_w) > self.limit_side_len:
                if src_h > src_w:
                    ratio = float(self.limit_side_len) / src_h
                else:
                    ratio = float(self.limit_side_len) / src_w
        elif self.limit_type == 'min':
            # Resize so the shorter side = limit_side_len
            if min(src_h, src_w) < self.limit_side_len:
                if src_h < src_w:
                    ratio = float(self.limit_side_len) / src_h
                else:
                    ratio = float(self.limit_side_len) / src_w
        else:
            raise ConfigError(f"Unknown limit_type: {self.limit_type}")

        resize_h = int(src_h * ratio)
        resize_w = int(src_w * ratio)

        # Nearest multiple of 32, halves rounded up
        resize_h = max(int(math.floor(resize_h / 32 + 0.5)) * 32, 32)
        resize_w = max(int(math.floor(resize_w / 32 + 0.5)) * 32, 32)
        return resize_h, resize_w


class NormalizeImage:
    """Scale an HWC image to [0, 1], then standardize each channel."""

    def __init__(self, scale=1.0 / 255.0, mean=(0.485, 0.456, 0.406),
                 std=(0.229, 0.224, 0.225), **kwargs):
        self.scale = np.float32(scale)
        self.mean = np.asarray(mean, dtype=np.float32).reshape((1, 1, 3))
        self.std = np.asarray(std, dtype=np.float32).reshape((1, 1, 3))

    def __call__(self, data: Dict) -> Dict:
        img = data['image'].astype(np.float32) * self.scale
        data['image'] = (img - self.mean) / self.std
        return data


class ToCHWImage:
    """Convert image from HWC to CHW format."""

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        data['image'] = img.transpose((2, 0, 1))
        return data


class KeepKeys:
    """Keep only specified keys in data dict."""

    def __init__(self, keep_keys: List[str], **kwargs):
        self.keep_keys = keep_keys

    def __call__(self, data: Dict) -> Tuple:
        """Return tuple of (image, shape_list) for detection."""
        return tuple(data[key] for key in self.keep_keys)


_OPERATORS = {
    "DetResizeForTest": DetResizeForTest,
    "NormalizeImage": NormalizeImage,
    "ToCHWImage": ToCHWImage,
    "KeepKeys": KeepKeys,
}


def create_operators(op_param_list: List[Dict]):
    """Create preprocessing operators from config list.

    Args:
        op_param_list: List of dicts like [{"OpName": {params}}]

    Returns:
        List of operator instances
    """
    ops = []
    for operator in op_param_list:
        if not isinstance(operator, dict) or len(operator) != 1:
            raise ConfigError(f"Operator spec must be a single-key mapping: {operator!r}")
        op_name = list(operator)[0]
        if op_name not in _OPERATORS:
            raise ConfigError(f"Unknown preprocessing operator: {op_name}")
        param = {} if operator[op_name] is None else operator[op_name]
        ops.append(_OPERATORS[op_name](**param))
    return ops


def transform(data: Dict, ops: List):
    """Apply preprocessing operators sequentially.

    Args:
        data: Dictionary containing 'image' key
        ops: List of operator instances

    Returns:
        Output of the last operator, or None if an operator rejected the input
    """
    for op in ops:
        data = op(data)
        if data is None:
            return None
    return data


def resize_norm_pad(img: np.ndarray, img_h: int, max_w: int, pad_value: float = 0.0) -> np.ndarray:
    """Resize a text crop to height ``img_h`` and pad it to ``max_w``.

    The crop keeps its aspect ratio (width ``min(ceil(img_h * w/h), max_w)``),
    is scaled to [-1, 1] and the right side is filled with ``pad_value``
    (0.0 is mid grey, -1.0 is black).

    Returns:
        float32 array of shape (3, img_h, max_w)
    """
    h, w = img.shape[:2]
    ratio = w / float(h)

    if math.ceil(img_h * ratio) > max_w:
        resized_w = max_w
    else:
        resized_w = int(math.ceil(img_h * ratio))
    resized_w = max(resized_w, 1)

    resized_image = cv2.resize(img, (resized_w, img_h))
    resized_image = resized_image.astype("float32")
    resized_image = resized_image.transpose((2, 0, 1)) / 255

    # Normalize: (x - 0.5) / 0.5
    resized_image -= 0.5
    resized_image /= 0.5

    padding_im = np.full((3, img_h, max_w), pad_value, dtype=np.float32)
    padding_im[:, :, 0:resized_w] = resized_image
    return padding_im
