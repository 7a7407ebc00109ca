"""Utility functions for OCR pipeline."""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .geometry import bounding_rect, crop_size

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def sort_indices(keys: Sequence) -> List[int]:
    """Stable argsort of ``keys``."""
    return sorted(range(len(keys)), key=lambda i: keys[i])


def apply_sorted(
    items: Sequence[T],
    keys: Sequence,
    func: Callable[[List[T]], Sequence[R]],
) -> List[R]:
    """Run ``func`` over ``items`` sorted by ``keys`` and restore input order.

    ``func`` receives the items in ascending key order and must return one
    output per item, in the order it received them. The outputs are
    scattered back so that ``result[i]`` belongs to ``items[i]``.
    """
    order = sort_indices(keys)
    outputs = func([items[i] for i in order])
    if len(outputs) != len(order):
        raise ValueError(f"Expected {len(order)} outputs, got {len(outputs)}")

    results: List[Optional[R]] = [None] * len(items)
    for src_idx, out in zip(order, outputs):
        results[src_idx] = out
    return results


def get_rotate_crop_image(img: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Crop and rotate text region from image.

    Args:
        img: Source image
        points: Text region points (4x2 array), clockwise from top-left

    Returns:
        Cropped and rotated text image
    """
    points = np.asarray(points).reshape(4, 2)
    left, top, right, bottom = bounding_rect(points)
    img_crop = img[top:bottom + 1, left:right + 1]

    pts = (points - np.array([left, top])).astype(np.float32)

    img_crop_width, img_crop_height = crop_size(points)
    img_crop_width = max(img_crop_width, 1)
    img_crop_height = max(img_crop_height, 1)

    pts_std = np.float32([
        [0, 0],
        [img_crop_width, 0],
        [img_crop_width, img_crop_height],
        [0, img_crop_height]
    ])

    M = cv2.getPerspectiveTransform(pts, pts_std)
    dst_img = cv2.warpPerspective(
        img_crop,
        M,
        (img_crop_width, img_crop_height),
        borderMode=cv2.BORDER_REPLICATE,
        flags=cv2.INTER_LINEAR
    )

    dst_img_height, dst_img_width = dst_img.shape[0:2]
    if dst_img_height * 1.0 / dst_img_width >= 1.5:
        # Tall crops hold vertical text
        dst_img = cv2.rotate(dst_img, cv2.ROTATE_90_COUNTERCLOCKWISE)

    return dst_img


def sorted_boxes(dt_boxes: np.ndarray) -> np.ndarray:
    """Sort text boxes from top to bottom, left to right.

    Boxes are ordered by the top-left corner's (y, x), then a single pass
    swaps neighbours that sit on the same line (y within 10 px) but are in
    reversed x order.

    Args:
        dt_boxes: Detection boxes array (N, 4, 2)

    Returns:
        Sorted boxes array
    """
    boxes = list(dt_boxes)
    order = sort_indices([(box[0][1], box[0][0]) for box in boxes])
    _boxes = [boxes[i] for i in order]

    for i in range(len(_boxes) - 1):
        if abs(int(_boxes[i + 1][0][1]) - int(_boxes[i][0][1])) < 10 and \
           (_boxes[i + 1][0][0] < _boxes[i][0][0]):
            _boxes[i], _boxes[i + 1] = _boxes[i + 1], _boxes[i]

    return np.array(_boxes, dtype=np.int32).reshape(-1, 4, 2)


def draw_ocr_boxes(
    image: np.ndarray,
    results: list,
    drop_score: float = 0.0,
    font_path: str = None
) -> np.ndarray:
    """Draw OCR results on image.

    Args:
        image: Source image (BGR)
        results: List of Result objects
        drop_score: Results below this score are not drawn
        font_path: Path to a TrueType font for text rendering

    Returns:
        Image with drawn boxes and text (BGR)
    """
    img = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
    draw = ImageDraw.Draw(img)

    font = ImageFont.load_default()
    if font_path:
        try:
            font = ImageFont.truetype(font_path, 18)
        except OSError:
            logger.warning("Cannot load font %s, using the default font", font_path)

    for res in results:
        if res.score < drop_score:
            continue

        box = np.asarray(res.bbox).astype(np.int32).reshape(-1, 2)
        draw.polygon([tuple(int(v) for v in p) for p in box], outline=(0, 255, 0))

        box_width, box_height = crop_size(box)
        # Vertical text labels would overlap neighbouring boxes
        if box_height <= 2 * box_width and res.text:
            draw.text((int(box[0][0]), int(box[0][1]) - 20), res.text, fill=(255, 0, 0), font=font)

    return cv2.cvtColor(np.array(img), cv2.COLOR_RGB2BGR)
