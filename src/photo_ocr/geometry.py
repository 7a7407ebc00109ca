"""Point, rectangle and polygon helpers shared by the OCR stages."""

from typing import List, Tuple

import cv2
import numpy as np
import pyclipper
from shapely.geometry import Polygon


def distance(p, q) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.asarray(p, dtype=np.float64) - np.asarray(q, dtype=np.float64)))


def clamp(value, low, high):
    return min(max(value, low), high)


def polygon_area(points) -> float:
    return Polygon(np.asarray(points, dtype=np.float64)).area


def polygon_perimeter(points) -> float:
    return Polygon(np.asarray(points, dtype=np.float64)).length


def order_points_clockwise(points: np.ndarray) -> np.ndarray:
    """Order 4 points as [top-left, top-right, bottom-right, bottom-left].

    Points are sorted by x; the two left-most and the two right-most are
    then each ordered by y.
    """
    pts = np.asarray(points).reshape(4, 2)
    xsorted = pts[np.argsort(pts[:, 0], kind="stable")]

    left, right = xsorted[:2], xsorted[2:]
    if left[0][1] > left[1][1]:
        left = left[::-1]
    if right[0][1] > right[1][1]:
        right = right[::-1]

    return np.array([left[0], right[0], right[1], left[1]], dtype=pts.dtype)


def get_mini_boxes(contour) -> Tuple[np.ndarray, float]:
    """Get minimum area rectangle of a contour.

    Returns:
        Tuple of (4x2 float32 corners in clockwise order, shorter side length)
    """
    bounding_box = cv2.minAreaRect(np.asarray(contour, dtype=np.float32).reshape(-1, 1, 2))
    points = cv2.boxPoints(bounding_box)
    box = order_points_clockwise(points)
    return box.astype(np.float32), float(min(bounding_box[1]))


def unclip(box, unclip_ratio: float) -> List[List[List[int]]]:
    """Expand a polygon outward with a rounded Vatti offset.

    The offset distance is ``unclip_ratio * area / perimeter``. Returns the
    offset paths produced by pyclipper; an empty list means the polygon
    vanished (degenerate input).
    """
    box = np.asarray(box).reshape(-1, 2)
    perimeter = polygon_perimeter(box)
    if perimeter == 0:
        return []
    offset_dist = polygon_area(box) * unclip_ratio / perimeter
    offset = pyclipper.PyclipperOffset()
    offset.AddPath(box.tolist(), pyclipper.JT_ROUND, pyclipper.ET_CLOSEDPOLYGON)
    return offset.Execute(offset_dist)


def bounding_rect(points) -> Tuple[int, int, int, int]:
    """Axis-aligned bounds (left, top, right, bottom) of a point set."""
    pts = np.asarray(points).reshape(-1, 2)
    return (
        int(np.floor(pts[:, 0].min())),
        int(np.floor(pts[:, 1].min())),
        int(np.ceil(pts[:, 0].max())),
        int(np.ceil(pts[:, 1].max())),
    )


def clip_points(points: np.ndarray, img_height: int, img_width: int) -> np.ndarray:
    """Clamp points into [0, width-1] x [0, height-1]."""
    points = np.array(points, copy=True)
    points[:, 0] = np.clip(points[:, 0], 0, img_width - 1)
    points[:, 1] = np.clip(points[:, 1], 0, img_height - 1)
    return points


def crop_size(box) -> Tuple[int, int]:
    """Width |p0-p1| and height |p0-p3| of a clockwise quad, truncated to int."""
    return int(distance(box[0], box[1])), int(distance(box[0], box[3]))
