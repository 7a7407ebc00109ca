"""Result types returned by the OCR pipeline."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class Direction:
    """Orientation of a text crop: label 0 is upright, 1 is rotated 180 degrees."""
    label: int
    score: float

    @property
    def is_rotated(self) -> bool:
        return self.label % 2 == 1

    def to_dict(self) -> Dict[str, Any]:
        return {"label": int(self.label), "score": float(self.score)}


@dataclass
class Result:
    """A single recognized text line."""
    text: str
    bbox: np.ndarray  # (4, 2) int32, clockwise from top-left
    score: float
    direction: Optional[Direction] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "bbox": [[int(x), int(y)] for x, y in np.asarray(self.bbox).reshape(4, 2)],
            "score": float(self.score),
            "direction": self.direction.to_dict() if self.direction is not None else None,
        }

    def __str__(self):
        bbox: List[List[int]] = self.to_dict()["bbox"]
        s = f"{self.text!r} score={self.score:.4f} bbox={bbox}"
        if self.direction is not None:
            s += f" direction={self.direction.label}({self.direction.score:.4f})"
        return s
