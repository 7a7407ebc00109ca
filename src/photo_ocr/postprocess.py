"""Postprocessing modules for OCR outputs."""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from .errors import ConfigError, ModelNotFoundError
from .geometry import bounding_rect, clamp, get_mini_boxes, unclip
from .result import Direction


class DBPostProcess:
    """Post-processing for DB (Differentiable Binarization) text detection.

    Converts probability maps to bounding boxes.
    """

    def __init__(
        self,
        thresh=0.3,
        box_thresh=0.7,
        max_candidates=1000,
        unclip_ratio=2.0,
        use_dilation=False,
        score_mode="fast",
        min_size=3,
    ):
        """Initialize DB post-processor.

        Args:
            thresh: Binarization threshold for probability map
            box_thresh: Minimum confidence score for boxes
            max_candidates: Maximum number of contours examined per map
            unclip_ratio: Ratio for expanding text regions
            use_dilation: Apply morphological dilation
            score_mode: 'fast' (box mean) or 'slow' (contour mean)
            min_size: Minimum short side of a candidate, in map pixels
        """
        self.thresh = thresh
        self.box_thresh = box_thresh
        self.max_candidates = max_candidates
        self.unclip_ratio = unclip_ratio
        self.min_size = min_size
        self.score_mode = score_mode

        self.dilation_kernel = None if not use_dilation else np.array([[1, 1], [1, 1]], dtype=np.uint8)

    def __call__(self, pred_dict, shape_list):
        """Convert prediction maps to bounding boxes.

        Args:
            pred_dict: Dictionary with 'maps' key, shape (N, 1, H, W)
            shape_list: Original image shapes [H, W, ratio_h, ratio_w]

        Returns:
            List of dictionaries with 'points' (N, 4, 2) int32 boxes in
            probability-map coordinates and their 'scores'
        """
        pred = pred_dict['maps']
        if pred.ndim == 4:
            pred = pred[:, 0, :, :]
        segmentation = pred > self.thresh

        boxes_batch = []
        for batch_index in range(pred.shape[0]):
            mask = segmentation[batch_index].astype(np.uint8)
            if self.dilation_kernel is not None:
                mask = cv2.dilate(mask, self.dilation_kernel)

            height, width = pred[batch_index].shape
            boxes, scores = self.boxes_from_bitmap(pred[batch_index], mask, width, height)
            boxes_batch.append({'points': boxes, 'scores': scores})

        return boxes_batch

    def boxes_from_bitmap(self, pred, bitmap, dest_width, dest_height):
        """Extract quad boxes from binary bitmap."""
        if len(bitmap.shape) != 2:
            raise ValueError(f"Expected 2D bitmap, got shape {bitmap.shape}")

        height, width = bitmap.shape

        outs = cv2.findContours(
            (bitmap * 255).astype(np.uint8),
            cv2.RETR_EXTERNAL,
            cv2.CHAIN_APPROX_SIMPLE
        )
        contours = outs[1] if len(outs) == 3 else outs[0]

        num_contours = min(len(contours), self.max_candidates)

        boxes = []
        scores = []

        for index in range(num_contours):
            contour = contours[index]
            if contour.shape[0] <= 2:
                continue

            points, sside = get_mini_boxes(contour)
            if sside < self.min_size:
                continue

            if self.score_mode == "slow":
                score = self.box_score_slow(pred, contour.reshape(-1, 2))
            else:
                score = self.box_score_fast(pred, points)
            if score < self.box_thresh:
                continue

            paths = unclip(points, self.unclip_ratio)
            if len(paths) == 0:
                continue
            expanded = np.concatenate([np.array(p) for p in paths]).reshape(-1, 1, 2)

            box, sside = get_mini_boxes(expanded)
            if sside < 1.001:
                continue
            if sside < self.min_size + 2:
                continue

            box[:, 0] = np.clip(np.round(box[:, 0] / width * dest_width), 0, dest_width)
            box[:, 1] = np.clip(np.round(box[:, 1] / height * dest_height), 0, dest_height)
            boxes.append(box.astype("int32"))
            scores.append(score)

        return np.array(boxes, dtype="int32").reshape(-1, 4, 2), scores

    def box_score_fast(self, bitmap, box):
        """Mean probability inside the min-area quad."""
        return self._mean_inside(bitmap, box)

    def box_score_slow(self, bitmap, contour):
        """Mean probability inside the full contour polygon."""
        return self._mean_inside(bitmap, contour)

    @staticmethod
    def _mean_inside(bitmap, polygon):
        h, w = bitmap.shape[:2]
        polygon = np.array(polygon, dtype=np.float32).reshape(-1, 2)

        left, top, right, bottom = bounding_rect(polygon)
        xmin, xmax = clamp(left, 0, w - 1), clamp(right, 0, w - 1)
        ymin, ymax = clamp(top, 0, h - 1), clamp(bottom, 0, h - 1)

        mask = np.zeros((ymax - ymin + 1, xmax - xmin + 1), dtype=np.uint8)
        polygon -= np.array([xmin, ymin], dtype=np.float32)
        cv2.fillPoly(mask, polygon.reshape(1, -1, 2).astype(np.int32), 1)
        return cv2.mean(bitmap[ymin:ymax + 1, xmin:xmax + 1].astype(np.float32), mask)[0]


class ClsPostProcess:
    """Post-processing for text orientation classification."""

    def __call__(self, preds) -> List[Direction]:
        """Convert (batch, num_classes) probabilities to directions."""
        preds = np.asarray(preds)
        pred_idxs = preds.argmax(axis=1)
        return [
            Direction(label=int(idx), score=float(preds[i, idx]))
            for i, idx in enumerate(pred_idxs)
        ]


class CTCLabelDecode:
    """CTC decoding for text recognition."""

    def __init__(
        self,
        character_dict_path: Optional[Union[str, Path]] = None,
        use_space_char: bool = False,
        max_text_length: int = 0,
    ):
        """Initialize CTC decoder.

        Args:
            character_dict_path: Path to character dictionary file, one token per line
            use_space_char: Append a space token to the vocabulary
            max_text_length: Truncate decoded text to this many characters (0 = no limit)
        """
        self.max_text_length = max_text_length

        if character_dict_path is None:
            dict_character = list("0123456789abcdefghijklmnopqrstuvwxyz")
        else:
            dict_character = []
            try:
                with open(character_dict_path, "rb") as fin:
                    for line in fin.readlines():
                        dict_character.append(line.decode("utf-8").strip("\n").strip("\r\n"))
            except FileNotFoundError as e:
                raise ModelNotFoundError(f"Character dictionary not found: {character_dict_path}") from e

        if use_space_char:
            dict_character.append(" ")

        self.dict_source = str(character_dict_path) if character_dict_path is not None else "the built-in 0-9a-z alphabet"
        # Index 0 is the CTC blank token
        self.character = ["blank"] + dict_character

    def __len__(self):
        return len(self.character)

    def __call__(self, preds) -> List[Tuple[str, float]]:
        """Decode CTC predictions to text.

        Args:
            preds: Prediction array [batch, time, num_classes]

        Returns:
            List of (text, confidence) tuples
        """
        if isinstance(preds, (tuple, list)):
            preds = preds[-1]

        num_classes = preds.shape[2]
        if num_classes > len(self.character):
            raise ConfigError(
                f"Recognizer outputs {num_classes} classes but {self.dict_source} "
                f"gives only {len(self.character)} (blank included); "
                f"check char_dict_path and use_space_char"
            )

        preds_idx = preds.argmax(axis=2)
        preds_prob = preds.max(axis=2)
        return self.decode(preds_idx, preds_prob, is_remove_duplicate=True)

    def decode(self, text_index, text_prob=None, is_remove_duplicate=False):
        """Convert text indices to strings."""
        result_list = []
        ignored_tokens = [0]  # CTC blank token
        batch_size = len(text_index)

        for batch_idx in range(batch_size):
            indices = np.asarray(text_index[batch_idx])
            selection = np.ones(len(indices), dtype=bool)

            if is_remove_duplicate:
                selection[1:] = indices[1:] != indices[:-1]

            for ignored_token in ignored_tokens:
                selection &= indices != ignored_token

            char_list = [self.character[text_id] for text_id in indices[selection]]

            if text_prob is not None:
                conf_list = list(np.asarray(text_prob[batch_idx])[selection])
            else:
                conf_list = [1.0] * len(char_list)

            if self.max_text_length > 0:
                char_list = char_list[:self.max_text_length]
                conf_list = conf_list[:self.max_text_length]

            text = "".join(char_list)
            score = float(np.mean(conf_list)) if conf_list else 0.0
            result_list.append((text, score))

        return result_list
