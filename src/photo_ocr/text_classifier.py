"""
Text Orientation Classification Module - Stage 2 of OCR Pipeline

Detects and corrects text orientation (0 or 180 degrees).
"""

import logging
from typing import List, Tuple

import cv2
import numpy as np

from .config import ClassifierConfig
from .engine import STAGE_CLS, InferenceEngine
from .postprocess import ClsPostProcess
from .preprocess import resize_norm_pad
from .result import Direction
from .utils import apply_sorted

logger = logging.getLogger(__name__)


class TextClassifier:
    """Text orientation classification module with batch processing."""

    def __init__(
        self,
        engine: InferenceEngine,
        config: ClassifierConfig = None,
    ):
        """Initialize text classifier.

        Args:
            engine: Inference engine providing the ``cls`` stage
            config: Classifier configuration (uses defaults if None)
        """
        if config is None:
            config = ClassifierConfig()

        self.config = config
        self.engine = engine
        self.cls_image_shape = config.image_shape
        self.cls_batch_num = config.batch_num
        self.cls_thresh = config.thresh

        self.postprocess_op = ClsPostProcess()

    def resize_norm_img(self, img: np.ndarray) -> np.ndarray:
        """Resize to the classifier shape, normalize and zero pad."""
        _, imgH, imgW = self.cls_image_shape
        return resize_norm_pad(img, imgH, imgW)

    def __call__(
        self,
        img_list: List[np.ndarray],
        auto_rotate: bool = True
    ) -> Tuple[List[np.ndarray], List[Direction]]:
        """Classify and optionally rotate batch of text images.

        Args:
            img_list: List of text image patches (BGR format)
            auto_rotate: If True, rotate images classified as 180 degrees

        Returns:
            Tuple of:
            - List of (possibly rotated) images, in input order
            - List of Direction, in input order
        """
        if not img_list:
            return [], []

        # Aspect ratio ordering keeps similar crops in the same batch
        width_list = [img.shape[1] / float(img.shape[0]) for img in img_list]
        directions = apply_sorted(img_list, width_list, self._classify_sorted)

        out_images = []
        for img, direction in zip(img_list, directions):
            if auto_rotate and direction.is_rotated and direction.score > self.cls_thresh:
                img = cv2.rotate(img, cv2.ROTATE_180)
            else:
                img = img.copy()
            out_images.append(img)

        logger.debug("classifier: %d crops", len(directions))
        return out_images, directions

    def _classify_sorted(self, img_list: List[np.ndarray]) -> List[Direction]:
        img_num = len(img_list)
        directions: List[Direction] = []

        for beg_img_no in range(0, img_num, self.cls_batch_num):
            end_img_no = min(img_num, beg_img_no + self.cls_batch_num)

            norm_img_batch = np.stack([
                self.resize_norm_img(img_list[ino])
                for ino in range(beg_img_no, end_img_no)
            ])

            outputs = self.engine.infer(STAGE_CLS, norm_img_batch)
            directions.extend(self.postprocess_op(outputs[0]))

        return directions

    def classify_only(self, img_list: List[np.ndarray]) -> List[Direction]:
        """Classify orientation without rotating images."""
        _, cls_res = self(img_list, auto_rotate=False)
        return cls_res
