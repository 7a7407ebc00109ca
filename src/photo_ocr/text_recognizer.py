"""
Text Recognition Module - Stage 3 of OCR Pipeline

Recognizes text from oriented text image patches.
"""

import logging
from typing import List, Tuple

import numpy as np

from .config import RecognizerConfig
from .engine import STAGE_REC, InferenceEngine
from .postprocess import CTCLabelDecode
from .preprocess import resize_norm_pad
from .utils import apply_sorted

logger = logging.getLogger(__name__)


class TextRecognizer:
    """Text recognition module with aspect-ratio batching."""

    def __init__(
        self,
        engine: InferenceEngine,
        config: RecognizerConfig = None,
        decoder: CTCLabelDecode = None,
    ):
        """Initialize text recognizer.

        Args:
            engine: Inference engine providing the ``rec`` stage
            config: Recognizer configuration (uses defaults if None)
            decoder: CTC decoder; built from ``config.char_dict_path`` if None
        """
        if config is None:
            config = RecognizerConfig()

        self.config = config
        self.engine = engine
        self.rec_image_shape = config.image_shape
        self.rec_batch_num = config.batch_num

        if decoder is None:
            decoder = CTCLabelDecode(
                character_dict_path=config.char_dict_path,
                use_space_char=config.use_space_char,
                max_text_length=config.max_text_length,
            )
        self.postprocess_op = decoder

    def resize_norm_img(self, img: np.ndarray, max_wh_ratio: float) -> np.ndarray:
        """Resize and normalize image for recognition.

        Args:
            img: Input image (H, W, C) in BGR
            max_wh_ratio: Maximum width/height ratio in batch

        Returns:
            Processed image (C, H, W) padded to ``int(H * max_wh_ratio)``
        """
        _, imgH, _ = self.rec_image_shape
        imgW = int(imgH * max_wh_ratio)
        # Pad with black, as a black border added before normalizing would be
        return resize_norm_pad(img, imgH, imgW, pad_value=-1.0)

    def __call__(self, img_list: List[np.ndarray]) -> List[Tuple[str, float]]:
        """Recognize text in batch of images.

        Args:
            img_list: List of text image patches (BGR format)

        Returns:
            List of (text, confidence) tuples, in input order
        """
        if not img_list:
            return []

        # Sorting by aspect ratio keeps the padded batch width small
        width_list = [img.shape[1] / float(img.shape[0]) for img in img_list]
        rec_res = apply_sorted(img_list, width_list, self._recognize_sorted)

        logger.debug("recognizer: %d crops", len(rec_res))
        return rec_res

    def _recognize_sorted(self, img_list: List[np.ndarray]) -> List[Tuple[str, float]]:
        img_num = len(img_list)
        _, imgH, imgW = self.rec_image_shape
        rec_res: List[Tuple[str, float]] = []

        for beg_img_no in range(0, img_num, self.rec_batch_num):
            end_img_no = min(img_num, beg_img_no + self.rec_batch_num)

            max_wh_ratio = imgW / imgH
            for ino in range(beg_img_no, end_img_no):
                h, w = img_list[ino].shape[0:2]
                max_wh_ratio = max(max_wh_ratio, w * 1.0 / h)

            norm_img_batch = np.stack([
                self.resize_norm_img(img_list[ino], max_wh_ratio)
                for ino in range(beg_img_no, end_img_no)
            ])

            outputs = self.engine.infer(STAGE_REC, norm_img_batch)
            rec_res.extend(self.postprocess_op(outputs[0]))

        return rec_res

    def recognize_single(self, img: np.ndarray) -> Tuple[str, float]:
        """Recognize text in a single image."""
        results = self([img])
        return results[0] if results else ("", 0.0)
