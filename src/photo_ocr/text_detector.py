"""
Text Detection Module - Stage 1 of OCR Pipeline

Detects text regions in images using DBNet architecture.
"""

import logging
from typing import List, Union

import numpy as np

from .config import DetectorConfig
from .engine import STAGE_DET, InferenceEngine
from .geometry import clip_points, crop_size, order_points_clockwise
from .postprocess import DBPostProcess
from .preprocess import create_operators, transform

logger = logging.getLogger(__name__)


class TextDetector:
    """Text detection module.

    Takes an image and returns the text quadrilaterals found in it, in
    original image pixel coordinates.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        config: DetectorConfig = None,
    ):
        """Initialize text detector.

        Args:
            engine: Inference engine providing the ``det`` stage
            config: Detector configuration (uses defaults if None)
        """
        if config is None:
            config = DetectorConfig()

        self.config = config
        self.engine = engine

        self.preprocess_ops = create_operators([
            {
                "DetResizeForTest": {
                    "limit_side_len": config.limit_side_len,
                    "limit_type": config.limit_type,
                }
            },
            {
                "NormalizeImage": {
                    "std": [0.229, 0.224, 0.225],
                    "mean": [0.485, 0.456, 0.406],
                    "scale": 1.0 / 255.0,
                }
            },
            {"ToCHWImage": None},
            {"KeepKeys": {"keep_keys": ["image", "shape"]}},
        ])

        self.postprocess_op = DBPostProcess(
            thresh=config.thresh,
            box_thresh=config.box_thresh,
            max_candidates=config.max_candidates,
            unclip_ratio=config.unclip_ratio,
            use_dilation=config.use_dilation,
            score_mode=config.score_mode,
        )

    def preprocess(self, image: np.ndarray) -> tuple:
        """Resize and normalize a BGR image.

        Returns:
            Tuple of (CHW float32 image, [src_h, src_w, ratio_h, ratio_w])
        """
        data = {"image": image}
        return transform(data, self.preprocess_ops)

    def __call__(self, images: Union[np.ndarray, List[np.ndarray]]) -> List[np.ndarray]:
        """Detect text regions in each of a list of images.

        Returns:
            List of (N, 4, 2) int32 box arrays, one per image
        """
        if isinstance(images, np.ndarray) and images.ndim == 3:
            images = [images]
        return [self.detect_single(img) for img in images]

    def detect_single(self, image: np.ndarray) -> np.ndarray:
        """Detect text in a single image.

        Args:
            image: Input image as numpy array (H, W, C) in BGR

        Returns:
            Bounding boxes array of shape (N, 4, 2)
        """
        if image.size == 0:
            return np.zeros((0, 4, 2), dtype=np.int32)

        result = self.preprocess(image)
        if result is None:
            return np.zeros((0, 4, 2), dtype=np.int32)

        img, shape_info = result
        img = np.expand_dims(img, axis=0)
        shape_list = np.expand_dims(shape_info, axis=0)

        outputs = self.engine.infer(STAGE_DET, img)

        preds = {"maps": outputs[0]}
        post_result = self.postprocess_op(preds, shape_list)
        dt_boxes = post_result[0]["points"]

        _, _, ratio_h, ratio_w = shape_info
        dt_boxes = self.filter_tag_det_res(dt_boxes, image.shape, ratio_h, ratio_w)
        logger.debug("detector: %d boxes", len(dt_boxes))
        return dt_boxes

    @staticmethod
    def filter_tag_det_res(dt_boxes, image_shape, ratio_h=1.0, ratio_w=1.0) -> np.ndarray:
        """Map boxes back to the original image and drop tiny ones.

        Corners are ordered clockwise, divided by the resize ratios,
        truncated and clamped to the image. Boxes whose width or height is
        4 px or less are discarded.
        """
        img_height, img_width = image_shape[0:2]
        dt_boxes_new = []

        for box in dt_boxes:
            box = order_points_clockwise(np.asarray(box, dtype=np.float64))
            box[:, 0] = box[:, 0] / ratio_w
            box[:, 1] = box[:, 1] / ratio_h
            box = box.astype(np.int32)
            box = clip_points(box, img_height, img_width)

            rect_width, rect_height = crop_size(box)
            if rect_width <= 4 or rect_height <= 4:
                continue

            dt_boxes_new.append(box)

        return np.array(dt_boxes_new, dtype=np.int32).reshape(-1, 4, 2)
