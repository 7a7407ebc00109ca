"""
High-level OCR Pipeline
Combines detection, orientation classification and recognition.
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, List, Optional, Union

import cv2
import numpy as np

from .config import OCRConfig, load_config
from .engine import STAGE_CLS, STAGE_DET, STAGE_REC, InferenceEngine, OnnxInferenceEngine, resolve_model_file
from .errors import ConfigError, ImageReadError
from .models import registry
from .result import Result
from .text_classifier import TextClassifier
from .text_detector import TextDetector
from .text_recognizer import TextRecognizer
from .utils import get_rotate_crop_image, sorted_boxes

logger = logging.getLogger(__name__)

StageCallback = Callable[[str, float], None]


class OCRPipeline:
    """
    Complete OCR pipeline combining detection, classification, and recognition.

    Usage:
        ocr = OCRPipeline.from_config("conf.yaml")
        results = ocr.predict(ocr.read_image("photo.jpg"))

    Tests and embedders can pass any :class:`InferenceEngine`; the pipeline
    only calls ``engine.infer(stage, tensor)``.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        config: Optional[OCRConfig] = None,
        on_stage: Optional[StageCallback] = None,
    ):
        """
        Args:
            engine: Inference engine serving the det/cls/rec stages
            config: Engine configuration (defaults if None)
            on_stage: Called with (stage name, elapsed seconds) after each stage
        """
        if config is None:
            config = OCRConfig()
        for stage in (STAGE_DET, STAGE_REC) + ((STAGE_CLS,) if config.classifier.enabled else ()):
            if not engine.has_stage(stage):
                raise ConfigError(f"Inference engine has no model for stage '{stage}'")
        self.config = config
        self.engine = engine
        self.on_stage = on_stage

        self.text_detector = TextDetector(engine, config.detector)
        if config.classifier.enabled:
            self.text_classifier = TextClassifier(engine, config.classifier)
        else:
            self.text_classifier = None
        self.text_recognizer = TextRecognizer(engine, config.recognizer)

    @classmethod
    def from_config(
        cls,
        config: Union[str, Path, OCRConfig],
        on_stage: Optional[StageCallback] = None,
    ) -> "OCRPipeline":
        """Build a pipeline backed by ONNX Runtime.

        Stages without a configured ``model_dir`` (and a recognizer without
        ``char_dict_path``) fall back to the default weights from the model
        registry.
        """
        if not isinstance(config, OCRConfig):
            config = load_config(config)

        stages = [(STAGE_DET, config.detector), (STAGE_REC, config.recognizer)]
        if config.classifier.enabled:
            stages.append((STAGE_CLS, config.classifier))

        model_paths = {}
        for stage, section in stages:
            path = resolve_model_file(section.model_dir)
            if path is None:
                path = registry.get(stage)
            model_paths[stage] = path

        if not config.recognizer.char_dict_path:
            config.recognizer.char_dict_path = str(registry.get("dict"))

        engine = OnnxInferenceEngine(
            model_paths,
            use_gpu=config.predictor.use_gpu,
            use_tensorrt=config.predictor.use_tensorrt,
            num_threads=config.predictor.num_cpu_threads,
        )
        return cls(engine, config, on_stage=on_stage)

    @staticmethod
    def read_image(path: Union[str, Path]) -> np.ndarray:
        """Read an image file as a BGR array."""
        img = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if img is None or img.size == 0:
            raise ImageReadError(f"Could not read image {path}")
        return img

    def predict(self, img: np.ndarray) -> List[Result]:
        """Run the full pipeline on one BGR image.

        Returns:
            One Result per detected text box, in reading order
        """
        with self._timed(STAGE_DET):
            dt_boxes = self.text_detector.detect_single(img)

        if len(dt_boxes) == 0:
            return []

        dt_boxes = sorted_boxes(dt_boxes)
        img_crop_list = [get_rotate_crop_image(img, box) for box in dt_boxes]

        directions = [None] * len(img_crop_list)
        if self.text_classifier is not None:
            with self._timed(STAGE_CLS):
                img_crop_list, directions = self.text_classifier(img_crop_list)

        with self._timed(STAGE_REC):
            rec_res = self.text_recognizer(img_crop_list)

        results = [
            Result(text=text, bbox=box, score=score, direction=direction)
            for box, (text, score), direction in zip(dt_boxes, rec_res, directions)
        ]
        return self._filter(results)

    def predict_batch(self, images: List[np.ndarray]) -> List[List[Result]]:
        """Run :meth:`predict` on each image in turn."""
        return [self.predict(img) for img in images]

    def _filter(self, results: List[Result]) -> List[Result]:
        rec_cfg = self.config.recognizer
        if rec_cfg.drop_empty:
            results = [r for r in results if r.text]
        if rec_cfg.drop_score > 0:
            results = [r for r in results if r.score >= rec_cfg.drop_score]
        return results

    @contextmanager
    def _timed(self, stage: str):
        start = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start
        logger.debug("%s: %.1fms", stage, elapsed * 1000)
        if self.on_stage is not None:
            self.on_stage(stage, elapsed)

    def __repr__(self):
        return (
            f"OCRPipeline(\n"
            f"  detector={self.text_detector},\n"
            f"  classifier={self.text_classifier},\n"
            f"  recognizer={self.text_recognizer}\n"
            f")"
        )
