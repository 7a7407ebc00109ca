"""
photo_ocr: text detection and recognition for photographs

Three stages, each with its own pre/post-processing:
- TextDetector: Finds text regions (DB probability map -> quadrilaterals)
- TextClassifier: Corrects upside-down text crops
- TextRecognizer: Converts text crops to strings (greedy CTC decode)

OCRPipeline chains them; the model runtime sits behind InferenceEngine.
"""

from .config import (
    ClassifierConfig,
    DetectorConfig,
    OCRConfig,
    PredictorConfig,
    RecognizerConfig,
    load_config,
)
from .engine import InferenceEngine, OnnxInferenceEngine
from .errors import ConfigError, ImageReadError, ModelNotFoundError, OCRError
from .pipeline import OCRPipeline
from .result import Direction, Result
from .text_classifier import TextClassifier
from .text_detector import TextDetector
from .text_recognizer import TextRecognizer

__version__ = "0.1.0"
__all__ = [
    "OCRPipeline",
    "TextDetector",
    "TextClassifier",
    "TextRecognizer",
    "InferenceEngine",
    "OnnxInferenceEngine",
    "OCRConfig",
    "PredictorConfig",
    "DetectorConfig",
    "ClassifierConfig",
    "RecognizerConfig",
    "load_config",
    "Result",
    "Direction",
    "OCRError",
    "ConfigError",
    "ModelNotFoundError",
    "ImageReadError",
]
