"""Configuration classes for OCR modules."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import ConfigError


@dataclass
class PredictorConfig:
    """Configuration shared by every inference session."""
    use_gpu: bool = False  # Enable CUDA GPU acceleration
    use_tensorrt: bool = False  # Enable TensorRT acceleration
    num_cpu_threads: int = 0  # 0 keeps the runtime default

    def validate(self) -> None:
        if self.num_cpu_threads < 0:
            raise ConfigError("predictor.num_cpu_threads must be >= 0")


@dataclass
class DetectorConfig:
    """Configuration for text detection stage."""
    model_dir: Optional[str] = None
    limit_side_len: int = 960  # Side length bound for input images
    limit_type: str = "max"  # 'max' or 'min'
    thresh: float = 0.3  # Binarization threshold
    box_thresh: float = 0.6  # Box confidence threshold
    unclip_ratio: float = 1.5  # Text region expansion ratio
    score_mode: str = "fast"  # 'fast' or 'slow'
    use_dilation: bool = False  # Apply dilation to binary mask
    max_candidates: int = 1000

    def validate(self) -> None:
        if self.limit_type not in ("max", "min"):
            raise ConfigError(f"detector.limit_type must be 'max' or 'min', got {self.limit_type!r}")
        if self.score_mode not in ("fast", "slow"):
            raise ConfigError(f"detector.score_mode must be 'fast' or 'slow', got {self.score_mode!r}")
        if self.limit_side_len <= 0:
            raise ConfigError("detector.limit_side_len must be > 0")
        if not (0.0 <= self.thresh <= 1.0):
            raise ConfigError("detector.thresh must be within [0, 1]")
        if not (0.0 <= self.box_thresh <= 1.0):
            raise ConfigError("detector.box_thresh must be within [0, 1]")
        if self.unclip_ratio < 0:
            raise ConfigError("detector.unclip_ratio must be >= 0")
        if self.max_candidates <= 0:
            raise ConfigError("detector.max_candidates must be > 0")


@dataclass
class ClassifierConfig:
    """Configuration for text orientation classification stage."""
    enabled: bool = False
    model_dir: Optional[str] = None
    image_shape: List[int] = field(default_factory=lambda: [3, 48, 192])  # [C, H, W]
    batch_num: int = 6  # Batch size for classification
    thresh: float = 0.9  # Confidence threshold for rotation

    def validate(self) -> None:
        _check_image_shape("classifier", self.image_shape)
        if self.batch_num <= 0:
            raise ConfigError("classifier.batch_num must be > 0")
        if not (0.0 <= self.thresh <= 1.0):
            raise ConfigError("classifier.thresh must be within [0, 1]")


@dataclass
class RecognizerConfig:
    """Configuration for text recognition stage."""
    model_dir: Optional[str] = None
    char_dict_path: Optional[str] = None
    image_shape: List[int] = field(default_factory=lambda: [3, 48, 320])  # [C, H, W]
    batch_num: int = 6  # Batch size for recognition
    max_text_length: int = 0  # Truncate decoded text, 0 keeps every character
    use_space_char: bool = True  # Include space character in vocabulary
    drop_empty: bool = False  # Drop results whose decoded text is empty
    drop_score: float = 0.0  # Drop results scoring below this value

    def validate(self) -> None:
        _check_image_shape("recognizer", self.image_shape)
        if self.batch_num <= 0:
            raise ConfigError("recognizer.batch_num must be > 0")
        if self.max_text_length < 0:
            raise ConfigError("recognizer.max_text_length must be >= 0")
        if not (0.0 <= self.drop_score <= 1.0):
            raise ConfigError("recognizer.drop_score must be within [0, 1]")


@dataclass
class OCRConfig:
    """Complete engine configuration, one section per stage."""
    predictor: PredictorConfig = field(default_factory=PredictorConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)

    def validate(self) -> None:
        self.predictor.validate()
        self.detector.validate()
        self.classifier.validate()
        self.recognizer.validate()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OCRConfig":
        """Build a validated config from a nested mapping.

        Unknown sections or keys raise ConfigError so that typos in a
        config file do not silently fall back to defaults.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

        sections = {
            "predictor": PredictorConfig,
            "detector": DetectorConfig,
            "classifier": ClassifierConfig,
            "recognizer": RecognizerConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

        kwargs = {}
        for name, section_cls in sections.items():
            kwargs[name] = _build_section(name, section_cls, data.get(name))

        config = cls(**kwargs)
        try:
            config.validate()
        except TypeError as e:
            raise ConfigError(f"Config value has the wrong type: {e}") from e
        return config


def load_config(path: Union[str, Path]) -> OCRConfig:
    """Read an OCRConfig from a YAML file.

    Relative model and dictionary paths are resolved against the directory
    holding the config file.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config {path}: {e}") from e

    config = OCRConfig.from_dict(data)

    base = path.parent
    for section in (config.detector, config.classifier, config.recognizer):
        if section.model_dir:
            section.model_dir = str(_resolve(base, section.model_dir))
    if config.recognizer.char_dict_path:
        config.recognizer.char_dict_path = str(_resolve(base, config.recognizer.char_dict_path))
    return config


def _build_section(name, section_cls, values):
    if values is None:
        return section_cls()
    if not isinstance(values, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(sorted(unknown))}")
    try:
        return section_cls(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' section: {e}") from e


def _check_image_shape(name: str, shape) -> None:
    if not isinstance(shape, (list, tuple)) or len(shape) != 3:
        raise ConfigError(f"{name}.image_shape must be [C, H, W]")
    if any(not isinstance(v, int) or v <= 0 for v in shape):
        raise ConfigError(f"{name}.image_shape values must be positive integers")
    if shape[0] != 3:
        raise ConfigError(f"{name}.image_shape must have 3 channels")


def _resolve(base: Path, value: str) -> Path:
    p = Path(value).expanduser()
    return p if p.is_absolute() else base / p
