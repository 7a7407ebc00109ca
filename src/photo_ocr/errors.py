"""Exception types raised by the OCR pipeline."""


class OCRError(Exception):
    """Base class for all photo_ocr errors."""


class ConfigError(OCRError, ValueError):
    """Configuration file is malformed or holds an invalid value."""


class ModelNotFoundError(OCRError, FileNotFoundError):
    """A model file or character dictionary could not be located."""


class ImageReadError(OCRError, IOError):
    """An input image could not be read or decoded."""
