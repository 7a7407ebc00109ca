"""
Default model weights for photo_ocr.

Usage:
    from photo_ocr.models import registry

    path = registry.get("det")    # download + resolve
    print(registry.status())      # show what's cached
"""

from .config import DEFAULT_FILES, HF_REPO, ModelFile
from .registry import ModelRegistry, registry

__all__ = [
    "DEFAULT_FILES",
    "HF_REPO",
    "ModelFile",
    "ModelRegistry",
    "registry",
]
