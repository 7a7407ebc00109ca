"""
Model registry: fetch the default OCR weights from the HuggingFace Hub.

huggingface_hub keeps the local cache, so each file is downloaded once.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from huggingface_hub import hf_hub_download, try_to_load_from_cache
from huggingface_hub.utils import HfHubHTTPError, LocalEntryNotFoundError

from ..errors import ModelNotFoundError
from .config import DEFAULT_FILES, HF_REPO, ModelFile

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Resolves default weights by key ("det", "cls", "rec" or "dict")."""

    def __init__(self, repo_id: str = HF_REPO, files: Optional[Dict[str, ModelFile]] = None):
        self.repo_id = repo_id
        self.files = files if files is not None else DEFAULT_FILES

    def get(self, key: str) -> Path:
        """Return the local path of a default file, downloading it if needed."""
        mf = self._lookup(key)
        logger.info("Resolving %s from %s", mf.filename, self.repo_id)
        try:
            local = hf_hub_download(self.repo_id, mf.filename)
        except (HfHubHTTPError, LocalEntryNotFoundError) as e:
            raise ModelNotFoundError(
                f"Could not download {mf.filename} from {self.repo_id}: {e}"
            ) from e
        return Path(local)

    def cached(self, key: str) -> Optional[Path]:
        """Local path of a file already in the HuggingFace cache, else None."""
        mf = self._lookup(key)
        result = try_to_load_from_cache(self.repo_id, mf.filename)
        if isinstance(result, str):
            return Path(result)
        return None

    def status(self) -> str:
        """Human-readable report of which default files are cached."""
        lines = [f"Default models from {self.repo_id}"]
        for key, mf in self.files.items():
            path = self.cached(key)
            mark = "OK" if path is not None else "MISSING"
            loc = str(path) if path is not None else f"hf://{self.repo_id}/{mf.filename}"
            lines.append(f"  [{mark:>7}]  {key:<5} {mf.description:<34} {loc}")
        return "\n".join(lines)

    def _lookup(self, key: str) -> ModelFile:
        if key not in self.files:
            raise KeyError(f"Unknown model '{key}'. Available: {', '.join(self.files)}")
        return self.files[key]


registry = ModelRegistry()
