"""
Default OCR weights: where they are hosted and under which names.

Used when a stage has no local ``model_dir`` configured.
"""

from dataclasses import dataclass
from typing import Dict


HF_REPO = "hpllduck/PaperStructure"


@dataclass(frozen=True)
class ModelFile:
    filename: str          # path inside the repo
    description: str = ""


# Keyed by pipeline stage, plus the recognizer dictionary
DEFAULT_FILES: Dict[str, ModelFile] = {
    "det": ModelFile("paddle_ocr/det.onnx", "PP-OCRv5 DB text detector"),
    "cls": ModelFile("paddle_ocr/cls.onnx", "Text direction classifier"),
    "rec": ModelFile("paddle_ocr/rec.onnx", "PP-OCRv5 SVTR recognizer"),
    "dict": ModelFile("paddle_ocr/ppocrv5_dict.txt", "Recognizer character dictionary"),
}
