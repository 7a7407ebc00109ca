"""Inference engines: the boundary between the OCR stages and the model runtime."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import onnxruntime
from onnxruntime.capi import _pybind_state as C

from .errors import ModelNotFoundError

logger = logging.getLogger(__name__)

STAGE_DET = "det"
STAGE_CLS = "cls"
STAGE_REC = "rec"

MODEL_FILENAME = "inference.onnx"


class InferenceEngine:
    """Runs a model for a named stage.

    Subclasses implement :meth:`infer`. The input tensor is float32, shaped
    (batch, 3, height, width); the outputs are stage specific:

    - ``det``: (batch, 1, height, width) probability map
    - ``cls``: (batch, num_classes)
    - ``rec``: (batch, timesteps, num_classes)
    """

    def infer(self, stage: str, tensor: np.ndarray) -> List[np.ndarray]:
        raise NotImplementedError

    def has_stage(self, stage: str) -> bool:
        return True


class ONNXInferenceBase:
    """Single ONNX Runtime session with hardware acceleration."""

    def __init__(
        self,
        model_path: Union[str, Path],
        use_gpu: bool = False,
        use_tensorrt: bool = False,
        num_threads: int = 0,
    ):
        """Initialize ONNX Runtime session.

        Args:
            model_path: Path to ONNX model file
            use_gpu: Enable CUDA GPU acceleration
            use_tensorrt: Enable TensorRT acceleration (requires TensorRT)
            num_threads: Intra-op CPU threads (0 keeps the runtime default)
        """
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise ModelNotFoundError(f"Model not found: {model_path}")

        # Setup providers (TensorRT > CUDA > CPU)
        providers = self._get_providers(use_gpu, use_tensorrt)

        sess_options = onnxruntime.SessionOptions()
        if num_threads > 0:
            sess_options.intra_op_num_threads = num_threads

        self.session = onnxruntime.InferenceSession(
            str(self.model_path),
            sess_options,
            providers=providers
        )

        # Cache input/output names
        self.input_names = [node.name for node in self.session.get_inputs()]
        self.output_names = [node.name for node in self.session.get_outputs()]
        logger.debug("Loaded %s with providers %s", self.model_path, self.session.get_providers())

    def _get_providers(self, use_gpu: bool, use_tensorrt: bool) -> List:
        """Get execution providers based on hardware availability.

        Priority: TensorRT > CUDA > CPU
        """
        available_providers = C.get_available_providers()
        providers = []

        if use_tensorrt and "TensorrtExecutionProvider" in available_providers:
            providers.append(('TensorrtExecutionProvider', {}))

        if use_gpu and "CUDAExecutionProvider" in available_providers:
            providers.append((
                'CUDAExecutionProvider',
                {"cudnn_conv_algo_search": "DEFAULT"}
            ))
        elif use_gpu:
            logger.warning("CUDA requested but not available, falling back to CPU")

        # CPU (always available as fallback)
        providers.append('CPUExecutionProvider')

        return providers

    def run(self, tensor: np.ndarray) -> List[np.ndarray]:
        """Run inference on a single input tensor."""
        input_feed = {self.input_names[0]: np.ascontiguousarray(tensor, dtype=np.float32)}
        return self.session.run(self.output_names, input_feed=input_feed)


class OnnxInferenceEngine(InferenceEngine):
    """One ONNX Runtime session per stage."""

    def __init__(
        self,
        model_paths: Dict[str, Union[str, Path]],
        use_gpu: bool = False,
        use_tensorrt: bool = False,
        num_threads: int = 0,
    ):
        self.sessions = {
            stage: ONNXInferenceBase(
                path,
                use_gpu=use_gpu,
                use_tensorrt=use_tensorrt,
                num_threads=num_threads,
            )
            for stage, path in model_paths.items()
        }

    def has_stage(self, stage: str) -> bool:
        return stage in self.sessions

    def infer(self, stage: str, tensor: np.ndarray) -> List[np.ndarray]:
        if stage not in self.sessions:
            raise KeyError(f"No model loaded for stage '{stage}'")
        return self.sessions[stage].run(tensor)


def resolve_model_file(model_dir: Optional[Union[str, Path]]) -> Optional[Path]:
    """Locate the ONNX file for a stage.

    ``model_dir`` may point at a ``.onnx`` file or at a directory holding
    ``inference.onnx``. Returns None when ``model_dir`` is unset.
    """
    if not model_dir:
        return None
    path = Path(model_dir)
    if path.suffix == ".onnx":
        candidate = path
    else:
        candidate = path / MODEL_FILENAME
    if not candidate.is_file():
        raise ModelNotFoundError(f"Model not found: {candidate}")
    return candidate
