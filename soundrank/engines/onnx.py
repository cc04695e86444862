"""
ONNX Runtime inference engine.

Runs a serialized ONNX graph (e.g. YAMNet exported to ONNX) on CPU or
any provider onnxruntime offers.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import onnxruntime as ort

from soundrank.engines.base import BaseInferenceEngine, check_shape_compatible, normalize_shape
from soundrank.utils.errors import ModelLoadError

DEFAULT_PROVIDERS = ["CPUExecutionProvider"]


class OnnxInferenceEngine(BaseInferenceEngine):
    """
    ONNX Runtime backed engine.

    The session is loaded lazily on first use. When ``input_shape`` is
    given it overrides the model's declared input (which may leave
    dimensions symbolic), after checking the two are compatible.
    """

    def __init__(
        self,
        model_path: Union[str, Path],
        providers: Optional[Sequence[str]] = None,
        input_shape: Optional[Sequence[Any]] = None,
    ):
        """
        Initialize ONNX engine.

        Args:
            model_path: Path to the .onnx model file
            providers: onnxruntime execution providers, in priority order
            input_shape: Optional explicit input shape for the first input
        """
        self.model_path = Path(model_path)
        super().__init__(self.model_path.stem or "onnx")
        self.providers = list(providers) if providers else list(DEFAULT_PROVIDERS)
        self._shape_override = normalize_shape(input_shape) if input_shape is not None else None
        self._session: Optional[ort.InferenceSession] = None

    @property
    def session(self) -> ort.InferenceSession:
        """Lazy-load the ONNX Runtime session."""
        if self._session is None:
            self._session = self._load_session()
        return self._session

    @property
    def input_name(self) -> str:
        """Name of the model's first input."""
        return self.session.get_inputs()[0].name

    def _load_session(self) -> ort.InferenceSession:
        """Create the inference session for the model file."""
        if not self.model_path.is_file():
            raise ModelLoadError(
                f"Model file not found: {self.model_path}",
                file_path=str(self.model_path),
                model_name=self.name
            )

        try:
            self.logger.info(f"Loading ONNX model from {self.model_path}...")
            session = ort.InferenceSession(str(self.model_path), providers=self.providers)
        except Exception as e:
            raise ModelLoadError(
                f"Failed to load ONNX model {self.model_path}: {e}",
                file_path=str(self.model_path),
                model_name=self.name
            ) from e

        inputs = session.get_inputs()
        if not inputs:
            raise ModelLoadError(
                f"ONNX model declares no inputs: {self.model_path}",
                file_path=str(self.model_path),
                model_name=self.name
            )

        self.logger.info(
            f"ONNX model loaded: input '{inputs[0].name}' {inputs[0].shape}, "
            f"{len(session.get_outputs())} output(s)"
        )
        return session

    def _declared_input_shape(self) -> Sequence[Any]:
        model_shape = self.session.get_inputs()[0].shape
        if self._shape_override is None:
            return model_shape

        check_shape_compatible(self._shape_override, model_shape)
        return self._shape_override

    def _run_impl(self, data: np.ndarray) -> List[Any]:
        return self.session.run(None, {self.input_name: data.astype(np.float32, copy=False)})

    def close(self) -> None:
        """Drop the session so its memory can be reclaimed."""
        self._session = None


def create_inference_engine(config: Optional[Dict[str, Any]] = None) -> OnnxInferenceEngine:
    """
    Factory function to create an engine from the ``model`` section.

    Args:
        config: Mapping with ``path`` and optional ``providers`` and
            ``input_shape``

    Returns:
        OnnxInferenceEngine: Configured (not yet loaded) engine
    """
    config = config or {}
    return OnnxInferenceEngine(
        model_path=config.get('path', './models/yamnet.onnx'),
        providers=config.get('providers'),
        input_shape=config.get('input_shape'),
    )
