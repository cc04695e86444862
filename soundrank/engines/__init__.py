"""
Inference engines: the model runtimes the pipeline delegates to.

The ONNX Runtime adapter is imported lazily so that the interface can be
used without onnxruntime installed.
"""

from soundrank.engines.base import (
    BaseInferenceEngine,
    InferenceEngine,
    check_shape_compatible,
    normalize_shape,
)

__all__ = [
    "BaseInferenceEngine",
    "InferenceEngine",
    "check_shape_compatible",
    "normalize_shape",
    "OnnxInferenceEngine",
    "create_inference_engine",
]


def __getattr__(name: str):
    """Lazy load the ONNX Runtime adapter."""
    if name in ("OnnxInferenceEngine", "create_inference_engine"):
        from soundrank.engines.onnx import OnnxInferenceEngine, create_inference_engine
        return OnnxInferenceEngine if name == "OnnxInferenceEngine" else create_inference_engine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
