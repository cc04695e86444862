"""
Inference engine interface for the classification pipeline.

Defines the contract for model runtimes using Protocol (structural
subtyping), plus a base class with the shared run template and the
input shape compatibility check performed at configuration time.
"""

import logging
import time
from abc import abstractmethod
from typing import Any, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from soundrank.core.models import FramedTensor
from soundrank.utils.errors import InferenceError, ShapeMismatchError, SoundRankError

# None marks a dimension that accepts any length
Shape = Tuple[Optional[int], ...]


def normalize_shape(shape: Sequence[Any]) -> Shape:
    """
    Normalize a declared shape to ints and None.

    Symbolic dimensions (strings such as "batch"), None, and negative
    sizes all mean "variable".
    """
    normalized = []
    for dim in shape:
        if isinstance(dim, (int, np.integer)) and not isinstance(dim, bool) and dim >= 0:
            normalized.append(int(dim))
        else:
            normalized.append(None)
    return tuple(normalized)


def check_shape_compatible(expected: Sequence[Any], declared: Sequence[Any]) -> None:
    """
    Verify that a framed tensor shape fits an engine's declared input.

    Ranks must agree, and every dimension fixed on both sides must be
    equal. A variable dimension on either side matches anything.

    Raises:
        ShapeMismatchError: The shapes cannot be reconciled
    """
    expected = normalize_shape(expected)
    declared = normalize_shape(declared)

    if len(expected) != len(declared):
        raise ShapeMismatchError(
            f"Tensor rank {len(expected)} does not match engine input rank "
            f"{len(declared)}: {_format_shape(expected)} vs {_format_shape(declared)}",
            expected=declared,
            actual=expected,
        )

    for axis, (have, want) in enumerate(zip(expected, declared)):
        if have is not None and want is not None and have != want:
            raise ShapeMismatchError(
                f"Tensor shape {_format_shape(expected)} does not match engine input "
                f"{_format_shape(declared)} on axis {axis}",
                expected=declared,
                actual=expected,
            )


def _format_shape(shape: Shape) -> str:
    return "(" + ", ".join("?" if d is None else str(d) for d in shape) + ")"


@runtime_checkable
class InferenceEngine(Protocol):
    """
    Protocol for model runtimes.

    An engine is configured once with a fixed input shape and then
    evaluates framed tensors, returning one or more score arrays.
    A loaded engine is read-only.
    """

    @property
    def name(self) -> str:
        """Engine name used in logs and results."""
        ...

    @property
    def input_shape(self) -> Shape:
        """Declared input shape (None = variable dimension)."""
        ...

    def run(self, tensor: FramedTensor) -> List[np.ndarray]:
        """Evaluate the model on *tensor* and return its output arrays."""
        ...

    def close(self) -> None:
        """Release runtime resources."""
        ...


class BaseInferenceEngine:
    """
    Optional base class providing logging, timing, and error wrapping.

    Uses Template Method pattern - run() provides the template,
    subclasses implement _run_impl() and _declared_input_shape().
    """

    def __init__(self, name: str):
        self._name = name
        self.logger = logging.getLogger(f"engine.{name}")

    @property
    def name(self) -> str:
        """Return engine name."""
        return self._name

    @property
    def input_shape(self) -> Shape:
        """Declared input shape (None = variable dimension)."""
        return normalize_shape(self._declared_input_shape())

    def run(self, tensor: FramedTensor) -> List[np.ndarray]:
        """
        Template method with shape guard, timing, and error handling.

        Args:
            tensor: Framed input tensor

        Returns:
            List[np.ndarray]: Output arrays in model order

        Raises:
            ShapeMismatchError: Tensor does not fit the declared input
            InferenceError: The runtime failed
        """
        check_shape_compatible(tensor.shape, self.input_shape)

        start_time = time.time()
        try:
            self.logger.debug(f"Running inference on tensor {tensor.shape}")
            outputs = [np.asarray(output) for output in self._run_impl(tensor.data)]
        except SoundRankError:
            raise
        except Exception as e:
            self.logger.error(f"Inference failed: {e}")
            raise InferenceError(
                f"{self.name} inference failed: {e}",
                engine_name=self.name,
                original_error=e
            ) from e

        elapsed = time.time() - start_time
        self.logger.info(f"Inference complete in {elapsed:.3f}s ({len(outputs)} output(s))")
        return outputs

    def close(self) -> None:
        """Release runtime resources (no-op by default)."""

    @abstractmethod
    def _declared_input_shape(self) -> Sequence[Any]:
        """Subclasses report the model's input shape."""
        raise NotImplementedError

    @abstractmethod
    def _run_impl(self, data: np.ndarray) -> Sequence[Any]:
        """Subclasses evaluate the model on the raw tensor data."""
        raise NotImplementedError
