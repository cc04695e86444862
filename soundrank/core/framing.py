"""
Tensor framing: fits a mono sample sequence into the tensor layout a
model expects.

Two policies are provided:

- FixedFraming copies samples into a zero-filled (1, 1, height, width)
  grid. It does not tile or stride over long inputs: anything past
  height * width samples (height * width / sample_rate seconds) is
  discarded. This is a known limitation of the fixed-window policy.
- FlatFraming wraps the samples verbatim as a (length,) tensor for models
  that accept arbitrary-length raw waveforms.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from soundrank.core.models import FramedTensor, MonoBuffer
from soundrank.utils.errors import ConfigurationError, ShapeError

logger = logging.getLogger(__name__)

# Shape with None marking a variable-length dimension
ExpectedShape = Tuple[Optional[int], ...]


class FramingPolicy(ABC):
    """Abstract base class for framing policies (Strategy Pattern)."""

    name: str = ""

    @property
    @abstractmethod
    def expected_shape(self) -> ExpectedShape:
        """Shape of every tensor this policy produces (None = variable)."""

    @abstractmethod
    def frame(self, mono: MonoBuffer) -> FramedTensor:
        """Fit *mono* into this policy's tensor layout."""

    def describe(self) -> str:
        """Human-readable description for results and logs."""
        dims = "x".join("N" if d is None else str(d) for d in self.expected_shape)
        return f"{self.name}({dims})"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


class FixedFraming(FramingPolicy):
    """Zero-pad or truncate samples into a (1, 1, height, width) grid."""

    name = "fixed"

    def __init__(self, height: int, width: int):
        """
        Args:
            height: Grid rows (e.g. 96 patch frames for YAMNet)
            width: Grid columns (e.g. 64 mel bands for YAMNet)

        Raises:
            ShapeError: Either dimension is not positive
        """
        if height <= 0 or width <= 0:
            raise ShapeError(
                f"Frame shape must have a positive element count, got {height}x{width}",
                shape=(1, 1, height, width)
            )
        self.height = height
        self.width = width

    @property
    def capacity(self) -> int:
        """Number of samples one frame holds."""
        return self.height * self.width

    @property
    def expected_shape(self) -> ExpectedShape:
        return (1, 1, self.height, self.width)

    def frame(self, mono: MonoBuffer) -> FramedTensor:
        count = min(len(mono.samples), self.capacity)

        buffer = np.zeros(self.capacity, dtype=np.float32)
        buffer[:count] = mono.samples[:count]

        truncated = len(mono.samples) > self.capacity
        if truncated:
            logger.warning(
                f"Input of {len(mono.samples)} samples exceeds the "
                f"{self.capacity}-sample frame; "
                f"{len(mono.samples) - self.capacity} samples discarded"
            )

        return FramedTensor(
            data=buffer.reshape(self.expected_shape),
            source_length=len(mono.samples),
            padded=count < self.capacity,
            truncated=truncated,
        )


class FlatFraming(FramingPolicy):
    """Wrap samples verbatim as a 1-D tensor of their own length."""

    name = "flat"

    @property
    def expected_shape(self) -> ExpectedShape:
        return (None,)

    def frame(self, mono: MonoBuffer) -> FramedTensor:
        if len(mono.samples) == 0:
            raise ShapeError("Cannot frame an empty waveform", shape=(0,))

        return FramedTensor(
            data=np.asarray(mono.samples, dtype=np.float32).reshape(-1),
            source_length=len(mono.samples),
        )


def create_framing_policy(config: Optional[Dict[str, Any]] = None) -> FramingPolicy:
    """
    Factory function to create a framing policy from the ``framing`` section.

    Args:
        config: Mapping with ``policy`` ("fixed" or "flat") and, for
            fixed framing, ``height`` and ``width``

    Returns:
        FramingPolicy: Configured policy

    Raises:
        ConfigurationError: Unknown policy or non-integer dimensions
        ShapeError: Non-positive dimensions
    """
    config = config or {}
    policy = str(config.get('policy', 'fixed')).lower()

    if policy == 'flat':
        return FlatFraming()

    if policy == 'fixed':
        dims = {}
        for key, default in (('height', 96), ('width', 64)):
            value = config.get(key, default)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"framing.{key} must be an integer, got {value!r}",
                    config_key=f"framing.{key}"
                )
            dims[key] = value
        return FixedFraming(dims['height'], dims['width'])

    raise ConfigurationError(
        f"Unknown framing policy: {policy}. Supported: fixed, flat",
        config_key="framing.policy"
    )
