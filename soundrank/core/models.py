"""
Core data models for the classification pipeline.

Immutable domain models for each stage's output: decoded samples, the
mono reduction, the framed tensor, and the ranked result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class SampleBuffer:
    """
    Decoded audio samples normalized to [-1.0, +1.0].

    Samples are interleaved when the source has more than one channel.
    """

    samples: np.ndarray  # Shape: (frames * channels,), float32
    channels: int
    sample_rate: int

    # Source metadata
    file_path: Optional[Path] = None
    subtype: Optional[str] = None  # e.g., 'PCM_16', 'PCM_24'

    @property
    def frames(self) -> int:
        """Number of complete sample frames."""
        if self.channels <= 0:
            return 0
        return len(self.samples) // self.channels

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / self.sample_rate


@dataclass(frozen=True)
class MonoBuffer:
    """Single-channel samples ready for framing."""

    samples: np.ndarray  # Shape: (n,), float32
    sample_rate: int

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class FramedTensor:
    """
    Fixed-shape numeric buffer handed to the inference engine.

    ``source_length`` and ``padded`` / ``truncated`` record how the mono
    buffer was fitted into the frame.
    """

    data: np.ndarray  # float32, shape (1, 1, h, w) or (n,)
    source_length: int
    padded: bool = False
    truncated: bool = False

    @property
    def shape(self) -> Tuple[int, ...]:
        """Declared tensor shape."""
        return tuple(self.data.shape)

    @property
    def size(self) -> int:
        """Total element count."""
        return int(self.data.size)


@dataclass(frozen=True)
class RankedLabel:
    """One entry of a top-K ranking."""

    index: int  # Class index into the score vector
    label: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'index': self.index,
            'label': self.label,
            'score': self.score,
        }


@dataclass
class ClassificationResult:
    """Final output of one pipeline run."""

    file_path: Path
    labels: List[RankedLabel]
    model_name: str
    framing: str  # Description of the framing policy used
    processing_time: float  # seconds
    sample_rate: int
    duration: float  # seconds of mono audio fed to the framer
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def top_label(self) -> Optional[RankedLabel]:
        """Highest-scoring entry, if any."""
        return self.labels[0] if self.labels else None

    @property
    def label_names(self) -> List[str]:
        """Ranked label strings only."""
        return [entry.label for entry in self.labels]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'file_path': str(self.file_path),
            'model_name': self.model_name,
            'framing': self.framing,
            'sample_rate': self.sample_rate,
            'duration': self.duration,
            'processing_time': self.processing_time,
            'timestamp': self.timestamp.isoformat(),
            'labels': [entry.to_dict() for entry in self.labels],
        }
