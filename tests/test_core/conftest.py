"""Shared fixtures for pipeline tests."""

from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import numpy as np
import pytest
import soundfile as sf

from soundrank.engines.base import BaseInferenceEngine


# ---------------------------------------------------------------------------
# Stub inference engine
# ---------------------------------------------------------------------------


class StubEngine(BaseInferenceEngine):
    """Engine that returns canned outputs without loading a model."""

    def __init__(
        self,
        input_shape: Sequence[Any] = (1, 1, 2, 4),
        outputs: Optional[List[np.ndarray]] = None,
        fn: Optional[Callable[[np.ndarray], List[np.ndarray]]] = None,
    ):
        super().__init__("stub")
        self._input_shape = tuple(input_shape)
        self._outputs = outputs if outputs is not None else [np.array([[0.1, 0.9, 0.4]])]
        self._fn = fn
        self.calls: List[np.ndarray] = []
        self.closed = False

    def _declared_input_shape(self):
        return self._input_shape

    def _run_impl(self, data):
        self.calls.append(data.copy())
        if self._fn is not None:
            return self._fn(data)
        return self._outputs

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def write_wav(tmp_path: Path):
    """Factory writing a WAV file and returning its path."""

    def _write(name: str, data, samplerate: int = 16000, subtype: str = "PCM_16") -> Path:
        path = tmp_path / name
        sf.write(str(path), data, samplerate, subtype=subtype)
        return path

    return _write


@pytest.fixture
def label_file(tmp_path: Path) -> Path:
    """Three-label catalog matching the stub engine's default output."""
    path = tmp_path / "labels.txt"
    path.write_text("dog\nsiren\nrain\n", encoding="utf-8")
    return path


@pytest.fixture
def stub_engine() -> StubEngine:
    """StubEngine expecting a (1, 1, 2, 4) tensor."""
    return StubEngine()


@pytest.fixture
def make_engine():
    """Factory for StubEngine instances with custom shape or outputs."""
    return StubEngine
