"""
Custom exceptions for the sound classification pipeline.

This module defines a hierarchy of exceptions for the failure modes of
each pipeline stage. Every stage raises immediately; nothing is retried.
"""

from typing import Any, Optional, Sequence


class SoundRankError(Exception):
    """Base exception for all classification pipeline errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class FileReadError(SoundRankError):
    """Raised when a file cannot be opened or read."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, details={"file_path": file_path})
        self.file_path = file_path


class AudioLoadError(FileReadError):
    """Raised when an audio file cannot be opened or read."""


class LabelLoadError(FileReadError):
    """Raised when the label file cannot be opened or decoded."""


class ModelLoadError(FileReadError):
    """Raised when the model artifact cannot be read or loaded."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        model_name: Optional[str] = None,
    ):
        super().__init__(message, file_path=file_path)
        self.model_name = model_name
        self.details = {"file_path": file_path, "model_name": model_name}


class FormatError(SoundRankError):
    """Raised when an audio container header cannot be parsed."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class UnsupportedChannelLayoutError(SoundRankError):
    """Raised for channel counts other than mono or stereo."""

    def __init__(self, channels: int):
        super().__init__(
            f"Unsupported channel layout: {channels} channel(s). "
            "Only mono and stereo audio can be reduced.",
            details={"channels": channels},
        )
        self.channels = channels


class ShapeError(SoundRankError):
    """Raised when a requested tensor shape is invalid."""

    def __init__(self, message: str, shape: Optional[Sequence[Any]] = None):
        super().__init__(message)
        self.shape = tuple(shape) if shape is not None else None
        self.details = {"shape": self.shape}


class ShapeMismatchError(ShapeError):
    """Raised when the framed shape disagrees with the engine's input shape."""

    def __init__(
        self,
        message: str,
        expected: Optional[Sequence[Any]] = None,
        actual: Optional[Sequence[Any]] = None,
    ):
        super().__init__(message, shape=actual)
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None
        self.details = {"expected": self.expected, "actual": self.actual}


class InferenceError(SoundRankError):
    """Raised when the inference engine fails to evaluate a tensor."""

    def __init__(
        self,
        message: str,
        engine_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.engine_name = engine_name
        self.original_error = original_error
        self.details = {
            "engine_name": engine_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(SoundRankError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
