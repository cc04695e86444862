"""
Utility modules for configuration, logging, and error handling.
"""

from soundrank.utils.errors import (
    SoundRankError,
    FileReadError,
    AudioLoadError,
    LabelLoadError,
    ModelLoadError,
    FormatError,
    UnsupportedChannelLayoutError,
    ShapeError,
    ShapeMismatchError,
    InferenceError,
    ConfigurationError,
)
from soundrank.utils.logging import (
    get_logger,
    setup_logging,
    configure_logging,
    run_logger,
    JSONFormatter,
)
from soundrank.utils.config import ConfigManager, load_config, apply_preset

__all__ = [
    "SoundRankError",
    "FileReadError",
    "AudioLoadError",
    "LabelLoadError",
    "ModelLoadError",
    "FormatError",
    "UnsupportedChannelLayoutError",
    "ShapeError",
    "ShapeMismatchError",
    "InferenceError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "configure_logging",
    "run_logger",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "apply_preset",
]
