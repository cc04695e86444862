"""
Configuration for soundrank.

Settings come from a YAML file merged over built-in defaults. String
values may reference environment variables as ``${NAME}``; unset
variables are left as written.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from soundrank.utils.errors import ConfigurationError

_ENV_REF = re.compile(r'\$\{([^}]+)\}')
_MISSING = object()


class ConfigManager:
    """
    Nested configuration mapping addressed with dotted keys.

    ``manager.get("framing.height")`` reads ``config["framing"]["height"]``.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict if config_dict is not None else {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Load a YAML file and expand ``${NAME}`` references.

        Raises:
            ConfigurationError: Missing file, YAML syntax error, or a
                document whose top level is not a mapping
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {file_path}: {e}",
                config_key=str(file_path)
            ) from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Top level of {file_path} must be a mapping, "
                f"got {type(loaded).__name__}",
                config_key=str(file_path)
            )

        return cls(expand_env(loaded))

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Read the value at dotted *key*.

        Raises:
            ConfigurationError: *required* is set and the key is absent
        """
        node: Any = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                if required:
                    raise ConfigurationError(
                        f"Missing configuration value: {key}",
                        config_key=key
                    )
                return default
            node = node[part]
        return node

    def get_section(self, key: str) -> Dict[str, Any]:
        """Mapping at *key*, or an empty dict if absent or not a mapping."""
        section = self.get(key)
        return section if isinstance(section, dict) else {}

    def set(self, key: str, value: Any) -> None:
        """Store *value* at dotted *key*, creating sections as needed."""
        *parents, leaf = key.split('.')
        node = self._config
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the configuration."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Dict[str, Any]]) -> None:
        """
        Check values against *schema*.

        Each schema entry maps a dotted key to rules: ``type`` (expected
        Python type), ``required`` (bool) and ``choices`` (allowed
        values). Absent or null optional keys are skipped.

        Raises:
            ConfigurationError: First rule that fails
        """
        for key, rules in schema.items():
            value = self.get(key, default=_MISSING)
            if value is _MISSING or value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Missing configuration value: {key}",
                        config_key=key
                    )
                continue

            expected = rules.get("type")
            # bool is an int subclass; never accept it for a count
            if expected is not None and (
                not isinstance(value, expected)
                or (isinstance(value, bool) and expected is not bool)
            ):
                raise ConfigurationError(
                    f"{key} must be {expected.__name__}, got {type(value).__name__}",
                    config_key=key
                )

            choices = rules.get("choices")
            if choices is not None and value not in choices:
                raise ConfigurationError(
                    f"{key} must be one of {', '.join(map(str, choices))}, got {value!r}",
                    config_key=key
                )


def expand_env(value: Any) -> Any:
    """Recursively replace ``${NAME}`` in strings with environment values."""
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    # Sections first, so a scalar section fails before its keys are read
    "model": {"type": dict, "required": True},
    "labels": {"type": dict, "required": True},
    "framing": {"type": dict, "required": True},
    "ranking": {"type": dict, "required": True},
    "output": {"type": dict},
    "logging": {"type": dict},
    "presets": {"type": dict},
    "model.path": {"type": str, "required": True},
    "model.providers": {"type": list},
    "model.input_shape": {"type": list},
    "labels.path": {"type": str, "required": True},
    "framing.policy": {"type": str, "required": True, "choices": ("fixed", "flat")},
    "framing.height": {"type": int},
    "framing.width": {"type": int},
    "ranking.top_k": {"type": int, "required": True},
    "ranking.score_reduction": {"type": str, "choices": ("first", "mean")},
    "output.format": {"type": str, "choices": ("text", "txt", "kv", "json")},
    "logging.level": {"type": str},
    "logging.format": {"type": str, "choices": ("text", "json")},
}


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_preset(config: Dict[str, Any], preset: str) -> Dict[str, Any]:
    """
    Overlay a named preset from the ``presets`` section onto *config*.

    Raises:
        ConfigurationError: If the preset is not defined
    """
    presets = config.get("presets") or {}
    if preset not in presets:
        raise ConfigurationError(
            f"Unknown preset '{preset}'. Available: {', '.join(sorted(presets)) or 'none'}",
            config_key=f"presets.{preset}"
        )
    if not isinstance(presets[preset], dict):
        raise ConfigurationError(
            f"Preset '{preset}' must be a mapping of configuration sections",
            config_key=f"presets.{preset}"
        )
    return merge_config(config, presets[preset])


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    File values are merged over the defaults, so a config file only needs
    to name what it changes.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml" then "config.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary

    Raises:
        ConfigurationError: If an explicit path is missing or unparseable
    """
    if config_path is None:
        for path in (Path("config/config.yaml"), Path("config.yaml")):
            if path.exists():
                config_path = str(path)
                break

    if config_path is None:
        return get_default_config()

    manager = ConfigManager.from_file(Path(config_path))
    config = merge_config(get_default_config(), manager.to_dict())
    ConfigManager(config).validate(CONFIG_SCHEMA)
    return config


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "model": {
            "path": "./models/yamnet.onnx",
            "providers": ["CPUExecutionProvider"],
            "input_shape": None,
        },
        "labels": {
            "path": "./models/yamnet_label_list.txt",
        },
        "framing": {
            "policy": "fixed",
            "height": 96,
            "width": 64,
        },
        "ranking": {
            "top_k": 5,
            "score_reduction": "first",
        },
        "output": {
            "format": "text",
        },
        "logging": {
            "level": "WARNING",
            "format": "text",
            "file": None,
        },
        "presets": {
            "patch": {
                "model": {"path": "./models/yamnet.onnx"},
                "framing": {"policy": "fixed", "height": 96, "width": 64},
            },
            "waveform": {
                "model": {"path": "./models/yamnet_waveform.onnx"},
                "framing": {"policy": "flat"},
                "ranking": {"score_reduction": "mean"},
            },
        },
    }
