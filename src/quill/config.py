"""
Configuration for the Quill command line tools.

Settings are read from a YAML file (JSON works too, being a YAML subset):

    prompt: "-> "
    max_call_depth: 200
    log_level: INFO
    show_output: true

The file is the one passed explicitly, else the one named by ``$QUILL_CONFIG``,
else built-in defaults are used.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "QUILL_CONFIG"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when a configuration file is missing or malformed."""
    pass


@dataclass
class QuillConfig:
    """Settings shared by the REPL and the CLI."""
    prompt: str = "-> "
    max_call_depth: Optional[int] = None
    log_level: str = "WARNING"
    show_output: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuillConfig":
        """Build a config from a mapping, validating keys and types."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config key(s): {', '.join(unknown)}")

        config = cls(**data)
        config.validate()
        return config

    def validate(self) -> None:
        if not isinstance(self.prompt, str):
            raise ConfigError("prompt must be a string")
        if self.max_call_depth is not None:
            if isinstance(self.max_call_depth, bool) or not isinstance(self.max_call_depth, int):
                raise ConfigError("max_call_depth must be an integer or null")
            if self.max_call_depth < 1:
                raise ConfigError("max_call_depth must be positive")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        self.log_level = self.log_level.upper()
        if not isinstance(self.show_output, bool):
            raise ConfigError("show_output must be true or false")


def load_config(path: Union[str, Path, None] = None) -> QuillConfig:
    """
    Load configuration.

    Args:
        path: Config file; falls back to $QUILL_CONFIG, then to defaults

    Returns:
        QuillConfig

    Raises:
        ConfigError: If the file cannot be read or contains invalid settings
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return QuillConfig()

    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {config_path} must contain a mapping")

    logger.debug("loaded config from %s", config_path)
    return QuillConfig.from_dict(data)
