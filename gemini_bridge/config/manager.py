"""YAML-backed configuration manager."""

import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from .models import BridgeConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads ``~/.gemini_bridge/config.yaml`` and resolves env var overrides."""

    DEFAULT_CONFIG_PATH = Path.home() / ".gemini_bridge" / "config.yaml"

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[BridgeConfig] = None

    def load(self) -> BridgeConfig:
        """Read the config file; a missing file yields the defaults.

        Raises:
            ValueError: the file is not valid YAML or does not match the schema
        """
        if not self.config_path.exists():
            logger.debug("No config file at %s, using defaults", self.config_path)
            return BridgeConfig()

        try:
            data = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {self.config_path} must contain a mapping")

        try:
            return BridgeConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration in {self.config_path}: {e}") from e

    @property
    def config(self) -> BridgeConfig:
        if self._config is None:
            self._config = self.load()
        return self._config

    @staticmethod
    def get_effective_value(config_value: Any, env_var: str) -> Any:
        """Environment variables take precedence over config file values."""
        env_value = os.environ.get(env_var)
        if env_value:
            return env_value
        return config_value
