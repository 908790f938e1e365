"""Configuration access for gemini-bridge."""

from typing import Optional

from .manager import ConfigManager
from .models import BridgeConfig, LoggingConfig, MapperConfig

PROJECT_ID_ENV_VAR = "GEMINI_BRIDGE_PROJECT_ID"
LOG_LEVEL_ENV_VAR = "GEMINI_BRIDGE_LOG_LEVEL"

_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> BridgeConfig:
    return get_config_manager().config


def reset_config_manager() -> None:
    """Drop the cached manager so the next access re-reads the config file."""
    global _config_manager
    _config_manager = None


def get_project_id() -> str:
    """Backend project id: env var, then config file, then the built-in default."""
    return get_config_manager().get_effective_value(
        get_config().mapper.project_id, PROJECT_ID_ENV_VAR
    )


def get_log_level() -> str:
    level = get_config_manager().get_effective_value(
        get_config().logging.level, LOG_LEVEL_ENV_VAR
    )
    return str(level).upper()


__all__ = [
    "BridgeConfig",
    "ConfigManager",
    "LoggingConfig",
    "MapperConfig",
    "get_config",
    "get_config_manager",
    "get_log_level",
    "get_project_id",
    "reset_config_manager",
]
