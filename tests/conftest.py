"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from gemini_bridge.config import reset_config_manager
from gemini_bridge.config.manager import ConfigManager
from gemini_bridge.mapper import reset_signature_store


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch, tmp_path):
    """
    Point the config file at a temp HOME and reset cached singletons.

    ConfigManager reads ~/.gemini_bridge/config.yaml, and the process-wide
    signature store is built from that config on first use.
    """
    config_path = Path(tmp_path) / ".gemini_bridge" / "config.yaml"
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_PATH", config_path)
    for var in ["GEMINI_BRIDGE_PROJECT_ID", "GEMINI_BRIDGE_LOG_LEVEL"]:
        monkeypatch.delenv(var, raising=False)
    reset_config_manager()
    reset_signature_store()
    yield
    reset_config_manager()
    reset_signature_store()
