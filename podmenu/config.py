# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Host-side configuration for the podmenu engine."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from podmenu.models.config import EngineConfigModel
from podmenu.paths import HostPaths

logger = logging.getLogger(__name__)


class EngineConfig:
    """Manages engine configuration from ~/.config/podmenu/config.yml."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or HostPaths.config_file()
        self._model = self._load()

    def _load(self) -> EngineConfigModel:
        """Load configuration from file, falling back to defaults on any problem."""
        if not self.config_path.exists():
            return self._apply_env(EngineConfigModel())

        try:
            with open(self.config_path) as f:
                raw_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            return self._apply_env(EngineConfigModel())

        if not isinstance(raw_config, dict):
            logger.warning(f"Ignoring config {self.config_path}: top level must be a mapping")
            return self._apply_env(EngineConfigModel())

        try:
            model = EngineConfigModel.model_validate(raw_config)
        except ValidationError as e:
            logger.warning(f"Config validation errors: {e}")
            model = EngineConfigModel()
        return self._apply_env(model)

    @staticmethod
    def _apply_env(model: EngineConfigModel) -> EngineConfigModel:
        env_tool = os.getenv("PODMENU_TOOL")
        if env_tool and env_tool.strip():
            return model.model_copy(update={"tool": env_tool.strip()})
        return model

    @property
    def model(self) -> EngineConfigModel:
        return self._model

    @property
    def tool(self) -> str:
        return self._model.tool

    @property
    def terminal(self) -> list:
        return list(self._model.terminal)

    @property
    def hold_terminal(self) -> bool:
        return self._model.hold_terminal

    @property
    def shell(self) -> str:
        return self._model.shell

    @property
    def top_interval(self) -> int:
        return self._model.top_interval

    @property
    def stop_timeout(self) -> Optional[int]:
        return self._model.stop_timeout

    @property
    def benign_empty_patterns(self) -> list:
        return list(self._model.benign_empty_patterns)

    @property
    def timeouts(self):
        return self._model.timeouts

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with model fields replaced (used by the CLI --tool flag)."""
        clone = EngineConfig.__new__(EngineConfig)
        clone.config_path = self.config_path
        clone._model = self._model.model_copy(update=overrides)
        return clone

    def get(self, *keys, default=None) -> Any:
        """Get nested config value.

        Example: config.get("timeouts", "inspect")
        """
        value: Any = self._model
        for key in keys:
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        if hasattr(value, "model_dump"):
            return value.model_dump()
        return value


# Singleton instance
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the global engine configuration."""
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None
