# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Centralized path definitions for podmenu.

Usage:
    from podmenu.paths import HostPaths

    config_file = HostPaths.config_file()
    log_file = HostPaths.log_file()
"""

import os
from pathlib import Path


class HostPaths:
    """Paths on the host machine where the engine runs."""

    # XDG config directory for podmenu
    @staticmethod
    def config_dir() -> Path:
        """~/.config/podmenu/"""
        xdg = os.getenv("XDG_CONFIG_HOME")
        if xdg:
            return Path(xdg) / "podmenu"
        return Path.home() / ".config" / "podmenu"

    @staticmethod
    def config_file() -> Path:
        """~/.config/podmenu/config.yml (PODMENU_CONFIG overrides)"""
        env_path = os.getenv("PODMENU_CONFIG")
        if env_path:
            return Path(env_path)
        return HostPaths.config_dir() / "config.yml"

    # XDG state directory
    @staticmethod
    def state_dir() -> Path:
        """~/.local/state/podmenu/"""
        xdg = os.getenv("XDG_STATE_HOME")
        if xdg:
            return Path(xdg) / "podmenu"
        return Path.home() / ".local" / "state" / "podmenu"

    @staticmethod
    def log_file() -> Path:
        """~/.local/state/podmenu/podmenu.log (PODMENU_LOG_FILE overrides)"""
        env_log_file = os.getenv("PODMENU_LOG_FILE")
        if env_log_file:
            return Path(env_log_file)
        return HostPaths.state_dir() / "podmenu.log"
