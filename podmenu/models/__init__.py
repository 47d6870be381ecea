# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Pydantic models for podmenu configuration."""

from podmenu.models.config import EngineConfigModel, TimeoutsConfig

__all__ = ["EngineConfigModel", "TimeoutsConfig"]
