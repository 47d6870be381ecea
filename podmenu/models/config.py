# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT

"""Pydantic models for engine configuration (~/.config/podmenu/config.yml)."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimeoutsConfig(BaseModel):
    """Subprocess timeouts in seconds."""

    command: float = Field(default=30.0, gt=0)
    version: float = Field(default=5.0, gt=0)
    inspect: float = Field(default=10.0, gt=0)


class EngineConfigModel(BaseModel):
    """Engine configuration.

    terminal: argv prefix used to open interactive sessions; the session
              command is appended after it.
    hold_terminal: keep the terminal open with a shell after the session
                   command exits.
    benign_empty_patterns: extra stderr substrings that turn a failing
                           list command into an empty result.
    """

    model_config = ConfigDict(extra="ignore")

    tool: str = "podman"
    terminal: List[str] = Field(default_factory=lambda: ["gnome-terminal", "--"])
    hold_terminal: bool = True
    shell: str = "/bin/sh"
    top_interval: int = Field(default=2, ge=1)
    stop_timeout: Optional[int] = Field(default=None, ge=0)
    benign_empty_patterns: List[str] = Field(default_factory=list)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)

    @field_validator("tool", "shell")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("terminal")
    @classmethod
    def validate_terminal(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("terminal command must have at least one element")
        return v
