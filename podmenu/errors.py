# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Exception types raised by the container engine.

Call-level failures propagate to the caller as one of these. Per-record
parse problems are logged and absorbed by the parser instead.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from podmenu.runner import CommandResult


class EngineError(Exception):
    """Base class for engine failures.

    The hint is shown by the CLI error panel below the message.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class ToolNotFound(EngineError):
    """Raised when the container tool (or terminal emulator) is not on PATH."""

    def __init__(self, tool: str):
        super().__init__(
            f"Command not found: {tool}",
            hint=f"Install {tool} or set 'tool' in the podmenu config",
        )
        self.tool = tool


class CommandFailed(EngineError):
    """Raised when a command exits non-zero without a recognized benign meaning."""

    def __init__(self, result: "CommandResult", message: Optional[str] = None):
        detail = result.stderr or result.stdout or f"exit code {result.returncode}"
        super().__init__(message or f"{' '.join(result.args)} failed: {detail}")
        self.result = result

    @property
    def returncode(self) -> int:
        return self.result.returncode


class ParseError(EngineError):
    """Raised when tool output has an unexpected shape."""


class VersionUndetected(EngineError):
    """Raised when no version can be read from the version-query output.

    Never escapes version detection; it degrades to the conservative profile.
    """
