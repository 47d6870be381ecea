# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Asynchronous command runner for the container tool.

Every call spawns ``<tool> <args...>`` as an argument array (never through a
shell) and suspends the calling coroutine until the process exits, so the
caller's event loop keeps running.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from podmenu.errors import CommandFailed, ToolNotFound

logger = logging.getLogger(__name__)

# Exit code reported for commands killed after their timeout
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one subprocess execution."""

    args: Tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> "CommandResult":
        """Return self, or raise CommandFailed for a non-zero exit."""
        if not self.ok:
            raise CommandFailed(self)
        return self


class CommandRunner:
    """Runs the container tool binary and captures its output."""

    def __init__(self, tool: str = "podman", timeout: float = 30.0):
        self.tool = tool
        self.timeout = timeout
        self._missing = False

    def reset(self) -> None:
        """Forget a previous missing-binary result."""
        self._missing = False

    @property
    def tool_missing(self) -> bool:
        return self._missing

    async def run(self, args: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        """Run the tool with the given arguments.

        Args:
            args: Arguments passed after the tool name
            timeout: Seconds before the process is killed (defaults to runner timeout)

        Returns:
            CommandResult; a non-zero exit is reported, not raised

        Raises:
            ToolNotFound: If the tool binary cannot be executed
        """
        if self._missing:
            raise ToolNotFound(self.tool)

        argv = (self.tool, *args)
        logger.debug(f"Running: {' '.join(argv)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            self._missing = True
            logger.error(f"Container tool not found on PATH: {self.tool}")
            raise ToolNotFound(self.tool)
        except PermissionError as e:
            self._missing = True
            logger.error(f"Container tool is not executable: {self.tool}: {e}")
            raise ToolNotFound(self.tool)

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=timeout or self.timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning(f"Timeout running: {' '.join(argv)}")
            return CommandResult(
                args=argv,
                returncode=TIMEOUT_EXIT_CODE,
                stdout="",
                stderr=f"Timeout running: {' '.join(argv)}",
            )

        result = CommandResult(
            args=argv,
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace").strip(),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
        )
        if not result.ok:
            logger.debug(f"Exit {result.returncode} from {argv[1] if len(argv) > 1 else self.tool}: {result.stderr}")
        return result
