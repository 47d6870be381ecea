# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Interactive container sessions (logs, top, shell, stats) in a terminal.

Sessions are fire-and-forget: once the terminal process is spawned the host
desktop owns it. The launcher keeps no reference to the process.
"""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from podmenu.errors import ToolNotFound

logger = logging.getLogger(__name__)

# Runs "$@" then leaves an interactive shell so the window stays open.
# Arguments are passed positionally; nothing is interpolated into the script.
HOLD_SCRIPT = '"$@"; exec "${SHELL:-/bin/sh}"'


class SessionKind(Enum):
    LOGS = "logs"
    TOP = "top"
    SHELL = "shell"
    STATS = "stats"


@dataclass(frozen=True)
class SessionHandle:
    """Description of a spawned session. Not used to control it."""

    kind: SessionKind
    name: str
    argv: Tuple[str, ...]
    pid: Optional[int] = None


class SessionLauncher:
    """Builds and spawns terminal commands for interactive sessions."""

    def __init__(
        self,
        tool: str = "podman",
        terminal: Sequence[str] = ("gnome-terminal", "--"),
        hold_terminal: bool = True,
        shell: str = "/bin/sh",
        top_interval: int = 2,
    ):
        self.tool = tool
        self.terminal = list(terminal)
        self.hold_terminal = hold_terminal
        self.shell = shell
        self.top_interval = top_interval

    def session_command(self, name: str, kind: SessionKind) -> List[str]:
        """Command run inside the terminal for a session kind."""
        if kind is SessionKind.LOGS:
            return [self.tool, "logs", "-f", name]
        if kind is SessionKind.TOP:
            # -x execs directly instead of passing a joined string to sh -c
            return ["watch", "-n", str(self.top_interval), "-x", self.tool, "top", name]
        if kind is SessionKind.SHELL:
            return [self.tool, "exec", "-it", name, self.shell]
        if kind is SessionKind.STATS:
            return [self.tool, "stats", name]
        raise ValueError(f"Unknown session kind: {kind}")

    def build_argv(self, name: str, kind: SessionKind) -> List[str]:
        command = self.session_command(name, kind)
        if self.hold_terminal:
            command = ["sh", "-c", HOLD_SCRIPT, "podmenu", *command]
        return [*self.terminal, *command]

    def launch(self, name: str, kind: SessionKind) -> SessionHandle:
        """Spawn the session terminal and hand it off.

        Raises:
            ToolNotFound: If the terminal emulator cannot be executed
        """
        argv = self.build_argv(name, kind)
        logger.debug(f"Launching {kind.value} session: {' '.join(argv)}")
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except FileNotFoundError:
            logger.error(f"Terminal not found on PATH: {argv[0]}")
            raise ToolNotFound(argv[0])
        except PermissionError:
            logger.error(f"Terminal is not executable: {argv[0]}")
            raise ToolNotFound(argv[0])
        logger.info(f"Opened {kind.value} session for {name} (pid {proc.pid})")
        return SessionHandle(kind=kind, name=name, argv=tuple(argv), pid=proc.pid)
