# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Pytest fixtures for podmenu tests.

Most tests replace the subprocess boundary with FakeRunner, which answers
tool invocations from a script. Runner tests spawn the real interpreter.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from podmenu.config import EngineConfig, reset_config
from podmenu.engine import ContainerEngine
from podmenu.errors import ToolNotFound
from podmenu.runner import CommandResult
from podmenu.sessions import SessionLauncher
from podmenu.version import reset_version

PODMAN4_VERSION_JSON = json.dumps({"Client": {"APIVersion": "4.3.1", "Version": "4.3.1", "OsArch": "linux/amd64"}})
PODMAN1_VERSION_TEXT = "podman version 1.9.3"

PODMAN4_PS_JSON = json.dumps(
    [
        {
            "Command": ["nginx", "-g", "daemon off;"],
            "Created": 1700000000,
            "CreatedAt": "3 hours ago",
            "Id": "a1b2c3d4e5f6",
            "Image": "docker.io/library/nginx:latest",
            "Names": ["web-1"],
            "Ports": [
                {"host_ip": "", "container_port": 80, "host_port": 8080, "range": 1, "protocol": "tcp"}
            ],
            "StartedAt": 1700000100,
            "State": "running",
            "Status": "Up 3 hours",
        },
        {
            "Command": ["postgres"],
            "Created": 1699000000,
            "CreatedAt": "3 days ago",
            "Id": "d4e5f6a7b8c9",
            "Image": "docker.io/library/postgres:15",
            "Names": ["db-1"],
            "Ports": None,
            "StartedAt": 1699000100,
            "State": "exited",
            "Status": "Exited (0) 2 days ago",
        },
        {
            "Command": None,
            "CreatedAt": "1 minute ago",
            "Id": "0789abcdef01",
            "Image": "quay.io/podman/hello:latest",
            "Names": ["fresh"],
            "Ports": None,
            "StartedAt": 0,
            "State": "configured",
            "Status": "Created",
        },
    ]
)

PODMAN1_PS_JSON = json.dumps(
    [
        {
            "ID": "a1b2c3d4e5f6",
            "Image": "docker.io/library/nginx:latest",
            "Command": "nginx -g daemon off;",
            "Created": "3 hours ago",
            "Status": "Up 3 hours ago",
            "Ports": "0.0.0.0:8080->80/tcp",
            "Names": "web-1",
        },
        {
            "ID": "d4e5f6a7b8c9",
            "Image": "docker.io/library/postgres:15",
            "Command": "postgres",
            "Created": "3 days ago",
            "Status": "Exited (0) 2 days ago",
            "Ports": "",
            "Names": "db-1",
        },
    ]
)

DOCKER_PS_LINES = "\n".join(
    json.dumps(record)
    for record in [
        {
            "Command": "\"nginx -g 'daemon off;'\"",
            "CreatedAt": "2024-01-01 10:00:00 +0000 UTC",
            "ID": "a1b2c3d4e5f6",
            "Image": "nginx:latest",
            "Names": "web-1",
            "Ports": "0.0.0.0:8080->80/tcp",
            "State": "running",
            "Status": "Up 3 hours",
        },
        {
            "Command": "\"docker-entrypoint.s…\"",
            "CreatedAt": "2023-12-29 09:00:00 +0000 UTC",
            "ID": "d4e5f6a7b8c9",
            "Image": "postgres:15",
            "Names": "db-1",
            "Ports": "",
            "State": "exited",
            "Status": "Exited (0) 2 days ago",
        },
    ]
)

INSPECT_JSON = json.dumps(
    [
        {
            "Id": "a1b2c3d4e5f6",
            "Name": "web-1",
            "NetworkSettings": {
                "IPAddress": "",
                "Networks": {"podman": {"IPAddress": "10.88.0.5", "Gateway": "10.88.0.1"}},
            },
        }
    ]
)


def make_ps_table(rows: List[Tuple[str, ...]]) -> str:
    """Render rows the way ``ps -a`` aligns its columns."""
    headers = ["CONTAINER ID", "IMAGE", "COMMAND", "CREATED", "STATUS", "PORTS", "NAMES"]
    widths = [max([len(h)] + [len(row[i]) for row in rows]) + 2 for i, h in enumerate(headers)]
    lines = ["".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip()]
    for row in rows:
        lines.append("".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
    return "\n".join(lines)


PS_TABLE = make_ps_table(
    [
        (
            "a1b2c3d4e5f6",
            "docker.io/library/nginx:latest",
            '"nginx -g daemon o..."',
            "3 hours ago",
            "Up 3 hours",
            "0.0.0.0:8080->80/tcp",
            "web-1",
        ),
        (
            "d4e5f6a7b8c9",
            "docker.io/library/postgres:15",
            "postgres",
            "3 days ago",
            "Exited (0) 2 days ago",
            "",
            "db-1",
        ),
    ]
)


@dataclass
class Response:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    wait: Optional[asyncio.Event] = None


class FakeRunner:
    """Scripted stand-in for CommandRunner.

    Responses are matched on the longest argument prefix. Several responses
    for one prefix are consumed in order; the last one repeats.
    """

    def __init__(self, tool: str = "podman"):
        self.tool = tool
        self.calls: List[List[str]] = []
        self._script: Dict[Tuple[str, ...], List[Response]] = {}
        self._missing = False
        self.missing = False

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "", wait=None):
        self._script.setdefault(tuple(prefix), []).append(
            Response(returncode=returncode, stdout=stdout, stderr=stderr, wait=wait)
        )
        return self

    def calls_for(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]

    def reset(self) -> None:
        self._missing = False

    @property
    def tool_missing(self) -> bool:
        return self._missing

    async def run(self, args, timeout=None) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        if self.missing or self._missing:
            self._missing = True
            raise ToolNotFound(self.tool)

        matches = [key for key in self._script if tuple(args[: len(key)]) == key]
        if not matches:
            return CommandResult((self.tool, *args), 125, "", f"unexpected command: {args}")
        queue = self._script[max(matches, key=len)]
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if response.wait is not None:
            await response.wait.wait()
        return CommandResult((self.tool, *args), response.returncode, response.stdout, response.stderr)


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path, monkeypatch):
    """Keep config, logs and the version cache per test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("PODMENU_LOG_FILE", str(tmp_path / "podmenu.log"))
    monkeypatch.delenv("PODMENU_TOOL", raising=False)
    monkeypatch.delenv("PODMENU_CONFIG", raising=False)
    reset_version()
    reset_config()
    yield
    reset_version()
    reset_config()


@pytest.fixture
def fake_runner():
    """FakeRunner reporting podman 4.3.1."""
    return FakeRunner().on("version", stdout=PODMAN4_VERSION_JSON)


@pytest.fixture
def legacy_runner():
    """FakeRunner reporting podman 1.9.3 (legacy status strings)."""
    return FakeRunner().on("version", returncode=125, stderr="unknown flag: --format").on(
        "--version", stdout=PODMAN1_VERSION_TEXT
    )


@pytest.fixture
def engine_config(tmp_path):
    return EngineConfig(config_path=tmp_path / "missing.yml")


@pytest.fixture
def mock_launcher():
    return Mock(spec=SessionLauncher)


@pytest.fixture
def make_engine(engine_config, mock_launcher):
    """Build a ContainerEngine around a given runner."""

    def _make(runner):
        return ContainerEngine(config=engine_config, runner=runner, launcher=mock_launcher)

    return _make
