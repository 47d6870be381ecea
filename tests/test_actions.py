# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Tests for command templates and action dispatch."""

import asyncio
import logging

import pytest

from podmenu.actions import ActionDispatcher, CommandTemplates
from podmenu.status import Action, SemanticState
from podmenu.version import Capabilities
from tests.conftest import FakeRunner

MODERN = Capabilities.for_version((4, 3, 1))
OLD = Capabilities.for_version((0, 12, 1))


class TestCommandTemplates:
    """Test argument arrays per capability profile"""

    def test_list_json(self):
        assert CommandTemplates(MODERN).list_containers() == ["ps", "-a", "--format", "json"]

    def test_list_table(self):
        assert CommandTemplates(OLD).list_containers() == ["ps", "-a"]

    def test_inspect(self):
        assert CommandTemplates(MODERN).inspect("web-1") == ["inspect", "--format", "json", "web-1"]
        assert CommandTemplates(OLD).inspect("web-1") == ["inspect", "web-1"]

    @pytest.mark.parametrize(
        "action,subcommand",
        [
            (Action.START, "start"),
            (Action.STOP, "stop"),
            (Action.RESTART, "restart"),
            (Action.REMOVE, "rm"),
            (Action.PAUSE, "pause"),
            (Action.UNPAUSE, "unpause"),
        ],
    )
    def test_action_subcommands(self, action, subcommand):
        assert CommandTemplates(MODERN).action(action, "web-1") == [subcommand, "web-1"]

    def test_stop_timeout(self):
        templates = CommandTemplates(MODERN, stop_timeout=5)
        assert templates.action(Action.STOP, "web-1") == ["stop", "--time", "5", "web-1"]
        assert templates.action(Action.RESTART, "web-1") == ["restart", "web-1"]

    def test_name_is_single_argument(self):
        name = "odd name; echo pwned"
        assert CommandTemplates(MODERN).action(Action.START, name)[-1] == name


class TestActionDispatcher:
    """Test dispatching actions through the runner"""

    def test_success(self):
        runner = FakeRunner().on("stop", stdout="web-1")
        dispatcher = ActionDispatcher(runner, CommandTemplates(MODERN))
        result = asyncio.run(dispatcher.dispatch("web-1", Action.STOP, SemanticState.RUNNING))
        assert result.ok
        assert runner.calls == [["stop", "web-1"]]

    def test_failure_is_returned(self):
        runner = FakeRunner().on("start", returncode=125, stderr="Error: no container with name or ID \"gone\" found")
        dispatcher = ActionDispatcher(runner, CommandTemplates(MODERN))
        result = asyncio.run(dispatcher.dispatch("gone", Action.START))
        assert result.returncode == 125
        assert "no container" in result.stderr

    def test_illegal_action_forwarded_with_warning(self, caplog):
        runner = FakeRunner().on("start", stdout="web-1")
        dispatcher = ActionDispatcher(runner, CommandTemplates(MODERN))
        with caplog.at_level(logging.WARNING, logger="podmenu"):
            result = asyncio.run(dispatcher.dispatch("web-1", Action.START, SemanticState.RUNNING))
        assert result.ok
        assert runner.calls == [["start", "web-1"]]
        assert "not expected to apply" in caplog.text
