# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Lifecycle action dispatch.

The dispatcher only runs commands. It never touches the container model;
callers rediscover after a state-changing action to see what actually
happened.
"""

import logging
from typing import List, Optional

from podmenu.runner import CommandResult, CommandRunner
from podmenu.status import Action, SemanticState, is_action_legal
from podmenu.version import Capabilities

logger = logging.getLogger(__name__)

ACTION_SUBCOMMANDS = {
    Action.START: "start",
    Action.STOP: "stop",
    Action.RESTART: "restart",
    Action.REMOVE: "rm",
    Action.PAUSE: "pause",
    Action.UNPAUSE: "unpause",
}


class CommandTemplates:
    """Builds tool arguments for the detected capability profile."""

    def __init__(self, capabilities: Capabilities, stop_timeout: Optional[int] = None):
        self.capabilities = capabilities
        self.stop_timeout = stop_timeout

    def list_containers(self) -> List[str]:
        if self.capabilities.json_list:
            return ["ps", "-a", "--format", self.capabilities.list_format]
        return ["ps", "-a"]

    def inspect(self, name: str) -> List[str]:
        if self.capabilities.inspect_format_json:
            return ["inspect", "--format", "json", name]
        return ["inspect", name]

    def action(self, action: Action, name: str) -> List[str]:
        args = [ACTION_SUBCOMMANDS[action]]
        if action is Action.STOP and self.stop_timeout is not None:
            args.extend(["--time", str(self.stop_timeout)])
        args.append(name)
        return args


class ActionDispatcher:
    """Runs lifecycle actions against named containers."""

    def __init__(self, runner: CommandRunner, templates: CommandTemplates):
        self.runner = runner
        self.templates = templates

    async def dispatch(
        self,
        name: str,
        action: Action,
        state: Optional[SemanticState] = None,
    ) -> CommandResult:
        """Run an action and return the tool's result.

        Illegal actions are still forwarded: the container may have changed
        since it was listed, so the tool gets the final word.

        Args:
            name: Container name
            action: Action to run
            state: Last known state, used only for the legality warning
        """
        if state is not None and not is_action_legal(action, state):
            logger.warning(
                f"{action.value} is not expected to apply to {name} in state {state.label}; forwarding anyway"
            )

        result = await self.runner.run(self.templates.action(action, name))
        if result.ok:
            logger.info(f"{action.value} {name}: ok")
        else:
            logger.warning(
                f"{action.value} {name} failed (exit {result.returncode}): {result.stderr or result.stdout}"
            )
        return result
