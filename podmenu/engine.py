# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Container engine facade.

This is the only object a presentation layer needs:

    engine = ContainerEngine()
    await engine.discover_version()
    containers = await engine.list_containers()
    await engine.stop("web-1")
    containers = await engine.list_containers()

Every method that talks to the tool is a coroutine and suspends only while
the subprocess runs. Call-level failures raise EngineError subclasses;
``list_containers()`` never reports a failure as an empty list.
"""

import logging
from typing import List, Optional, Union

from podmenu.actions import ActionDispatcher, CommandTemplates
from podmenu.config import EngineConfig, get_config
from podmenu.enricher import InspectEnricher
from podmenu.errors import CommandFailed, EngineError, ParseError, ToolNotFound
from podmenu.model import Container, ContainerModel, Enrichment, Snapshot
from podmenu.parser import OutputParser
from podmenu.runner import CommandResult, CommandRunner
from podmenu.sessions import SessionHandle, SessionKind, SessionLauncher
from podmenu.status import Action
from podmenu.version import VersionInfo, discover_version, reset_version

logger = logging.getLogger(__name__)

Target = Union[str, Container]


def _name_of(target: Target) -> str:
    return target.name if isinstance(target, Container) else target


class ContainerEngine:
    """Discovers containers and runs actions through the container tool."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        runner: Optional[CommandRunner] = None,
        launcher: Optional[SessionLauncher] = None,
    ):
        self.config = config or get_config()
        self.runner = runner or CommandRunner(
            self.config.tool, timeout=self.config.timeouts.command
        )
        self.launcher = launcher or SessionLauncher(
            tool=self.config.tool,
            terminal=self.config.terminal,
            hold_terminal=self.config.hold_terminal,
            shell=self.config.shell,
            top_interval=self.config.top_interval,
        )
        self.model = ContainerModel()
        self._version: Optional[VersionInfo] = None
        self._parser: Optional[OutputParser] = None
        self._templates: Optional[CommandTemplates] = None
        self._dispatcher: Optional[ActionDispatcher] = None
        self._enricher: Optional[InspectEnricher] = None

    # ========== Version ==========

    async def discover_version(self) -> VersionInfo:
        """Detect the tool version (once per process) and wire the capability profile."""
        if self._version is None:
            version = await discover_version(self.runner, timeout=self.config.timeouts.version)
            # a concurrent caller may have wired the same version already
            if self._version is not version:
                self._configure(version)
        return self._version

    def _configure(self, version: VersionInfo) -> None:
        capabilities = version.capabilities
        self._version = version
        self._parser = OutputParser(capabilities)
        self._templates = CommandTemplates(capabilities, stop_timeout=self.config.stop_timeout)
        self._dispatcher = ActionDispatcher(self.runner, self._templates)
        self._enricher = InspectEnricher(
            self.runner, self._templates, self._parser, timeout=self.config.timeouts.inspect
        )

    @property
    def version(self) -> Optional[VersionInfo]:
        return self._version

    def reset(self) -> None:
        """Forget the detected version and a previously missing tool.

        The next call re-detects. The current snapshot is kept.
        """
        reset_version()
        self.runner.reset()
        self._version = None
        self._parser = None
        self._templates = None
        self._dispatcher = None
        self._enricher = None

    # ========== Discovery ==========

    @property
    def snapshot(self) -> Snapshot:
        return self.model.current

    async def list_containers(self) -> List[Container]:
        """Run a discovery and return the current containers.

        If a newer discovery finished first, this call's result is discarded
        and the newer containers are returned. That includes a failure: it is
        only raised when no newer discovery has published.

        Raises:
            ToolNotFound: If the tool is not installed
            CommandFailed: If listing failed (the previous snapshot is kept)
            ParseError: If the output as a whole could not be parsed
        """
        version = await self.discover_version()
        sequence = self.model.next_sequence()
        result = await self.runner.run(self._templates.list_containers())

        try:
            containers = self._containers_from(result, version)
        except (CommandFailed, ParseError) as e:
            if self.model.current.sequence > sequence:
                logger.debug(f"Discovery #{sequence} failed after a newer one published: {e}")
                return list(self.model.current.containers)
            raise

        self.model.publish(sequence, containers)
        return list(self.model.current.containers)

    def _containers_from(self, result: CommandResult, version: VersionInfo) -> List[Container]:
        if result.ok:
            return self._parser.parse_container_list(result.stdout)
        if version.capabilities.is_benign_empty(result.stderr, self.config.benign_empty_patterns):
            logger.info(f"List exited {result.returncode} with benign message: {result.stderr}")
            return []
        logger.warning(
            f"Containers could not be fetched (exit {result.returncode}): {result.stderr}"
        )
        raise CommandFailed(
            result,
            message=f"Containers could not be fetched: {result.stderr or f'exit code {result.returncode}'}",
        )

    # ========== Actions ==========

    async def dispatch(self, target: Target, action: Action) -> CommandResult:
        """Run an action and return the raw result without raising on failure."""
        await self.discover_version()
        name = _name_of(target)
        known = self.model.current.get(name)
        return await self._dispatcher.dispatch(
            name, action, state=known.state if known else None
        )

    async def _run_action(self, target: Target, action: Action) -> CommandResult:
        return (await self.dispatch(target, action)).check()

    async def start(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.START)

    async def stop(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.STOP)

    async def restart(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.RESTART)

    async def remove(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.REMOVE)

    async def pause(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.PAUSE)

    async def unpause(self, target: Target) -> CommandResult:
        return await self._run_action(target, Action.UNPAUSE)

    # ========== Enrichment ==========

    async def inspect(self, target: Target) -> Enrichment:
        """Return inspect-only fields, cached per snapshot."""
        await self.discover_version()
        return await self._enricher.enrich(self.model.current, _name_of(target))

    async def enrich(self, target: Target) -> Container:
        """Return the container with inspect fields merged in.

        Raises:
            EngineError: If a name is given that is not in the current snapshot
        """
        snapshot = self.model.current
        if isinstance(target, Container):
            base = target
        else:
            base = snapshot.get(target)
            if base is None:
                raise EngineError(f"Unknown container: {target}", hint="Refresh the container list")
        return base.with_enrichment(await self.inspect(base.name))

    # ========== Interactive sessions ==========

    def launch_interactive(self, target: Target, kind: SessionKind) -> SessionHandle:
        if self.runner.tool_missing:
            raise ToolNotFound(self.runner.tool)
        return self.launcher.launch(_name_of(target), kind)

    def logs(self, target: Target) -> SessionHandle:
        return self.launch_interactive(target, SessionKind.LOGS)

    def top(self, target: Target) -> SessionHandle:
        return self.launch_interactive(target, SessionKind.TOP)

    def shell(self, target: Target) -> SessionHandle:
        return self.launch_interactive(target, SessionKind.SHELL)

    def stats(self, target: Target) -> SessionHandle:
        return self.launch_interactive(target, SessionKind.STATS)
