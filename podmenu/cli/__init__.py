# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""podmenu CLI package."""

import asyncio
from typing import Optional

import click

from podmenu import __version__
from podmenu.cli.helpers import (
    console,
    container_details,
    containers_table,
    format_state,
    handle_errors,
    run_async,
)
from podmenu.config import get_config
from podmenu.engine import ContainerEngine
from podmenu.sessions import SessionKind
from podmenu.status import EXPECTED_AFTER, Action, SemanticState
from podmenu.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _engine(ctx: click.Context) -> ContainerEngine:
    config = get_config()
    tool = ctx.obj.get("tool") if ctx.obj else None
    if tool:
        config = config.with_overrides(tool=tool)
    return ContainerEngine(config=config)


@click.group()
@click.version_option(version=__version__, prog_name="podmenu")
@click.option("--debug", is_flag=True, help="Verbose output and debug logging.")
@click.option("--tool", metavar="BINARY", help="Container tool to drive (default from config: podman).")
@click.pass_context
def cli(ctx: click.Context, debug: bool, tool: Optional[str]):
    """podmenu - Inspect and control local containers through podman or docker."""
    configure_logging(debug=debug, force=True)
    ctx.ensure_object(dict)
    ctx.obj["tool"] = tool


@cli.command("version")
@click.pass_context
@handle_errors
def version_cmd(ctx: click.Context):
    """Show the detected tool version and capabilities."""
    engine = _engine(ctx)
    info = run_async(engine.discover_version())
    caps = info.capabilities
    if not info.detected:
        logger.warning(f"Could not detect {engine.runner.tool} version; using conservative profile")
    console.print(f"[bold]{engine.runner.tool}[/bold] {info} ({caps.family})")
    console.print(f"  legacy status strings: {caps.legacy_status}")
    console.print(f"  JSON listing:          {caps.json_list}")
    console.print(f"  inspect --format json: {caps.inspect_format_json}")


@cli.command("ps")
@click.option("--running", is_flag=True, help="Only show running containers.")
@click.option("--inspect", "with_inspect", is_flag=True, help="Inspect each container for its IP address.")
@click.pass_context
@handle_errors
def ps_cmd(ctx: click.Context, running: bool, with_inspect: bool):
    """List containers."""
    engine = _engine(ctx)

    async def _discover():
        containers = await engine.list_containers()
        if running:
            containers = [c for c in containers if c.state is SemanticState.RUNNING]
        if with_inspect:
            containers = list(await asyncio.gather(*(engine.enrich(c) for c in containers)))
        return containers

    containers = run_async(_discover())
    if not containers:
        console.print("No containers detected")
        return
    console.print(containers_table(containers, show_ip=with_inspect))


@cli.command("inspect")
@click.argument("name")
@click.pass_context
@handle_errors
def inspect_cmd(ctx: click.Context, name: str):
    """Show details for a container, including its IP address."""
    engine = _engine(ctx)

    async def _inspect():
        await engine.list_containers()
        if name not in engine.snapshot:
            raise click.ClickException(f"No such container: {name}")
        return await engine.enrich(name)

    console.print(container_details(run_async(_inspect())))


def _make_action_command(command_name: str, action: Action, summary: str):
    @cli.command(command_name, help=summary)
    @click.argument("name")
    @click.pass_context
    @handle_errors
    def _command(ctx: click.Context, name: str):
        engine = _engine(ctx)

        async def _act():
            result = await getattr(engine, action.value)(name)
            # Observe the real outcome instead of assuming it
            await engine.list_containers()
            return result

        run_async(_act())
        container = engine.snapshot.get(name)
        expected = EXPECTED_AFTER[action]
        if container is None:
            if expected is None:
                logger.success(f"{action.value} {name}: container is gone")
            else:
                logger.warning(f"{action.value} {name}: container is no longer listed")
        elif expected is not None and container.state is not expected:
            logger.warning(
                f"{action.value} {name}: now {container.state.label} (expected {expected.label})"
            )
        else:
            console.print(f"[green]✓[/green] {action.value} {name}: now {format_state(container.state)}")

    return _command


for _name, _action, _summary in (
    ("start", Action.START, "Start a container."),
    ("stop", Action.STOP, "Stop a container."),
    ("restart", Action.RESTART, "Restart a container."),
    ("rm", Action.REMOVE, "Remove a container."),
    ("pause", Action.PAUSE, "Pause a container."),
    ("unpause", Action.UNPAUSE, "Unpause a container."),
):
    _make_action_command(_name, _action, _summary)


def _make_session_command(kind: SessionKind, summary: str):
    @cli.command(kind.value, help=summary)
    @click.argument("name")
    @click.pass_context
    @handle_errors
    def _command(ctx: click.Context, name: str):
        engine = _engine(ctx)
        handle = engine.launch_interactive(name, kind)
        logger.success(f"Opened {kind.value} for {name} (pid {handle.pid})")

    return _command


for _kind, _summary in (
    (SessionKind.LOGS, "Follow container logs in a terminal."),
    (SessionKind.TOP, "Watch container processes in a terminal."),
    (SessionKind.SHELL, "Open a shell inside a container."),
    (SessionKind.STATS, "Show live resource usage in a terminal."),
):
    _make_session_command(_kind, _summary)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
