# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Helpers shared by CLI commands."""

import asyncio
import functools
import sys
from typing import Callable, Iterable, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from podmenu.errors import CommandFailed, EngineError, ParseError, ToolNotFound
from podmenu.model import Container
from podmenu.status import SemanticState

console = Console()

STATE_STYLES = {
    SemanticState.RUNNING: "green",
    SemanticState.PAUSED: "yellow",
    SemanticState.CREATED: "blue",
    SemanticState.STOPPED: "dim",
    SemanticState.UNKNOWN: "red",
}


def show_error_panel(title: str, message: str, hint: Optional[str] = None) -> None:
    """Display a formatted error panel.

    Args:
        title: Panel title (shown in red)
        message: Main error message
        hint: Optional hint text (shown with blue "Hint:" prefix)
    """
    content = message
    if hint:
        content += f"\n\n[blue]Hint:[/blue] {hint}"
    console.print(Panel(content, title=f"[red]{title}[/red]", border_style="red"))


def handle_errors(func: Callable) -> Callable:
    """Decorator that turns engine errors into panels and exit code 1.

    Usage:
        @cli.command()
        @handle_errors
        def my_command():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SystemExit:
            raise
        except click.ClickException:
            raise
        except ToolNotFound as exc:
            show_error_panel("Tool Not Found", str(exc), exc.hint)
            sys.exit(1)
        except CommandFailed as exc:
            show_error_panel("Command Failed", str(exc), exc.hint)
            sys.exit(1)
        except ParseError as exc:
            show_error_panel("Unexpected Output", str(exc), exc.hint)
            sys.exit(1)
        except EngineError as exc:
            show_error_panel("Error", str(exc), exc.hint)
            sys.exit(1)
        except Exception as exc:
            show_error_panel("Error", str(exc))
            sys.exit(1)

    return wrapper


def run_async(coro):
    """Run an engine coroutine to completion from a synchronous command."""
    return asyncio.run(coro)


def format_state(state: SemanticState) -> str:
    style = STATE_STYLES[state]
    return f"[{style}]{state.label}[/{style}]"


def containers_table(containers: Iterable[Container], show_ip: bool = False) -> Table:
    table = Table(title="Containers")
    table.add_column("Name", style="cyan")
    table.add_column("State")
    table.add_column("Status")
    table.add_column("Image", style="magenta")
    table.add_column("Ports", style="blue")
    table.add_column("Created")
    if show_ip:
        table.add_column("IP Address")

    for container in containers:
        row = [
            container.name,
            format_state(container.state),
            container.status,
            container.image or "",
            container.ports_text,
            container.created or "",
        ]
        if show_ip:
            row.append(container.ip_address or "n/a")
        table.add_row(*row)
    return table


def container_details(container: Container) -> Table:
    """Key/value details like the menu's per-container submenu."""
    table = Table(show_header=False, box=None, title=container.name)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("State", format_state(container.state))
    table.add_row("Status", container.status)
    if container.started_at is not None:
        table.add_row("Started", container.started_at.strftime("%Y-%m-%d %H:%M:%S %Z"))
    table.add_row("Image", container.image or "")
    table.add_row("Command", container.command or "")
    table.add_row("Created", container.created or "")
    table.add_row("Ports", container.ports_text)
    table.add_row("IP Address", container.ip_address or "n/a")
    if container.networks:
        table.add_row("Networks", ", ".join(container.networks))
    table.add_row("Actions", ", ".join(action.value for action in container.actions))
    return table
