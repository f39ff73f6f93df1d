"""HLVM CLI — Entry point.

Usage:
    hlvm status
    hlvm call <shortcut> [ARGS...]
    hlvm shortcuts list
    hlvm shortcuts show [FILTER]
    hlvm shortcuts set <name> <path>
    hlvm shortcuts remove <name>
    hlvm props list
    hlvm props get <key>
    hlvm props remove <key>
    hlvm env show
    hlvm env set <key> <value>
    hlvm env reset [KEY]
"""

from __future__ import annotations

import asyncio
import inspect
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.pretty import Pretty

from hlvm.cli.commands import env, props, shortcuts
from hlvm.cli.session import ConfigOption, DbOption, open_kernel
from hlvm.exceptions import HLVMError
from hlvm.kernel.shortcuts import Shortcut

app = typer.Typer(
    name="hlvm",
    help="HLVM — Persistent namespace kernel: durable properties and shortcuts.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.add_typer(shortcuts.app, name="shortcuts")
app.add_typer(props.app, name="props")
app.add_typer(env.app, name="env")


@app.callback()
def main_callback() -> None:
    pass


@app.command("status")
def status(
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Show kernel status: namespaces, counts and database location."""
    with open_kernel(config, db, console) as kernel:
        kernel.status()
        report = kernel.report
        if report is not None and report.failed_keys:
            console.print(f"[red]Failed to restore: {', '.join(report.failed_keys)}[/red]")


def _parse_arg(raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command("call")
def call(
    name: str = typer.Argument(help="Shortcut to invoke."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments; JSON literals are parsed."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Invoke a shortcut and print its result."""
    with open_kernel(config, db, console) as kernel:
        target = kernel.scope.get(name)
        if not isinstance(target, Shortcut):
            console.print(f"[red]Error: no shortcut named '{name}'[/red]")
            raise typer.Exit(1)
        try:
            result = target(*[_parse_arg(a) for a in args or []])
            if inspect.isawaitable(result):
                result = asyncio.run(_await(result))
        except HLVMError as exc:
            console.print(f"[red]Error: {exc.message}[/red]")
            raise typer.Exit(1)
        except Exception as exc:
            console.print(f"[red]Error: {type(exc).__name__}: {exc}[/red]")
            raise typer.Exit(1)

    if result is not None:
        console.print(Pretty(result))


async def _await(awaitable: object) -> object:
    return await awaitable  # type: ignore[misc]


if __name__ == "__main__":
    app()
