"""CLI — Environment settings commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from hlvm.cli.session import ConfigOption, DbOption, open_kernel
from hlvm.env import SCHEMA

app = typer.Typer(help="Show and change persistent environment settings.")
console = Console()


def _parse(raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command("show")
def show_env(
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Show every setting with its current value."""
    with open_kernel(config, db, console) as kernel:
        kernel.env.show(console=console)


@app.command("set")
def set_env(
    key: str = typer.Argument(help="Setting key, e.g. ai.model."),
    value: str = typer.Argument(help="New value (JSON numbers are parsed)."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Validate and store a setting."""
    spec = SCHEMA.get(key)
    if spec is None:
        console.print(f"[red]Error: unknown setting '{key}'[/red]")
        raise typer.Exit(1)

    parsed = _parse(value) if spec.type == "number" else value
    with open_kernel(config, db, console) as kernel:
        if not spec.validate(parsed):
            console.print(f"[red]Error: invalid value for {key} (expected {spec.type})[/red]")
            raise typer.Exit(1)
        final = kernel.env.set(key, parsed)
    console.print(f"[green]✓[/green] {key} = {final}")


@app.command("reset")
def reset_env(
    key: Optional[str] = typer.Argument(None, help="Setting to reset; omit to reset all."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Reset one setting, or all of them, to the default."""
    if key is not None and key not in SCHEMA:
        console.print(f"[red]Error: unknown setting '{key}'[/red]")
        raise typer.Exit(1)
    with open_kernel(config, db, console) as kernel:
        kernel.env.reset(key)
    console.print(f"[green]✓[/green] Reset {key or 'all settings'}")
