"""CLI — Shortcut management commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from hlvm.cli.session import ConfigOption, DbOption, open_kernel

app = typer.Typer(help="Create, remove and list persistent shortcuts.")
console = Console()


@app.command("list")
def list_shortcuts(
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """List all shortcuts."""
    with open_kernel(config, db, console) as kernel:
        shortcuts = kernel.shortcuts.list()

    table = Table(title="Shortcuts")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    table.add_column("Created")
    table.add_column("Updated")

    for info in shortcuts:
        table.add_row(
            info.name,
            info.path,
            info.created_at.strftime("%Y-%m-%d %H:%M"),
            info.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command("show")
def show_shortcuts(
    filter: Optional[str] = typer.Argument(None, help="Only show names or paths containing this text."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Show shortcuts grouped by category."""
    with open_kernel(config, db, console) as kernel:
        kernel.shortcuts.show(filter, console=console)


@app.command("set")
def set_shortcut(
    name: str = typer.Argument(help="Shortcut name."),
    path: str = typer.Argument(help="Dotted namespace path, e.g. system.hostname."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Create or update a shortcut."""
    with open_kernel(config, db, console) as kernel:
        ok = kernel.modules.shortcut(name, path)

    if not ok:
        console.print(f"[red]Error: cannot create shortcut '{name}' -> '{path}'[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {name}() → {path}")


@app.command("remove")
def remove_shortcut(
    name: str = typer.Argument(help="Shortcut name."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Remove a shortcut.  Removing an unknown name is not an error."""
    with open_kernel(config, db, console) as kernel:
        existed = kernel.shortcuts.has(name)
        kernel.modules.shortcut(name, None)

    if existed:
        console.print(f"[green]✓[/green] Removed {name}()")
    else:
        console.print(f"[dim]No shortcut named '{name}'[/dim]")
