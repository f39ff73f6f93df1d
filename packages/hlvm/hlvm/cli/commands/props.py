"""CLI — Custom property inspection commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from hlvm.cli.session import ConfigOption, DbOption, open_kernel
from hlvm.kernel.namespace import is_protected
from hlvm.kernel.store import CustomPropertyRow, Table as KernelTable

app = typer.Typer(help="Inspect persisted custom properties.")
console = Console()


@app.command("list")
def list_props(
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """List persisted properties."""
    with open_kernel(config, db, console) as kernel:
        properties = kernel.modules.properties()
        failed = kernel.report.failed_keys if kernel.report else []

    table = Table(title="Custom Properties")
    table.add_column("Key", style="cyan")
    table.add_column("Type")
    table.add_column("Updated")
    table.add_column("Restored", style="green")

    for prop in properties:
        table.add_row(
            prop["key"],
            prop["type"],
            prop["updatedAt"].strftime("%Y-%m-%d %H:%M"),
            "[red]no[/red]" if prop["key"] in failed else "yes",
        )
    console.print(table)


@app.command("get")
def get_prop(
    key: str = typer.Argument(help="Property name."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Print the stored payload of a property."""
    with open_kernel(config, db, console) as kernel:
        row = kernel.store.get(KernelTable.CUSTOM_PROPERTIES, key)

    if not isinstance(row, CustomPropertyRow):
        console.print(f"[red]Error: no property named '{key}'[/red]")
        raise typer.Exit(1)

    if row.type == "function":
        console.print(Syntax(row.value, "python"))
        return
    try:
        pretty = json.dumps(json.loads(row.value), indent=2)
    except ValueError:
        console.print(f"[yellow]Stored payload is not valid JSON:[/yellow] {row.value}")
        return
    console.print(Syntax(pretty, "json"))


@app.command("remove")
def remove_prop(
    key: str = typer.Argument(help="Property name."),
    config: Optional[Path] = ConfigOption,
    db: Optional[Path] = DbOption,
) -> None:
    """Delete a property and its stored row."""
    if is_protected(key):
        console.print(f"[red]Error: '{key}' is a reserved name[/red]")
        raise typer.Exit(1)
    with open_kernel(config, db, console) as kernel:
        kernel.namespace.delete(key)

    console.print(f"[green]✓[/green] Removed {key}")
