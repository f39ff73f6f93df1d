"""CLI — Kernel session helper shared by the commands."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console

from hlvm.config import Settings
from hlvm.exceptions import HLVMError
from hlvm.kernel.runtime import Kernel
from hlvm.logging import bind_session, configure_logging, unbind_session

ConfigOption = typer.Option(None, "--config", "-c", help="Path to config.yaml.")
DbOption = typer.Option(None, "--db", help="Path to the HLVM.sqlite database.")


def load_settings(config: Path | None, db: Path | None) -> Settings:
    settings = Settings.load(config_file=config)
    if db is not None:
        settings.storage.db_path = db.expanduser()
    return settings


@contextmanager
def open_kernel(config: Path | None, db: Path | None, console: Console) -> Iterator[Kernel]:
    """Boot a kernel for one command; errors are printed and exit with code 1."""
    try:
        settings = load_settings(config, db)
        configure_logging(settings.logging)
    except HLVMError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    bind_session(db=str(settings.storage.db_path))
    kernel = Kernel(settings, console=console)
    try:
        kernel.init(announce=False)
    except HLVMError as exc:
        kernel.teardown()
        unbind_session()
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    try:
        yield kernel
    finally:
        kernel.teardown()
        unbind_session()
