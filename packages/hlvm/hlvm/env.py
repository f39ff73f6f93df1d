"""Persistent environment settings.

A small, schema-validated settings table (``hlvm_env``) living in the same
database as the kernel tables.  Only known keys can be set; every key has a
default that ``get`` falls back to when nothing is stored.  Exposed on the
namespace as the reserved ``env`` entry::

    hlvm.env.set("ai.model", "llama3.2")
    hlvm.env.get("ai.temperature")        # 0.7 until changed
    hlvm.env.reset("ai.model")
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from rich.console import Console

from hlvm.exceptions import StoreError
from hlvm.logging import get_logger

log = get_logger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS hlvm_env (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  INTEGER NOT NULL
);
"""


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SettingSpec:
    type: str
    default: Any
    description: str
    validate: Callable[[Any], bool]
    parse: Callable[[Any], Any] = lambda v: v


SCHEMA: dict[str, SettingSpec] = {
    "ai.model": SettingSpec(
        type="string",
        default="qwen2.5-coder:1.5b",
        description="Default AI model for chat/revise",
        validate=lambda v: isinstance(v, str) and len(v) > 0,
    ),
    "ai.temperature": SettingSpec(
        type="number",
        default=0.7,
        description="AI creativity (0=focused, 2=creative)",
        validate=lambda v: (n := _as_number(v)) is not None and 0 <= n <= 2,
        parse=float,
    ),
    "ai.max_tokens": SettingSpec(
        type="number",
        default=4000,
        description="Max response length",
        validate=lambda v: (n := _as_number(v)) is not None and n.is_integer() and 1 <= n <= 100_000,
        parse=lambda v: int(float(v)),
    ),
    "ollama.host": SettingSpec(
        type="string",
        default="127.0.0.1:11434",
        description="Ollama server address",
        validate=lambda v: isinstance(v, str) and ":" in v,
    ),
}


class EnvSettings:
    """Schema-checked persistent settings over a shared SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def init(self) -> None:
        with self._errors("init"):
            self._conn.executescript(_SCHEMA_SQL)

    def get(self, key: str) -> Any:
        """Stored value, or the default; ``None`` for unknown keys."""
        spec = SCHEMA.get(key)
        if spec is None:
            return None
        with self._errors("get", key):
            row = self._conn.execute("SELECT value FROM hlvm_env WHERE key=?", (key,)).fetchone()
        if row is None:
            return spec.default
        return spec.parse(row[0])

    def set(self, key: str, value: Any) -> Any:
        """Validate and store *value*.  Returns the effective value."""
        spec = SCHEMA.get(key)
        if spec is None:
            log.warning("env_unknown_setting", key=key)
            return None
        if not spec.validate(value):
            log.warning("env_invalid_value", key=key, expected=spec.type, value=repr(value))
            return self.get(key)

        final = spec.parse(value)
        with self._errors("set", key):
            self._conn.execute(
                """INSERT INTO hlvm_env (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                     value=excluded.value,
                     updated_at=excluded.updated_at""",
                (key, str(final), int(time.time() * 1000)),
            )
        log.info("env_setting_saved", key=key, value=final)
        return final

    def has(self, key: str) -> bool:
        """True if *key* holds a custom (non-default) value."""
        if key not in SCHEMA:
            return False
        with self._errors("has", key):
            row = self._conn.execute("SELECT 1 FROM hlvm_env WHERE key=?", (key,)).fetchone()
        return row is not None

    def list(self) -> dict[str, Any]:
        return {key: self.get(key) for key in SCHEMA}

    def reset(self, key: str | None = None) -> bool:
        """Reset one key (or every key) to its default."""
        if key is None:
            with self._errors("reset"):
                self._conn.execute("DELETE FROM hlvm_env")
            log.info("env_reset_all")
            return True
        if key not in SCHEMA:
            log.warning("env_unknown_setting", key=key)
            return False
        with self._errors("reset", key):
            self._conn.execute("DELETE FROM hlvm_env WHERE key=?", (key,))
        log.info("env_setting_reset", key=key, default=SCHEMA[key].default)
        return True

    def show(self, console: Console | None = None) -> None:
        console = console or Console()
        console.print("[cyan]═══ HLVM Environment Settings ═══[/cyan]")
        for key, spec in SCHEMA.items():
            custom = self.has(key)
            marker = "[green]●[/green]" if custom else "[dim]○[/dim]"
            value = f"[yellow]{self.get(key)}[/yellow]" if custom else f"[dim]{spec.default}[/dim]"
            console.print(f"{marker} {key}: {value}")
            console.print(f"  [dim]{spec.description}[/dim]")
            if not custom:
                console.print("  [dim](using default)[/dim]")

    @contextmanager
    def _errors(self, operation: str, key: str | None = None) -> Iterator[None]:
        """Translate ``sqlite3.Error`` into ``StoreError``."""
        try:
            yield
        except sqlite3.Error as exc:
            context: dict[str, Any] = {"table": "hlvm_env"}
            if key is not None:
                context["key"] = key
            log.error("env_operation_failed", operation=operation, error=str(exc), **context)
            raise StoreError(f"EnvSettings {operation} failed: {exc}", context=context) from exc
