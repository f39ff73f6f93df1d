"""Kernel — Shortcut registry.

A shortcut is a named callable that resolves a dotted path in the namespace
*every time it is called*.  Redefining the function at the path changes what
the shortcut does; nothing is cached.

Shortcuts are installed into a ``ShortcutScope`` rather than into the
interpreter's globals.  The scope is the explicit stand-in for the shell's
global namespace: evaluation contexts (the shell's ``eval``, revived
functions) receive ``scope.as_globals()`` and find shortcuts there by name.

Rows live in the ``shortcuts`` table; ``create``/``update`` upsert,
``remove`` deletes, and ``rebind`` re-installs a callable for a row that is
already durable (bootstrap path).
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from rich.console import Console
from rich.table import Table as RichTable

from hlvm.exceptions import PathSyntaxError, ReservedNameError
from hlvm.kernel.namespace import Namespace
from hlvm.kernel.paths import resolve_path, tokenize_path
from hlvm.kernel.reserved import is_reserved
from hlvm.kernel.store import KernelStore, ShortcutRow, Table, from_ms, now_ms
from hlvm.logging import get_logger

log = get_logger(__name__)

# Path fragment -> display category, checked in order.
_CATEGORIES: list[tuple[str, str]] = [
    ("ai", "AI"),
    ("fs", "File System"),
    ("clipboard", "Clipboard"),
    ("system", "System"),
    ("computer", "Automation"),
    ("notification", "UI"),
]


@dataclass(frozen=True)
class ShortcutInfo:
    name: str
    path: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: ShortcutRow) -> "ShortcutInfo":
        return cls(
            name=row.name,
            path=row.path,
            created_at=from_ms(row.created_at),
            updated_at=from_ms(row.updated_at),
        )

    @property
    def category(self) -> str:
        segments = self.path.split(".")
        for fragment, label in _CATEGORIES:
            if fragment in segments[:-1]:
                return label
        return "Custom"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class Shortcut:
    """Late-binding callable for one shortcut row.

    Calling it walks the path from the namespace root.  A callable target is
    invoked with the call's arguments and its result returned unchanged (a
    coroutine is returned for the caller to await); any other target is
    returned as is.

    Raises:
        PathResolutionError: a path segment is missing at call time.
    """

    def __init__(self, name: str, path: str, segments: tuple[str, ...], root: Namespace) -> None:
        self.name = name
        self.path = path
        self.segments = segments
        self._root = root

    def resolve(self) -> Any:
        return resolve_path(self._root, self.segments, self.path)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        target = self.resolve()
        if callable(target):
            return target(*args, **kwargs)
        return target

    def __repr__(self) -> str:
        return f"<shortcut {self.name}() -> {self.path}>"


class ShortcutScope:
    """Explicit global scope holding installed shortcuts and system entry points.

    Lifecycle::

        scope = ShortcutScope()
        scope.init(root=namespace, entry_points={"help": kernel.help})
        exec(code, scope.as_globals())
        scope.teardown()

    ``as_globals()`` returns the same live dict for the scope's whole
    lifetime, so functions bound to it see shortcuts created later.
    """

    def __init__(self) -> None:
        self._globals: dict[str, Any] = {}
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def init(
        self,
        root: Namespace | None = None,
        entry_points: dict[str, Callable[..., Any]] | None = None,
    ) -> None:
        self._globals.clear()
        self._globals["__builtins__"] = builtins
        if root is not None:
            self._globals[root.root_name] = root
        for name, entry in (entry_points or {}).items():
            self._globals[name] = entry
        self._active = True

    def teardown(self) -> None:
        self._globals.clear()
        self._active = False

    def as_globals(self) -> dict[str, Any]:
        return self._globals

    def install(self, shortcut: Shortcut) -> None:
        self._globals[shortcut.name] = shortcut

    def uninstall(self, name: str) -> bool:
        if isinstance(self._globals.get(name), Shortcut):
            del self._globals[name]
            return True
        return False

    def is_system_entry(self, name: str) -> bool:
        """True if *name* is taken by something other than a shortcut."""
        if name in self._globals and not isinstance(self._globals[name], Shortcut):
            return True
        return hasattr(builtins, name)

    def shortcut_names(self) -> list[str]:
        return sorted(n for n, v in self._globals.items() if isinstance(v, Shortcut))

    def __getitem__(self, name: str) -> Any:
        return self._globals[name]

    def __contains__(self, name: object) -> bool:
        return name in self._globals

    def get(self, name: str, default: Any = None) -> Any:
        return self._globals.get(name, default)


class ShortcutRegistry:
    """CRUD over shortcut rows plus their installed callables.

    Usage::

        registry = ShortcutRegistry(store, namespace, scope)
        registry.create("sq", "math.square")
        scope["sq"](4)
        registry.remove("sq")
    """

    def __init__(self, store: KernelStore, namespace: Namespace, scope: ShortcutScope) -> None:
        self._store = store
        self._namespace = namespace
        self._scope = scope

    @property
    def scope(self) -> ShortcutScope:
        return self._scope

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, name: str, path: str) -> bool:
        """Create or update a shortcut.  Returns False when rejected."""
        segments = self._validate(name, path, operation="create")
        if segments is None:
            return False

        now = now_ms()
        # created_at is kept on conflict; only path and updated_at change.
        self._store.upsert(
            Table.SHORTCUTS,
            name,
            ShortcutRow(name=name, path=path, created_at=now, updated_at=now),
        )
        self._scope.install(Shortcut(name, path, segments, self._namespace))
        log.info("shortcut_created", name=name, path=path)
        return True

    def update(self, name: str, path: str) -> bool:
        return self.create(name, path)

    def remove(self, name: str) -> bool:
        """Delete a shortcut.  Idempotent: removing an absent name succeeds."""
        self._store.delete(Table.SHORTCUTS, name)
        if self._scope.uninstall(name):
            log.info("shortcut_removed", name=name)
        return True

    def rebind(self, name: str, path: str) -> bool:
        """Install the callable for an existing row without writing it."""
        segments = self._validate(name, path, operation="rebind")
        if segments is None:
            return False
        self._scope.install(Shortcut(name, path, segments, self._namespace))
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> ShortcutInfo | None:
        row = self._store.get(Table.SHORTCUTS, name)
        return ShortcutInfo.from_row(row) if row is not None else None

    def has(self, name: str) -> bool:
        return self._store.get(Table.SHORTCUTS, name) is not None

    def list(self) -> list[ShortcutInfo]:
        return [ShortcutInfo.from_row(row) for row in self._store.list_all(Table.SHORTCUTS)]

    def show(self, filter: str | None = None, console: Console | None = None) -> list[ShortcutInfo]:
        """Print shortcuts grouped by category and return the ones shown."""
        console = console or Console()
        shortcuts = self.list()
        if filter:
            needle = filter.lower()
            shortcuts = [s for s in shortcuts if needle in s.name.lower() or needle in s.path.lower()]

        if not shortcuts:
            if filter:
                console.print(f"[yellow]No shortcuts matching '{filter}'[/yellow]")
            else:
                console.print("[yellow]No shortcuts registered yet.[/yellow]")
                console.print(
                    f"[dim]Create one with: {self._namespace.root_name}.modules."
                    "shortcut('name', 'path.to.function')[/dim]"
                )
            return []

        title = "Shortcuts" + (f" (filtered: {filter})" if filter else "")
        table = RichTable(title=title)
        table.add_column("Category", style="yellow")
        table.add_column("Name", style="green")
        table.add_column("Path", style="dim")
        table.add_column("Updated")

        for shortcut in sorted(shortcuts, key=lambda s: (s.category, s.name)):
            table.add_row(
                shortcut.category,
                f"{shortcut.name}()",
                shortcut.path,
                shortcut.updated_at.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)
        plural = "" if len(shortcuts) == 1 else "s"
        console.print(f"[dim]Total: {len(shortcuts)} shortcut{plural}[/dim]")
        return shortcuts

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _validate(self, name: str, path: str, operation: str) -> tuple[str, ...] | None:
        if is_reserved(name) or self._scope.is_system_entry(name):
            err = ReservedNameError(name, kind="shortcut")
            log.error("reserved_name_rejected", name=name, operation=operation, error=err.message)
            return None
        try:
            return tokenize_path(path, root_name=self._namespace.root_name)
        except PathSyntaxError as exc:
            log.error("shortcut_path_invalid", name=name, path=path, error=exc.reason)
            return None
