"""Kernel — Wiring and lifecycle.

``Kernel`` owns the store, the namespace root, the shortcut scope and the
registry, attaches the built-in entries and runs the bootstrapper::

    kernel = Kernel(settings)
    kernel.init()                         # open store, attach built-ins, rehydrate
    hlvm = kernel.namespace
    hlvm.counter = 42
    hlvm.modules.shortcut("sq", "math.square")
    kernel.evaluate("sq(4)")
    kernel.teardown()
"""

from __future__ import annotations

import itertools
import linecache
from typing import Any

from rich.console import Console
from rich.table import Table as RichTable

from hlvm import __version__
from hlvm.config import Settings, get_settings
from hlvm.env import EnvSettings
from hlvm.kernel.bootstrap import BootstrapReport, bootstrap
from hlvm.kernel.namespace import Namespace
from hlvm.kernel.shortcuts import ShortcutInfo, ShortcutRegistry, ShortcutScope
from hlvm.kernel.store import CustomPropertyRow, KernelStore, Table, from_ms
from hlvm.kernel.system import SystemInfo
from hlvm.logging import get_logger

log = get_logger(__name__)

_input_counter = itertools.count(1)


class ModulesAPI:
    """The reserved ``modules`` entry: shortcut and property management."""

    def __init__(
        self, registry: ShortcutRegistry, store: KernelStore, console: Console | None = None
    ) -> None:
        self._registry = registry
        self._store = store
        self._console = console

    def shortcut(self, name: str, path: str | None = None) -> bool:
        """Create/update the shortcut *name*, or remove it when *path* is None."""
        if path is None:
            return self._registry.remove(name)
        if not isinstance(path, str):
            log.error("shortcut_path_invalid", name=name, path=repr(path), error="path must be a string")
            return False
        return self._registry.create(name, path)

    def shortcuts(self) -> list[dict[str, Any]]:
        return [info.to_dict() for info in self._registry.list()]

    def get_shortcut(self, name: str) -> ShortcutInfo | None:
        return self._registry.get(name)

    def has_shortcut(self, name: str) -> bool:
        return self._registry.has(name)

    def show_shortcuts(self, filter: str | None = None) -> list[ShortcutInfo]:
        return self._registry.show(filter, console=self._console)

    def properties(self) -> list[dict[str, Any]]:
        rows = self._store.list_all(Table.CUSTOM_PROPERTIES)
        return [
            {"key": row.key, "type": row.type, "updatedAt": from_ms(row.updated_at)}
            for row in rows
            if isinstance(row, CustomPropertyRow)
        ]

    def __repr__(self) -> str:
        return "<modules shortcut() shortcuts() properties() show_shortcuts()>"


class Kernel:
    """The persistent namespace kernel."""

    def __init__(self, settings: Settings | None = None, console: Console | None = None) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self.store = KernelStore(
            self._settings.storage.db_path,
            journal_mode=self._settings.storage.journal_mode,
        )
        self.namespace = Namespace(self.store, root_name=self._settings.kernel.root_name)
        self.scope = ShortcutScope()
        self.shortcuts = ShortcutRegistry(self.store, self.namespace, self.scope)
        self.modules = ModulesAPI(self.shortcuts, self.store, console=self._console)
        self.env: EnvSettings | None = None
        self.report: BootstrapReport | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, announce: bool | None = None) -> BootstrapReport:
        """Open the store, attach built-ins and rehydrate.  Call before user code."""
        self.store.open()
        self.env = EnvSettings(self.store.connection)
        self.env.init()

        self.namespace.attach_builtin("modules", self.modules)
        self.namespace.attach_builtin("db", self.store)
        self.namespace.attach_builtin("env", self.env)
        self.namespace.attach_builtin("system", SystemInfo.detect())
        self.namespace.attach_builtin("status", self.status)
        self.namespace.attach_builtin("help", self.help)

        self.scope.init(
            root=self.namespace,
            entry_points={"help": self.help, "status": self.status},
        )
        self.report = bootstrap(self.store, self.namespace, self.shortcuts)

        if announce is None:
            announce = self._settings.kernel.announce_shortcuts
        if announce:
            self._announce(self.report)
        return self.report

    def teardown(self) -> None:
        self.scope.teardown()
        self.store.close()
        log.debug("kernel_teardown", path=self.store.path)

    def __enter__(self) -> "Kernel":
        self.init(announce=False)
        return self

    def __exit__(self, *exc: object) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # Surface
    # ------------------------------------------------------------------

    def attach(self, name: str, value: Any) -> None:
        """Attach an external subsystem (automation, ai, ui, ...) under a reserved name."""
        self.namespace.attach_builtin(name, value)

    def evaluate(self, source: str) -> Any:
        """Run *source* in the shell scope (root + shortcuts).

        An expression returns its value; statements (``def``, assignments)
        are executed and return ``None``.  The text is registered in
        ``linecache`` under a unique filename so functions defined here keep
        a recoverable source and can be persisted.
        """
        filename = f"<hlvm-input-{next(_input_counter)}>"
        linecache.cache[filename] = (len(source), None, source.splitlines(keepends=True), filename)
        try:
            code = compile(source, filename, "eval")
        except SyntaxError:
            exec(compile(source, filename, "exec"), self.scope.as_globals())
            return None
        return eval(code, self.scope.as_globals())

    def status(self) -> dict[str, Any]:
        system = SystemInfo.detect()
        info: dict[str, Any] = {
            "version": __version__,
            "namespaces": self.namespace.builtins(),
            "properties": len(self.namespace.custom_keys()),
            "shortcuts": len(self.scope.shortcut_names()),
            "database": self.store.path,
            "platform": f"{system.os} ({system.arch})",
        }
        table = RichTable(title="HLVM Status")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in info.items():
            table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
        self._console.print(table)
        return info

    def help(self) -> None:
        root = self.namespace.root_name
        names = self.scope.shortcut_names()
        self._console.print(f"[cyan]HLVM {__version__} — quick start[/cyan]\n")
        if names:
            self._console.print("[yellow]Your shortcuts:[/yellow]")
            for info in self.shortcuts.list():
                self._console.print(f"  [green]{info.name}()[/green]  → {info.path}")
        else:
            self._console.print("[yellow]No shortcuts yet.[/yellow] Create your first one:")
            self._console.print(f"  [dim]{root}.modules.shortcut('host', 'system.hostname')[/dim]")
        self._console.print("\n[yellow]Namespaces:[/yellow]")
        for name in self.namespace.builtins():
            self._console.print(f"  [cyan]{root}.{name}[/cyan]")
        self._console.print(
            f"\n[dim]Any other {root}.<name> = value is saved and restored on the next start.[/dim]"
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _announce(self, report: BootstrapReport) -> None:
        root = self.namespace.root_name
        if report.shortcuts_loaded:
            self._console.print(f"[yellow]Shortcuts: {', '.join(sorted(report.shortcuts_loaded))}[/yellow]")
        else:
            self._console.print(
                f"[yellow]No shortcuts yet.[/yellow] [dim]Create one with {root}.modules.shortcut('name', 'path')[/dim]"
            )
        for key in report.failed_keys:
            self._console.print(f"[red]Failed to restore '{key}'[/red]")
