"""Kernel — Rehydration at startup.

Runs before any user code:

1. create both kernel tables if absent;
2. re-install a callable for every shortcut row (rows are not rewritten);
3. revive every custom property row and bind it straight onto the
   namespace, bypassing ``Namespace.set`` since the data is already durable.

A row that cannot be revived is logged and skipped.  It stays in the table
untouched, so a later fix (or a manual inspection) still has the original
payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

from hlvm.exceptions import DeserializationError
from hlvm.kernel.namespace import Namespace, is_protected
from hlvm.kernel.serializer import deserialize
from hlvm.kernel.shortcuts import ShortcutRegistry
from hlvm.kernel.store import CustomPropertyRow, KernelStore, ShortcutRow, Table
from hlvm.logging import get_logger

log = get_logger(__name__)


@dataclass
class BootstrapReport:
    shortcuts_loaded: list[str] = field(default_factory=list)
    properties_loaded: list[str] = field(default_factory=list)
    failed_keys: list[str] = field(default_factory=list)
    skipped_shortcuts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_keys and not self.skipped_shortcuts


def bootstrap(
    store: KernelStore,
    namespace: Namespace,
    shortcuts: ShortcutRegistry,
) -> BootstrapReport:
    """Restore shortcuts and custom properties from *store*."""
    report = BootstrapReport()
    store.create_schema()

    for row in cast("list[ShortcutRow]", store.list_all(Table.SHORTCUTS)):
        if shortcuts.rebind(row.name, row.path):
            report.shortcuts_loaded.append(row.name)
        else:
            report.skipped_shortcuts.append(row.name)

    scope_globals = shortcuts.scope.as_globals()
    for row in cast("list[CustomPropertyRow]", store.list_all(Table.CUSTOM_PROPERTIES)):
        if is_protected(row.key):
            log.warning("reserved_property_row_ignored", key=row.key)
            report.failed_keys.append(row.key)
            continue
        try:
            value = deserialize(row.value, row.type, key=row.key, scope_globals=scope_globals)
        except DeserializationError as exc:
            log.error("property_restore_failed", key=row.key, type=row.type, error=exc.reason)
            report.failed_keys.append(row.key)
            continue
        namespace._load(row.key, value)
        report.properties_loaded.append(row.key)

    log.info(
        "kernel_bootstrapped",
        shortcuts=len(report.shortcuts_loaded),
        properties=len(report.properties_loaded),
        failed=len(report.failed_keys),
    )
    return report
