"""Kernel — The namespace root.

``Namespace`` is the single object every subsystem attaches onto and user
code mutates.  It keeps two maps:

* built-ins — reserved subsystem entries (``modules``, ``env``, ``system``,
  ...), attached by the kernel and never persisted;
* custom properties — anything else, mirrored row-for-row in the
  ``custom_properties`` table.

All mutation goes through three explicit operations:

``get(name)``
    Plain lookup, built-ins first.
``set(name, value)``
    Reserved name → logged and rejected (``False``).  ``None`` → row and value
    removed.  Otherwise the value is serialized and upserted *before* it is
    bound in memory, so memory is never ahead of disk.
``delete(name)``
    Row and value removed; idempotent.  Reserved names are left untouched.

Attribute access (``ns.x``, ``ns.x = 1``, ``del ns.x``) is sugar routed
through the same three operations.
"""

from __future__ import annotations

import json
from typing import Any, Iterator

from hlvm.exceptions import ReservedNameError, SerializationError
from hlvm.kernel.paths import PathNode
from hlvm.kernel.reserved import is_reserved
from hlvm.kernel.serializer import FUNCTION_TYPE, serialize
from hlvm.kernel.store import CustomPropertyRow, KernelStore, Table, now_ms
from hlvm.logging import get_logger

log = get_logger(__name__)

_MISSING = object()


class Namespace(PathNode):
    """Intercepting root object backed by a ``KernelStore``.

    Usage::

        ns = Namespace(store)
        ns.set("counter", 42)        # persisted, then bound
        ns.counter                   # 42
        ns.counter = None            # row deleted, attribute gone
        ns.set("modules", 1)         # False, logged, nothing changes
    """

    def __init__(self, store: KernelStore, root_name: str = "hlvm") -> None:
        object.__setattr__(self, "_store", store)
        object.__setattr__(self, "_root_name", root_name)
        object.__setattr__(self, "_builtins", {})
        object.__setattr__(self, "_custom", {})

    # ------------------------------------------------------------------
    # Intercepted operations
    # ------------------------------------------------------------------

    def get(self, name: str, default: Any = None) -> Any:
        if name in self._builtins:
            return self._builtins[name]
        return self._custom.get(name, default)

    def set(self, name: str, value: Any) -> bool:
        """Bind and persist a custom property.  Returns False when rejected."""
        if is_protected(name):
            err = ReservedNameError(name, kind="property")
            log.error("reserved_name_rejected", name=name, operation="set", error=err.message)
            return False

        if value is None:
            self._store.delete(Table.CUSTOM_PROPERTIES, name)
            self._custom.pop(name, None)
            log.debug("property_cleared", name=name)
            return True

        try:
            serialized = serialize(value, key=name)
        except SerializationError as exc:
            log.error("property_not_persisted", name=name, error=exc.reason)
            return False

        row = CustomPropertyRow(
            key=name,
            value=serialized.payload,
            type=serialized.type,
            updated_at=now_ms(),
        )
        self._store.upsert(Table.CUSTOM_PROPERTIES, name, row)
        # Bind what a restart would restore: JSON turns tuples into lists and
        # non-string keys into strings.
        if serialized.type != FUNCTION_TYPE:
            value = json.loads(serialized.payload)
        self._custom[name] = value
        log.debug("property_persisted", name=name, type=serialized.type)
        return True

    def delete(self, name: str) -> bool:
        """Remove a custom property.  Always succeeds.

        Reserved names are a logged no-op: the built-in stays attached.
        """
        if is_protected(name):
            log.warning("reserved_delete_ignored", name=name)
            return True
        self._store.delete(Table.CUSTOM_PROPERTIES, name)
        self._custom.pop(name, None)
        return True

    # ------------------------------------------------------------------
    # Kernel-side binding (no interception)
    # ------------------------------------------------------------------

    def attach_builtin(self, name: str, value: Any) -> None:
        """Attach a reserved subsystem entry.  Never persisted."""
        if not is_reserved(name):
            raise ValueError(f"'{name}' is not a reserved name; use set() for custom properties")
        self._builtins[name] = value

    def detach_builtin(self, name: str) -> None:
        self._builtins.pop(name, None)

    def _load(self, name: str, value: Any) -> None:
        """Bind a value that is already durable (bootstrap path)."""
        self._custom[name] = value

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def root_name(self) -> str:
        return self._root_name

    def child(self, name: str, default: Any = None) -> Any:
        return self.get(name, default)

    def has(self, name: str) -> bool:
        return name in self._builtins or name in self._custom

    def has_custom(self, name: str) -> bool:
        return name in self._custom

    def keys(self) -> list[str]:
        return sorted(set(self._builtins) | set(self._custom))

    def custom_keys(self) -> list[str]:
        return sorted(self._custom)

    def builtins(self) -> list[str]:
        return sorted(self._builtins)

    # ------------------------------------------------------------------
    # Attribute sugar
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        value = self.get(name, _MISSING)
        if value is _MISSING:
            raise AttributeError(f"'{self._root_name}' has no attribute '{name}'")
        return value

    def __setattr__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delattr__(self, name: str) -> None:
        self.delete(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __dir__(self) -> list[str]:
        return self.keys()

    def __repr__(self) -> str:
        return (
            f"<{self._root_name} builtins={self.builtins()} "
            f"custom={self.custom_keys()}>"
        )


# Public methods of the root itself; a property under one of these names would
# be unreachable through attribute access.
_OWN_ATTRIBUTES: frozenset[str] = frozenset(
    name for name in dir(Namespace) if not name.startswith("_")
)


def is_protected(name: str) -> bool:
    """True if *name* can never be a custom property on the root."""
    return is_reserved(name) or name in _OWN_ATTRIBUTES
