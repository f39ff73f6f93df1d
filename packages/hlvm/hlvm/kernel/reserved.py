"""Kernel — Reserved names.

Identifiers the kernel refuses to bind as custom properties or shortcuts.
The set is fixed at import time: every built-in subsystem namespace, every
kernel-owned entry point, and the Python builtins a shortcut must never
shadow in an evaluation scope.
"""

from __future__ import annotations

# Built-in subsystem namespaces attached by the kernel or by the shell.
SUBSYSTEM_NAMES: frozenset[str] = frozenset(
    {
        "modules",
        "db",
        "storage",
        "platform",
        "system",
        "fs",
        "clipboard",
        "computer",
        "keyboard",
        "mouse",
        "screen",
        "notification",
        "ui",
        "app",
        "ai",
        "stdlib",
        "core",
        "env",
        "event",
    }
)

# Kernel entry points.
ENTRY_POINT_NAMES: frozenset[str] = frozenset(
    {
        "hlvm",
        "context",
        "help",
        "status",
    }
)

# Builtins reachable from the evaluation scope.
SHADOW_PROTECTED_NAMES: frozenset[str] = frozenset(
    {
        "print",
        "eval",
        "exec",
        "open",
        "input",
        "globals",
        "locals",
        "__builtins__",
    }
)

RESERVED_NAMES: frozenset[str] = SUBSYSTEM_NAMES | ENTRY_POINT_NAMES | SHADOW_PROTECTED_NAMES


def is_reserved(name: str) -> bool:
    """Return True if *name* can never be bound by user code.

    Besides the fixed set, anything that is not a plain public identifier is
    treated as reserved: private names belong to the namespace object itself.
    """
    if not isinstance(name, str) or not name.isidentifier():
        return True
    if name.startswith("_"):
        return True
    return name in RESERVED_NAMES
