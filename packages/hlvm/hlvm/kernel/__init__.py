"""Kernel — Persistent namespace, shortcut registry, bootstrapper."""

from hlvm.kernel.bootstrap import BootstrapReport, bootstrap
from hlvm.kernel.namespace import Namespace
from hlvm.kernel.runtime import Kernel, ModulesAPI
from hlvm.kernel.shortcuts import Shortcut, ShortcutInfo, ShortcutRegistry, ShortcutScope
from hlvm.kernel.store import KernelStore, Table

__all__ = [
    "BootstrapReport",
    "Kernel",
    "KernelStore",
    "ModulesAPI",
    "Namespace",
    "Shortcut",
    "ShortcutInfo",
    "ShortcutRegistry",
    "ShortcutScope",
    "Table",
    "bootstrap",
]
