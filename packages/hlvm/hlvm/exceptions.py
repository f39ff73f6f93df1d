"""HLVM — Exception hierarchy.

All exceptions raised by the kernel inherit from HLVMError so that callers
can catch the full family with a single except clause when needed.

Hierarchy:
    HLVMError
    ├── NamespaceError
    │   ├── ReservedNameError
    │   ├── PathSyntaxError
    │   └── PathResolutionError
    ├── SerializationError
    ├── DeserializationError
    ├── StoreError
    └── ConfigError

Only PathResolutionError and StoreError are expected to reach user code.
Reserved names and unserialisable values are reported through the log and a
``False`` return value, because namespace mutation happens interactively.
"""

from __future__ import annotations

from typing import Any


class HLVMError(Exception):
    """Base exception for all HLVM errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Namespace layer
# ---------------------------------------------------------------------------


class NamespaceError(HLVMError):
    """Base for errors raised while binding or resolving namespace entries."""


class ReservedNameError(NamespaceError):
    """A custom property or shortcut was bound under a protected identifier."""

    def __init__(self, name: str, kind: str = "property") -> None:
        super().__init__(
            f"Cannot use reserved name '{name}' for a {kind}",
            context={"name": name, "kind": kind},
        )
        self.name = name
        self.kind = kind


class PathSyntaxError(NamespaceError):
    """A dotted path is malformed (empty segment, non-identifier, ...)."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Invalid path '{path}': {reason}",
            context={"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


class PathResolutionError(NamespaceError):
    """A shortcut's target path did not resolve at call time."""

    def __init__(self, path: str, segment: str) -> None:
        super().__init__(
            f"Path {path} not found (missing segment '{segment}')",
            context={"path": path, "segment": segment},
        )
        self.path = path
        self.segment = segment


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


class SerializationError(HLVMError):
    """A value cannot be converted to a storable payload."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Cannot persist '{key}': {reason}",
            context={"key": key, "reason": reason},
        )
        self.key = key
        self.reason = reason


class DeserializationError(HLVMError):
    """A stored row could not be reconstructed (corrupt source, invalid JSON)."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Failed to restore '{key}': {reason}",
            context={"key": key, "reason": reason},
        )
        self.key = key
        self.reason = reason


# ---------------------------------------------------------------------------
# Storage and configuration
# ---------------------------------------------------------------------------


class StoreError(HLVMError):
    """The underlying SQLite call failed."""


class ConfigError(HLVMError):
    """The configuration file could not be read or validated."""
