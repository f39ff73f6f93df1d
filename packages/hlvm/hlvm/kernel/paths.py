"""Kernel — Dotted path tokenizer and resolver.

Shortcuts point at ``"math.square"``-style paths into the namespace.  Paths
are tokenized once when a shortcut is registered (so malformed paths are
rejected early) and walked on every call (so a missing target surfaces as a
``PathResolutionError`` at call time, never at registration time).

Path syntax:
    <segment>(.<segment>)*        every segment is a Python identifier
    hlvm.<segment>...             a leading root name is accepted and skipped

Walking rules per segment:
    PathNode        -> node.child(segment)
    Mapping         -> mapping[segment]
    anything else   -> getattr(node, segment)
    ``None`` or a missing attribute/key ends the walk with an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from hlvm.exceptions import PathResolutionError, PathSyntaxError

_MISSING = object()


class PathNode(ABC):
    """A tree node with explicit child lookup (implemented by ``Namespace``)."""

    @abstractmethod
    def child(self, name: str, default: Any = None) -> Any:
        """Return the child bound under *name*, or *default*."""


def tokenize_path(path: str, root_name: str | None = None) -> tuple[str, ...]:
    """Split *path* into identifier segments.

    Args:
        path:      Dotted path, e.g. ``"hlvm.math.square"``.
        root_name: When given, a leading segment equal to it is dropped.

    Raises:
        PathSyntaxError: empty path, empty segment, or non-identifier segment.
    """
    if not isinstance(path, str) or not path.strip():
        raise PathSyntaxError(str(path), "path is empty")
    segments = tuple(part.strip() for part in path.strip().split("."))
    for segment in segments:
        if not segment:
            raise PathSyntaxError(path, "empty segment")
        if not segment.isidentifier():
            raise PathSyntaxError(path, f"'{segment}' is not an identifier")
    if root_name is not None and segments[0] == root_name:
        segments = segments[1:]
        if not segments:
            raise PathSyntaxError(path, "path names only the root")
    return segments


def resolve_path(root: Any, segments: tuple[str, ...], path: str | None = None) -> Any:
    """Walk *segments* from *root* and return the value found.

    Raises:
        PathResolutionError: a segment is missing or resolves to ``None``.
    """
    display = path if path is not None else ".".join(segments)
    node = root
    for segment in segments:
        node = _child(node, segment)
        if node is _MISSING or node is None:
            raise PathResolutionError(display, segment)
    return node


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, PathNode):
        return node.child(segment, _MISSING)
    if isinstance(node, Mapping):
        return node.get(segment, _MISSING)
    if segment.startswith("_"):
        return _MISSING
    return getattr(node, segment, _MISSING)
