"""Unit tests — Dotted path tokenizer and resolver."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from hlvm.exceptions import PathResolutionError, PathSyntaxError
from hlvm.kernel.paths import PathNode, resolve_path, tokenize_path


class Node(PathNode):
    def __init__(self, **children: Any) -> None:
        self._children = children

    def child(self, name: str, default: Any = None) -> Any:
        return self._children.get(name, default)


@pytest.mark.unit
class TestTokenizePath:
    def test_single_segment(self) -> None:
        assert tokenize_path("square") == ("square",)

    def test_nested_segments(self) -> None:
        assert tokenize_path("math.ops.square") == ("math", "ops", "square")

    def test_leading_root_name_is_skipped(self) -> None:
        assert tokenize_path("hlvm.math.square", root_name="hlvm") == ("math", "square")

    def test_root_name_kept_without_root_hint(self) -> None:
        assert tokenize_path("hlvm.math") == ("hlvm", "math")

    def test_surrounding_whitespace_ignored(self) -> None:
        assert tokenize_path("  math.square ") == ("math", "square")

    @pytest.mark.parametrize("path", ["", "   ", "math..square", ".math", "math.", "math.1x", "a-b.c"])
    def test_malformed_paths_raise(self, path: str) -> None:
        with pytest.raises(PathSyntaxError):
            tokenize_path(path)

    def test_root_only_raises(self) -> None:
        with pytest.raises(PathSyntaxError, match="only the root"):
            tokenize_path("hlvm", root_name="hlvm")

    def test_non_string_raises(self) -> None:
        with pytest.raises(PathSyntaxError):
            tokenize_path(None)  # type: ignore[arg-type]


@pytest.mark.unit
class TestResolvePath:
    def test_walks_path_nodes_mappings_and_attributes(self) -> None:
        leaf = SimpleNamespace(value=7)
        root = Node(config={"inner": leaf})
        assert resolve_path(root, ("config", "inner", "value")) == 7

    def test_missing_segment_names_path_and_segment(self) -> None:
        root = Node(math={})
        with pytest.raises(PathResolutionError) as exc_info:
            resolve_path(root, ("math", "square"), "math.square")
        assert exc_info.value.segment == "square"
        assert str(exc_info.value) == "Path math.square not found (missing segment 'square')"

    def test_none_ends_the_walk(self) -> None:
        root = Node(config={"x": None})
        with pytest.raises(PathResolutionError):
            resolve_path(root, ("config", "x"))

    def test_falsy_values_are_valid_targets(self) -> None:
        root = Node(config={"zero": 0, "empty": "", "no": False})
        assert resolve_path(root, ("config", "zero")) == 0
        assert resolve_path(root, ("config", "empty")) == ""
        assert resolve_path(root, ("config", "no")) is False

    def test_private_attributes_are_not_walked(self) -> None:
        root = Node(obj=SimpleNamespace(_secret=1))
        with pytest.raises(PathResolutionError):
            resolve_path(root, ("obj", "_secret"))

    def test_display_defaults_to_joined_segments(self) -> None:
        with pytest.raises(PathResolutionError, match="Path a.b not found"):
            resolve_path(Node(), ("a", "b"))
