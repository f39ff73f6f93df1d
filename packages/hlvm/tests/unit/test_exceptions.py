"""Unit tests — Exception hierarchy."""

from __future__ import annotations

import pytest

from hlvm.exceptions import (
    ConfigError,
    DeserializationError,
    HLVMError,
    NamespaceError,
    PathResolutionError,
    PathSyntaxError,
    ReservedNameError,
    SerializationError,
    StoreError,
)


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "exc",
        [
            ReservedNameError("modules"),
            PathSyntaxError("a..b", "empty segment"),
            PathResolutionError("math.square", "square"),
        ],
    )
    def test_namespace_errors(self, exc: HLVMError) -> None:
        assert isinstance(exc, NamespaceError)
        assert isinstance(exc, HLVMError)

    @pytest.mark.parametrize(
        "exc",
        [
            SerializationError("k", "why"),
            DeserializationError("k", "why"),
            StoreError("boom"),
            ConfigError("bad"),
        ],
    )
    def test_other_errors_share_base(self, exc: HLVMError) -> None:
        assert isinstance(exc, HLVMError)
        assert not isinstance(exc, NamespaceError)


@pytest.mark.unit
class TestMessages:
    def test_reserved_name_message(self) -> None:
        err = ReservedNameError("print", kind="shortcut")
        assert err.message == "Cannot use reserved name 'print' for a shortcut"
        assert err.context == {"name": "print", "kind": "shortcut"}

    def test_resolution_message(self) -> None:
        err = PathResolutionError("math.square", "square")
        assert str(err) == "Path math.square not found (missing segment 'square')"

    def test_repr_includes_context(self) -> None:
        err = StoreError("boom", context={"path": "/tmp/x"})
        assert repr(err) == "StoreError('boom', context={'path': '/tmp/x'})"
