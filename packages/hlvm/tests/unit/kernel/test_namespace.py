"""Unit tests — Namespace root (intercepted get/set/delete)."""

from __future__ import annotations

import pytest

from hlvm.kernel.namespace import Namespace, is_protected
from hlvm.kernel.serializer import FUNCTION_TYPE
from hlvm.kernel.store import KernelStore, Table


def triple(x):
    return x * 3


@pytest.mark.unit
class TestSet:
    def test_set_persists_then_binds(self, namespace: Namespace, store: KernelStore) -> None:
        assert namespace.set("counter", 42) is True
        row = store.get(Table.CUSTOM_PROPERTIES, "counter")
        assert row is not None
        assert (row.value, row.type) == ("42", "int")
        assert namespace.counter == 42

    def test_attribute_assignment_is_intercepted(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.config = {"theme": "dark"}
        row = store.get(Table.CUSTOM_PROPERTIES, "config")
        assert row is not None and row.type == "dict"
        assert namespace.config == {"theme": "dark"}

    def test_tuple_binds_as_stored_list(self, namespace: Namespace) -> None:
        namespace.pair = (1, 2)
        assert namespace.pair == [1, 2]

    def test_int_keys_bind_as_stored_strings(self, namespace: Namespace) -> None:
        namespace.lookup = {1: "a", 2: {3: "b"}}
        assert namespace.lookup == {"1": "a", "2": {"3": "b"}}

    def test_reassignment_overwrites_row(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.counter = 1
        namespace.counter = "one"
        row = store.get(Table.CUSTOM_PROPERTIES, "counter")
        assert row is not None
        assert (row.value, row.type) == ('"one"', "str")

    def test_function_is_stored_as_source(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.triple = triple
        row = store.get(Table.CUSTOM_PROPERTIES, "triple")
        assert row is not None and row.type == FUNCTION_TYPE
        assert namespace.triple(2) == 6

    def test_falsy_values_are_kept(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.zero = 0
        namespace.empty = ""
        namespace.off = False
        assert namespace.zero == 0 and namespace.empty == "" and namespace.off is False
        assert len(store.list_all(Table.CUSTOM_PROPERTIES)) == 3


@pytest.mark.unit
class TestNoneDeletes:
    def test_assigning_none_removes_row_and_value(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.counter = 5
        namespace.counter = None
        assert store.get(Table.CUSTOM_PROPERTIES, "counter") is None
        assert "counter" not in namespace
        with pytest.raises(AttributeError):
            _ = namespace.counter

    def test_none_on_unknown_name_is_harmless(self, namespace: Namespace) -> None:
        assert namespace.set("never_set", None) is True

    def test_delete_and_del_are_idempotent(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.counter = 5
        del namespace.counter
        assert namespace.delete("counter") is True
        assert store.get(Table.CUSTOM_PROPERTIES, "counter") is None


@pytest.mark.unit
class TestReservedNames:
    def test_reserved_name_rejected_without_row(self, namespace: Namespace, store: KernelStore) -> None:
        assert namespace.set("modules", {"x": 1}) is False
        assert store.get(Table.CUSTOM_PROPERTIES, "modules") is None
        assert "modules" not in namespace

    def test_reserved_rejection_keeps_builtin(self, namespace: Namespace) -> None:
        marker = object()
        namespace.attach_builtin("modules", marker)
        namespace.modules = "overwrite"
        assert namespace.modules is marker

    def test_reserved_delete_is_a_noop(self, namespace: Namespace, store: KernelStore) -> None:
        marker = object()
        namespace.attach_builtin("env", marker)
        assert namespace.delete("env") is True
        assert namespace.env is marker
        assert store.get(Table.CUSTOM_PROPERTIES, "env") is None

    def test_own_method_names_are_protected(self, namespace: Namespace, store: KernelStore) -> None:
        assert is_protected("keys")
        assert namespace.set("keys", [1]) is False
        assert store.get(Table.CUSTOM_PROPERTIES, "keys") is None
        assert callable(namespace.keys)

    def test_attach_builtin_requires_reserved_name(self, namespace: Namespace) -> None:
        with pytest.raises(ValueError):
            namespace.attach_builtin("counter", object())


@pytest.mark.unit
class TestUnserializableValues:
    def test_value_not_bound_when_persistence_fails(self, namespace: Namespace, store: KernelStore) -> None:
        namespace.bag = {1, 2}
        assert "bag" not in namespace
        assert store.get(Table.CUSTOM_PROPERTIES, "bag") is None

    def test_previous_value_survives_failed_update(self, namespace: Namespace) -> None:
        namespace.data = [1]
        assert namespace.set("data", object()) is False
        assert namespace.data == [1]


@pytest.mark.unit
class TestReadHelpers:
    def test_builtins_and_custom_listed_separately(self, namespace: Namespace) -> None:
        namespace.attach_builtin("system", object())
        namespace.counter = 1
        assert namespace.builtins() == ["system"]
        assert namespace.custom_keys() == ["counter"]
        assert namespace.keys() == ["counter", "system"]
        assert list(namespace) == ["counter", "system"]
        assert "counter" in dir(namespace)

    def test_builtins_win_on_lookup(self, namespace: Namespace) -> None:
        marker = object()
        namespace._load("system", "stale")
        namespace.attach_builtin("system", marker)
        assert namespace.get("system") is marker

    def test_missing_attribute_raises(self, namespace: Namespace) -> None:
        with pytest.raises(AttributeError, match="has no attribute 'ghost'"):
            _ = namespace.ghost

    def test_repr_mentions_root_name(self, store: KernelStore) -> None:
        ns = Namespace(store, root_name="vm")
        assert repr(ns).startswith("<vm ")
        assert ns.root_name == "vm"
