"""Unit tests — CLI props commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from hlvm.cli.commands.props import app
from hlvm.config import Settings
from hlvm.kernel.runtime import Kernel
from hlvm.kernel.store import CustomPropertyRow, KernelStore, Table

runner = CliRunner()


def double(x):
    return x * 2


def _seed(db_path: Path) -> None:
    settings = Settings(storage={"db_path": str(db_path)}, kernel={"announce_shortcuts": False})
    with Kernel(settings) as kernel:
        kernel.namespace.config = {"theme": "dark"}
        kernel.namespace.double = double


@pytest.mark.unit
class TestPropsCommands:
    def test_list(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["list", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "config" in result.output
        assert "function" in result.output

    def test_list_marks_unrestorable_rows(self, db_path: Path) -> None:
        store = KernelStore(db_path)
        store.open()
        store.create_schema()
        store.upsert(Table.CUSTOM_PROPERTIES, "bad", CustomPropertyRow("bad", "{oops", "dict", 1))
        store.close()

        result = runner.invoke(app, ["list", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "no" in result.output

    def test_get_json_and_function(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["get", "config", "--db", str(db_path)])
        assert result.exit_code == 0
        assert '"theme": "dark"' in result.output

        result = runner.invoke(app, ["get", "double", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "def double(x):" in result.output

    def test_get_missing_exits_one(self, db_path: Path) -> None:
        result = runner.invoke(app, ["get", "nope", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "no property named 'nope'" in result.output

    def test_remove(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["remove", "config", "--db", str(db_path)])
        assert result.exit_code == 0

        result = runner.invoke(app, ["get", "config", "--db", str(db_path)])
        assert result.exit_code == 1

    def test_remove_reserved_exits_one(self, db_path: Path) -> None:
        result = runner.invoke(app, ["remove", "modules", "--db", str(db_path)])
        assert result.exit_code == 1
