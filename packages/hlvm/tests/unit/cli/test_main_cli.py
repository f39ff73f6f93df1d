"""Unit tests — CLI main app, status and call."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hlvm.cli.main import app
from hlvm.config import Settings
from hlvm.kernel.runtime import Kernel

runner = CliRunner()


async def bump(x):
    return x + 1


def join(a, b):
    return f"{a}-{b}"


def _seed(db_path: Path) -> None:
    settings = Settings(storage={"db_path": str(db_path)}, kernel={"announce_shortcuts": False})
    with Kernel(settings) as kernel:
        kernel.namespace.bump = bump
        kernel.namespace.join = join
        kernel.namespace.config = {"theme": "dark"}
        kernel.modules.shortcut("inc", "bump")
        kernel.modules.shortcut("j", "join")
        kernel.modules.shortcut("theme", "config.theme")
        kernel.modules.shortcut("ghost", "missing.target")


@pytest.mark.unit
class TestMainCLI:
    def test_help_exits_zero(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0

    def test_main_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert result.output is not None

    @pytest.mark.parametrize("sub", ["shortcuts", "props", "env"])
    def test_subcommand_help(self, sub: str) -> None:
        result = runner.invoke(app, [sub, "--help"])
        assert result.exit_code == 0


@pytest.mark.unit
class TestStatusCommand:
    def test_status_on_fresh_database(self, db_path: Path) -> None:
        result = runner.invoke(app, ["status", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "HLVM Status" in result.output
        assert db_path.exists()

    def test_invalid_config_exits_one(self, db_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("kernel: [unclosed\n")
        result = runner.invoke(app, ["status", "--db", str(db_path), "--config", str(config)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_log_lines_carry_session_and_db(self, db_path: Path, tmp_path: Path) -> None:
        log_file = tmp_path / "cli.log"
        config = tmp_path / "config.yaml"
        config.write_text(f"logging:\n  level: debug\n  format: json\n  file: {log_file}\n")
        result = runner.invoke(app, ["status", "--db", str(db_path), "--config", str(config)])
        assert result.exit_code == 0
        entries = [json.loads(line) for line in log_file.read_text().splitlines() if line]
        assert entries
        assert len({e["session"] for e in entries}) == 1
        assert {e["db"] for e in entries} == {str(db_path)}


@pytest.mark.unit
class TestCallCommand:
    def test_call_sync_target_with_parsed_args(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["call", "j", "1", "two", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "1-two" in result.output

    def test_call_awaits_coroutines(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["call", "inc", "41", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "42" in result.output

    def test_call_data_target(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["call", "theme", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "dark" in result.output

    def test_call_unresolved_path_exits_one(self, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(app, ["call", "ghost", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "missing.target not found" in result.output

    def test_call_unknown_shortcut_exits_one(self, db_path: Path) -> None:
        result = runner.invoke(app, ["call", "nothing", "--db", str(db_path)])
        assert result.exit_code == 1
        assert "no shortcut named 'nothing'" in result.output
