"""Shared pytest fixtures for the hlvm test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Generator

import pytest
import structlog
from rich.console import Console

from hlvm.config import Settings, override_settings
from hlvm.kernel.namespace import Namespace
from hlvm.kernel.runtime import Kernel
from hlvm.kernel.shortcuts import ShortcutRegistry, ShortcutScope
from hlvm.kernel.store import KernelStore


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """CLI commands reconfigure logging onto the runner's streams; undo it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "HLVM.sqlite"


@pytest.fixture
def test_settings(db_path: Path) -> Settings:
    settings = Settings(
        storage={"db_path": str(db_path)},
        kernel={"announce_shortcuts": False},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


@pytest.fixture
def quiet_console() -> Console:
    return Console(record=True, width=120)


# ---------------------------------------------------------------------------
# Store / namespace
# ---------------------------------------------------------------------------


@pytest.fixture
def store(db_path: Path) -> Generator[KernelStore, None, None]:
    s = KernelStore(db_path)
    s.open()
    s.create_schema()
    yield s
    s.close()


@pytest.fixture
def namespace(store: KernelStore) -> Namespace:
    return Namespace(store)


@pytest.fixture
def scope(namespace: Namespace) -> Generator[ShortcutScope, None, None]:
    sc = ShortcutScope()
    sc.init(root=namespace)
    yield sc
    sc.teardown()


@pytest.fixture
def registry(store: KernelStore, namespace: Namespace, scope: ShortcutScope) -> ShortcutRegistry:
    return ShortcutRegistry(store, namespace, scope)


# ---------------------------------------------------------------------------
# Kernel
# ---------------------------------------------------------------------------


@pytest.fixture
def kernel(test_settings: Settings, quiet_console: Console) -> Generator[Kernel, None, None]:
    k = Kernel(test_settings, console=quiet_console)
    k.init()
    yield k
    k.teardown()


@pytest.fixture
def restart(
    test_settings: Settings, quiet_console: Console
) -> Generator[Callable[[Kernel], Kernel], None, None]:
    """Tear a kernel down and boot a fresh one on the same database file."""
    booted: list[Kernel] = []

    def _restart(old: Kernel) -> Kernel:
        old.teardown()
        fresh = Kernel(test_settings, console=quiet_console)
        fresh.init()
        booted.append(fresh)
        return fresh

    yield _restart
    for k in booted:
        k.teardown()
