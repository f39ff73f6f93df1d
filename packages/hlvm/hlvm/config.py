"""HLVM — Shell and kernel configuration.

Configuration is assembled from:
    1. Built-in defaults (this file)
    2. Environment variables prefixed with HLVM_ (``HLVM_STORAGE__DB_PATH``)
    3. User config:     ~/.hlvm/config.yaml
    4. Explicit config: the ``--config`` file passed to the CLI

Values read from config files are passed to the model as init arguments, so a
file overrides the environment for the keys it sets.

Call ``Settings.load()`` once at shell startup and hand the instance to
``Kernel``; ``get_settings()`` keeps a module-level singleton for the CLI.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hlvm.exceptions import ConfigError


def default_db_path() -> Path:
    """Return the platform's conventional location for ``HLVM.sqlite``."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "HLVM" / "HLVM.sqlite"
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA") or str(home / "AppData" / "Roaming")
        return Path(app_data) / "HLVM" / "HLVM.sqlite"
    xdg_data = os.environ.get("XDG_DATA_HOME") or str(home / ".local" / "share")
    return Path(xdg_data) / "HLVM" / "HLVM.sqlite"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class StorageConfig(BaseModel):
    db_path: Path = Field(
        default_factory=default_db_path,
        description="SQLite database shared by the kernel, env settings and module storage.",
    )
    journal_mode: Literal["wal", "delete", "truncate", "memory"] = "wal"


class KernelConfig(BaseModel):
    root_name: str = Field(
        default="hlvm",
        description="Name under which the namespace root is exposed to evaluated code.",
    )
    announce_shortcuts: bool = Field(
        default=True,
        description="Print the restored shortcut names when the shell starts.",
    )

    @field_validator("root_name")
    @classmethod
    def _root_name_is_identifier(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"root_name must be a Python identifier, got {v!r}")
        return v


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "warning"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HLVM_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    kernel: KernelConfig = Field(default_factory=KernelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("storage", mode="before")
    @classmethod
    def expand_storage_paths(cls, v: object) -> object:
        if isinstance(v, dict) and isinstance(v.get("db_path"), str):
            v["db_path"] = Path(v["db_path"]).expanduser()
        return v

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from config files + environment variables."""
        data: dict[str, object] = {}

        candidates = [Path.home() / ".hlvm" / "config.yaml"]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if not path.exists():
                continue
            try:
                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(
                    f"Invalid YAML in {path}: {exc}", context={"path": str(path)}
                ) from exc
            if not isinstance(loaded, dict):
                raise ConfigError(
                    f"Config file {path} must contain a mapping",
                    context={"path": str(path)},
                )
            data.update(loaded)

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


# Module-level singleton — replaced by ``Settings.load()`` at shell startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
