"""Kernel — ``system`` built-in.

Read-only platform facts plus a few live helpers (cwd, env lookup), attached
to the namespace under the reserved ``system`` name so shortcuts can point at
them (``hlvm.modules.shortcut("host", "system.hostname")``).
"""

from __future__ import annotations

import os
import platform
import socket
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class SystemInfo:
    """Immutable snapshot of the current platform.

    Use :meth:`detect`; the snapshot is taken once per process.
    """

    os: str               # "darwin", "linux", "windows"
    arch: str             # e.g. "x86_64", "arm64"
    version: str          # OS release
    python_version: str
    hostname: str
    pid: int

    _cache: ClassVar[SystemInfo | None] = None

    @classmethod
    def detect(cls) -> "SystemInfo":
        if cls._cache is not None:
            return cls._cache
        info = cls(
            os=platform.system().lower(),
            arch=platform.machine(),
            version=platform.release(),
            python_version=platform.python_version(),
            hostname=socket.gethostname(),
            pid=os.getpid(),
        )
        cls._cache = info
        return info

    @classmethod
    def reset_cache(cls) -> None:
        """Clear the cached snapshot.  Useful in tests."""
        cls._cache = None

    @property
    def is_darwin(self) -> bool:
        return self.os == "darwin"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"

    @property
    def path_sep(self) -> str:
        return os.sep

    def home_dir(self) -> str:
        return str(Path.home())

    def temp_dir(self) -> str:
        return tempfile.gettempdir()

    def cwd(self) -> str:
        return os.getcwd()

    def env(self, name: str, default: str | None = None) -> str | None:
        return os.environ.get(name, default)

    def to_dict(self) -> dict[str, str | int]:
        return {
            "os": self.os,
            "arch": self.arch,
            "version": self.version,
            "python_version": self.python_version,
            "hostname": self.hostname,
            "pid": self.pid,
            "executable": sys.executable,
        }
