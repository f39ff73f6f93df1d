"""HLVM — Logging setup.

The shell prints evaluation results on stdout, so every log line goes to
stderr (and optionally to ``logging.file``).  Each CLI invocation opens one
kernel session; ``bind_session`` tags every line written during that session
with a ``session`` id and the database it runs against, so a log file shared
by several shells can be split per session.

Event names are snake_case verbs (``property_persisted``,
``shortcut_deleted``); context goes in keyword fields, never in the message.
"""

from __future__ import annotations

import logging
import sys
import uuid
from typing import Any

import structlog

from hlvm.config import LoggingConfig


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Route structlog through stdlib logging using the ``logging`` section.

    Safe to call again: handlers on the root logger are replaced, not added.
    """
    config = config or LoggingConfig()

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if config.format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Tests reconfigure between cases; cached loggers would keep old handlers.
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(config.level.upper())


def bind_session(session_id: str | None = None, **context: Any) -> str:
    """Tag subsequent log lines with a session id; returns the id used."""
    session_id = session_id or uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(session=session_id, **context)
    return session_id


def unbind_session() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
