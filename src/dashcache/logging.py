"""structlog setup for refresh runs.

Every event goes through the stdlib root logger to stderr, so stdout stays
clean for the operator report. A run binds ``run_id`` (and each domain its
``domain``) through structlog.contextvars; the binding follows every await
of that run.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import structlog

#: Third-party loggers that log each request or query at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "asyncio")


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Configure structlog rendering and the stdlib root handler.

    Args:
        log_level: Root level name, e.g. "DEBUG".
        log_format: "json" for scheduled runs, "console" for a terminal.
            Defaults to the LOG_FORMAT environment variable, then "console".
    """
    fmt = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def bound_run(command: str) -> Iterator[str]:
    """Bind a fresh ``run_id`` and the command name for the duration of a run."""
    run_id = uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(run_id=run_id, command=command):
        yield run_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
