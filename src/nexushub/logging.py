"""Logging setup shared by the NexusHub CLI and HTTP server.

Two sinks are configured on the root logger:

* a Rich console handler on stderr whose level follows ``-v``/``-q``;
* an optional "flight recorder": a `MemoryHandler` keeping the most recent
  records at DEBUG and writing them to a file whenever a WARNING or worse
  arrives. Partial units of work log at WARNING, so each one leaves the
  request history that led to it on disk.

Per-logger minimum levels (``-L sqlalchemy=INFO``) apply to both sinks.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING

import alembic
import fastapi
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "nexushub"
RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] %(levelname)s "
    "%(name)s:%(lineno)d: %(message)s"
)


@dataclass(frozen=True)
class LoggingSettings:
    """Logging choices made on the command line or through the environment."""

    verbose: int = 0
    quiet: int = 0
    debug: bool = False
    log_path: Path | None = None
    flight_recorder: bool = True
    recorder_capacity: int = 2000
    force_flush: bool = False
    logger_levels: dict[str, int] = field(default_factory=dict)

    @property
    def console_level(self) -> int:
        """WARNING moved one level per ``-v``/``-q``, clamped to DEBUG..CRITICAL."""
        if self.debug:
            return logging.DEBUG
        level = logging.WARNING - 10 * self.verbose + 10 * self.quiet
        return max(logging.DEBUG, min(logging.CRITICAL, level))

    @property
    def records_to_file(self) -> bool:
        return self.flight_recorder and self.log_path is not None


class SourceTagFilter(logging.Filter):
    """Set ``record.source`` to ``"[uvicorn]"`` style tags for foreign loggers.

    Records from ``nexushub.*`` get an empty tag. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.split(".", 1)[0] == PROJECT_PREFIX:
            record.source = ""
        else:
            record.source = f"[{record.name.split('.', 1)[0]}]"
        return True


def console_handler(settings: LoggingSettings, color: bool = True) -> RichHandler:
    """Rich handler on stderr.

    In debug mode records carry a timestamp, the logger name and a link to
    the emitting source line; otherwise just the message and a source tag.
    """
    debug = settings.debug
    handler = RichHandler(
        level=settings.console_level,
        # color follows click-extra's --color/--no-color
        console=Console(color_system="auto" if color else None, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug,
        enable_link_path=debug,
    )
    if debug:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(source)s %(message)s"))
        handler.addFilter(SourceTagFilter())
    return handler


def flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> MemoryHandler:
    """A memory buffer of `capacity` records in front of a truncating file.

    Args:
        path: File the buffer is written to. It is truncated on open.
        capacity: Records held before the oldest are written out.
        flush_level: Records at this level or above write the buffer out.
        flush_on_close: Also write the buffer out on a clean shutdown.
    """
    target = logging.FileHandler(path, mode="w", encoding="utf-8")
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(RECORDER_FORMAT))
    return MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=target,
        flushOnClose=flush_on_close,
    )


def configure_logging(settings: LoggingSettings, color: bool = True) -> list[logging.Handler]:
    """Install the console handler and, if enabled, the flight recorder.

    The root logger is opened to DEBUG so each handler filters on its own
    level; `settings.logger_levels` then raise selected loggers.

    Returns:
        The handlers now attached to the root logger.
    """
    handlers: list[logging.Handler] = [console_handler(settings, color=color)]
    if settings.records_to_file:
        assert settings.log_path is not None
        handlers.append(
            flight_recorder(
                settings.log_path,
                capacity=settings.recorder_capacity,
                flush_on_close=settings.force_flush,
            )
        )
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, level in settings.logger_levels.items():
        logging.getLogger(name).setLevel(level)
    return handlers


def log_startup(
    logger: Logger,
    settings: LoggingSettings,
    handlers: list[logging.Handler],
    app_version: str,
) -> None:
    """One INFO summary line, then DEBUG diagnostics for bug reports."""
    logger.info(
        "NexusHub %s - console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(settings.console_level),
        "ON" if settings.records_to_file else "OFF",
    )

    diagnostics = {
        "Python": sys.version.split()[0],
        "Platform": f"{platform.system()} {platform.release()}",
        "PID": os.getpid(),
        "CWD": Path.cwd(),
        "Alembic": alembic.__version__,
        "SQLAlchemy": sqlalchemy.__version__,
        "FastAPI": fastapi.__version__,
        "Handlers": [type(h).__name__ for h in handlers],
    }
    for name, value in diagnostics.items():
        logger.debug("%s: %s", name, value)
    if settings.records_to_file:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            settings.log_path,
            settings.recorder_capacity,
            settings.force_flush,
        )
    logger.debug(
        "Per-logger overrides: %s",
        {name: logging.getLevelName(lvl) for name, lvl in settings.logger_levels.items()}
        or "<none>",
    )
