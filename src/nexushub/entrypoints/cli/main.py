"""NexusHub CLI entry point.

Defines the top-level ``nexushub`` command (via Click-Extra). It configures
logging for every subcommand, then dispatches to:

- ``nexushub db``: forward-only database management (upgrade/current/heads/history/status).
- ``nexushub serve``: run the HTTP API.

Examples
    $ nexushub --version
    $ nexushub -v db upgrade
    $ nexushub -L uvicorn.access=INFO serve --memory
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from nexushub import __version__
from nexushub.logging import LoggingSettings, configure_logging, log_startup

from .db import db as db_group
from .helpers.log_level_parser import parse_log_level
from .serve import serve as serve_command

logger = logging.getLogger(__name__)


HELP = """NexusHub command-line interface.

    NexusHub is a community platform API: users, communities, posts, events,
    reports and notifications, stored as documents and updated through
    ordered multi-document units of work.
    """

DEFAULT_LOG_PATH = (
    Path(user_log_dir("nexushub", appauthor=False, ensure_exists=True)) / "latest.log"
)

LOGGING_PARAMS = [
    click.Option(
        ["--verbose", "-v", "verbose"],
        count=True,
        help="Raise console verbosity one level above WARNING per repetition.",
    ),
    click.Option(
        ["--quiet", "-q", "quiet"],
        count=True,
        help="Lower console verbosity one level below WARNING per repetition.",
    ),
    click.Option(
        ["--debug/--no-debug"],
        default=False,
        help="DEBUG console output with timestamps and source locations.",
    ),
    click.Option(
        ["--log-path"],
        type=click.Path(dir_okay=False, path_type=Path),
        default=DEFAULT_LOG_PATH,
        envvar="NEXUSHUB_LOG_PATH",
        show_default=True,
        show_envvar=True,
        help="File the flight recorder writes to.",
    ),
    click.Option(
        ["--flight-recorder-capacity", "recorder_capacity"],
        type=int,
        default=2000,
        hidden=True,
        envvar="NEXUSHUB_FLIGHT_RECORDER_CAPACITY",
        help="Number of log records the flight recorder keeps.",
    ),
    click.Option(
        ["--flight-recorder/--no-flight-recorder", "flight_recorder"],
        default=True,
        show_envvar=True,
        help=(
            "Keep the last records in memory at DEBUG and write them to "
            "--log-path when a WARNING or ERROR occurs, such as a partial "
            "unit of work. Console verbosity is unaffected."
        ),
    ),
    click.Option(
        ["--force-flush/--no-force-flush", "force_flush_flight_recorder"],
        default=False,
        show_default=True,
        show_envvar=True,
        help="Also write the flight recorder buffer to --log-path on a clean exit.",
    ),
    click.Option(
        ["-L", "--logger-level", "logger_levels"],
        multiple=True,
        callback=parse_log_level,
        default=("sqlalchemy=WARNING", "alembic=WARNING"),
        show_default=True,
        show_envvar=True,
        help=(
            "Minimum LEVEL for a logger (NAME=LEVEL), applied to the console and "
            "the flight recorder. Repeatable: -L sqlalchemy=INFO -L uvicorn=WARNING."
        ),
    ),
]


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        *LOGGING_PARAMS,
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@clickx.pass_context
def nexushub(ctx: click.Context, **options) -> None:
    """NexusHub command-line interface."""
    settings = LoggingSettings(
        verbose=options["verbose"],
        quiet=options["quiet"],
        debug=options["debug"],
        log_path=options["log_path"],
        flight_recorder=options["flight_recorder"],
        recorder_capacity=options["recorder_capacity"],
        force_flush=options["force_flush_flight_recorder"],
        logger_levels=options["logger_levels"],
    )
    handlers = configure_logging(settings, color=ctx.color is not False)
    log_startup(logger, settings, handlers, app_version=__version__)
    ctx.call_on_close(logging.shutdown)


nexushub.add_command(db_group)
nexushub.add_command(serve_command)
