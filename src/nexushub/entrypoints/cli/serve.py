"""``nexushub serve``: run the HTTP API with uvicorn."""

from __future__ import annotations

import logging

import click
import uvicorn

from nexushub import config
from nexushub.adapters.db.dialects import UnsupportedDialect
from nexushub.bootstrap import bootstrap_memory, bootstrap_sql
from nexushub.entrypoints.http import create_app

from .helpers import sanitize_url, warn

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--host",
    default="127.0.0.1",
    envvar="NEXUSHUB_HOST",
    show_default=True,
    show_envvar=True,
    help="Interface to bind.",
)
@click.option(
    "--port",
    type=int,
    default=8000,
    envvar="NEXUSHUB_PORT",
    show_default=True,
    show_envvar=True,
    help="Port to bind.",
)
@click.option(
    "--memory",
    is_flag=True,
    help="Serve from an in-memory document store (data is lost on exit).",
)
def serve(host: str, port: int, memory: bool) -> None:
    """Serve the NexusHub JSON API."""
    if memory:
        warn("Using the in-memory store; nothing will be persisted.")
        container = bootstrap_memory()
    else:
        try:
            url = config.get_db_url()
        except config.DatabaseUrlNotSetError as e:
            raise click.ClickException(
                f"{config.DB_URL_ENV_VAR} is not set. Set it or pass --memory."
            ) from e
        logger.info("Serving from %s", sanitize_url(url))
        try:
            container = bootstrap_sql(url)
        except UnsupportedDialect as e:
            raise click.ClickException(f"{e}. Use PostgreSQL or SQLite.") from e
    # log_config=None keeps the handlers configured by the top-level command
    uvicorn.run(create_app(container), host=host, port=port, log_config=None)
