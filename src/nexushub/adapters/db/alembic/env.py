"""Alembic environment for NexusHub.

Policy defaults:
  - compare_type=True (catch column type drift)
  - compare_server_default=True (catch server default drift)
  - render_as_batch=True on SQLite (safe ALTER TABLE emulation)
  - URL precedence: `-x url=...` > config sqlalchemy.url > NEXUSHUB_DB_URL
"""

import os
from logging.config import fileConfig

from alembic import context

# Ensure table definitions are imported so autogenerate sees them
import nexushub.adapters.documents.schema  # noqa: F401 # pylint: disable=unused-import
from nexushub.adapters.db.dialects import DialectName, dialect_of
from nexushub.adapters.db.engine import make_engine
from nexushub.adapters.db.metadata import metadata
from nexushub.config import DB_URL_ENV_VAR

# pylint: disable=no-member

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def get_url() -> str:
    """Resolve DB URL with precedence: `-x url` > config > env."""

    xargs = context.get_x_argument(as_dictionary=True)
    url = xargs.get("url")

    if not url:
        url = config.get_main_option("sqlalchemy.url")

    if not url or "%(" in url:  # treat placeholder as unset # pylint: disable=R2004
        url = os.environ.get(DB_URL_ENV_VAR)

    if not url:
        raise RuntimeError(f"Set {DB_URL_ENV_VAR} to your database URL.")
    return url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL to the script output)."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = make_engine(get_url())

    with connectable.connect() as connection:
        is_sqlite = dialect_of(connection) is DialectName.SQLITE
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            render_as_batch=is_sqlite,
        )

        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
