"""Alembic round-trip smoke test for PostgreSQL.

Validates that the migrations upgrade to head and downgrade to base cleanly
on a real PostgreSQL 17 instance. A scratch database is created through an
AUTOCOMMIT admin connection so the container's default database stays
intact.
"""

import re
import uuid

from alembic import command
from sqlalchemy import create_engine, text
from testcontainers.postgres import (  # pyright: ignore[reportMissingTypeStubs]
    PostgresContainer,
)

from nexushub import config
from nexushub.adapters.documents.sqlalchemy_adapter import SqlAlchemyCollection
from nexushub.domain.documents import Post

DROP_SCRATCH = (
    "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
    "WHERE datname = :d AND pid <> pg_backend_pid()"
)


def _recreate(admin, scratch: str, create: bool) -> None:
    with admin.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
        conn.execute(text(DROP_SCRATCH), {"d": scratch})
        conn.execute(text(f"DROP DATABASE IF EXISTS {scratch}"))
        if create:
            conn.execute(text(f"CREATE DATABASE {scratch}"))


def test_alembic_upgrade_downgrade_roundtrip_postgres():
    with PostgresContainer(
        "postgres:17", username="nexushub", password="changeme", dbname="nexushub"
    ) as pg:
        base_url = re.sub(r"\+psycopg2(?=:|$|/)", "+psycopg", pg.get_connection_url())
        admin_url = re.sub(r"/[^/]+$", "/postgres", base_url)
        scratch = f"nexushub_rt_{uuid.uuid4().hex[:8]}"
        admin = create_engine(admin_url, pool_pre_ping=True)
        _recreate(admin, scratch, create=True)
        url = re.sub(r"/[^/]+$", f"/{scratch}", base_url)

        command.upgrade(config.build_alembic_config(url), "head")
        eng = create_engine(url, pool_pre_ping=True)
        with eng.connect() as c:
            assert c.execute(text("SELECT to_regclass('public.documents') IS NOT NULL")).scalar()
            posts = SqlAlchemyCollection(c, Post)
            posts.insert_one(
                Post(
                    id="01HZX3J4N5P6Q7R8S9T0V1W2X3",
                    author_id="01HZX3J4N5P6Q7R8S9T0V1W2X4",
                    content="JSONB body",
                    tags=("a", "b"),
                )
            )
            assert posts.count({"tags": "b"}) == 1

        command.downgrade(config.build_alembic_config(url), "base")
        with eng.connect() as c:
            assert not c.execute(
                text("SELECT to_regclass('public.documents') IS NOT NULL")
            ).scalar()
        eng.dispose()

        _recreate(admin, scratch, create=False)
        admin.dispose()
