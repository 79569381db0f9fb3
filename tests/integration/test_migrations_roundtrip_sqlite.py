"""Alembic round-trip smoke test for SQLite.

Upgrades a temporary, file-backed SQLite database to head, checks that the
``documents`` table accepts a document through the SQL accessor, then
downgrades to base and checks the table is gone.
"""

from __future__ import annotations

from pathlib import Path

from alembic import command
from sqlalchemy import create_engine, text

from nexushub import config
from nexushub.adapters.documents.sqlalchemy_adapter import SqlAlchemyCollection
from nexushub.domain.documents import User

TABLE_EXISTS = "SELECT name FROM sqlite_master WHERE type='table' AND name='documents'"


def test_alembic_upgrade_downgrade_roundtrip_sqlite(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'nexushub.db'}"
    command.upgrade(config.build_alembic_config(url), "head")
    eng = create_engine(url)

    with eng.connect() as c:
        assert c.execute(text(TABLE_EXISTS)).fetchone(), "documents should exist"
        users = SqlAlchemyCollection(c, User)
        users.insert_one(User(id="01HZX3J4N5P6Q7R8S9T0V1W2X3", name="A", email="a@b.c"))
        assert users.count() == 1

    command.downgrade(config.build_alembic_config(url), "base")

    with eng.connect() as c:
        assert not c.execute(text(TABLE_EXISTS)).fetchone(), "documents should be dropped"

    eng.dispose()
