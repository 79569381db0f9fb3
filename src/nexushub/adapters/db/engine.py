"""Database engine factory.

Use `make_engine` whenever you need an Engine so that all connections are
consistently configured.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

from nexushub.adapters.db.dialects import DialectName, dialect_of

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine

#: Milliseconds a SQLite connection waits on a locked database.
SQLITE_BUSY_TIMEOUT_MS = 5000

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};",
    "PRAGMA temp_store=MEMORY;",
)


def is_sqlite_memory(url: str | URL) -> bool:
    """True for ``sqlite://`` and ``sqlite:///:memory:`` URLs."""
    u = make_url(str(url))
    return dialect_of(u) is DialectName.SQLITE and u.database in (None, "", ":memory:")


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy Engine for a PostgreSQL or SQLite URL.

    SQLite connections are made usable from the server's worker threads and
    get `SQLITE_PRAGMAS`: WAL so readers don't block the writer, and a busy
    timeout so concurrent compare-and-swap writers wait instead of failing.
    In-memory SQLite shares one connection so every unit of work sees the
    same data.

    Raises:
        UnsupportedDialect: For any other backend.
        sqlalchemy.exc.ArgumentError: If `url` cannot be parsed.
    """
    u = make_url(str(url))
    if dialect_of(u) is DialectName.POSTGRES:
        return create_engine(u, echo=echo, pool_pre_ping=True)

    sqlite_args = {"connect_args": {"check_same_thread": False}}
    if is_sqlite_memory(u):
        sqlite_args["poolclass"] = StaticPool
    engine = create_engine(u, echo=echo, **sqlite_args)

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_conn: SQLiteConnection, _record) -> None:
        cur = dbapi_conn.cursor()
        for pragma in SQLITE_PRAGMAS:
            cur.execute(pragma)
        cur.close()

    return engine
