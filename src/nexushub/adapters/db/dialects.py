"""Database backends NexusHub can store documents in.

Backend checks go through `dialect_of` and `DialectName` rather than raw
strings such as ``"postgresql+psycopg"``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.engine import URL, make_url

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.engine.interfaces import Dialect


class UnsupportedDialect(Exception):
    """Raised for a database backend NexusHub does not support."""


class DialectName(str, Enum):
    POSTGRES = "postgresql"
    SQLITE = "sqlite"


_ALIASES = {
    "postgresql": DialectName.POSTGRES,
    "postgres": DialectName.POSTGRES,
    "pg": DialectName.POSTGRES,
    "sqlite": DialectName.SQLITE,
}


def dialect_of(target: str | URL | Engine | Connection | Dialect) -> DialectName:
    """The backend behind a URL, an engine, a connection or a dialect.

    URLs may be driver-qualified (``sqlite+pysqlite://``); bare names such as
    ``"postgres"`` are accepted too.

    Raises:
        UnsupportedDialect: For any other backend.
        sqlalchemy.exc.ArgumentError: If `target` is a malformed URL string.
    """
    if isinstance(target, URL):
        name = target.get_backend_name()
    elif isinstance(target, str):
        name = make_url(target).get_backend_name() if "://" in target else target
    else:
        dialect = getattr(target, "dialect", target)
        name = getattr(dialect, "name", None)
        if name is None:
            raise UnsupportedDialect(f"{type(target).__name__} has no SQLAlchemy dialect")
    backend = _ALIASES.get(name.strip().lower().split("+", 1)[0])
    if backend is None:
        raise UnsupportedDialect(f"Unsupported database backend: {name!r}")
    return backend
