"""Fixtures for Collection contract tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from nexushub.adapters.documents.in_memory import InMemoryDocumentStore
from nexushub.adapters.documents.sqlalchemy_adapter import SqlAlchemyCollection
from nexushub.adapters.unit_of_work import build_bundle
from nexushub.interfaces.unit_of_work import CollectionBundle


@pytest.fixture(params=["memory", "sqlite"])
def collections(request: pytest.FixtureRequest) -> Iterator[CollectionBundle]:
    """One accessor per collection over a fresh store.

    Current params:
      - `"memory"` → `InMemoryCollection` over an `InMemoryDocumentStore`
      - `"sqlite"` → `SqlAlchemyCollection` over in-memory SQLite
    """
    match request.param:
        case "memory":
            yield build_bundle(InMemoryDocumentStore().collection)
        case "sqlite":
            engine = request.getfixturevalue("sqlite_engine_memory")
            with engine.connect() as connection:
                yield build_bundle(
                    lambda doc_type: SqlAlchemyCollection(connection, doc_type)
                )
        case _:
            raise ValueError(f"unknown store type: {request.param}")
