"""Unit of Work implementations for NexusHub.

Provides a context-managed unit of work over a SQLAlchemy Connection and
one over the in-memory document store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nexushub.adapters.documents.in_memory import InMemoryDocumentStore
from nexushub.adapters.documents.sqlalchemy_adapter import SqlAlchemyCollection
from nexushub.domain.documents import (
    Comment,
    Community,
    Event,
    Notification,
    Post,
    Report,
    User,
)
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork, CollectionBundle

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Connection, Engine

    from nexushub.interfaces.collection import Collection


def build_bundle(factory: Callable[[type], Collection]) -> CollectionBundle:
    """Create one accessor per collection with `factory(document_type)`."""
    return CollectionBundle(
        users=factory(User),
        communities=factory(Community),
        posts=factory(Post),
        comments=factory(Comment),
        events=factory(Event),
        reports=factory(Report),
        notifications=factory(Notification),
    )


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """SQLAlchemy-backed Unit of Work.

    Every accessor call commits on its own, so `commit` and `rollback` only
    close out whatever the connection still has open.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.connection: Connection

    def __enter__(self):
        self.connection = self.engine.connect()
        self.collections = build_bundle(
            lambda doc_type: SqlAlchemyCollection(self.connection, doc_type)
        )
        return super().__enter__()

    def __exit__(self, *args):
        super().__exit__(*args)
        self.connection.close()

    def commit(self):
        self.connection.commit()

    def rollback(self):
        self.connection.rollback()


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Unit of Work over a shared `InMemoryDocumentStore`."""

    def __init__(self, store: InMemoryDocumentStore | None = None):
        self.store = store or InMemoryDocumentStore()
        self.collections = build_bundle(self.store.collection)
        self.committed = False

    def commit(self):
        self.committed = True

    def rollback(self):
        pass
