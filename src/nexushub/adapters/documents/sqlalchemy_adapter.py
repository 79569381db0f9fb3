"""SQLAlchemy-backed collection accessor for NexusHub.

Documents live in the shared ``documents`` table (see
adapters.documents.schema) as JSON bodies. Filters and updates are evaluated
with the same functions the in-memory adapter uses; an update is written back
with a compare-and-swap on ``revision``, so concurrent add-to-set / pull
updates from other connections are re-read and re-applied rather than lost.

Reads are narrowed in SQL where that cannot change the result: the id, an
id `In` list, and plain string equality on scalar (non-array) fields become
WHERE clauses over JSON paths. The Python match is then applied to what
comes back, so predicates and array membership keep one definition.

Each accessor call is its own transaction: writes are durable as soon as the
call returns. SQLAlchemy driver errors are mapped to `StoreUnavailableError`.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy import update as sa_update
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.exc import DBAPIError, IntegrityError

from nexushub.interfaces.collection import (
    Collection,
    D,
    DeleteResult,
    DuplicateIdError,
    Filter,
    In,
    Sort,
    StoreUnavailableError,
    Update,
    UpdateResult,
    normalize_id,
)

from .operations import apply_update, matches, prepare_filter, sort_and_limit
from .schema import documents

logger = logging.getLogger(__name__)

#: Attempts at one compare-and-swap write before giving up.
MAX_CAS_ATTEMPTS = 20  # pragma: no mutate


class SqlAlchemyCollection(Collection[D]):
    """SQLAlchemy-backed accessor for one collection."""

    def __init__(self, connection: Connection, document_type: type[D]):
        self.connection = connection
        self.document_type = document_type
        self._array_fields = frozenset(
            f.name for f in dataclasses.fields(document_type) if isinstance(f.default, tuple)
        )

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def find_one(self, filter_: Filter) -> D | None:
        found = self.find(filter_, limit=1)
        return found[0] if found else None

    def find(
        self,
        filter_: Filter | None = None,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[D]:
        prepared = prepare_filter(filter_)
        with self._transaction():
            rows = self._select(prepared)
        bodies = [row["body"] for row in rows if matches(row["body"], prepared)]
        return [
            self.document_type.from_dict(b) for b in sort_and_limit(bodies, sort, limit)
        ]

    def count(self, filter_: Filter | None = None) -> int:
        prepared = prepare_filter(filter_)
        if not prepared:
            with self._transaction():
                stmt = select(func.count()).where(documents.c.collection == self.name)
                return int(self.connection.execute(stmt).scalar_one())
        with self._transaction():
            rows = self._select(prepared)
        return sum(1 for row in rows if matches(row["body"], prepared))

    def insert_one(self, doc: D) -> str:
        doc_id = normalize_id(doc.id)
        body = doc.to_dict()
        body["id"] = doc_id
        now = datetime.now(timezone.utc)
        try:
            with self._transaction():
                self.connection.execute(
                    insert(documents).values(
                        collection=self.name,
                        id=doc_id,
                        revision=1,
                        body=body,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as e:
            raise DuplicateIdError(f"duplicate id {doc_id} in {self.name}") from e
        return doc_id

    def update_one(self, filter_: Filter, update: Update) -> UpdateResult:
        return self._update(filter_, update, many=False)

    def update_many(self, filter_: Filter, update: Update) -> UpdateResult:
        return self._update(filter_, update, many=True)

    def delete_one(self, filter_: Filter) -> DeleteResult:
        return self._delete(filter_, many=False)

    def delete_many(self, filter_: Filter) -> DeleteResult:
        return self._delete(filter_, many=True)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        """Run the enclosed statements as one committed transaction."""
        try:
            yield self.connection
            self.connection.commit()
        except IntegrityError:
            self.connection.rollback()
            raise
        except DBAPIError as e:  # OperationalError, InterfaceError, etc.
            self.connection.rollback()
            raise StoreUnavailableError(str(e)) from e
        except Exception:
            self.connection.rollback()
            raise

    def _select(self, prepared: dict[str, Any]) -> list[RowMapping]:
        """Candidate rows of this collection for a prepared filter."""
        stmt = (
            select(documents.c.id, documents.c.revision, documents.c.body)
            .where(documents.c.collection == self.name, *self._narrowing(prepared))
            .order_by(documents.c.id.asc())
        )
        return list(self.connection.execute(stmt).mappings().all())

    def _narrowing(self, prepared: dict[str, Any]) -> list[ColumnElement[bool]]:
        """WHERE clauses implied by `prepared`; never narrower than `matches`."""
        clauses: list[ColumnElement[bool]] = []
        for key, value in prepared.items():
            if key == "id":
                if isinstance(value, str):
                    clauses.append(documents.c.id == value)
                elif isinstance(value, In):
                    clauses.append(documents.c.id.in_(list(value.values)))
            elif isinstance(value, str) and key not in self._array_fields:
                # a plain value on an array field means membership; left to matches()
                clauses.append(documents.c.body[key].as_string() == value)
        return clauses

    def _fetch(self, doc_id: str) -> RowMapping | None:
        stmt = select(documents.c.id, documents.c.revision, documents.c.body).where(
            documents.c.collection == self.name, documents.c.id == doc_id
        )
        return self.connection.execute(stmt).mappings().one_or_none()

    def _update(self, filter_: Filter, update: Update, *, many: bool) -> UpdateResult:
        prepared = prepare_filter(filter_)
        with self._transaction():
            candidates = [
                row["id"] for row in self._select(prepared) if matches(row["body"], prepared)
            ]
        matched = modified = 0
        for doc_id in candidates:
            outcome = self._compare_and_swap(doc_id, prepared, update)
            if outcome is None:
                continue
            matched += 1
            modified += int(outcome)
            if not many:
                break
        return UpdateResult(matched_count=matched, modified_count=modified)

    def _compare_and_swap(
        self, doc_id: str, prepared: dict[str, Any], update: Update
    ) -> bool | None:
        """Apply `update` to one document, retrying lost races.

        Returns:
            None if the document no longer matches, otherwise whether it changed.

        Raises:
            StoreUnavailableError: If the write keeps losing races.
        """
        for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
            with self._transaction():
                row = self._fetch(doc_id)
            if row is None or not matches(row["body"], prepared):
                return None
            new_body, changed = apply_update(row["body"], update)
            if not changed:
                return False
            with self._transaction():
                result = self.connection.execute(
                    update_stmt(self.name, doc_id, row["revision"], new_body)
                )
            if result.rowcount == 1:
                return True
            logger.debug(
                "Revision race on %s/%s (attempt %d); re-reading",
                self.name,
                doc_id,
                attempt,
            )
        raise StoreUnavailableError(
            f"Gave up updating {self.name}/{doc_id} after {MAX_CAS_ATTEMPTS} attempts"
        )

    def _delete(self, filter_: Filter, *, many: bool) -> DeleteResult:
        prepared = prepare_filter(filter_)
        with self._transaction():
            ids = [
                row["id"] for row in self._select(prepared) if matches(row["body"], prepared)
            ]
            if not many:
                ids = ids[:1]
            if not ids:
                return DeleteResult(deleted_count=0)
            result = self.connection.execute(
                delete(documents).where(
                    documents.c.collection == self.name, documents.c.id.in_(ids)
                )
            )
        return DeleteResult(deleted_count=result.rowcount)


def update_stmt(collection: str, doc_id: str, revision: int, body: dict[str, Any]):
    """UPDATE guarded by the revision the new body was computed from."""
    return (
        sa_update(documents)
        .where(
            documents.c.collection == collection,
            documents.c.id == doc_id,
            documents.c.revision == revision,
        )
        .values(
            body=body,
            revision=revision + 1,
            updated_at=datetime.now(timezone.utc),
        )
    )
