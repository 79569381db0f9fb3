"""In memory document store implementation.

All documents are stored in memory and lost when the store is discarded.
Use for unit tests, prototyping, or scenarios where durability is not required.

Every accessor call runs under one store-wide lock, so the ops of an update
apply atomically and concurrent add-to-set / pull calls converge.
"""

from __future__ import annotations

import threading

from nexushub.domain.documents import DOCUMENT_TYPES
from nexushub.interfaces.collection import (
    Collection,
    D,
    DeleteResult,
    DuplicateIdError,
    Filter,
    Sort,
    Update,
    UpdateResult,
    normalize_id,
)

from .operations import Body, apply_update, matches, prepare_filter, sort_and_limit


class InMemoryDocumentStore:
    """Holds the bodies of every collection for a set of in-memory accessors.

    One store is shared by all units of work of a process, the way a database
    is shared by connections.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.data: dict[str, dict[str, Body]] = {
            doc_type.collection: {} for doc_type in DOCUMENT_TYPES
        }

    def collection(self, document_type: type[D]) -> InMemoryCollection[D]:
        return InMemoryCollection(self, document_type)

    def clear(self) -> None:
        with self.lock:
            for bodies in self.data.values():
                bodies.clear()


class InMemoryCollection(Collection[D]):
    """In-memory accessor for one collection."""

    def __init__(self, store: InMemoryDocumentStore, document_type: type[D]) -> None:
        self._store = store
        self.document_type = document_type

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
        with self._store.lock:
            bodies = [b for b in self._bodies.values() if matches(b, prepared)]
        return [self._decode(b) for b in sort_and_limit(bodies, sort, limit)]

    def count(self, filter_: Filter | None = None) -> int:
        prepared = prepare_filter(filter_)
        with self._store.lock:
            return sum(1 for b in self._bodies.values() if matches(b, prepared))

    def insert_one(self, doc: D) -> str:
        doc_id = normalize_id(doc.id)
        body = doc.to_dict()
        body["id"] = doc_id
        with self._store.lock:
            if doc_id in self._bodies:
                raise DuplicateIdError(f"duplicate id {doc_id} in {self.name}")
            self._bodies[doc_id] = body
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

    @property
    def _bodies(self) -> dict[str, Body]:
        return self._store.data[self.name]

    def _decode(self, body: Body) -> D:
        return self.document_type.from_dict(body)

    def _update(self, filter_: Filter, update: Update, *, many: bool) -> UpdateResult:
        prepared = prepare_filter(filter_)
        matched = modified = 0
        with self._store.lock:
            for doc_id, body in list(self._bodies.items()):
                if not matches(body, prepared):
                    continue
                matched += 1
                new_body, changed = apply_update(body, update)
                if changed:
                    self._bodies[doc_id] = new_body
                    modified += 1
                if not many:
                    break
        return UpdateResult(matched_count=matched, modified_count=modified)

    def _delete(self, filter_: Filter, *, many: bool) -> DeleteResult:
        prepared = prepare_filter(filter_)
        deleted = 0
        with self._store.lock:
            for doc_id, body in list(self._bodies.items()):
                if matches(body, prepared):
                    del self._bodies[doc_id]
                    deleted += 1
                    if not many:
                        break
        return DeleteResult(deleted_count=deleted)

