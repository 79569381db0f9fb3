"""Collection accessor interface for NexusHub.

This module defines:
- The filter predicates and update operations understood by every store.
- The `Collection` port (framework-free ABC) for reading and writing the
  documents of one named collection.
- A small, adapter-agnostic exception hierarchy.

Layering & dependency rules:
- Lives under `nexushub.interfaces`. Do NOT import from adapters, bootstrap,
  or entrypoints.

Contract overview
-----------------
Filters:
- A mapping of field name → value or predicate. All entries must match.
- A plain value matches equality, or membership when the stored field is an
  array.
- Predicates: `Contains`, `In`, `NotEqual`, `SizeBelow`.

Updates:
- `Update(*ops)` with `Set`, `AddToSet` (idempotent union) and `Pull`
  (idempotent removal).
- All ops of one `update_one` call apply atomically to one document.
- `modified_count` counts documents that actually changed.

Errors:
- `InvalidIdentifierError`: malformed id in a filter or inserted document;
  raised before any I/O.
- `DuplicateIdError`: insert with an id that already exists.
- `StoreUnavailableError`: driver/connection/timeout failures; not retried.
"""

from __future__ import annotations

import abc
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from nexushub.domain.documents import Document

D = TypeVar("D", bound=Document)

ULID_PATTERN = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")

# --- Exceptions to standardize adapter behavior ---


class CollectionError(Exception):
    """Base class for collection accessor errors."""


class InvalidIdentifierError(CollectionError, ValueError):
    """An identifier is not a well-formed ULID."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid ID format: {value!r}")
        self.value = value


class DuplicateIdError(CollectionError):
    """A document with the same id already exists in the collection."""


class StoreUnavailableError(CollectionError):
    """Operational/timeout/connection errors; callers may retry."""


def normalize_id(value: Any) -> str:
    """Return the canonical (upper case) form of a ULID string.

    Raises:
        InvalidIdentifierError: If `value` is not a 26-character ULID.
    """
    if not isinstance(value, str):
        raise InvalidIdentifierError(value)
    candidate = value.strip().upper()
    if not ULID_PATTERN.match(candidate):
        raise InvalidIdentifierError(value)
    return candidate


# --- Filter predicates ---


@dataclass(frozen=True)
class Contains:
    """Array field contains `value`."""

    value: Any


@dataclass(frozen=True, init=False)
class In:
    """Scalar field equals one of `values`."""

    values: tuple[Any, ...]

    def __init__(self, values: Sequence[Any]) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class NotEqual:
    """Field differs from `value` (arrays: does not contain it)."""

    value: Any


@dataclass(frozen=True)
class SizeBelow:
    """Array field has fewer than `limit` elements."""

    limit: int


Filter = Mapping[str, Any]

# --- Update operations ---


@dataclass(frozen=True)
class Set:
    field: str
    value: Any


@dataclass(frozen=True)
class AddToSet:
    field: str
    value: Any


@dataclass(frozen=True)
class Pull:
    field: str
    value: Any


UpdateOp = Set | AddToSet | Pull


@dataclass(frozen=True, init=False)
class Update:
    """An ordered set of operations applied atomically to one document."""

    ops: tuple[UpdateOp, ...]

    def __init__(self, *ops: UpdateOp) -> None:
        if not ops:
            raise ValueError("Update requires at least one operation")
        if any(op.field == "id" for op in ops):
            raise ValueError("The id field cannot be updated")
        object.__setattr__(self, "ops", tuple(ops))


# --- Results ---


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int


@dataclass(frozen=True)
class Sort:
    """Sort key for `Collection.find`."""

    field: str
    descending: bool = False


# --- Port ---


class Collection(abc.ABC, Generic[D]):
    """Contract for data access against one named collection."""

    document_type: type[D]

    @property
    def name(self) -> str:
        """The collection name, e.g. ``"posts"``."""
        return self.document_type.collection

    @abc.abstractmethod
    def find_one(self, filter_: Filter) -> D | None:
        """Return the first matching document, or None."""

    @abc.abstractmethod
    def find(
        self,
        filter_: Filter | None = None,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[D]:
        """Return all matching documents, optionally sorted and limited."""

    @abc.abstractmethod
    def count(self, filter_: Filter | None = None) -> int:
        """Number of matching documents."""

    @abc.abstractmethod
    def insert_one(self, doc: D) -> str:
        """Insert a document and return its id.

        Raises:
            DuplicateIdError: If the id already exists.
        """

    @abc.abstractmethod
    def update_one(self, filter_: Filter, update: Update) -> UpdateResult:
        """Apply `update` atomically to the first matching document."""

    @abc.abstractmethod
    def update_many(self, filter_: Filter, update: Update) -> UpdateResult:
        """Apply `update` to every matching document (each atomically)."""

    @abc.abstractmethod
    def delete_one(self, filter_: Filter) -> DeleteResult:
        """Delete the first matching document."""

    @abc.abstractmethod
    def delete_many(self, filter_: Filter) -> DeleteResult:
        """Delete every matching document."""
