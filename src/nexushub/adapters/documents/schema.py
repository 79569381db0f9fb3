"""Document store schema.

Defines the ``documents`` table that persists every NexusHub collection.
Each row is one document: its collection name, ULID, JSON body and a
``revision`` counter used for compare-and-swap updates.

Constraints (enforced here):

| Constraint                      | Purpose                          |
|---------------------------------|----------------------------------|
| PRIMARY KEY(collection, id)     | one document per id per collection |
| CHECK(length(id) = 26)          | ULID length                      |
| CHECK(revision >= 1)            | revisions start at 1             |
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Table,
    text,
)

from nexushub.adapters.db.metadata import metadata
from nexushub.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

__all__ = ["documents"]

documents = Table(
    "documents",
    metadata,
    Column(
        "collection",
        String(32),
        nullable=False,
        comment="Collection name (users, posts, communities, ...).",
    ),
    Column(
        "id",
        String(26),
        nullable=False,
        comment="ULID (26 chars, upper case).",
    ),
    Column(
        "revision",
        Integer,
        nullable=False,
        server_default=text("1"),
        comment="Incremented on every update; compare-and-swap guard.",
    ),
    Column(
        "body",
        PORTABLE_JSON,
        nullable=False,
        comment="The document as a JSON object.",
    ),
    Column(
        "created_at",
        UTCDateTime(),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Column(
        "updated_at",
        UTCDateTime(),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    PrimaryKeyConstraint("collection", "id"),
    CheckConstraint("length(id) = 26", name="id_26_char"),
    CheckConstraint("revision >= 1", name="positive_revision"),
    Index("ix_documents_collection_created_at", "collection", "created_at"),
    comment="Documents of every collection, one row per document.",
)
