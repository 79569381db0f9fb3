"""Create documents table

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from nexushub.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b64"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "documents",
        sa.Column(
            "collection",
            sa.String(length=32),
            nullable=False,
            comment="Collection name (users, posts, communities, ...).",
        ),
        sa.Column(
            "id",
            sa.String(length=26),
            nullable=False,
            comment="ULID (26 chars, upper case).",
        ),
        sa.Column(
            "revision",
            sa.Integer(),
            server_default=sa.text("1"),
            nullable=False,
            comment="Incremented on every update; compare-and-swap guard.",
        ),
        sa.Column(
            "body",
            PORTABLE_JSON,
            nullable=False,
            comment="The document as a JSON object.",
        ),
        sa.Column(
            "created_at",
            UTCDateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            UTCDateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("collection", "id", name=op.f("pk_documents")),
        sa.CheckConstraint("length(id) = 26", name=op.f("ck_documents_id_26_char")),
        sa.CheckConstraint(
            "revision >= 1", name=op.f("ck_documents_positive_revision")
        ),
        comment="Documents of every collection, one row per document.",
    )
    op.create_index(
        op.f("ix_documents_collection_created_at"),
        "documents",
        ["collection", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_documents_collection_created_at"), table_name="documents")
    op.drop_table("documents")
