"""Shared SQLAlchemy `MetaData` object with a naming convention.

This metadata is imported by all table definitions so that constraints
and indexes receive deterministic names, which keeps Alembic autogenerate
from emitting spurious drops/adds.

Naming convention:
    - Indexes:       ix_<table>_<col...>
    - Unique:        uq_<table>_<col...>
    - Check:         ck_<table>_<constraint_name>
    - Primary key:   pk_<table>
"""

from sqlalchemy import MetaData

#: All NexusHub tables attach to this metadata object.
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_label)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "pk": "pk_%(table_name)s",
    }
)
