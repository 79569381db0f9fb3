"""Adapters (infrastructure) for NexusHub.

Provide concrete implementations of the ports in `nexushub.interfaces`
(in-memory and SQLAlchemy document stores, units of work, ID generators,
moderation/categorization collaborators), plus persistence mapping and
related wiring (engines, metadata, migrations).

Dependency rule: may import `nexushub.domain` and `nexushub.interfaces`; the
domain must not import this package.
"""
