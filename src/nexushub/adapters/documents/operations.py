"""Filter matching and update application over persisted document bodies.

Both document stores keep documents as JSON-compatible dicts (the output of
`Document.to_dict`) and share these functions, so the in-memory and SQL
adapters agree on every filter and update semantic.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from nexushub.domain.utils import to_primitive
from nexushub.interfaces.collection import (
    AddToSet,
    Contains,
    Filter,
    In,
    InvalidIdentifierError,
    NotEqual,
    Pull,
    Set,
    SizeBelow,
    Sort,
    Update,
    normalize_id,
)

Body = dict[str, Any]


def prepare_filter(filter_: Filter | None) -> dict[str, Any]:
    """Validate ids and convert filter values to their persisted form.

    Raises:
        InvalidIdentifierError: If the ``id`` entry is not a ULID.
    """
    prepared: dict[str, Any] = {}
    for key, value in (filter_ or {}).items():
        if key == "id":
            value = _prepare_id(value)
        elif isinstance(value, In):
            value = In([to_primitive(v) for v in value.values])
        elif isinstance(value, (Contains, NotEqual)):
            value = type(value)(to_primitive(value.value))
        elif not isinstance(value, SizeBelow):
            value = to_primitive(value)
        prepared[key] = value
    return prepared


def _prepare_id(value: Any) -> Any:
    if isinstance(value, In):
        return In([normalize_id(v) for v in value.values])
    if isinstance(value, NotEqual):
        return NotEqual(normalize_id(value.value))
    if isinstance(value, (Contains, SizeBelow)):
        raise InvalidIdentifierError(value)
    return normalize_id(value)


def matches(body: Body, filter_: dict[str, Any]) -> bool:
    """True if `body` satisfies every entry of a prepared filter."""
    return all(_match_one(body.get(key), cond) for key, cond in filter_.items())


def _match_one(stored: Any, cond: Any) -> bool:  # pylint: disable=too-many-return-statements
    if isinstance(cond, Contains):
        return isinstance(stored, list) and cond.value in stored
    if isinstance(cond, In):
        if isinstance(stored, list):
            return any(v in stored for v in cond.values)
        return stored in cond.values
    if isinstance(cond, NotEqual):
        if isinstance(stored, list):
            return cond.value not in stored
        return stored != cond.value
    if isinstance(cond, SizeBelow):
        return len(stored or []) < cond.limit
    if isinstance(stored, list) and not isinstance(cond, list):
        return cond in stored
    return stored == cond


def apply_update(body: Body, update: Update) -> tuple[Body, bool]:
    """Apply every op of `update` to a copy of `body`.

    Returns:
        The new body and whether anything changed.
    """
    new_body = dict(body)
    for op in update.ops:
        value = to_primitive(op.value)
        current = new_body.get(op.field)
        if isinstance(op, Set):
            new_body[op.field] = value
        elif isinstance(op, AddToSet):
            items = list(current or [])
            if value not in items:
                items.append(value)
            new_body[op.field] = items
        elif isinstance(op, Pull):
            new_body[op.field] = [v for v in (current or []) if v != value]
        else:  # pragma: no cover
            raise TypeError(f"Unsupported update operation: {op!r}")
    return new_body, new_body != body


def sort_key(sort: Sort) -> Callable[[Body], Any]:
    """Key function for `sorted`; documents missing the field sort first."""

    def key(body: Body) -> tuple[bool, Any]:
        value = body.get(sort.field)
        return (value is not None, value if value is not None else 0)

    return key


def sort_and_limit(
    bodies: list[Body], sort: Sort | None, limit: int | None
) -> list[Body]:
    if limit is not None and limit < 0:
        raise ValueError("limit cannot be negative")
    if sort is not None:
        bodies = sorted(bodies, key=sort_key(sort), reverse=sort.descending)
    return bodies if limit is None else bodies[:limit]
