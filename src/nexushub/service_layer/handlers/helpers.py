"""Small helpers shared by the command handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nexushub.domain.errors import InvalidInputError, UnauthenticatedError
from nexushub.interfaces.collection import normalize_id
from nexushub.service_layer.coordinator import WorkRun
from nexushub.service_layer.notifications import NotificationEmitter

if TYPE_CHECKING:
    from nexushub.interfaces.id_generator import IdGenerator
    from nexushub.interfaces.unit_of_work import AbstractUnitOfWork


def start_run(
    operation: str, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkRun:
    """A coordinator run whose notifications go to `uow.notifications`."""
    return WorkRun(operation, NotificationEmitter(uow, id_generator))


def required_id(value: str | None, field: str, label: str = "User ID") -> str:
    """Normalize a mandatory id taken from the request.

    Raises:
        InvalidInputError: If the id is missing.
        InvalidIdentifierError: If it is not a ULID.
    """
    if not value:
        raise InvalidInputError(f"{label} is required.", {field: ["Required."]})
    return normalize_id(value)


def acting_user_id(value: str | None) -> str:
    """Normalize the id of the acting user.

    Raises:
        UnauthenticatedError: If no acting user was given.
    """
    if not value:
        raise UnauthenticatedError("Authentication required.")
    return normalize_id(value)

