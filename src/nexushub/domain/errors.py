"""Domain-layer error definitions.

Every error carries a human-readable message suitable for returning to the
client verbatim. The HTTP entrypoint maps each family to a status code:
`InvalidInputError` → 400, `UnauthenticatedError` → 401, `ForbiddenError` →
403, `NotFoundError` → 404, `ConflictError` → 409.
"""

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(DomainError):
    """Raised when input fails validation.

    Attributes:
        errors: Field-keyed error messages, e.g. ``{"reasonText": ["..."]}``.
    """

    def __init__(
        self, message: str, errors: dict[str, list[str]] | None = None
    ) -> None:
        super().__init__(message)
        self.errors = errors or {}


class UnauthenticatedError(DomainError):
    """Raised when an operation requires an acting user and none was given."""


class ForbiddenError(DomainError):
    """Raised when the acting user lacks rights for the operation."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str, message: str | None = None) -> None:
        super().__init__(message or f"{entity} not found.")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    """Raised when a state guard is violated."""


# ============================================================================
#                           Specific errors
# ============================================================================


class ContentFlaggedError(InvalidInputError):
    """Raised when the content moderator flags submitted content."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Post flagged by content moderation: {reason}. Please revise.",
            errors={"content": [reason]},
        )
        self.reason = reason


class EventFullError(ConflictError):
    """Raised when an RSVP would exceed an event's attendee limit."""

    def __init__(self, event_id: str, max_attendees: int) -> None:
        super().__init__("Event is full. Cannot RSVP.")
        self.event_id = event_id
        self.max_attendees = max_attendees


class ReportAlreadyFinalizedError(ConflictError):
    """Raised when reviewing a report that has already left `pending`."""

    def __init__(self, report_id: str, status: str) -> None:
        super().__init__(
            f"Report already {status.replace('_', ' ')}. Cannot update again."
        )
        self.report_id = report_id
        self.status = status


class DuplicateEmailError(ConflictError):
    """Raised when registering a user with an email that is already taken."""

    def __init__(self, email: str) -> None:
        super().__init__(f"A user with email {email} already exists.")
        self.email = email


# ============================================================================
#                           Idempotent no-op signal
# ============================================================================


class AlreadyInDesiredState(Exception):
    """Signal that a write would not change anything.

    Not an error: the coordinator turns it into a ``noop`` outcome and the
    HTTP layer answers 200. Raised by preconditions ("already a member") or
    derived from a primary write that modified nothing.
    """

    def __init__(self, message: str, payload: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}
