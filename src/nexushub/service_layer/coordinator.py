"""Sequencing of multi-document writes.

A logical operation touching several collections cannot be wrapped in one
transaction. `WorkRun` issues its steps in a fixed order of kinds and
applies one partial-failure policy to all of them:

1. **precondition** - read-only checks. A failure aborts the run before any
   mutation.
2. **primary** - the mutations that define success. Failures propagate;
   primary steps already completed are kept.
3. **secondary** - follow-up mutations. A failure (an exception, or an
   update that matched no document) is logged at WARNING and recorded; the
   run finishes as ``partial`` instead of failing.
4. **emit** - notifications (see `nexushub.service_layer.notifications`).

Every mutation is add-to-set / pull / conditional set, so re-running a
request after a partial outcome repairs it.

Typical use inside a handler::

    run = WorkRun("join_community", NotificationEmitter(uow, id_generator))
    with uow, run:
        community = run.require("community exists", ..., NotFoundError(...))
        run.primary("add member", uow.communities.update_one, {...}, Update(...))
        run.secondary("link user", uow.users.update_one, {...}, Update(...))
        run.finish("Successfully joined community.")
    return run.result

`AlreadyInDesiredState` raised inside the block ends the run as ``noop``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, TypeVar

from nexushub.domain.errors import AlreadyInDesiredState
from nexushub.interfaces.collection import UpdateResult
from nexushub.service_layer.notifications import EmitStatus

if TYPE_CHECKING:
    from types import TracebackType

    from nexushub.service_layer.notifications import (
        NotificationDraft,
        NotificationEmitter,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StepKind(IntEnum):
    """Step kinds, in the order a run must issue them."""

    PRECONDITION = 1
    PRIMARY = 2
    SECONDARY = 3
    EMIT = 4

    @property
    def label(self) -> str:
        return self.name.lower()


class StepStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


class Outcome(str, Enum):
    APPLIED = "applied"
    NOOP = "noop"
    PARTIAL = "partial"


class StepOrderError(RuntimeError):
    """A step was issued after a step of a later kind."""


@dataclass(frozen=True)
class StepRecord:
    name: str
    kind: StepKind
    status: StepStatus
    detail: str | None = None


@dataclass(frozen=True)
class WorkResult:
    """What a unit of work did.

    Attributes:
        operation: Name of the logical operation (e.g. ``"join_community"``).
        outcome: ``applied``, ``noop`` or ``partial``.
        message: Human-readable summary for the client.
        steps: Every step issued, in order.
        warnings: Secondary failures, one message each.
        payload: Named results (documents, views) for the caller.
    """

    operation: str
    outcome: Outcome
    message: str
    steps: tuple[StepRecord, ...] = ()
    warnings: tuple[str, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)


class WorkRun:
    """One execution of a multi-document unit of work."""

    def __init__(self, operation: str, emitter: NotificationEmitter | None = None):
        self.operation = operation
        self.emitter = emitter
        self.steps: list[StepRecord] = []
        self.warnings: list[str] = []
        self._phase = StepKind.PRECONDITION
        self._result: WorkResult | None = None

    # --------------------------------------------------------------------- #
    # Context management
    # --------------------------------------------------------------------- #

    def __enter__(self) -> WorkRun:
        logger.debug("Starting unit of work %s", self.operation)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if isinstance(exc, AlreadyInDesiredState):
            self._result = self._build(Outcome.NOOP, exc.message, exc.payload)
            logger.info("%s: no-op (%s)", self.operation, exc.message)
            return True
        return False

    @property
    def result(self) -> WorkResult:
        """The finished result.

        Raises:
            RuntimeError: If the run neither finished nor ended as a no-op.
        """
        if self._result is None:
            raise RuntimeError(f"Unit of work {self.operation} did not finish")
        return self._result

    # --------------------------------------------------------------------- #
    # Preconditions
    # --------------------------------------------------------------------- #

    def require(self, name: str, value: T | None, error: Exception) -> T:
        """Precondition: `value` must not be None, else raise `error`."""
        self.check(name, value is not None, error)
        assert value is not None  # for mypy
        return value

    def check(self, name: str, condition: bool, error: Exception) -> None:
        """Precondition: raise `error` unless `condition` holds."""
        self._advance(StepKind.PRECONDITION, name)
        if not condition:
            self._record(name, StepKind.PRECONDITION, StepStatus.FAILED, str(error))
            raise error
        self._record(name, StepKind.PRECONDITION, StepStatus.OK)

    def noop_if(
        self, name: str, condition: bool, message: str, **payload: Any
    ) -> None:
        """Precondition: end the run as a no-op when `condition` holds."""
        self._advance(StepKind.PRECONDITION, name)
        self._record(name, StepKind.PRECONDITION, StepStatus.OK)
        if condition:
            raise AlreadyInDesiredState(message, payload)

    # --------------------------------------------------------------------- #
    # Mutations
    # --------------------------------------------------------------------- #

    def primary(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a primary mutation. Exceptions propagate."""
        self._advance(StepKind.PRIMARY, name)
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            self._record(name, StepKind.PRIMARY, StepStatus.FAILED, str(e))
            raise
        self._record(name, StepKind.PRIMARY, StepStatus.OK)
        return result

    def noop(self, message: str, **payload: Any) -> None:
        """End the run as a no-op (e.g. a primary write modified nothing)."""
        raise AlreadyInDesiredState(message, payload)

    def secondary(
        self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T | None:
        """Run a secondary mutation; failures become warnings."""
        self._advance(StepKind.SECONDARY, name)
        try:
            result = fn(*args, **kwargs)
        except Exception as e:  # pylint: disable=broad-except
            self._warn(name, f"{type(e).__name__}: {e}")
            return None
        if isinstance(result, UpdateResult) and result.matched_count == 0:
            self._warn(name, "no matching document")
            return result
        self._record(name, StepKind.SECONDARY, StepStatus.OK)
        return result

    # --------------------------------------------------------------------- #
    # Side effects
    # --------------------------------------------------------------------- #

    def emit(self, draft: NotificationDraft) -> None:
        """Emit a notification. Never fails the run."""
        name = f"notify {draft.type.value} to {draft.user_id}"
        self._advance(StepKind.EMIT, name)
        if self.emitter is None:
            self._record(name, StepKind.EMIT, StepStatus.SKIPPED, "no emitter")
            return
        status = self.emitter.emit(draft)
        if status is EmitStatus.SENT:
            self._record(name, StepKind.EMIT, StepStatus.OK)
        elif status is EmitStatus.DUPLICATE:
            self._record(name, StepKind.EMIT, StepStatus.SKIPPED, status.value)
        else:
            self._record(name, StepKind.EMIT, StepStatus.FAILED, status.value)

    # --------------------------------------------------------------------- #
    # Completion
    # --------------------------------------------------------------------- #

    def finish(self, message: str, **payload: Any) -> WorkResult:
        """Complete the run as ``applied`` or, after secondary failures, ``partial``."""
        outcome = Outcome.PARTIAL if self.warnings else Outcome.APPLIED
        self._result = self._build(outcome, message, payload)
        if outcome is Outcome.PARTIAL:
            logger.warning(
                "%s finished partially: %s", self.operation, "; ".join(self.warnings)
            )
        else:
            logger.info("%s: %s", self.operation, message)
        return self._result

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _advance(self, kind: StepKind, name: str) -> None:
        if self._result is not None:
            raise StepOrderError(f"{self.operation}: step {name!r} after finish")
        if kind < self._phase:
            raise StepOrderError(
                f"{self.operation}: {kind.label} step {name!r} issued after "
                f"{self._phase.label} steps"
            )
        self._phase = kind

    def _record(
        self, name: str, kind: StepKind, status: StepStatus, detail: str | None = None
    ) -> None:
        self.steps.append(StepRecord(name=name, kind=kind, status=status, detail=detail))

    def _warn(self, name: str, detail: str) -> None:
        message = f"{name}: {detail}"
        logger.warning("%s: secondary step failed: %s", self.operation, message)
        self.warnings.append(message)
        self._record(name, StepKind.SECONDARY, StepStatus.FAILED, detail)

    def _build(self, outcome: Outcome, message: str, payload: dict[str, Any]) -> WorkResult:
        return WorkResult(
            operation=self.operation,
            outcome=outcome,
            message=message,
            steps=tuple(self.steps),
            warnings=tuple(self.warnings),
            payload=dict(payload),
        )
