"""Optimistic local updates with rollback on failure.

The controller owns a piece of client state. `perform` applies the
optimistic change immediately, calls the server, and then either merges the
authoritative response or reverts the change.

Several keys may act on the same state at once (a like and a bookmark on one
post). A failed action reverts only its own change, so give `perform` a
`revert` whenever other keys share the state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from .api import ApiError

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


class ActionStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class ActionResult:
    status: ActionStatus
    message: str | None = None
    response: Any = None

    @property
    def ok(self) -> bool:
        return self.status is ActionStatus.SUCCEEDED


def restore_snapshot(current: S, snapshot: S) -> S:
    """Default revert: the whole pre-action state."""
    return snapshot


class OptimisticUpdateController(Generic[S]):
    """Applies optimistic changes to a state value.

    Only one action per key may be in flight; a second `perform` with the
    same key while the first is running is suppressed without calling
    `commit`.

    Args:
        state: Initial state. Treat it as immutable; deltas return new values.
        on_change: Called with the new state after every change.
    """

    def __init__(self, state: S, on_change: Callable[[S], None] | None = None) -> None:
        self._state = state
        self._on_change = on_change
        self._lock = threading.Lock()
        self._in_flight: set[Hashable] = set()

    @property
    def state(self) -> S:
        return self._state

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight

    def _set(self, state: S) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    def perform(
        self,
        key: Hashable,
        optimistic: Callable[[S], S],
        commit: Callable[[], T],
        reconcile: Callable[[S, T], S],
        revert: Callable[[S, S], S] = restore_snapshot,
    ) -> ActionResult:
        """Run one optimistic action.

        Args:
            key: Identifies the action target, e.g. ``(post_id, user_id)``.
            optimistic: Returns the expected state; applied before `commit`.
            commit: Performs the server call and returns its response.
            reconcile: Merges the server response into the current state.
            revert: ``revert(current, snapshot)`` undoes this action's change
                on failure. `current` may already hold other keys' results.

        Returns:
            The outcome. On failure this action's change is reverted and
            `message` carries the server's message. Errors other than
            `ApiError` and transport errors are re-raised after the revert.
        """
        with self._lock:
            if key in self._in_flight:
                logger.debug("Suppressed action on %r: already in flight", key)
                return ActionResult(ActionStatus.SUPPRESSED)
            self._in_flight.add(key)
            snapshot = self._state
            self._set(optimistic(snapshot))

        try:
            response = commit()
        except ApiError as e:
            logger.info("Action on %r rejected (%d): %s", key, e.status_code, e.message)
            self._rollback(revert, snapshot)
            return ActionResult(ActionStatus.FAILED, message=e.message)
        except httpx.HTTPError as e:
            logger.warning("Action on %r failed: %s", key, e)
            self._rollback(revert, snapshot)
            return ActionResult(
                ActionStatus.FAILED, message="Could not reach the server. Please try again."
            )
        except Exception:
            logger.exception("Action on %r raised; reverting", key)
            self._rollback(revert, snapshot)
            raise
        finally:
            with self._lock:
                self._in_flight.discard(key)

        with self._lock:
            self._set(reconcile(self._state, response))
        return ActionResult(ActionStatus.SUCCEEDED, response=response)

    def _rollback(self, revert: Callable[[S, S], S], snapshot: S) -> None:
        with self._lock:
            self._set(revert(self._state, snapshot))
