"""Unit tests for the optimistic update controller."""

import threading

import httpx
import pytest

from nexushub.client.api import ApiError
from nexushub.client.optimistic import ActionStatus, OptimisticUpdateController

# pylint: disable=magic-value-comparison


def increment(state):
    return state + 1


def take_response(state, response):
    return response


@pytest.fixture
def changes():
    return []


@pytest.fixture
def controller(changes):
    return OptimisticUpdateController(10, on_change=changes.append)


def test_success_reconciles_with_server_state(controller, changes):
    seen_during_commit = []

    def commit():
        seen_during_commit.append(controller.state)
        return 42

    result = controller.perform("k", increment, commit, take_response)

    assert result.ok
    assert result.response == 42
    assert seen_during_commit == [11]
    assert controller.state == 42
    assert changes == [11, 42]
    assert not controller.in_flight("k")


def test_api_error_rolls_back(controller, changes):
    def commit():
        raise ApiError(409, "Event is full. Cannot RSVP.", code="CONFLICT")

    result = controller.perform("k", increment, commit, take_response)

    assert result.status is ActionStatus.FAILED
    assert result.message == "Event is full. Cannot RSVP."
    assert controller.state == 10
    assert changes == [11, 10]
    assert not controller.in_flight("k")


def test_transport_error_rolls_back(controller):
    def commit():
        raise httpx.ConnectError("connection refused")

    result = controller.perform("k", increment, commit, take_response)

    assert result.status is ActionStatus.FAILED
    assert "Could not reach the server" in result.message
    assert controller.state == 10


def test_unexpected_errors_roll_back_propagate_and_release_the_key(controller, changes):
    def commit():
        raise ValueError("response was not JSON")

    with pytest.raises(ValueError):
        controller.perform("k", increment, commit, take_response)
    assert controller.state == 10
    assert changes == [11, 10]
    assert not controller.in_flight("k")


def test_second_action_on_same_key_is_suppressed(controller):
    started = threading.Event()
    release = threading.Event()
    commits = []

    def slow_commit():
        commits.append("slow")
        started.set()
        release.wait(timeout=5)
        return 11

    results = []
    worker = threading.Thread(
        target=lambda: results.append(
            controller.perform("k", increment, slow_commit, take_response)
        )
    )
    worker.start()
    assert started.wait(timeout=5)

    suppressed = controller.perform("k", increment, lambda: commits.append("fast"), take_response)
    other_key = controller.perform("other", increment, lambda: 100, take_response)

    release.set()
    worker.join(timeout=5)

    assert suppressed.status is ActionStatus.SUPPRESSED
    assert other_key.ok
    assert commits == ["slow"]
    assert results[0].ok
    assert controller.state == 11


def bump(index):
    def delta(state):
        values = list(state)
        values[index] += 1
        return tuple(values)

    return delta


def revert_slot(index):
    def revert(current, snapshot):
        values = list(current)
        values[index] = snapshot[index]
        return tuple(values)

    return revert


def test_failed_action_keeps_other_keys_committed_changes():
    controller = OptimisticUpdateController((0, 0))
    started = threading.Event()
    release = threading.Event()

    def failing_commit():
        started.set()
        release.wait(timeout=5)
        raise ApiError(500, "Internal server error.", code="INTERNAL_ERROR")

    results = []
    worker = threading.Thread(
        target=lambda: results.append(
            controller.perform(
                "first", bump(0), failing_commit, take_response, revert_slot(0)
            )
        )
    )
    worker.start()
    assert started.wait(timeout=5)

    second = controller.perform(
        "second",
        bump(1),
        lambda: 7,
        lambda state, response: (state[0], response),
        revert_slot(1),
    )
    assert second.ok
    assert controller.state == (1, 7)

    release.set()
    worker.join(timeout=5)

    assert results[0].status is ActionStatus.FAILED
    assert controller.state == (0, 7)
