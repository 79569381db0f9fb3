"""Pytest fixtures for service layer handler unit tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from nexushub.adapters.content import BlocklistModerator, KeywordCategorizer
from nexushub.adapters.id_generators import SimpleIdGenerator
from nexushub.adapters.unit_of_work import InMemoryUnitOfWork
from nexushub.bootstrap.bootstrap import build_message_bus
from nexushub.service_layer.handlers import COMMAND_HANDLERS

if TYPE_CHECKING:
    from nexushub.service_layer.messagebus import MessageBus

# pylint: disable=redefined-outer-name


@pytest.fixture
def bus_params():
    """Default bus dependencies. Classes can override this fixture."""
    return {}


@pytest.fixture
def make_test_bus(bus_params) -> Callable[..., MessageBus]:
    """Factory for a message bus over a fresh in-memory unit of work."""

    def _make():
        params = {
            "id_generator": SimpleIdGenerator(),
            "moderator": BlocklistModerator(["forbidden words"]),
            "categorizer": KeywordCategorizer(),
            **bus_params,
        }
        return build_message_bus(InMemoryUnitOfWork(), COMMAND_HANDLERS, **params)

    return _make
