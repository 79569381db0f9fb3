"""Fixtures for id_generator contract tests."""

from collections.abc import Iterable

import pytest

from nexushub.adapters.id_generators import SimpleIdGenerator, ULIDGenerator
from nexushub.interfaces.id_generator import IdGenerator


@pytest.fixture(params=["ulid", "simple"])
def id_generator(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """A fresh IdGenerator for each backend."""
    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SimpleIdGenerator()
        case _:
            raise ValueError(f"unknown id generator type: {request.param}")


@pytest.fixture(params=["ulid", "simple"])
def monotonic_id_generators(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """IdGenerators that promise monotonic id order."""
    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SimpleIdGenerator()
        case _:
            raise ValueError(f"unknown monotonic id generator type: {request.param}")
