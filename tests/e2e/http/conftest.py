"""Fixtures for driving the HTTP API through FastAPI's TestClient."""

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from nexushub.bootstrap import bootstrap_memory
from nexushub.entrypoints.http import create_app

# pylint: disable=redefined-outer-name


@pytest.fixture
def container():
    return bootstrap_memory()


@pytest.fixture
def client(container) -> Iterator[TestClient]:
    with TestClient(create_app(container), raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def register(client) -> Callable[..., dict[str, Any]]:
    """Register a user over HTTP and return its JSON representation."""

    def _register(name: str, **extra: Any) -> dict[str, Any]:
        email = f"{name.lower().replace(' ', '.')}@example.com"
        response = client.post("/api/users", json={"name": name, "email": email, **extra})
        assert response.status_code == 201, response.json()
        return response.json()["user"]

    return _register


@pytest.fixture
def publish(client) -> Callable[..., dict[str, Any]]:
    def _publish(author: dict[str, Any], content: str, **extra: Any) -> dict[str, Any]:
        response = client.post(
            "/api/posts", json={"userId": author["id"], "content": content, **extra}
        )
        assert response.status_code == 201, response.json()
        return response.json()["post"]

    return _publish
