"""Unit tests for the HTTP client error mapping."""

import json

import httpx
import pytest

from nexushub.client import ApiError, NexusHubClient

# pylint: disable=magic-value-comparison


def make_client(handler):
    return NexusHubClient(
        http=httpx.Client(base_url="http://test", transport=httpx.MockTransport(handler))
    )


def test_error_envelope_becomes_api_error():
    def handler(request):
        return httpx.Response(
            400,
            json={
                "message": "Invalid request data.",
                "code": "VALIDATION_ERROR",
                "errors": {"email": ["Required."]},
            },
        )

    with make_client(handler) as client, pytest.raises(ApiError) as excinfo:
        client.register_user("Ada", "")

    error = excinfo.value
    assert error.status_code == 400
    assert error.code == "VALIDATION_ERROR"
    assert error.errors == {"email": ["Required."]}
    assert str(error) == "Invalid request data."


def test_non_json_error_uses_reason_phrase():
    def handler(request):
        return httpx.Response(502, text="<html>bad gateway</html>")

    with make_client(handler) as client, pytest.raises(ApiError) as excinfo:
        client.get_user("01HZX3J4N5P6Q7R8S9T0V1W2X3")

    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "Bad Gateway"
    assert excinfo.value.code is None


def test_none_params_are_dropped():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "x"})

    with make_client(handler) as client:
        client.get_post("01HZX3J4N5P6Q7R8S9T0V1W2X3")

    assert "userId" not in seen[0].url.params


def test_profile_update_and_search_requests():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    with make_client(handler) as client:
        client.update_profile("01HZX3J4N5P6Q7R8S9T0V1W2X3", bio="Hi")
        client.search("comet", kind="events", sort_by="oldest")

    update, search = seen
    assert update.method == "PUT"
    assert json.loads(update.content) == {"userId": "01HZX3J4N5P6Q7R8S9T0V1W2X3", "bio": "Hi"}
    assert search.url.path == "/api/search"
    assert dict(search.url.params) == {"q": "comet", "type": "events", "sortBy": "oldest"}
