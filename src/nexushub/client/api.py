"""Thin synchronous client for the NexusHub JSON API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """An error response from the API.

    Attributes:
        status_code: HTTP status of the response.
        message: The server's human-readable message.
        code: Machine-readable error code, when the server sent one.
        errors: Field-keyed validation messages.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.errors = errors or {}

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            status_code=response.status_code,
            message=body.get("message") or response.reason_phrase or "Request failed",
            code=body.get("code"),
            errors=body.get("errors"),
        )


class NexusHubClient:
    """Calls the NexusHub API and returns decoded JSON bodies.

    Args:
        base_url: Root URL of the API, e.g. ``http://localhost:8000``.
        http: A preconfigured `httpx.Client` (base URL, transport) to use
            instead of creating one.

    Raises:
        ApiError: From every call, on a 4xx/5xx response.
        httpx.HTTPError: On transport failures.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        http: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> NexusHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        response = self._http.request(method, path, json=json, params=params or None)
        if response.is_error:
            error = ApiError.from_response(response)
            logger.debug("%s %s failed with %d: %s", method, path, error.status_code, error)
            raise error
        return response.json()

    # Users ------------------------------------------------------------------

    def register_user(self, name: str, email: str, **extra: Any) -> dict[str, Any]:
        return self._request("POST", "/api/users", json={"name": name, "email": email, **extra})

    def get_user(self, user_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/users/{user_id}")

    def update_profile(self, user_id: str, **changes: Any) -> dict[str, Any]:
        return self._request(
            "PUT", f"/api/users/{user_id}", json={"userId": user_id, **changes}
        )

    def user_comments(self, user_id: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/users/{user_id}/comments")

    # Communities -------------------------------------------------------------

    def create_community(
        self, creator_id: str, name: str, description: str, privacy: str = "public"
    ) -> dict[str, Any]:
        body = {
            "creatorId": creator_id,
            "name": name,
            "description": description,
            "privacy": privacy,
        }
        return self._request("POST", "/api/communities", json=body)

    def join_community(self, community_id: str, user_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/api/communities/{community_id}/members", json={"userId": user_id}
        )

    def leave_community(self, community_id: str, user_id: str) -> dict[str, Any]:
        return self._request(
            "DELETE", f"/api/communities/{community_id}/members", params={"userId": user_id}
        )

    # Events ------------------------------------------------------------------

    def rsvp_event(self, event_id: str, user_id: str) -> dict[str, Any]:
        return self._request("POST", f"/api/events/{event_id}/rsvp", json={"userId": user_id})

    def cancel_rsvp(self, event_id: str, user_id: str) -> dict[str, Any]:
        return self._request(
            "DELETE", f"/api/events/{event_id}/rsvp", params={"userId": user_id}
        )

    # Posts -------------------------------------------------------------------

    def get_post(self, post_id: str, user_id: str | None = None) -> dict[str, Any]:
        return self._request("GET", f"/api/posts/{post_id}", params={"userId": user_id})

    def like_post(self, post_id: str, user_id: str) -> dict[str, Any]:
        return self._request("POST", f"/api/posts/{post_id}/like", json={"userId": user_id})

    def unlike_post(self, post_id: str, user_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/posts/{post_id}/like", params={"userId": user_id})

    def bookmark_post(self, post_id: str, user_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/api/posts/{post_id}/bookmark", json={"userId": user_id}
        )

    def unbookmark_post(self, post_id: str, user_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/api/posts/{post_id}/unbookmark", json={"userId": user_id}
        )

    def vote(self, post_id: str, user_id: str, option_id: str) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/api/posts/{post_id}/vote",
            json={"userId": user_id, "optionId": option_id},
        )

    # Search ------------------------------------------------------------------

    def search(
        self, query: str, kind: str = "all", sort_by: str = "relevance"
    ) -> dict[str, Any]:
        return self._request(
            "GET", "/api/search", params={"q": query, "type": kind, "sortBy": sort_by}
        )

    # Notifications -----------------------------------------------------------

    def notifications(self, user_id: str) -> list[dict[str, Any]]:
        return self._request("GET", "/api/notifications", params={"userId": user_id})

    def mark_all_notifications_read(self, user_id: str) -> dict[str, Any]:
        return self._request(
            "POST", "/api/notifications", json={"userId": user_id, "action": "markAllRead"}
        )
