"""Client-side view model for liking and bookmarking a post."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from .api import NexusHubClient
from .optimistic import ActionResult, ActionStatus, OptimisticUpdateController

LOGIN_REQUIRED = "Please log in to interact with posts."


@dataclass(frozen=True)
class PostState:
    like_count: int
    is_liked: bool
    is_bookmarked: bool

    @classmethod
    def from_api(cls, post: dict[str, Any]) -> PostState:
        return cls(
            like_count=post.get("likeCount", 0),
            is_liked=post.get("isLikedByCurrentUser", False),
            is_bookmarked=post.get("isBookmarkedByCurrentUser", False),
        )


def _server_post(response: Any) -> PostState | None:
    post = response.get("post") if isinstance(response, dict) else None
    return PostState.from_api(post) if post else None


def _reconcile_like(state: PostState, response: dict[str, Any]) -> PostState:
    """Take the server's like fields; leave the bookmark to its own action."""
    server = _server_post(response)
    if server is None:
        return state
    return replace(state, like_count=server.like_count, is_liked=server.is_liked)


def _reconcile_bookmark(state: PostState, response: dict[str, Any]) -> PostState:
    server = _server_post(response)
    if server is None:
        return state
    return replace(state, is_bookmarked=server.is_bookmarked)


class PostInteractions:
    """Like and bookmark toggles for one post as seen by one user.

    Toggles update `state` immediately and roll back if the server rejects
    the change. A like and a bookmark may be in flight together; each one
    reconciles and reverts only the fields it owns. ``user_id=None`` means
    nobody is logged in.
    """

    def __init__(
        self,
        client: NexusHubClient,
        post_id: str,
        user_id: str | None,
        state: PostState,
        on_change: Callable[[PostState], None] | None = None,
    ) -> None:
        self.client = client
        self.post_id = post_id
        self.user_id = user_id
        self._controller = OptimisticUpdateController(state, on_change)

    @classmethod
    def load(
        cls, client: NexusHubClient, post_id: str, user_id: str | None
    ) -> PostInteractions:
        return cls(client, post_id, user_id, PostState.from_api(client.get_post(post_id, user_id)))

    @property
    def state(self) -> PostState:
        return self._controller.state

    def toggle_like(self) -> ActionResult:
        if self.user_id is None:
            return ActionResult(ActionStatus.FAILED, message=LOGIN_REQUIRED)
        user_id = self.user_id
        liked = self.state.is_liked
        delta = -1 if liked else 1

        def optimistic(state: PostState) -> PostState:
            return replace(
                state, is_liked=not liked, like_count=max(0, state.like_count + delta)
            )

        def revert(current: PostState, snapshot: PostState) -> PostState:
            if current.is_liked is snapshot.is_liked:
                # already replaced by a server view of the post
                return current
            applied = optimistic(snapshot).like_count - snapshot.like_count
            return replace(
                current,
                is_liked=snapshot.is_liked,
                like_count=max(0, current.like_count - applied),
            )

        def commit() -> dict[str, Any]:
            if liked:
                return self.client.unlike_post(self.post_id, user_id)
            return self.client.like_post(self.post_id, user_id)

        return self._controller.perform(
            ("like", self.post_id, user_id), optimistic, commit, _reconcile_like, revert
        )

    def toggle_bookmark(self) -> ActionResult:
        if self.user_id is None:
            return ActionResult(ActionStatus.FAILED, message=LOGIN_REQUIRED)
        user_id = self.user_id
        bookmarked = self.state.is_bookmarked

        def commit() -> dict[str, Any]:
            if bookmarked:
                return self.client.unbookmark_post(self.post_id, user_id)
            return self.client.bookmark_post(self.post_id, user_id)

        return self._controller.perform(
            ("bookmark", self.post_id, user_id),
            lambda state: replace(state, is_bookmarked=not bookmarked),
            commit,
            _reconcile_bookmark,
            lambda current, snapshot: replace(current, is_bookmarked=snapshot.is_bookmarked),
        )
