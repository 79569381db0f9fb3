"""Read side: documents shaped for a particular viewer.

Query functions open the unit of work themselves. The ``build_*`` helpers
expect an entered unit of work so that handlers can return the same views.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from nexushub.domain.documents import (
    Comment,
    Community,
    Event,
    Notification,
    Post,
    User,
)
from nexushub.domain.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from nexushub.domain.value_objects import PostStatus
from nexushub.interfaces.collection import In, Sort, normalize_id
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork

NEWEST_FIRST = Sort("created_at", descending=True)
RECENT_COMMENTS = 20
SEARCH_LIMIT = 20

SearchKind = Literal["all", "posts", "events"]
SearchOrder = Literal["relevance", "newest", "oldest"]


@dataclass(frozen=True)
class PostView:
    """A post as seen by one viewer (who may be anonymous)."""

    post: Post
    author: User | None
    is_liked_by_current_user: bool
    is_bookmarked_by_current_user: bool
    user_voted_option_id: str | None = None


@dataclass(frozen=True)
class CommunityView:
    community: Community
    creator: User | None

    @property
    def member_count(self) -> int:
        return self.community.member_count


@dataclass(frozen=True)
class EventView:
    event: Event
    organizer: User | None


@dataclass(frozen=True)
class UserCommentView:
    """A comment in its author's activity feed."""

    comment: Comment
    author: User | None
    post_title: str


@dataclass(frozen=True)
class SearchResults:
    posts: list[PostView] = field(default_factory=list)
    events: list[EventView] = field(default_factory=list)


# ============================================================================
#                               View builders
# ============================================================================


def build_post_view(
    uow: AbstractUnitOfWork, post: Post, viewer_id: str | None
) -> PostView:
    author = uow.users.find_one({"id": post.author_id})
    viewer = uow.users.find_one({"id": viewer_id}) if viewer_id else None
    return PostView(
        post=post,
        author=author,
        is_liked_by_current_user=viewer_id is not None and viewer_id in post.liked_by,
        is_bookmarked_by_current_user=(
            viewer is not None and post.id in viewer.bookmarked_post_ids
        ),
        user_voted_option_id=post.voted_option_id(viewer_id) if viewer_id else None,
    )


def build_event_view(uow: AbstractUnitOfWork, event: Event) -> EventView:
    return EventView(event=event, organizer=uow.users.find_one({"id": event.organizer_id}))


def build_community_view(uow: AbstractUnitOfWork, community: Community) -> CommunityView:
    return CommunityView(
        community=community, creator=uow.users.find_one({"id": community.creator_id})
    )


def _optional_id(value: str | None) -> str | None:
    return normalize_id(value) if value else None


# ============================================================================
#                                  Queries
# ============================================================================


def get_user(uow: AbstractUnitOfWork, user_id: str) -> User:
    with uow:
        user = uow.users.find_one({"id": user_id})
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_post(uow: AbstractUnitOfWork, post_id: str, viewer_id: str | None) -> PostView:
    viewer_id = _optional_id(viewer_id)
    with uow:
        post = uow.posts.find_one({"id": post_id})
        if post is None:
            raise NotFoundError("Post", post_id)
        return build_post_view(uow, post, viewer_id)


def list_published_posts(
    uow: AbstractUnitOfWork, viewer_id: str | None, limit: int | None = None
) -> list[PostView]:
    """Published posts, newest first."""
    viewer_id = _optional_id(viewer_id)
    with uow:
        posts = uow.posts.find(
            {"status": PostStatus.PUBLISHED}, sort=NEWEST_FIRST, limit=limit
        )
        return [build_post_view(uow, post, viewer_id) for post in posts]


def list_bookmarked_posts(uow: AbstractUnitOfWork, user_id: str) -> list[PostView]:
    with uow:
        user = uow.users.find_one({"id": user_id})
        if user is None:
            raise NotFoundError("User", user_id)
        if not user.bookmarked_post_ids:
            return []
        posts = uow.posts.find({"id": In(user.bookmarked_post_ids)}, sort=NEWEST_FIRST)
        return [build_post_view(uow, post, user.id) for post in posts]


def list_comments(uow: AbstractUnitOfWork, post_id: str) -> list[Comment]:
    """Comments of a post, oldest first."""
    post_id = normalize_id(post_id)
    with uow:
        if uow.posts.find_one({"id": post_id}) is None:
            raise NotFoundError("Post", post_id)
        return uow.comments.find({"post_id": post_id}, sort=Sort("created_at"))


def get_event(uow: AbstractUnitOfWork, event_id: str) -> EventView:
    with uow:
        event = uow.events.find_one({"id": event_id})
        if event is None:
            raise NotFoundError("Event", event_id)
        return build_event_view(uow, event)


def list_events(uow: AbstractUnitOfWork) -> list[EventView]:
    """Events ordered by start time."""
    with uow:
        events = uow.events.find(sort=Sort("start_time"))
        return [build_event_view(uow, event) for event in events]


def get_community(uow: AbstractUnitOfWork, community_id: str) -> CommunityView:
    with uow:
        community = uow.communities.find_one({"id": community_id})
        if community is None:
            raise NotFoundError("Community", community_id)
        return build_community_view(uow, community)


def list_communities(uow: AbstractUnitOfWork) -> list[CommunityView]:
    with uow:
        communities = uow.communities.find(sort=NEWEST_FIRST)
        return [build_community_view(uow, c) for c in communities]


def community_members(uow: AbstractUnitOfWork, community_id: str) -> list[User]:
    with uow:
        community = uow.communities.find_one({"id": community_id})
        if community is None:
            raise NotFoundError("Community", community_id)
        if not community.member_ids:
            return []
        return uow.users.find({"id": In(community.member_ids)})


def pending_join_requests(
    uow: AbstractUnitOfWork, community_id: str, actor_id: str | None
) -> list[User]:
    """Users waiting for approval; visible to the creator and admins only."""
    if not actor_id:
        raise UnauthenticatedError("Authentication required.")
    actor_id = normalize_id(actor_id)
    with uow:
        community = uow.communities.find_one({"id": community_id})
        if community is None:
            raise NotFoundError("Community", community_id)
        if not community.can_manage(actor_id):
            raise ForbiddenError(
                "Only the community creator or admins can view join requests."
            )
        if not community.pending_member_ids:
            return []
        return uow.users.find({"id": In(community.pending_member_ids)})


def notifications_for(uow: AbstractUnitOfWork, user_id: str | None) -> list[Notification]:
    """A user's notifications, newest first."""
    if not user_id:
        raise InvalidInputError("User ID is required.", {"userId": ["Required."]})
    user_id = normalize_id(user_id)
    with uow:
        return uow.notifications.find({"user_id": user_id}, sort=NEWEST_FIRST)


def comments_by_user(
    uow: AbstractUnitOfWork, user_id: str, limit: int = RECENT_COMMENTS
) -> list[UserCommentView]:
    """A user's most recent comments, each with the title of its post."""
    user_id = normalize_id(user_id)
    with uow:
        author = uow.users.find_one({"id": user_id})
        if author is None:
            raise NotFoundError("User", user_id)
        comments = uow.comments.find({"author_id": user_id}, sort=NEWEST_FIRST, limit=limit)
        post_ids = list(dict.fromkeys(c.post_id for c in comments))
        posts = {p.id: p for p in uow.posts.find({"id": In(post_ids)})} if post_ids else {}
    return [
        UserCommentView(comment=c, author=author, post_title=_post_title(posts.get(c.post_id)))
        for c in comments
    ]


def _post_title(post: Post | None) -> str:
    if post is None:
        return "Post not found"
    return post.title or "Untitled post"


def search(
    uow: AbstractUnitOfWork,
    query: str | None,
    kind: SearchKind = "all",
    order: SearchOrder = "relevance",
    viewer_id: str | None = None,
    limit: int = SEARCH_LIMIT,
) -> SearchResults:
    """Case-insensitive substring search over published posts and events.

    Posts match on title, content, tags or category; events on title,
    description, location, tags or category. ``relevance`` puts title
    matches first and is newest first otherwise. ``newest`` and ``oldest``
    order posts by creation time and events by start time.

    Raises:
        InvalidInputError: For an unknown `kind` or `order`.
    """
    if kind not in ("all", "posts", "events"):
        raise InvalidInputError("Invalid search type.", {"type": ["Unknown type."]})
    if order not in ("relevance", "newest", "oldest"):
        raise InvalidInputError("Invalid sort order.", {"sortBy": ["Unknown order."]})
    needle = (query or "").strip().lower()
    if not needle:
        return SearchResults()
    viewer_id = _optional_id(viewer_id)

    post_views: list[PostView] = []
    event_views: list[EventView] = []
    with uow:
        if kind in ("all", "posts"):
            posts = [
                p
                for p in uow.posts.find({"status": PostStatus.PUBLISHED})
                if _mentions(needle, p.title, p.content, p.category, *p.tags)
            ]
            ranked = _rank(posts, needle, order, lambda p: p.created_at, lambda p: p.title)
            post_views = [build_post_view(uow, p, viewer_id) for p in ranked[:limit]]
        if kind in ("all", "events"):
            events = [
                e
                for e in uow.events.find()
                if _mentions(needle, e.title, e.description, e.location, e.category, *e.tags)
            ]
            ranked = _rank(events, needle, order, lambda e: e.start_time, lambda e: e.title)
            event_views = [build_event_view(uow, e) for e in ranked[:limit]]
    return SearchResults(posts=post_views, events=event_views)


def _mentions(needle: str, *texts: str | None) -> bool:
    return any(needle in text.lower() for text in texts if text)


def _rank(docs: list, needle: str, order: SearchOrder, when, title) -> list:
    if order == "oldest":
        return sorted(docs, key=when)
    docs = sorted(docs, key=when, reverse=True)
    if order == "relevance":
        # stable: title matches first, newest first within each group
        docs.sort(key=lambda doc: needle not in (title(doc) or "").lower())
    return docs
