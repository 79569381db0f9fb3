"""Module defining Commands.

Identifiers are passed as received; handlers normalize and validate them.
An acting user id of ``None`` means the request was unauthenticated.
The ``changes`` of an update command map field names (snake_case) to new
values; only the fields present are changed.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from nexushub.domain.value_objects import (
    ItemType,
    JoinRequestAction,
    PostStatus,
    Privacy,
    ReasonCategory,
    ReportStatus,
)

# pylint: disable=too-many-instance-attributes


@dataclass(frozen=True)
class Command:
    """Base class for all commands."""


# ============================================================================
#                                   Users
# ============================================================================


@dataclass(frozen=True)
class RegisterUser(Command):
    name: str
    email: str
    avatar_url: str | None = None
    bio: str | None = None


@dataclass(frozen=True)
class UpdateProfile(Command):
    """Change a user's own profile."""

    user_id: str
    actor_id: str | None
    changes: Mapping[str, Any] = field(default_factory=dict)


# ============================================================================
#                                Communities
# ============================================================================


@dataclass(frozen=True)
class CreateCommunity(Command):
    creator_id: str | None
    name: str
    description: str
    privacy: Privacy = Privacy.PUBLIC
    cover_image_url: str | None = None


@dataclass(frozen=True)
class JoinCommunity(Command):
    """Join a public community, or request to join a private one."""

    community_id: str
    user_id: str | None


@dataclass(frozen=True)
class LeaveCommunity(Command):
    community_id: str
    user_id: str | None


@dataclass(frozen=True)
class ManageJoinRequest(Command):
    """Approve or deny a pending join request (creator or admin only)."""

    community_id: str
    actor_id: str | None
    target_user_id: str
    action: JoinRequestAction


@dataclass(frozen=True)
class TransferOwnership(Command):
    community_id: str
    actor_id: str | None
    new_owner_id: str


@dataclass(frozen=True)
class UpdateCommunity(Command):
    """Change community settings (creator or admin only)."""

    community_id: str
    actor_id: str | None
    changes: Mapping[str, Any] = field(default_factory=dict)


# ============================================================================
#                                   Events
# ============================================================================


@dataclass(frozen=True)
class CreateEvent(Command):
    organizer_id: str | None
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    location: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    max_attendees: int | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class RsvpEvent(Command):
    event_id: str
    user_id: str | None


@dataclass(frozen=True)
class CancelRsvp(Command):
    event_id: str
    user_id: str | None


@dataclass(frozen=True)
class UpdateEvent(Command):
    event_id: str
    actor_id: str | None
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteEvent(Command):
    event_id: str
    actor_id: str | None


# ============================================================================
#                                   Posts
# ============================================================================


@dataclass(frozen=True)
class CreatePost(Command):
    author_id: str | None
    content: str
    title: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    is_draft: bool = False
    scheduled_at: datetime | None = None
    poll_options: tuple[str, ...] = ()


@dataclass(frozen=True)
class UpdatePost(Command):
    """Publish a draft (author only). No status means nothing to change."""

    post_id: str
    user_id: str | None
    status: PostStatus | None = None


@dataclass(frozen=True)
class VoteInPoll(Command):
    post_id: str
    user_id: str | None
    option_id: str | None


@dataclass(frozen=True)
class LikePost(Command):
    post_id: str
    user_id: str | None


@dataclass(frozen=True)
class UnlikePost(Command):
    post_id: str
    user_id: str | None


@dataclass(frozen=True)
class BookmarkPost(Command):
    post_id: str
    user_id: str | None


@dataclass(frozen=True)
class UnbookmarkPost(Command):
    post_id: str
    user_id: str | None


@dataclass(frozen=True)
class DeletePost(Command):
    """Delete a post with its comments and every bookmark of it."""

    post_id: str
    user_id: str | None


@dataclass(frozen=True)
class AddComment(Command):
    post_id: str
    author_id: str | None
    content: str
    parent_id: str | None = None


# ============================================================================
#                                  Reports
# ============================================================================


@dataclass(frozen=True)
class SubmitReport(Command):
    reporter_user_id: str | None
    reported_item_id: str
    item_type: ItemType
    reason_category: ReasonCategory
    reason_text: str | None = None


@dataclass(frozen=True)
class ReviewReport(Command):
    report_id: str
    reviewer_id: str | None
    new_status: ReportStatus
    review_notes: str | None = None


# ============================================================================
#                               Notifications
# ============================================================================


@dataclass(frozen=True)
class MarkNotification(Command):
    notification_id: str
    user_id: str | None
    is_read: bool


@dataclass(frozen=True)
class MarkAllNotificationsRead(Command):
    user_id: str | None


@dataclass(frozen=True)
class DeleteNotification(Command):
    notification_id: str
    user_id: str | None


@dataclass(frozen=True)
class DeleteAllNotifications(Command):
    user_id: str | None
