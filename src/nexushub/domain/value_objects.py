"""Module including value objects used across the domain layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Privacy(str, Enum):
    """Community visibility. Private communities require join approval."""

    PUBLIC = "public"
    PRIVATE = "private"


class PostStatus(str, Enum):
    """Publication state of a post."""

    PUBLISHED = "published"
    DRAFT = "draft"
    SCHEDULED = "scheduled"


class ItemType(str, Enum):
    """Kinds of items that can be reported."""

    POST = "post"
    COMMENT = "comment"
    USER = "user"


class ReasonCategory(str, Enum):
    """Why an item was reported."""

    SPAM = "spam"
    HARASSMENT = "harassment"
    HATE_SPEECH = "hate_speech"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    MISINFORMATION = "misinformation"
    INTELLECTUAL_PROPERTY = "intellectual_property"
    OTHER = "other"


class ReportStatus(str, Enum):
    """Moderation state of a report.

    ``PENDING`` is the only initial state; both reviewed states are terminal
    and there is no transition back to ``PENDING``.
    """

    PENDING = "pending"
    REVIEWED_ACTION_TAKEN = "reviewed_action_taken"
    REVIEWED_NO_ACTION = "reviewed_no_action"

    @property
    def is_terminal(self) -> bool:
        """True for the reviewed states."""
        return self is not ReportStatus.PENDING

    def can_transition_to(self, target: ReportStatus) -> bool:
        """Only ``pending`` → reviewed transitions are legal."""
        return self is ReportStatus.PENDING and target.is_terminal


class JoinRequestAction(str, Enum):
    """Decision on a pending community join request."""

    APPROVE = "approve"
    DENY = "deny"


class NotificationType(str, Enum):
    """Notification kinds emitted by the write paths."""

    COMMUNITY_JOIN_APPROVED = "community_join_approved"
    COMMUNITY_JOIN_DENIED = "community_join_denied"
    COMMUNITY_OWNERSHIP_TRANSFER = "community_ownership_transfer"
    NEW_COMMENT = "new_comment"
    REPORT_REVIEWED_ACTION_TAKEN = "reviewed_action_taken"
    REPORT_REVIEWED_NO_ACTION = "reviewed_no_action"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """Value object describing who caused a notification."""

    id: str
    name: str
    avatar_url: str | None = None


@dataclass(frozen=True)
class NotificationPreferences:
    """Which notifications a user wants to receive."""

    email_new_posts: bool = True
    event_reminders: bool = True
    mention_notifications: bool = False


@dataclass(frozen=True)
class PollOption:
    """One choice of a poll post."""

    id: str
    text: str


@dataclass(frozen=True)
class PollVote:
    """A user's single vote in a poll."""

    user_id: str
    option_id: str
