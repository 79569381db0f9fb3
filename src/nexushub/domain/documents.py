"""Document types stored in the NexusHub collections.

Each document is an immutable dataclass. Array fields are tuples with set
semantics (no duplicates); the stores maintain them through add-to-set and
pull updates. Optional fields carry explicit defaults so that documents
written by older versions decode with a complete shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar

from nexushub.domain.utils import dataclass_to_dict, dict_to_dataclass
from nexushub.domain.value_objects import (
    Actor,
    ItemType,
    NotificationPreferences,
    NotificationType,
    PollOption,
    PollVote,
    PostStatus,
    Privacy,
    ReasonCategory,
    ReportStatus,
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Document:
    """Base for every stored document."""

    collection: ClassVar[str]

    id: str

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation, as persisted."""
        return dataclass_to_dict(self)

    @classmethod
    def from_dict(cls, values: dict[str, Any]):
        """Build a document, applying defaults for absent optional fields."""
        return dict_to_dataclass(cls, values)


@dataclass(frozen=True)
class User(Document):
    collection: ClassVar[str] = "users"

    name: str
    email: str
    avatar_url: str | None = None
    bio: str | None = None
    reputation: int = 0
    community_ids: tuple[str, ...] = ()
    bookmarked_post_ids: tuple[str, ...] = ()
    privacy: Privacy = Privacy.PUBLIC
    notification_preferences: NotificationPreferences = field(
        default_factory=NotificationPreferences
    )
    created_at: datetime = field(default_factory=utcnow)

    @property
    def actor(self) -> Actor:
        """This user as the actor of a notification."""
        return Actor(id=self.id, name=self.name, avatar_url=self.avatar_url)


@dataclass(frozen=True)
class Community(Document):
    """A community.

    The creator is always both a member and an admin. A pending user is never
    simultaneously a member, and leaving removes the user from ``admin_ids``
    as well.
    """

    collection: ClassVar[str] = "communities"

    name: str
    creator_id: str
    description: str = ""
    privacy: Privacy = Privacy.PUBLIC
    member_ids: tuple[str, ...] = ()
    pending_member_ids: tuple[str, ...] = ()
    admin_ids: tuple[str, ...] = ()
    cover_image_url: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def member_count(self) -> int:
        return len(self.member_ids)

    def can_manage(self, user_id: str) -> bool:
        """Whether `user_id` may act on join requests."""
        return user_id == self.creator_id or user_id in self.admin_ids


@dataclass(frozen=True)
class Post(Document):
    """A post. Counters are derived from the id arrays, never stored.

    A post with ``poll_options`` is a poll. Each user votes at most once:
    ``poll_voter_ids`` holds exactly the users of ``poll_votes``, and both
    are written by the same atomic update.
    """

    collection: ClassVar[str] = "posts"

    author_id: str
    content: str
    title: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    status: PostStatus = PostStatus.PUBLISHED
    scheduled_at: datetime | None = None
    liked_by: tuple[str, ...] = ()
    comment_ids: tuple[str, ...] = ()
    poll_options: tuple[PollOption, ...] = ()
    poll_votes: tuple[PollVote, ...] = ()
    poll_voter_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)

    @property
    def like_count(self) -> int:
        return len(self.liked_by)

    @property
    def comment_count(self) -> int:
        return len(self.comment_ids)

    @property
    def is_poll(self) -> bool:
        return bool(self.poll_options)

    @property
    def total_votes(self) -> int:
        return len(self.poll_votes)

    def poll_option(self, option_id: str) -> PollOption | None:
        return next((o for o in self.poll_options if o.id == option_id), None)

    def votes_for(self, option_id: str) -> int:
        return sum(1 for vote in self.poll_votes if vote.option_id == option_id)

    def voted_option_id(self, user_id: str | None) -> str | None:
        """The option `user_id` voted for, if any."""
        return next(
            (vote.option_id for vote in self.poll_votes if vote.user_id == user_id), None
        )


@dataclass(frozen=True)
class Comment(Document):
    collection: ClassVar[str] = "comments"

    post_id: str
    author_id: str
    content: str
    parent_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Event(Document):
    """An event. ``rsvp_ids`` never grows past ``max_attendees``."""

    collection: ClassVar[str] = "events"

    organizer_id: str
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    location: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    max_attendees: int | None = None
    image_url: str | None = None
    rsvp_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)

    @property
    def attendee_count(self) -> int:
        return len(self.rsvp_ids)

    @property
    def is_full(self) -> bool:
        return (
            self.max_attendees is not None
            and len(self.rsvp_ids) >= self.max_attendees
        )


@dataclass(frozen=True)
class Report(Document):
    collection: ClassVar[str] = "reports"

    reported_item_id: str
    item_type: ItemType
    reporter_user_id: str
    reason_category: ReasonCategory
    reason_text: str | None = None
    status: ReportStatus = ReportStatus.PENDING
    reviewer_id: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Notification(Document):
    """A notification. Only ``is_read`` changes after insertion."""

    collection: ClassVar[str] = "notifications"

    user_id: str
    type: NotificationType
    title: str
    message: str
    link: str | None = None
    related_entity_id: str | None = None
    actor: Actor | None = None
    is_read: bool = False
    created_at: datetime = field(default_factory=utcnow)


DOCUMENT_TYPES: tuple[type[Document], ...] = (
    User,
    Community,
    Post,
    Comment,
    Event,
    Report,
    Notification,
)
