"""HTTP request and response schemas.

Every schema speaks camelCase on the wire and snake_case in Python. Request
schemas reject unknown fields. Response models are built from domain
documents and views with the ``from_*`` helpers or `present`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from nexushub.domain.documents import (
    Comment,
    Community,
    Notification,
    Report,
    User,
)
from nexushub.domain.errors import InvalidInputError
from nexushub.domain.value_objects import (
    Actor,
    ItemType,
    JoinRequestAction,
    NotificationType,
    PostStatus,
    Privacy,
    ReasonCategory,
    ReportStatus,
)
from nexushub.service_layer.coordinator import Outcome, WorkResult
from nexushub.service_layer.views import (
    CommunityView,
    EventView,
    PostView,
    SearchResults,
    UserCommentView,
)

MAX_CONTENT_LENGTH = 5000
MAX_COMMENT_LENGTH = 2000
MAX_TEXT_LENGTH = 1000


class BaseSchema(BaseModel):
    """Base class for all HTTP-facing schemas."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        use_enum_values=False,
    )

    def dump(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def _split_tags(value: Any) -> Any:
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


# ============================================================================
#                               Request bodies
# ============================================================================


class RegisterUserIn(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=254)
    avatar_url: str | None = None
    bio: str | None = Field(default=None, max_length=MAX_TEXT_LENGTH)


class CreateCommunityIn(BaseSchema):
    creator_id: str | None = None
    name: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=MAX_TEXT_LENGTH)
    privacy: Privacy = Privacy.PUBLIC
    cover_image_url: str | None = None


class UserRefIn(BaseSchema):
    """Body carrying just the acting user."""

    user_id: str | None = None


class ManageJoinRequestIn(BaseSchema):
    user_id_to_manage: str | None = None
    action: JoinRequestAction
    current_user_id: str | None = None


class TransferOwnershipIn(BaseSchema):
    current_user_id: str | None = None
    new_owner_id: str | None = None


class CreateEventIn(BaseSchema):
    organizer_id: str | None = None
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=2000)
    start_time: datetime
    end_time: datetime
    location: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    max_attendees: int | None = None
    image_url: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return _split_tags(value)


class CreatePostIn(BaseSchema):
    user_id: str | None = None
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)
    title: str | None = Field(default=None, max_length=150)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_draft: bool = False
    scheduled_at: datetime | None = None
    poll_options: list[str] = Field(default_factory=list, max_length=10)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return _split_tags(value)


class AddCommentIn(BaseSchema):
    user_id: str | None = None
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_id: str | None = None


class SubmitReportIn(BaseSchema):
    item_id: str
    item_type: ItemType
    reporter_user_id: str | None = None
    reason_category: ReasonCategory
    reason_text: str | None = Field(default=None, max_length=MAX_TEXT_LENGTH)


class ReviewReportIn(BaseSchema):
    new_status: ReportStatus
    reviewer_id: str | None = None
    review_notes: str | None = Field(default=None, max_length=MAX_TEXT_LENGTH)


class NotificationsActionIn(BaseSchema):
    user_id: str | None = None
    action: Literal["markAllRead"]


class MarkNotificationIn(BaseSchema):
    user_id: str | None = None
    is_read: bool


class VoteIn(BaseSchema):
    user_id: str | None = None
    option_id: str | None = None


class UpdatePostIn(BaseSchema):
    user_id: str | None = None
    status: Literal["published"] | None = None


# ============================================================================
#                            Partial update bodies
# ============================================================================


class UpdateSchema(BaseSchema):
    """A partial update: only the fields present in the body are changed.

    Fields outside `nullable` accept ``null`` only by being left out.
    """

    nullable: ClassVar[frozenset[str]] = frozenset()

    user_id: str | None = None

    def changes(self) -> dict[str, Any]:
        """The fields sent, snake_case, without the acting user.

        Raises:
            InvalidInputError: If a non-nullable field was sent as ``null``.
        """
        values = self.model_dump(exclude_unset=True, exclude={"user_id"})
        nulls = sorted(k for k, v in values.items() if v is None and k not in self.nullable)
        if nulls:
            raise InvalidInputError(
                "Invalid update data.", {to_camel(k): ["Cannot be null."] for k in nulls}
            )
        return values


class NotificationPreferencesIn(BaseSchema):
    email_new_posts: bool | None = None
    event_reminders: bool | None = None
    mention_notifications: bool | None = None


class UpdateProfileIn(UpdateSchema):
    nullable: ClassVar[frozenset[str]] = frozenset({"bio", "avatar_url"})

    name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=300)
    avatar_url: str | None = None
    notification_preferences: NotificationPreferencesIn | None = None
    privacy: Privacy | None = None

    def changes(self) -> dict[str, Any]:
        values = super().changes()
        if "notification_preferences" in values:
            values["notification_preferences"] = {
                k: v for k, v in values["notification_preferences"].items() if v is not None
            }
        return values


class UpdateCommunityIn(UpdateSchema):
    nullable: ClassVar[frozenset[str]] = frozenset({"cover_image_url"})

    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=MAX_TEXT_LENGTH)
    privacy: Privacy | None = None
    cover_image_url: str | None = None


class UpdateEventIn(UpdateSchema):
    nullable: ClassVar[frozenset[str]] = frozenset(
        {"location", "category", "max_attendees", "image_url"}
    )

    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    max_attendees: int | None = None
    image_url: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return _split_tags(value)


# ============================================================================
#                              Response models
# ============================================================================


class ActorOut(BaseSchema):
    id: str
    name: str
    avatar_url: str | None = None

    @classmethod
    def from_actor(cls, actor: Actor | None) -> ActorOut | None:
        if actor is None:
            return None
        return cls(id=actor.id, name=actor.name, avatar_url=actor.avatar_url)

    @classmethod
    def from_user(cls, user: User | None) -> ActorOut | None:
        return cls.from_actor(user.actor) if user else None


class NotificationPreferencesOut(BaseSchema):
    email_new_posts: bool
    event_reminders: bool
    mention_notifications: bool


class UserOut(BaseSchema):
    id: str
    name: str
    email: str
    avatar_url: str | None
    bio: str | None
    reputation: int
    community_ids: list[str]
    bookmarked_post_ids: list[str]
    privacy: Privacy
    notification_preferences: NotificationPreferencesOut
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserOut:
        return cls.model_validate(user, from_attributes=True)


class CommunityOut(BaseSchema):
    id: str
    name: str
    description: str
    privacy: Privacy
    creator_id: str
    member_ids: list[str]
    pending_member_ids: list[str]
    admin_ids: list[str]
    member_count: int
    cover_image_url: str | None
    created_at: datetime
    updated_at: datetime
    creator: ActorOut | None = None

    @classmethod
    def from_community(
        cls, community: Community, creator: User | None = None
    ) -> CommunityOut:
        out = cls.model_validate(community, from_attributes=True)
        return out.model_copy(update={"creator": ActorOut.from_user(creator)})

    @classmethod
    def from_view(cls, view: CommunityView) -> CommunityOut:
        return cls.from_community(view.community, view.creator)


class PollOptionOut(BaseSchema):
    id: str
    text: str
    votes: int


class PostOut(BaseSchema):
    id: str
    author_id: str
    author: ActorOut | None
    title: str | None
    content: str
    category: str | None
    tags: list[str]
    status: PostStatus
    scheduled_at: datetime | None
    like_count: int
    comment_count: int
    is_liked_by_current_user: bool
    is_bookmarked_by_current_user: bool
    poll_options: list[PollOptionOut]
    total_votes: int
    user_voted_option_id: str | None
    created_at: datetime

    @classmethod
    def from_view(cls, view: PostView) -> PostOut:
        post = view.post
        return cls(
            id=post.id,
            author_id=post.author_id,
            author=ActorOut.from_user(view.author),
            title=post.title,
            content=post.content,
            category=post.category,
            tags=list(post.tags),
            status=post.status,
            scheduled_at=post.scheduled_at,
            like_count=post.like_count,
            comment_count=post.comment_count,
            is_liked_by_current_user=view.is_liked_by_current_user,
            is_bookmarked_by_current_user=view.is_bookmarked_by_current_user,
            poll_options=[
                PollOptionOut(id=o.id, text=o.text, votes=post.votes_for(o.id))
                for o in post.poll_options
            ],
            total_votes=post.total_votes,
            user_voted_option_id=view.user_voted_option_id,
            created_at=post.created_at,
        )


class CommentOut(BaseSchema):
    id: str
    post_id: str
    author_id: str
    content: str
    parent_id: str | None
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> CommentOut:
        return cls.model_validate(comment, from_attributes=True)


class UserCommentOut(CommentOut):
    """A comment in a user's activity feed."""

    author: ActorOut | None
    post_title: str

    @classmethod
    def from_view(cls, view: UserCommentView) -> UserCommentOut:
        comment = CommentOut.from_comment(view.comment)
        return cls(
            **comment.model_dump(),
            author=ActorOut.from_user(view.author),
            post_title=view.post_title,
        )


class EventOut(BaseSchema):
    id: str
    organizer_id: str
    organizer: ActorOut | None = None
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    location: str | None
    category: str | None
    tags: list[str]
    max_attendees: int | None
    image_url: str | None
    rsvp_ids: list[str]
    attendee_count: int
    is_full: bool
    created_at: datetime

    @classmethod
    def from_view(cls, view: EventView) -> EventOut:
        out = cls.model_validate(view.event, from_attributes=True)
        return out.model_copy(update={"organizer": ActorOut.from_user(view.organizer)})


class ReportOut(BaseSchema):
    id: str
    reported_item_id: str
    item_type: ItemType
    reporter_user_id: str
    reason_category: ReasonCategory
    reason_text: str | None
    status: ReportStatus
    reviewer_id: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    created_at: datetime

    @classmethod
    def from_report(cls, report: Report) -> ReportOut:
        return cls.model_validate(report, from_attributes=True)


class NotificationOut(BaseSchema):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    link: str | None
    related_entity_id: str | None
    actor: ActorOut | None
    is_read: bool
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> NotificationOut:
        out = cls.model_validate(notification, from_attributes=True)
        return out.model_copy(update={"actor": ActorOut.from_actor(notification.actor)})


class SearchResultsOut(BaseSchema):
    posts: list[PostOut]
    events: list[EventOut]

    @classmethod
    def from_results(cls, results: SearchResults) -> SearchResultsOut:
        return cls(
            posts=[PostOut.from_view(v) for v in results.posts],
            events=[EventOut.from_view(v) for v in results.events],
        )


class WriteResponse(BaseSchema):
    """Common part of every write-path response body."""

    message: str
    outcome: Outcome
    warnings: list[str] = Field(default_factory=list)


# ============================================================================
#                                 Presenters
# ============================================================================


def present(value: Any) -> Any:
    """Convert a domain document, view or list of them to JSON-ready data."""
    if isinstance(value, (list, tuple)):
        return [present(item) for item in value]
    converters = (
        (PostView, PostOut.from_view),
        (UserCommentView, UserCommentOut.from_view),
        (SearchResults, SearchResultsOut.from_results),
        (EventView, EventOut.from_view),
        (CommunityView, CommunityOut.from_view),
        (Community, CommunityOut.from_community),
        (User, UserOut.from_user),
        (Comment, CommentOut.from_comment),
        (Report, ReportOut.from_report),
        (Notification, NotificationOut.from_notification),
    )
    for kind, convert in converters:
        if isinstance(value, kind):
            return convert(value).dump()
    return value


def present_result(result: WorkResult) -> dict[str, Any]:
    """Body for a write path: message, outcome, warnings and the payload."""
    body = WriteResponse(
        message=result.message,
        outcome=result.outcome,
        warnings=list(result.warnings),
    ).dump()
    for key, value in result.payload.items():
        body[to_camel(key)] = present(value)
    return body
