"""Trailing notification writes for multi-document units of work.

Notifications are a side effect: they never block or roll back the unit of
work that produced them. Insert failures are logged at WARNING and
swallowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from nexushub.domain.documents import Notification
from nexushub.domain.value_objects import Actor, NotificationType

if TYPE_CHECKING:
    from nexushub.interfaces.id_generator import IdGenerator
    from nexushub.interfaces.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class EmitStatus(str, Enum):
    SENT = "sent"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationDraft:
    """Everything needed to insert a notification, minus its id."""

    user_id: str
    type: NotificationType
    title: str
    message: str
    link: str | None = None
    related_entity_id: str | None = None
    actor: Actor | None = None

    @property
    def dedupe_key(self) -> tuple[str, NotificationType, str | None]:
        return (self.user_id, self.type, self.related_entity_id)


class NotificationEmitter:
    """Inserts notifications for one coordinator run.

    Drafts repeating a ``(user_id, type, related_entity_id)`` triple already
    emitted by this emitter are dropped.
    """

    def __init__(self, uow: AbstractUnitOfWork, id_generator: IdGenerator):
        self.uow = uow
        self.id_generator = id_generator
        self._seen: set[tuple[str, NotificationType, str | None]] = set()

    def emit(self, draft: NotificationDraft) -> EmitStatus:
        if draft.dedupe_key in self._seen:
            logger.debug("Dropping duplicate notification %s", draft.dedupe_key)
            return EmitStatus.DUPLICATE
        self._seen.add(draft.dedupe_key)
        try:
            notification = Notification(
                id=self.id_generator.new_id(),
                user_id=draft.user_id,
                type=draft.type,
                title=draft.title,
                message=draft.message,
                link=draft.link,
                related_entity_id=draft.related_entity_id,
                actor=draft.actor,
            )
            self.uow.notifications.insert_one(notification)
        except Exception:  # pylint: disable=broad-except
            logger.warning(
                "Failed to emit %s notification to user %s",
                draft.type.value,
                draft.user_id,
                exc_info=True,
            )
            return EmitStatus.FAILED
        logger.debug("Emitted %s notification to user %s", draft.type.value, draft.user_id)
        return EmitStatus.SENT


# ============================================================================
#                           Notification builders
# ============================================================================


def join_approved(community_id: str, community_name: str, user_id: str, actor: Actor):
    return NotificationDraft(
        user_id=user_id,
        type=NotificationType.COMMUNITY_JOIN_APPROVED,
        title=f"Welcome to {community_name}!",
        message=(
            f'Your request to join the community "{community_name}" has been approved.'
        ),
        link=f"/communities/{community_id}",
        related_entity_id=community_id,
        actor=actor,
    )


def join_denied(community_id: str, community_name: str, user_id: str, actor: Actor):
    return NotificationDraft(
        user_id=user_id,
        type=NotificationType.COMMUNITY_JOIN_DENIED,
        title=f"Request to join {community_name}",
        message=(
            f'Your request to join the community "{community_name}" '
            "was not approved at this time."
        ),
        link=f"/communities/{community_id}",
        related_entity_id=community_id,
        actor=actor,
    )


def ownership_received(community_id: str, community_name: str, user_id: str, actor: Actor):
    return NotificationDraft(
        user_id=user_id,
        type=NotificationType.COMMUNITY_OWNERSHIP_TRANSFER,
        title=f"You are now the owner of {community_name}",
        message=(
            f"{actor.name} has transferred ownership of the community "
            f'"{community_name}" to you.'
        ),
        link=f"/communities/{community_id}",
        related_entity_id=community_id,
        actor=actor,
    )


def ownership_given(
    community_id: str, community_name: str, user_id: str, new_owner: Actor
):
    return NotificationDraft(
        user_id=user_id,
        type=NotificationType.COMMUNITY_OWNERSHIP_TRANSFER,
        title=f"Ownership of {community_name} transferred",
        message=(
            f'You have successfully transferred ownership of "{community_name}" '
            f"to {new_owner.name}."
        ),
        link=f"/communities/{community_id}",
        related_entity_id=community_id,
        actor=new_owner,
    )


def new_comment(post_id: str, post_title: str | None, user_id: str, actor: Actor):
    subject = f'"{post_title}"' if post_title else "your post"
    return NotificationDraft(
        user_id=user_id,
        type=NotificationType.NEW_COMMENT,
        title="New comment on your post",
        message=f"{actor.name} commented on {subject}.",
        link=f"/posts/{post_id}",
        related_entity_id=post_id,
        actor=actor,
    )


def report_reviewed(
    report_id: str,
    user_id: str,
    item_preview: str,
    item_link: str | None,
    action_taken: bool,
    actor: Actor,
):
    if action_taken:
        notification_type = NotificationType.REPORT_REVIEWED_ACTION_TAKEN
        title = "Report Resolved: Action Taken"
        outcome = "Appropriate action has been taken by our team."
    else:
        notification_type = NotificationType.REPORT_REVIEWED_NO_ACTION
        title = "Report Resolved: No Action Needed"
        outcome = (
            "After review, no violations of our guidelines were found at this time."
        )
    return NotificationDraft(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=f"Your report regarding {item_preview} has been reviewed. {outcome}",
        link=item_link,
        related_entity_id=report_id,
        actor=actor,
    )
