"""Notification inbox routes. The owner is identified by ``userId``."""

from typing import Annotated

from fastapi import APIRouter, Query

from nexushub.service_layer import commands, views

from ..dependencies import Bus, UoW
from ..responses import read_response, write_response
from ..schemas import MarkNotificationIn, NotificationsActionIn

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

UserIdQuery = Annotated[str | None, Query(alias="userId")]


@router.get("")
def list_notifications(uow: UoW, user_id: UserIdQuery = None):
    return read_response(views.notifications_for(uow, user_id))


@router.post("")
def mark_all_read(body: NotificationsActionIn, bus: Bus):
    return write_response(bus.handle(commands.MarkAllNotificationsRead(user_id=body.user_id)))


@router.delete("")
def delete_all(bus: Bus, user_id: UserIdQuery = None):
    return write_response(bus.handle(commands.DeleteAllNotifications(user_id=user_id)))


@router.patch("/{notification_id}")
def mark_notification(notification_id: str, body: MarkNotificationIn, bus: Bus):
    result = bus.handle(
        commands.MarkNotification(
            notification_id=notification_id, user_id=body.user_id, is_read=body.is_read
        )
    )
    return write_response(result)


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(
        bus.handle(commands.DeleteNotification(notification_id=notification_id, user_id=user_id))
    )
