"""Handlers for a user's notification inbox. Users only touch their own."""

from collections.abc import Callable

from nexushub.domain.errors import NotFoundError
from nexushub.interfaces.collection import Set, Update, normalize_id
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer.coordinator import WorkResult

from .helpers import required_id, start_run


def _not_owned(notification_id: str) -> NotFoundError:
    return NotFoundError(
        "Notification", notification_id, "Notification not found or not owned by user."
    )


def mark_notification(
    cmd: commands.MarkNotification, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    notification_id = normalize_id(cmd.notification_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("mark_notification", uow, id_generator)

    with uow, run:
        result = run.primary(
            "set read flag",
            uow.notifications.update_one,
            {"id": notification_id, "user_id": user_id},
            Update(Set("is_read", bool(cmd.is_read))),
        )
        if result.matched_count == 0:
            raise _not_owned(notification_id)
        notification = uow.notifications.find_one({"id": notification_id})
        if result.modified_count == 0:
            run.noop("Notification already up to date.", notification=notification)
        state = "read" if cmd.is_read else "unread"
        run.finish(f"Notification marked as {state}.", notification=notification)
        uow.commit()

    return run.result


def mark_all_read(
    cmd: commands.MarkAllNotificationsRead,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> WorkResult:
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("mark_all_notifications_read", uow, id_generator)

    with uow, run:
        result = run.primary(
            "mark unread as read",
            uow.notifications.update_many,
            {"user_id": user_id, "is_read": False},
            Update(Set("is_read", True)),
        )
        if result.modified_count == 0:
            run.noop("No unread notifications.", updated=0)
        run.finish(
            f"{result.modified_count} notifications marked as read.",
            updated=result.modified_count,
        )
        uow.commit()

    return run.result


def delete_notification(
    cmd: commands.DeleteNotification, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    notification_id = normalize_id(cmd.notification_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("delete_notification", uow, id_generator)

    with uow, run:
        result = run.primary(
            "delete notification",
            uow.notifications.delete_one,
            {"id": notification_id, "user_id": user_id},
        )
        if result.deleted_count == 0:
            raise _not_owned(notification_id)
        run.finish("Notification deleted.")
        uow.commit()

    return run.result


def delete_all_notifications(
    cmd: commands.DeleteAllNotifications,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> WorkResult:
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("delete_all_notifications", uow, id_generator)

    with uow, run:
        result = run.primary(
            "delete notifications", uow.notifications.delete_many, {"user_id": user_id}
        )
        if result.deleted_count == 0:
            run.noop("No notifications to delete.", deleted=0)
        run.finish(
            f"{result.deleted_count} notifications deleted.", deleted=result.deleted_count
        )
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.MarkNotification: mark_notification,
    commands.MarkAllNotificationsRead: mark_all_read,
    commands.DeleteNotification: delete_notification,
    commands.DeleteAllNotifications: delete_all_notifications,
}
