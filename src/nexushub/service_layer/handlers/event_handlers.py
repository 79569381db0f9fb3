"""Handlers for events and RSVPs."""

from collections.abc import Callable, Mapping
from typing import Any

from nexushub.domain.documents import Event
from nexushub.domain.errors import (
    EventFullError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from nexushub.domain.utils import parse_datetime
from nexushub.interfaces.collection import (
    AddToSet,
    Pull,
    Set,
    SizeBelow,
    Update,
    normalize_id,
)
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer.coordinator import WorkResult
from nexushub.service_layer.views import build_event_view

from .helpers import acting_user_id, required_id, start_run

EVENT_FIELDS = frozenset(
    {
        "title",
        "description",
        "start_time",
        "end_time",
        "location",
        "category",
        "tags",
        "max_attendees",
        "image_url",
    }
)


def _end_before_start() -> InvalidInputError:
    return InvalidInputError(
        "End date and time must be after start date and time.",
        {"endTime": ["Must be after the start time."]},
    )


def _not_positive() -> InvalidInputError:
    return InvalidInputError(
        "Maximum attendees must be a positive number.",
        {"maxAttendees": ["Must be positive."]},
    )


def create_event(
    cmd: commands.CreateEvent, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    organizer_id = required_id(cmd.organizer_id, "organizerId", "Organizer ID")
    start_time, end_time = parse_datetime(cmd.start_time), parse_datetime(cmd.end_time)
    if end_time <= start_time:
        raise _end_before_start()
    if cmd.max_attendees is not None and cmd.max_attendees < 1:
        raise _not_positive()
    run = start_run("create_event", uow, id_generator)

    with uow, run:
        run.require(
            "organizer exists",
            uow.users.find_one({"id": organizer_id}),
            NotFoundError("User", organizer_id, "Organizer not found."),
        )
        event = Event(
            id=id_generator.new_id(),
            organizer_id=organizer_id,
            title=cmd.title.strip(),
            description=cmd.description.strip(),
            start_time=start_time,
            end_time=end_time,
            location=cmd.location,
            category=cmd.category,
            tags=tuple(dict.fromkeys(cmd.tags)),
            max_attendees=cmd.max_attendees,
            image_url=cmd.image_url or None,
        )
        run.primary("insert event", uow.events.insert_one, event)
        run.finish("Event created successfully!", event=build_event_view(uow, event))
        uow.commit()

    return run.result


def rsvp_event(
    cmd: commands.RsvpEvent, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Add the user to the attendee list, never past ``max_attendees``."""

    event_id = normalize_id(cmd.event_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("rsvp_event", uow, id_generator)

    with uow, run:
        run.require(
            "user exists", uow.users.find_one({"id": user_id}), NotFoundError("User", user_id)
        )
        event = run.require(
            "event exists",
            uow.events.find_one({"id": event_id}),
            NotFoundError("Event", event_id),
        )
        run.noop_if(
            "not already attending",
            user_id in event.rsvp_ids,
            "User already RSVP'd to this event.",
            event=build_event_view(uow, event),
        )
        full = EventFullError(event_id, event.max_attendees or 0)
        run.check("event has room", not event.is_full, full)

        # capacity is re-checked by the store in the same atomic update
        filter_ = {"id": event_id}
        if event.max_attendees is not None:
            filter_["rsvp_ids"] = SizeBelow(event.max_attendees)
        result = run.primary(
            "add attendee",
            uow.events.update_one,
            filter_,
            Update(AddToSet("rsvp_ids", user_id)),
        )

        updated = uow.events.find_one({"id": event_id})
        if updated is None:
            raise NotFoundError("Event", event_id)
        if result.matched_count == 0 and user_id not in updated.rsvp_ids:
            raise full
        if result.modified_count == 0:
            run.noop("User already RSVP'd to this event.", event=build_event_view(uow, updated))
        run.finish("Successfully RSVP'd to event!", event=build_event_view(uow, updated))
        uow.commit()

    return run.result


def cancel_rsvp(
    cmd: commands.CancelRsvp, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    event_id = normalize_id(cmd.event_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("cancel_rsvp", uow, id_generator)

    with uow, run:
        run.require(
            "event exists",
            uow.events.find_one({"id": event_id}),
            NotFoundError("Event", event_id),
        )
        result = run.primary(
            "remove attendee",
            uow.events.update_one,
            {"id": event_id},
            Update(Pull("rsvp_ids", user_id)),
        )
        updated = uow.events.find_one({"id": event_id})
        payload = {"event": build_event_view(uow, updated)} if updated else {}
        if result.modified_count == 0:
            run.noop("User has not RSVP'd to this event.", **payload)
        run.finish("RSVP cancelled.", **payload)
        uow.commit()

    return run.result


def _event_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - EVENT_FIELDS)
    if unknown:
        raise InvalidInputError(
            "Invalid event data.", {name: ["Cannot be updated."] for name in unknown}
        )
    values = dict(changes)
    for name in ("start_time", "end_time"):
        if name in values:
            values[name] = parse_datetime(values[name])
    for name in ("title", "description"):
        if name in values:
            values[name] = values[name].strip()
    if "tags" in values:
        values["tags"] = tuple(dict.fromkeys(values["tags"]))
    if "image_url" in values:
        values["image_url"] = values["image_url"] or None
    if values.get("max_attendees") is not None and values["max_attendees"] < 1:
        raise _not_positive()
    return values


def update_event(
    cmd: commands.UpdateEvent, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Change an event's details (organizer only).

    ``max_attendees`` cannot drop below the current attendee count; the
    store re-checks the count in the same atomic update.
    """

    actor_id = required_id(cmd.actor_id, "userId")
    event_id = normalize_id(cmd.event_id)
    changes = _event_changes(cmd.changes)
    run = start_run("update_event", uow, id_generator)

    with uow, run:
        event = run.require(
            "event exists",
            uow.events.find_one({"id": event_id}),
            NotFoundError("Event", event_id),
        )
        run.check(
            "actor is organizer",
            event.organizer_id == actor_id,
            ForbiddenError("Unauthorized: Only the event organizer can update this event."),
        )
        changed = {k: v for k, v in changes.items() if getattr(event, k) != v}
        run.noop_if(
            "something to change",
            not changed,
            "No update fields provided.",
            event=build_event_view(uow, event),
        )
        run.check(
            "end after start",
            changed.get("end_time", event.end_time) > changed.get("start_time", event.start_time),
            _end_before_start(),
        )
        filter_: dict[str, Any] = {"id": event_id}
        too_small = InvalidInputError(
            "Maximum attendees cannot be below the current number of attendees.",
            {"maxAttendees": ["Below the current number of attendees."]},
        )
        if changed.get("max_attendees") is not None:
            capacity = changed["max_attendees"]
            run.check("capacity covers attendees", event.attendee_count <= capacity, too_small)
            filter_["rsvp_ids"] = SizeBelow(capacity + 1)
        result = run.primary(
            "update event",
            uow.events.update_one,
            filter_,
            Update(*(Set(name, value) for name, value in changed.items())),
        )
        updated = uow.events.find_one({"id": event_id})
        if updated is None:
            raise NotFoundError("Event", event_id)
        if result.matched_count == 0:
            raise too_small
        run.finish("Event updated successfully!", event=build_event_view(uow, updated))
        uow.commit()

    return run.result


def delete_event(
    cmd: commands.DeleteEvent, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    actor_id = acting_user_id(cmd.actor_id)
    event_id = normalize_id(cmd.event_id)
    run = start_run("delete_event", uow, id_generator)

    with uow, run:
        event = run.require(
            "event exists",
            uow.events.find_one({"id": event_id}),
            NotFoundError("Event", event_id),
        )
        run.check(
            "actor is organizer",
            event.organizer_id == actor_id,
            ForbiddenError("Unauthorized to delete this event. Only the organizer can delete."),
        )
        result = run.primary(
            "delete event",
            uow.events.delete_one,
            {"id": event_id, "organizer_id": actor_id},
        )
        if result.deleted_count == 0:
            raise NotFoundError("Event", event_id)
        run.finish("Event deleted successfully.")
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.CreateEvent: create_event,
    commands.RsvpEvent: rsvp_event,
    commands.CancelRsvp: cancel_rsvp,
    commands.UpdateEvent: update_event,
    commands.DeleteEvent: delete_event,
}
