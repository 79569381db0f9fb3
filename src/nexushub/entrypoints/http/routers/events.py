"""Event routes."""

from typing import Annotated

from fastapi import APIRouter, Query

from nexushub.service_layer import commands, views

from ..dependencies import Bus, UoW
from ..responses import read_response, write_response
from ..schemas import CreateEventIn, UpdateEventIn, UserRefIn

router = APIRouter(prefix="/api/events", tags=["Events"])

UserIdQuery = Annotated[str | None, Query(alias="userId")]


@router.post("")
def create_event(body: CreateEventIn, bus: Bus):
    result = bus.handle(
        commands.CreateEvent(
            organizer_id=body.organizer_id,
            title=body.title,
            description=body.description,
            start_time=body.start_time,
            end_time=body.end_time,
            location=body.location,
            category=body.category,
            tags=tuple(body.tags),
            max_attendees=body.max_attendees,
            image_url=body.image_url,
        )
    )
    return write_response(result, created=True)


@router.get("")
def list_events(uow: UoW):
    return read_response(views.list_events(uow))


@router.get("/{event_id}")
def get_event(event_id: str, uow: UoW):
    return read_response(views.get_event(uow, event_id))


@router.put("/{event_id}")
def update_event(event_id: str, body: UpdateEventIn, bus: Bus):
    result = bus.handle(
        commands.UpdateEvent(event_id=event_id, actor_id=body.user_id, changes=body.changes())
    )
    return write_response(result)


@router.delete("/{event_id}")
def delete_event(event_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(bus.handle(commands.DeleteEvent(event_id=event_id, actor_id=user_id)))


@router.post("/{event_id}/rsvp")
def rsvp(event_id: str, body: UserRefIn, bus: Bus):
    return write_response(bus.handle(commands.RsvpEvent(event_id=event_id, user_id=body.user_id)))


@router.delete("/{event_id}/rsvp")
def cancel_rsvp(event_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(bus.handle(commands.CancelRsvp(event_id=event_id, user_id=user_id)))
