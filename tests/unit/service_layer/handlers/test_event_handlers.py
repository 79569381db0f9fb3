"""Tests for the event and RSVP handlers."""

import dataclasses
import datetime

import pytest

from nexushub.domain.errors import (
    EventFullError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from nexushub.service_layer import commands
from nexushub.service_layer.coordinator import Outcome
from tests.unit.service_layer.handlers.base import HandlerTestBase

# pylint: disable=magic-value-comparison, attribute-defined-outside-init

START = datetime.datetime(2030, 3, 1, 18, 0)


class EventTestBase(HandlerTestBase):
    seed_uses = ("make_user", "make_event")

    def _seed_bus(self, request):
        make_user = self.fx.make_user
        self.organizer = make_user(name="Olga Organizer")
        self.guest = make_user(name="Gus Guest")
        self.late = make_user(name="Lena Late")
        self.insert(self.organizer, self.guest, self.late)
        self.event = self.fx.make_event(self.organizer.id, max_attendees=1)
        self.open_event = self.fx.make_event(self.organizer.id)
        self.insert(self.event, self.open_event)

    def _rsvp(self, user, event=None):
        return self.bus.handle(
            commands.RsvpEvent(event_id=(event or self.event).id, user_id=user.id)
        )


class TestCreateEvent(EventTestBase):
    def _create(self, **kwargs):
        values = {
            "organizer_id": self.organizer.id,
            "title": " Star party ",
            "start_time": START,
            "end_time": START + datetime.timedelta(hours=3),
            "tags": ("astronomy", "astronomy", "outdoors"),
        }
        values.update(kwargs)
        return self.bus.handle(commands.CreateEvent(**values))

    def test_create(self):
        result = self._create()

        self.assert_outcome(result, Outcome.APPLIED, "Event created successfully!")
        view = result.payload["event"]
        assert view.organizer == self.organizer
        stored = self.reload(view.event)
        assert stored.title == "Star party"
        assert stored.tags == ("astronomy", "outdoors")
        # naive times are taken as UTC
        assert stored.start_time == START.replace(tzinfo=datetime.timezone.utc)
        self.assert_committed()

    def test_mixed_naive_and_aware_times(self):
        result = self._create(
            end_time=(START + datetime.timedelta(hours=1)).replace(tzinfo=datetime.timezone.utc)
        )
        self.assert_outcome(result, Outcome.APPLIED)

    def test_end_must_follow_start(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self._create(end_time=START)
        assert "endTime" in excinfo.value.errors

    def test_max_attendees_must_be_positive(self):
        with pytest.raises(InvalidInputError, match="positive"):
            self._create(max_attendees=0)

    def test_unknown_organizer(self):
        with pytest.raises(NotFoundError, match="Organizer not found."):
            self._create(organizer_id="00000000000000000000000999")


class TestRsvp(EventTestBase):
    def test_rsvp(self):
        result = self._rsvp(self.guest)

        self.assert_outcome(result, Outcome.APPLIED, "Successfully RSVP'd to event!")
        assert result.payload["event"].event.attendee_count == 1
        assert self.reload(self.event).rsvp_ids == (self.guest.id,)
        self.assert_committed()

    def test_rsvp_twice_is_noop_even_when_full(self):
        self._rsvp(self.guest)
        result = self._rsvp(self.guest)
        self.assert_outcome(result, Outcome.NOOP, "User already RSVP'd to this event.")

    def test_full_event(self):
        self._rsvp(self.guest)
        self.reset_committed()

        with pytest.raises(EventFullError, match="Event is full. Cannot RSVP."):
            self._rsvp(self.late)

        assert self.reload(self.event).rsvp_ids == (self.guest.id,)
        self.assert_not_committed()

    def test_capacity_is_enforced_by_the_store(self, monkeypatch):
        # the handler reads a stale copy with room left; the update must not match
        self._rsvp(self.guest)
        events = self.bus.uow.events
        real_find_one = events.find_one
        stale = dataclasses.replace(self.reload(self.event), rsvp_ids=())
        calls = []

        def find_one(filter_):
            calls.append(filter_)
            return stale if len(calls) == 1 else real_find_one(filter_)

        monkeypatch.setattr(events, "find_one", find_one)

        with pytest.raises(EventFullError):
            self._rsvp(self.late)
        assert self.reload(self.event).rsvp_ids == (self.guest.id,)

    def test_unlimited_event(self):
        for user in (self.guest, self.late, self.organizer):
            self._rsvp(user, self.open_event)
        assert self.reload(self.open_event).attendee_count == 3

    def test_unknown_event(self):
        with pytest.raises(NotFoundError, match="Event not found."):
            self.bus.handle(
                commands.RsvpEvent(event_id="00000000000000000000000999", user_id=self.guest.id)
            )

    def test_missing_user_id(self):
        with pytest.raises(InvalidInputError):
            self.bus.handle(commands.RsvpEvent(event_id=self.event.id, user_id=""))


class TestCancelRsvp(EventTestBase):
    def _cancel(self, user):
        return self.bus.handle(commands.CancelRsvp(event_id=self.event.id, user_id=user.id))

    def test_cancel_frees_the_seat(self):
        self._rsvp(self.guest)

        result = self._cancel(self.guest)

        self.assert_outcome(result, Outcome.APPLIED, "RSVP cancelled.")
        assert self.reload(self.event).rsvp_ids == ()
        self.assert_outcome(self._rsvp(self.late), Outcome.APPLIED)

    def test_cancel_without_rsvp_is_noop(self):
        result = self._cancel(self.guest)
        self.assert_outcome(result, Outcome.NOOP, "User has not RSVP'd to this event.")


class TestUpdateEvent(EventTestBase):
    def _update(self, user=None, event=None, **changes):
        return self.bus.handle(
            commands.UpdateEvent(
                event_id=(event or self.open_event).id,
                actor_id=(user or self.organizer).id,
                changes=changes,
            )
        )

    def test_update_details(self):
        result = self._update(
            title=" Star party ",
            location="Hilltop",
            tags=["astronomy", "astronomy"],
            image_url="https://example.com/stars.png",
        )

        self.assert_outcome(result, Outcome.APPLIED, "Event updated successfully!")
        stored = self.reload(self.open_event)
        assert stored.title == "Star party"
        assert stored.location == "Hilltop"
        assert stored.tags == ("astronomy",)
        assert stored.image_url == "https://example.com/stars.png"
        assert result.payload["event"].event == stored
        self.assert_committed()

    def test_unchanged_values_are_noop(self):
        result = self._update(title=self.open_event.title)
        self.assert_outcome(result, Outcome.NOOP, "No update fields provided.")
        self.assert_not_committed()

    def test_end_must_follow_the_stored_start(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self._update(end_time=self.open_event.start_time)
        assert "endTime" in excinfo.value.errors

    def test_moving_both_times(self):
        start = self.open_event.end_time + datetime.timedelta(days=1)
        self._update(start_time=start, end_time=start + datetime.timedelta(hours=1))
        assert self.reload(self.open_event).start_time == start

    def test_capacity_can_be_removed(self):
        self._update(event=self.event, max_attendees=None)
        assert self.reload(self.event).max_attendees is None

    def test_capacity_cannot_drop_below_attendees(self):
        self._rsvp(self.guest, self.open_event)
        self._rsvp(self.late, self.open_event)

        with pytest.raises(InvalidInputError) as excinfo:
            self._update(max_attendees=1)
        assert "maxAttendees" in excinfo.value.errors
        assert self.reload(self.open_event).max_attendees is None

    def test_capacity_is_rechecked_by_the_store(self, monkeypatch):
        # the handler reads a copy without attendees; the update must not match
        self._rsvp(self.guest, self.open_event)
        self._rsvp(self.late, self.open_event)
        events = self.bus.uow.events
        real_find_one = events.find_one
        stale = dataclasses.replace(self.reload(self.open_event), rsvp_ids=())
        calls = []

        def find_one(filter_):
            calls.append(filter_)
            return stale if len(calls) == 1 else real_find_one(filter_)

        monkeypatch.setattr(events, "find_one", find_one)

        with pytest.raises(InvalidInputError, match="below the current number"):
            self._update(max_attendees=1)
        assert self.reload(self.open_event).max_attendees is None

    def test_only_organizer_can_update(self):
        with pytest.raises(ForbiddenError, match="Only the event organizer"):
            self._update(user=self.guest, title="Hijacked")
        assert self.reload(self.open_event).title == "Meetup"

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self._update(rsvp_ids=())
        assert "rsvp_ids" in excinfo.value.errors

    def test_capacity_must_be_positive(self):
        with pytest.raises(InvalidInputError, match="positive"):
            self._update(max_attendees=0)


class TestDeleteEvent(EventTestBase):
    def _delete(self, user):
        return self.bus.handle(
            commands.DeleteEvent(event_id=self.event.id, actor_id=user.id if user else None)
        )

    def test_delete(self):
        result = self._delete(self.organizer)

        self.assert_outcome(result, Outcome.APPLIED, "Event deleted successfully.")
        assert self.bus.uow.events.find_one({"id": self.event.id}) is None
        assert self.reload(self.open_event)
        self.assert_committed()

    def test_only_organizer_can_delete(self):
        with pytest.raises(ForbiddenError, match="Only the organizer can delete."):
            self._delete(self.guest)
        assert self.reload(self.event)

    def test_requires_acting_user(self):
        with pytest.raises(UnauthenticatedError):
            self._delete(None)

    def test_second_delete_is_not_found(self):
        self._delete(self.organizer)
        with pytest.raises(NotFoundError, match="Event not found."):
            self._delete(self.organizer)
