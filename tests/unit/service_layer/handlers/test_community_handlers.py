"""Tests for the community handlers via the message bus."""

import pytest

from nexushub.domain.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from nexushub.domain.value_objects import JoinRequestAction, NotificationType, Privacy
from nexushub.interfaces.collection import InvalidIdentifierError
from nexushub.service_layer import commands
from nexushub.service_layer.coordinator import Outcome
from tests.unit.service_layer.handlers.base import HandlerTestBase

# pylint: disable=magic-value-comparison, attribute-defined-outside-init


class CommunityTestBase(HandlerTestBase):
    """Seeds an owner, an admin, a member, an outsider and two communities."""

    seed_uses = ("make_user", "make_community")

    def _seed_bus(self, request):
        make_user = self.fx.make_user
        self.owner = make_user(name="Olive Owner")
        self.admin = make_user(name="Adam Admin")
        self.member = make_user(name="Mia Member")
        self.outsider = make_user(name="Otto Outsider")
        self.insert(self.owner, self.admin, self.member, self.outsider)

        self.public = self.fx.make_community(
            self.owner.id,
            name="Hikers",
            member_ids=(self.owner.id, self.admin.id, self.member.id),
            admin_ids=(self.owner.id, self.admin.id),
        )
        self.private = self.fx.make_community(
            self.owner.id,
            name="Secret Garden",
            privacy=Privacy.PRIVATE,
            member_ids=(self.owner.id, self.admin.id),
            admin_ids=(self.owner.id, self.admin.id),
            pending_member_ids=(self.member.id,),
        )
        self.insert(self.public, self.private)

    def notifications_of(self, user_id):
        return self.bus.uow.notifications.find({"user_id": user_id})


class TestCreateCommunity(CommunityTestBase):
    def test_creator_is_member_and_admin(self):
        result = self.bus.handle(
            commands.CreateCommunity(
                creator_id=self.outsider.id,
                name="  Birders ",
                description="People who watch birds.",
            )
        )

        self.assert_outcome(result, Outcome.APPLIED, "Community created successfully!")
        community = result.payload["community"]
        stored = self.reload(community)
        assert stored.name == "Birders"
        assert stored.member_ids == (self.outsider.id,)
        assert stored.admin_ids == (self.outsider.id,)
        assert stored.cover_image_url.endswith("text=Birders")
        assert community.id in self.reload(self.outsider).community_ids
        self.assert_committed()

    def test_keeps_given_cover_image(self):
        result = self.bus.handle(
            commands.CreateCommunity(
                creator_id=self.outsider.id,
                name="Birders",
                description="People who watch birds.",
                cover_image_url="https://example.com/birds.png",
            )
        )
        assert result.payload["community"].cover_image_url == "https://example.com/birds.png"

    def test_missing_creator_id_is_invalid_input(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self.bus.handle(
                commands.CreateCommunity(creator_id=None, name="Birders", description="x" * 10)
            )
        assert "creatorId" in excinfo.value.errors
        self.assert_not_committed()

    def test_malformed_creator_id(self):
        with pytest.raises(InvalidIdentifierError):
            self.bus.handle(
                commands.CreateCommunity(creator_id="nope", name="Birders", description="x" * 10)
            )

    def test_unknown_creator(self):
        with pytest.raises(NotFoundError, match="Creator not found."):
            self.bus.handle(
                commands.CreateCommunity(
                    creator_id="00000000000000000000000999", name="Birders", description="x" * 10
                )
            )
        assert self.bus.uow.communities.count() == 2

    def test_failed_link_is_partial(self, monkeypatch):
        def unavailable(*args, **kwargs):
            raise ConnectionError("users unavailable")

        monkeypatch.setattr(self.bus.uow.users, "update_one", unavailable)
        result = self.bus.handle(
            commands.CreateCommunity(
                creator_id=self.outsider.id, name="Birders", description="x" * 10
            )
        )

        self.assert_outcome(result, Outcome.PARTIAL)
        assert result.warnings == (
            "add community to creator: ConnectionError: users unavailable",
        )
        # the community itself was kept
        assert self.reload(result.payload["community"]).creator_id == self.outsider.id


class TestJoinCommunity(CommunityTestBase):
    def test_join_public(self):
        result = self.bus.handle(
            commands.JoinCommunity(community_id=self.public.id, user_id=self.outsider.id)
        )

        self.assert_outcome(result, Outcome.APPLIED, "Successfully joined the community!")
        assert result.payload == {"pending": False}
        assert self.outsider.id in self.reload(self.public).member_ids
        assert self.public.id in self.reload(self.outsider).community_ids
        self.assert_committed()

    def test_join_twice_is_noop(self):
        cmd = commands.JoinCommunity(community_id=self.public.id, user_id=self.outsider.id)
        self.bus.handle(cmd)
        self.reset_committed()

        result = self.bus.handle(cmd)

        self.assert_outcome(result, Outcome.NOOP, "User is already a member of this community.")
        assert self.reload(self.public).member_ids.count(self.outsider.id) == 1
        self.assert_not_committed()

    def test_rejoin_repairs_missing_user_link(self):
        # member of the community, but the user document lacks the back-link
        result = self.bus.handle(
            commands.JoinCommunity(community_id=self.public.id, user_id=self.member.id)
        )
        self.assert_outcome(result, Outcome.APPLIED)
        assert self.public.id in self.reload(self.member).community_ids

    def test_join_private_creates_request(self):
        result = self.bus.handle(
            commands.JoinCommunity(community_id=self.private.id, user_id=self.outsider.id)
        )

        self.assert_outcome(result, Outcome.APPLIED, "Your request to join has been submitted.")
        assert result.payload == {"pending": True}
        stored = self.reload(self.private)
        assert self.outsider.id in stored.pending_member_ids
        assert self.outsider.id not in stored.member_ids
        assert self.private.id not in self.reload(self.outsider).community_ids

    def test_pending_request_repeated_is_noop(self):
        result = self.bus.handle(
            commands.JoinCommunity(community_id=self.private.id, user_id=self.member.id)
        )
        self.assert_outcome(result, Outcome.NOOP, "Your request to join is already pending.")

    def test_unknown_community(self):
        with pytest.raises(NotFoundError, match="Community not found."):
            self.bus.handle(
                commands.JoinCommunity(
                    community_id="00000000000000000000000999", user_id=self.outsider.id
                )
            )

    def test_unknown_user(self):
        with pytest.raises(NotFoundError, match="User not found."):
            self.bus.handle(
                commands.JoinCommunity(
                    community_id=self.public.id, user_id="00000000000000000000000999"
                )
            )

    def test_lowercase_ids_are_accepted(self):
        result = self.bus.handle(
            commands.JoinCommunity(
                community_id=self.public.id.lower(), user_id=self.outsider.id.lower()
            )
        )
        self.assert_outcome(result, Outcome.APPLIED)


class TestLeaveCommunity(CommunityTestBase):
    def test_admin_leaves_and_loses_admin_rights(self):
        result = self.bus.handle(
            commands.LeaveCommunity(community_id=self.public.id, user_id=self.admin.id)
        )

        self.assert_outcome(
            result, Outcome.APPLIED, "Successfully left the community or cancelled request."
        )
        stored = self.reload(self.public)
        assert self.admin.id not in stored.member_ids
        assert self.admin.id not in stored.admin_ids

    def test_withdraw_pending_request(self):
        self.bus.handle(
            commands.LeaveCommunity(community_id=self.private.id, user_id=self.member.id)
        )
        assert self.member.id not in self.reload(self.private).pending_member_ids

    def test_creator_cannot_leave(self):
        with pytest.raises(ForbiddenError, match="Transfer ownership first"):
            self.bus.handle(
                commands.LeaveCommunity(community_id=self.public.id, user_id=self.owner.id)
            )
        assert self.owner.id in self.reload(self.public).member_ids

    def test_non_member_is_noop(self):
        result = self.bus.handle(
            commands.LeaveCommunity(community_id=self.public.id, user_id=self.outsider.id)
        )
        self.assert_outcome(result, Outcome.NOOP)

    def test_unknown_user_is_rejected_before_any_write(self, caplog):
        before = self.reload(self.public)
        with pytest.raises(NotFoundError, match="User not found."):
            self.bus.handle(
                commands.LeaveCommunity(
                    community_id=self.public.id, user_id="00000000000000000000000999"
                )
            )
        assert self.reload(self.public) == before
        assert "no matching document" not in caplog.text
        self.assert_not_committed()


class TestManageJoinRequest(CommunityTestBase):
    def _manage(self, action, actor=None, target=None):
        return self.bus.handle(
            commands.ManageJoinRequest(
                community_id=self.private.id,
                actor_id=(actor or self.admin).id,
                target_user_id=(target or self.member).id,
                action=action,
            )
        )

    def test_approve_admits_member_and_notifies(self):
        result = self._manage(JoinRequestAction.APPROVE)

        self.assert_outcome(result, Outcome.APPLIED, "User approved and added to Secret Garden.")
        stored = self.reload(self.private)
        assert self.member.id in stored.member_ids
        assert self.member.id not in stored.pending_member_ids
        assert self.private.id in self.reload(self.member).community_ids

        (notification,) = self.notifications_of(self.member.id)
        assert notification.type is NotificationType.COMMUNITY_JOIN_APPROVED
        assert notification.actor.id == self.admin.id
        assert notification.related_entity_id == self.private.id
        self.assert_committed()

    def test_deny_drops_request_and_notifies(self):
        result = self._manage(JoinRequestAction.DENY, actor=self.owner)

        self.assert_outcome(result, Outcome.APPLIED, "User request denied for Secret Garden.")
        stored = self.reload(self.private)
        assert self.member.id not in stored.pending_member_ids
        assert self.member.id not in stored.member_ids
        (notification,) = self.notifications_of(self.member.id)
        assert notification.type is NotificationType.COMMUNITY_JOIN_DENIED

    def test_plain_member_cannot_manage(self):
        with pytest.raises(ForbiddenError, match="Unauthorized to manage join requests."):
            self._manage(JoinRequestAction.APPROVE, actor=self.outsider)
        assert self.member.id in self.reload(self.private).pending_member_ids
        assert not self.notifications_of(self.member.id)

    def test_target_without_request(self):
        with pytest.raises(NotFoundError, match="not in the pending request list"):
            self._manage(JoinRequestAction.APPROVE, target=self.outsider)

    def test_second_approval_fails_without_notifying_again(self):
        self._manage(JoinRequestAction.APPROVE)
        with pytest.raises(NotFoundError):
            self._manage(JoinRequestAction.APPROVE)
        assert len(self.notifications_of(self.member.id)) == 1

    def test_requires_acting_user(self):
        with pytest.raises(UnauthenticatedError):
            self.bus.handle(
                commands.ManageJoinRequest(
                    community_id=self.private.id,
                    actor_id=None,
                    target_user_id=self.member.id,
                    action=JoinRequestAction.APPROVE,
                )
            )


class TestTransferOwnership(CommunityTestBase):
    def _transfer(self, actor, new_owner):
        return self.bus.handle(
            commands.TransferOwnership(
                community_id=self.public.id, actor_id=actor.id, new_owner_id=new_owner.id
            )
        )

    def test_transfers_and_notifies_both_users(self):
        result = self._transfer(self.owner, self.member)

        self.assert_outcome(
            result,
            Outcome.APPLIED,
            'Ownership of "Hikers" transferred successfully to Mia Member.',
        )
        stored = self.reload(self.public)
        assert stored.creator_id == self.member.id
        assert self.member.id in stored.admin_ids
        # the previous owner stays an admin and a member
        assert self.owner.id in stored.admin_ids
        assert stored.updated_at >= self.public.updated_at

        (received,) = self.notifications_of(self.member.id)
        (given,) = self.notifications_of(self.owner.id)
        assert received.type is NotificationType.COMMUNITY_OWNERSHIP_TRANSFER
        assert received.actor.id == self.owner.id
        assert given.actor.id == self.member.id

    def test_only_creator_can_transfer(self):
        with pytest.raises(ForbiddenError):
            self._transfer(self.admin, self.member)

    def test_new_owner_must_be_member(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self._transfer(self.owner, self.outsider)
        assert "newOwnerId" in excinfo.value.errors

    def test_new_owner_must_differ(self):
        with pytest.raises(InvalidInputError, match="cannot be the same"):
            self._transfer(self.owner, self.owner)

    def test_old_owner_can_leave_after_transfer(self):
        self._transfer(self.owner, self.member)
        result = self.bus.handle(
            commands.LeaveCommunity(community_id=self.public.id, user_id=self.owner.id)
        )
        self.assert_outcome(result, Outcome.APPLIED)


class TestUpdateCommunity(CommunityTestBase):
    def _update(self, user, community=None, **changes):
        return self.bus.handle(
            commands.UpdateCommunity(
                community_id=(community or self.public).id,
                actor_id=user.id,
                changes=changes,
            )
        )

    def test_admin_updates_settings(self):
        result = self._update(
            self.admin, description=" Weekend hikes in the hills. ", privacy="private"
        )

        self.assert_outcome(result, Outcome.APPLIED, "Community updated successfully!")
        stored = self.reload(self.public)
        assert stored.description == "Weekend hikes in the hills."
        assert stored.privacy is Privacy.PRIVATE
        assert stored.updated_at >= self.public.updated_at
        # membership is not touched
        assert stored.member_ids == self.public.member_ids
        assert result.payload["community"].community == stored
        self.assert_committed()

    def test_blank_cover_uses_placeholder_for_new_name(self):
        self._update(self.owner, name="Hill Walkers", cover_image_url="")
        stored = self.reload(self.public)
        assert stored.name == "Hill Walkers"
        assert stored.cover_image_url == "https://placehold.co/1200x300.png?text=Hill%20Walkers"

    def test_unchanged_settings_are_noop(self):
        result = self._update(self.owner, name="Hikers", privacy=Privacy.PUBLIC)
        self.assert_outcome(result, Outcome.NOOP, "No update fields provided.")
        self.assert_not_committed()

    def test_plain_member_cannot_update(self):
        with pytest.raises(ForbiddenError):
            self._update(self.member, name="Taken over")
        assert self.reload(self.public).name == "Hikers"

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self._update(self.owner, creator_id=self.member.id)
        assert "creator_id" in excinfo.value.errors
        assert self.reload(self.public).creator_id == self.owner.id

    def test_user_is_required(self):
        with pytest.raises(InvalidInputError) as excinfo:
            self.bus.handle(
                commands.UpdateCommunity(
                    community_id=self.public.id, actor_id=None, changes={"name": "x"}
                )
            )
        assert "userId" in excinfo.value.errors
