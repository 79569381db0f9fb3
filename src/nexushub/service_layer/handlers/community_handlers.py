"""Handlers for community membership and ownership."""

from collections.abc import Callable
from datetime import datetime, timezone
from urllib.parse import quote

from nexushub.domain.documents import Community
from nexushub.domain.errors import ForbiddenError, InvalidInputError, NotFoundError
from nexushub.domain.value_objects import Actor, JoinRequestAction, Privacy
from nexushub.interfaces.collection import AddToSet, NotEqual, Pull, Set, Update, normalize_id
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer import notifications as notify
from nexushub.service_layer.coordinator import WorkResult
from nexushub.service_layer.views import build_community_view

from .helpers import acting_user_id, required_id, start_run

COVER_IMAGE_URL = "https://placehold.co/1200x300.png?text={text}"


def default_cover_image_url(name: str) -> str:
    return COVER_IMAGE_URL.format(text=quote(name, safe=""))


def create_community(
    cmd: commands.CreateCommunity, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Create a community with its creator as first member and admin."""

    creator_id = required_id(cmd.creator_id, "creatorId", "Creator ID")
    run = start_run("create_community", uow, id_generator)

    with uow, run:
        run.require(
            "creator exists",
            uow.users.find_one({"id": creator_id}),
            NotFoundError("User", creator_id, "Creator not found."),
        )
        name = cmd.name.strip()
        community = Community(
            id=id_generator.new_id(),
            name=name,
            description=cmd.description.strip(),
            privacy=cmd.privacy,
            creator_id=creator_id,
            member_ids=(creator_id,),
            admin_ids=(creator_id,),
            cover_image_url=cmd.cover_image_url or default_cover_image_url(name),
        )
        run.primary("insert community", uow.communities.insert_one, community)
        run.secondary(
            "add community to creator",
            uow.users.update_one,
            {"id": creator_id},
            Update(AddToSet("community_ids", community.id)),
        )
        run.finish("Community created successfully!", community=community)
        uow.commit()

    return run.result


def join_community(
    cmd: commands.JoinCommunity, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Join a public community, or ask to join a private one.

    Joining when already a member still re-links the community on the user,
    so repeating the request repairs an earlier partial outcome.
    """

    community_id = normalize_id(cmd.community_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("join_community", uow, id_generator)

    with uow, run:
        community = run.require(
            "community exists",
            uow.communities.find_one({"id": community_id}),
            NotFoundError("Community", community_id),
        )
        run.require(
            "user exists",
            uow.users.find_one({"id": user_id}),
            NotFoundError("User", user_id),
        )

        if community.privacy is Privacy.PRIVATE and user_id not in community.member_ids:
            run.noop_if(
                "no pending request",
                user_id in community.pending_member_ids,
                "Your request to join is already pending.",
            )
            result = run.primary(
                "request membership",
                uow.communities.update_one,
                {"id": community_id, "member_ids": NotEqual(user_id)},
                Update(AddToSet("pending_member_ids", user_id)),
            )
            if result.matched_count == 0:
                run.noop("User is already a member of this community.")
            if result.modified_count == 0:
                run.noop("Your request to join is already pending.")
            run.finish("Your request to join has been submitted.", pending=True)
        else:
            result = run.primary(
                "add member",
                uow.communities.update_one,
                {"id": community_id},
                Update(AddToSet("member_ids", user_id), Pull("pending_member_ids", user_id)),
            )
            link = run.secondary(
                "add community to user",
                uow.users.update_one,
                {"id": user_id},
                Update(AddToSet("community_ids", community_id)),
            )
            if result.modified_count == 0 and not (link and link.modified_count):
                run.noop("User is already a member of this community.")
            run.finish("Successfully joined the community!", pending=False)
        uow.commit()

    return run.result


def leave_community(
    cmd: commands.LeaveCommunity, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Leave a community or withdraw a pending request. The creator cannot leave."""

    community_id = normalize_id(cmd.community_id)
    user_id = required_id(cmd.user_id, "userId")
    run = start_run("leave_community", uow, id_generator)

    with uow, run:
        community = run.require(
            "community exists",
            uow.communities.find_one({"id": community_id}),
            NotFoundError("Community", community_id),
        )
        run.require(
            "user exists",
            uow.users.find_one({"id": user_id}),
            NotFoundError("User", user_id),
        )
        run.check(
            "not the creator",
            community.creator_id != user_id,
            ForbiddenError(
                "Creator cannot leave the community. Transfer ownership first."
            ),
        )
        result = run.primary(
            "remove membership",
            uow.communities.update_one,
            {"id": community_id},
            Update(
                Pull("member_ids", user_id),
                Pull("admin_ids", user_id),
                Pull("pending_member_ids", user_id),
            ),
        )
        link = run.secondary(
            "remove community from user",
            uow.users.update_one,
            {"id": user_id},
            Update(Pull("community_ids", community_id)),
        )
        if result.modified_count == 0 and not (link and link.modified_count):
            run.noop("User was not a member/pending or already left/cancelled request.")
        run.finish("Successfully left the community or cancelled request.")
        uow.commit()

    return run.result


def manage_join_request(
    cmd: commands.ManageJoinRequest, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Approve or deny a pending join request (creator or admin only)."""

    actor_id = acting_user_id(cmd.actor_id)
    community_id = normalize_id(cmd.community_id)
    target_id = required_id(cmd.target_user_id, "userIdToManage", "User ID to manage")
    action = JoinRequestAction(cmd.action)
    run = start_run(f"{action.value}_join_request", uow, id_generator)

    with uow, run:
        community = run.require(
            "community exists",
            uow.communities.find_one({"id": community_id}),
            NotFoundError("Community", community_id),
        )
        run.require(
            "target user exists",
            uow.users.find_one({"id": target_id}),
            NotFoundError("User", target_id, "User to manage not found."),
        )
        actor = run.require(
            "acting user exists",
            uow.users.find_one({"id": actor_id}),
            NotFoundError("User", actor_id, "Current user performing action not found."),
        )
        run.check(
            "actor manages community",
            community.can_manage(actor_id),
            ForbiddenError("Unauthorized to manage join requests."),
        )
        not_pending = NotFoundError(
            "Join request", target_id, "User is not in the pending request list."
        )
        run.check("request is pending", target_id in community.pending_member_ids, not_pending)

        if action is JoinRequestAction.APPROVE:
            result = run.primary(
                "admit member",
                uow.communities.update_one,
                {"id": community_id, "pending_member_ids": target_id},
                Update(
                    AddToSet("member_ids", target_id),
                    Pull("pending_member_ids", target_id),
                ),
            )
            if result.matched_count == 0:
                raise not_pending
            run.secondary(
                "add community to user",
                uow.users.update_one,
                {"id": target_id},
                Update(AddToSet("community_ids", community_id)),
            )
            run.emit(notify.join_approved(community_id, community.name, target_id, actor.actor))
            run.finish(f"User approved and added to {community.name}.")
        else:
            result = run.primary(
                "drop request",
                uow.communities.update_one,
                {"id": community_id, "pending_member_ids": target_id},
                Update(Pull("pending_member_ids", target_id)),
            )
            if result.matched_count == 0:
                raise not_pending
            run.emit(notify.join_denied(community_id, community.name, target_id, actor.actor))
            run.finish(f"User request denied for {community.name}.")
        uow.commit()

    return run.result


def transfer_ownership(
    cmd: commands.TransferOwnership, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Hand the community over to another member, who also becomes an admin."""

    actor_id = required_id(cmd.actor_id, "currentUserId", "Current user ID")
    new_owner_id = required_id(cmd.new_owner_id, "newOwnerId", "New owner ID")
    community_id = normalize_id(cmd.community_id)
    run = start_run("transfer_ownership", uow, id_generator)

    with uow, run:
        run.check(
            "new owner differs",
            new_owner_id != actor_id,
            InvalidInputError(
                "New owner cannot be the same as the current owner.",
                {"newOwnerId": ["Must differ from the current owner."]},
            ),
        )
        community = run.require(
            "community exists",
            uow.communities.find_one({"id": community_id}),
            NotFoundError("Community", community_id),
        )
        run.check(
            "actor is creator",
            community.creator_id == actor_id,
            ForbiddenError(
                "Unauthorized: Only the current community creator can transfer ownership."
            ),
        )
        new_owner = run.require(
            "new owner exists",
            uow.users.find_one({"id": new_owner_id}),
            NotFoundError("User", new_owner_id, "New owner user not found."),
        )
        run.check(
            "new owner is member",
            new_owner_id in community.member_ids,
            InvalidInputError(
                "The selected user is not a member of this community.",
                {"newOwnerId": ["Not a member of this community."]},
            ),
        )
        old_owner = uow.users.find_one({"id": actor_id})

        result = run.primary(
            "set creator",
            uow.communities.update_one,
            {"id": community_id, "creator_id": actor_id},
            Update(
                Set("creator_id", new_owner_id),
                AddToSet("admin_ids", new_owner_id),
                Set("updated_at", datetime.now(timezone.utc)),
            ),
        )
        if result.matched_count == 0:
            raise ForbiddenError("Ownership changed while transferring; reload and retry.")
        previous = old_owner.actor if old_owner else Actor(id=actor_id, name="Previous Owner")
        run.emit(
            notify.ownership_received(community_id, community.name, new_owner_id, previous)
        )
        run.emit(
            notify.ownership_given(
                community_id, community.name, actor_id, new_owner.actor
            )
        )
        run.finish(
            f'Ownership of "{community.name}" transferred successfully to {new_owner.name}.'
        )
        uow.commit()

    return run.result


COMMUNITY_FIELDS = frozenset({"name", "description", "privacy", "cover_image_url"})


def update_community(
    cmd: commands.UpdateCommunity, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Change community settings (creator or admin only).

    An empty cover image URL falls back to the placeholder derived from the
    (possibly new) name.
    """

    actor_id = required_id(cmd.actor_id, "userId")
    community_id = normalize_id(cmd.community_id)
    unknown = sorted(set(cmd.changes) - COMMUNITY_FIELDS)
    if unknown:
        raise InvalidInputError(
            "Invalid community data.", {name: ["Cannot be updated."] for name in unknown}
        )
    changes = dict(cmd.changes)
    for name in ("name", "description"):
        if name in changes:
            changes[name] = changes[name].strip()
    if "privacy" in changes:
        changes["privacy"] = Privacy(changes["privacy"])
    run = start_run("update_community", uow, id_generator)

    with uow, run:
        community = run.require(
            "community exists",
            uow.communities.find_one({"id": community_id}),
            NotFoundError("Community", community_id),
        )
        run.check(
            "actor manages community",
            community.can_manage(actor_id),
            ForbiddenError(
                "Unauthorized: Only the community creator or admins can update settings."
            ),
        )
        if "cover_image_url" in changes and not changes["cover_image_url"]:
            changes["cover_image_url"] = default_cover_image_url(
                changes.get("name", community.name)
            )
        changed = {k: v for k, v in changes.items() if getattr(community, k) != v}
        run.noop_if(
            "something to change",
            not changed,
            "No update fields provided.",
            community=build_community_view(uow, community),
        )
        run.primary(
            "update settings",
            uow.communities.update_one,
            {"id": community_id},
            Update(
                *(Set(name, value) for name, value in changed.items()),
                Set("updated_at", datetime.now(timezone.utc)),
            ),
        )
        updated = uow.communities.find_one({"id": community_id})
        if updated is None:
            raise NotFoundError("Community", community_id)
        run.finish(
            "Community updated successfully!", community=build_community_view(uow, updated)
        )
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.CreateCommunity: create_community,
    commands.JoinCommunity: join_community,
    commands.LeaveCommunity: leave_community,
    commands.ManageJoinRequest: manage_join_request,
    commands.TransferOwnership: transfer_ownership,
    commands.UpdateCommunity: update_community,
}
