"""Community routes: creation, settings, membership, join requests and ownership."""

from typing import Annotated

from fastapi import APIRouter, Query

from nexushub.service_layer import commands, views

from ..dependencies import Bus, UoW
from ..responses import read_response, write_response
from ..schemas import (
    CreateCommunityIn,
    ManageJoinRequestIn,
    TransferOwnershipIn,
    UpdateCommunityIn,
    UserRefIn,
)

router = APIRouter(prefix="/api/communities", tags=["Communities"])

UserIdQuery = Annotated[str | None, Query(alias="userId")]


@router.post("")
def create_community(body: CreateCommunityIn, bus: Bus):
    result = bus.handle(
        commands.CreateCommunity(
            creator_id=body.creator_id,
            name=body.name,
            description=body.description,
            privacy=body.privacy,
            cover_image_url=body.cover_image_url or None,
        )
    )
    return write_response(result, created=True)


@router.get("")
def list_communities(uow: UoW):
    return read_response(views.list_communities(uow))


@router.get("/{community_id}")
def get_community(community_id: str, uow: UoW):
    return read_response(views.get_community(uow, community_id))


@router.put("/{community_id}")
def update_community(community_id: str, body: UpdateCommunityIn, bus: Bus):
    result = bus.handle(
        commands.UpdateCommunity(
            community_id=community_id, actor_id=body.user_id, changes=body.changes()
        )
    )
    return write_response(result)


@router.get("/{community_id}/members")
def list_members(community_id: str, uow: UoW):
    return read_response(views.community_members(uow, community_id))


@router.post("/{community_id}/members")
def join_community(community_id: str, body: UserRefIn, bus: Bus):
    return write_response(
        bus.handle(commands.JoinCommunity(community_id=community_id, user_id=body.user_id))
    )


@router.delete("/{community_id}/members")
def leave_community(community_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(
        bus.handle(commands.LeaveCommunity(community_id=community_id, user_id=user_id))
    )


@router.get("/{community_id}/requests")
def list_join_requests(
    community_id: str,
    uow: UoW,
    current_user_id: Annotated[str | None, Query(alias="currentUserId")] = None,
):
    return read_response(views.pending_join_requests(uow, community_id, current_user_id))


@router.post("/{community_id}/requests")
def manage_join_request(community_id: str, body: ManageJoinRequestIn, bus: Bus):
    result = bus.handle(
        commands.ManageJoinRequest(
            community_id=community_id,
            actor_id=body.current_user_id,
            target_user_id=body.user_id_to_manage,
            action=body.action,
        )
    )
    return write_response(result)


@router.post("/{community_id}/transfer-ownership")
def transfer_ownership(community_id: str, body: TransferOwnershipIn, bus: Bus):
    result = bus.handle(
        commands.TransferOwnership(
            community_id=community_id,
            actor_id=body.current_user_id,
            new_owner_id=body.new_owner_id,
        )
    )
    return write_response(result)
