"""User routes: registration, profiles, bookmarks and comment activity."""

from fastapi import APIRouter

from nexushub.service_layer import commands, views

from ..dependencies import Bus, UoW
from ..responses import read_response, write_response
from ..schemas import RegisterUserIn, UpdateProfileIn

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("")
def register_user(body: RegisterUserIn, bus: Bus):
    result = bus.handle(
        commands.RegisterUser(
            name=body.name, email=body.email, avatar_url=body.avatar_url, bio=body.bio
        )
    )
    return write_response(result, created=True)


@router.get("/{user_id}")
def get_user(user_id: str, uow: UoW):
    return read_response(views.get_user(uow, user_id))


@router.put("/{user_id}")
def update_profile(user_id: str, body: UpdateProfileIn, bus: Bus):
    result = bus.handle(
        commands.UpdateProfile(user_id=user_id, actor_id=body.user_id, changes=body.changes())
    )
    return write_response(result)


@router.get("/{user_id}/bookmarks")
def list_bookmarks(user_id: str, uow: UoW):
    return read_response(views.list_bookmarked_posts(uow, user_id))


@router.get("/{user_id}/comments")
def list_user_comments(user_id: str, uow: UoW):
    return read_response(views.comments_by_user(uow, user_id))
