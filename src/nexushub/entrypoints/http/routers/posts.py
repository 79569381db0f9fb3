"""Post routes: creation, publishing, polls, reactions, bookmarks, comments and deletion."""

from typing import Annotated

from fastapi import APIRouter, Query

from nexushub.service_layer import commands, views

from ..dependencies import Bus, UoW
from ..responses import read_response, write_response
from ..schemas import AddCommentIn, CreatePostIn, UpdatePostIn, UserRefIn, VoteIn

router = APIRouter(prefix="/api/posts", tags=["Posts"])

UserIdQuery = Annotated[str | None, Query(alias="userId")]


@router.post("")
def create_post(body: CreatePostIn, bus: Bus):
    result = bus.handle(
        commands.CreatePost(
            author_id=body.user_id,
            content=body.content,
            title=body.title or None,
            category=body.category or None,
            tags=tuple(body.tags),
            is_draft=body.is_draft,
            scheduled_at=body.scheduled_at,
            poll_options=tuple(body.poll_options),
        )
    )
    return write_response(result, created=True)


@router.get("")
def list_posts(
    uow: UoW,
    user_id: UserIdQuery = None,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
):
    return read_response(views.list_published_posts(uow, user_id, limit))


@router.get("/{post_id}")
def get_post(post_id: str, uow: UoW, user_id: UserIdQuery = None):
    return read_response(views.get_post(uow, post_id, user_id))


@router.put("/{post_id}")
def update_post(post_id: str, body: UpdatePostIn, bus: Bus):
    return write_response(
        bus.handle(commands.UpdatePost(post_id=post_id, user_id=body.user_id, status=body.status))
    )


@router.delete("/{post_id}")
def delete_post(post_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(bus.handle(commands.DeletePost(post_id=post_id, user_id=user_id)))


@router.post("/{post_id}/like")
def like_post(post_id: str, bus: Bus, body: UserRefIn | None = None):
    user_id = body.user_id if body else None
    return write_response(bus.handle(commands.LikePost(post_id=post_id, user_id=user_id)))


@router.delete("/{post_id}/like")
def unlike_post(post_id: str, bus: Bus, user_id: UserIdQuery = None):
    return write_response(bus.handle(commands.UnlikePost(post_id=post_id, user_id=user_id)))


@router.post("/{post_id}/bookmark")
def bookmark_post(post_id: str, body: UserRefIn, bus: Bus):
    return write_response(
        bus.handle(commands.BookmarkPost(post_id=post_id, user_id=body.user_id))
    )


@router.post("/{post_id}/unbookmark")
def unbookmark_post(post_id: str, body: UserRefIn, bus: Bus):
    return write_response(
        bus.handle(commands.UnbookmarkPost(post_id=post_id, user_id=body.user_id))
    )


@router.get("/{post_id}/comments")
def list_comments(post_id: str, uow: UoW):
    return read_response(views.list_comments(uow, post_id))


@router.post("/{post_id}/comments")
def add_comment(post_id: str, body: AddCommentIn, bus: Bus):
    result = bus.handle(
        commands.AddComment(
            post_id=post_id,
            author_id=body.user_id,
            content=body.content,
            parent_id=body.parent_id or None,
        )
    )
    return write_response(result, created=True)


@router.post("/{post_id}/vote")
def vote(post_id: str, body: VoteIn, bus: Bus):
    result = bus.handle(
        commands.VoteInPoll(post_id=post_id, user_id=body.user_id, option_id=body.option_id)
    )
    return write_response(result)
