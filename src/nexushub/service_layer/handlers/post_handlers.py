"""Handlers for posts, reactions, bookmarks and comments."""

import logging
from collections.abc import Callable

from nexushub.domain.documents import Comment, Post
from nexushub.domain.errors import (
    ConflictError,
    ContentFlaggedError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from nexushub.domain.value_objects import PollOption, PollVote, PostStatus
from nexushub.interfaces.collaborators import ContentCategorizer, ContentModerator
from nexushub.interfaces.collection import (
    AddToSet,
    NotEqual,
    Pull,
    Set,
    Update,
    normalize_id,
)
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer import notifications as notify
from nexushub.service_layer.coordinator import WorkResult
from nexushub.service_layer.views import build_post_view

from .helpers import acting_user_id, required_id, start_run

logger = logging.getLogger(__name__)

MAX_POLL_OPTIONS = 10


def _post_status(cmd: commands.CreatePost) -> PostStatus:
    if cmd.is_draft:
        return PostStatus.DRAFT
    if cmd.scheduled_at is not None:
        return PostStatus.SCHEDULED
    return PostStatus.PUBLISHED


def _poll_option_texts(cmd: commands.CreatePost) -> tuple[str, ...]:
    texts = tuple(dict.fromkeys(t.strip() for t in cmd.poll_options if t.strip()))
    if cmd.poll_options and not 2 <= len(texts) <= MAX_POLL_OPTIONS:
        raise InvalidInputError(
            f"A poll needs between 2 and {MAX_POLL_OPTIONS} distinct options.",
            {"pollOptions": [f"Provide 2 to {MAX_POLL_OPTIONS} distinct options."]},
        )
    return texts


def create_post(
    cmd: commands.CreatePost,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
    moderator: ContentModerator,
    categorizer: ContentCategorizer,
) -> WorkResult:
    """Create a post after moderation.

    Missing category or tags are filled in by the categorizer when it can;
    a failing categorizer is logged and the post is created without them.
    """

    author_id = required_id(cmd.author_id, "authorId", "Author ID")
    content = cmd.content.strip()
    if not content:
        raise InvalidInputError("Post content is required.", {"content": ["Required."]})
    option_texts = _poll_option_texts(cmd)

    verdict = moderator.moderate(content)
    if verdict.is_flagged:
        raise ContentFlaggedError(verdict.reason or "content not allowed")

    category, tags = cmd.category, tuple(dict.fromkeys(cmd.tags))
    if not category or not tags:
        try:
            suggestion = categorizer.categorize(content)
        except Exception:  # pylint: disable=broad-except
            logger.warning("Categorization failed for post by %s", author_id, exc_info=True)
        else:
            category = category or suggestion.category
            tags = tags or suggestion.tags

    run = start_run("create_post", uow, id_generator)
    with uow, run:
        run.require(
            "author exists",
            uow.users.find_one({"id": author_id}),
            NotFoundError("User", author_id, "Author not found."),
        )
        post = Post(
            id=id_generator.new_id(),
            author_id=author_id,
            content=content,
            title=cmd.title.strip() if cmd.title else None,
            category=category,
            tags=tags,
            status=_post_status(cmd),
            scheduled_at=cmd.scheduled_at,
            poll_options=tuple(
                PollOption(id=id_generator.new_id(), text=text) for text in option_texts
            ),
        )
        run.primary("insert post", uow.posts.insert_one, post)
        run.finish("Post created successfully!", post=build_post_view(uow, post, author_id))
        uow.commit()

    return run.result


def _set_like(
    operation: str,
    cmd: commands.LikePost | commands.UnlikePost,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
    liked: bool,
) -> WorkResult:
    user_id = acting_user_id(cmd.user_id)
    post_id = normalize_id(cmd.post_id)
    run = start_run(operation, uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        already = "Post already liked." if liked else "Post was not liked."
        run.noop_if(
            "not in desired state",
            (user_id in post.liked_by) is liked,
            already,
            post=build_post_view(uow, post, user_id),
        )
        op = AddToSet("liked_by", user_id) if liked else Pull("liked_by", user_id)
        result = run.primary(
            "like post" if liked else "unlike post",
            uow.posts.update_one,
            {"id": post_id},
            Update(op),
        )
        updated = uow.posts.find_one({"id": post_id})
        if updated is None:
            raise NotFoundError("Post", post_id)
        view = build_post_view(uow, updated, user_id)
        if result.modified_count == 0:
            run.noop(already, post=view)
        run.finish("Post liked." if liked else "Post unliked.", post=view)
        uow.commit()

    return run.result


def like_post(
    cmd: commands.LikePost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    return _set_like("like_post", cmd, uow, id_generator, liked=True)


def unlike_post(
    cmd: commands.UnlikePost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    return _set_like("unlike_post", cmd, uow, id_generator, liked=False)


def _set_bookmark(
    operation: str,
    cmd: commands.BookmarkPost | commands.UnbookmarkPost,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
    bookmarked: bool,
) -> WorkResult:
    user_id = required_id(cmd.user_id, "userId")
    post_id = normalize_id(cmd.post_id)
    run = start_run(operation, uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        op = (
            AddToSet("bookmarked_post_ids", post_id)
            if bookmarked
            else Pull("bookmarked_post_ids", post_id)
        )
        result = run.primary(
            "bookmark post" if bookmarked else "remove bookmark",
            uow.users.update_one,
            {"id": user_id},
            Update(op),
        )
        if result.matched_count == 0:
            raise NotFoundError("User", user_id)
        view = build_post_view(uow, post, user_id)
        if result.modified_count == 0:
            run.noop(
                "Post already bookmarked." if bookmarked else "Post was not bookmarked.",
                post=view,
            )
        run.finish(
            "Post bookmarked successfully." if bookmarked else "Bookmark removed successfully.",
            post=view,
        )
        uow.commit()

    return run.result


def bookmark_post(
    cmd: commands.BookmarkPost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    return _set_bookmark("bookmark_post", cmd, uow, id_generator, bookmarked=True)


def unbookmark_post(
    cmd: commands.UnbookmarkPost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    return _set_bookmark("unbookmark_post", cmd, uow, id_generator, bookmarked=False)


def delete_post(
    cmd: commands.DeletePost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Delete a post's comments, then the post, then every bookmark of it.

    Comments go first: if deleting the post itself fails, the error
    propagates with the post still in place and the request may be retried.
    """

    user_id = acting_user_id(cmd.user_id)
    post_id = normalize_id(cmd.post_id)
    run = start_run("delete_post", uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        run.check(
            "actor is author",
            post.author_id == user_id,
            ForbiddenError("Only the author can delete this post."),
        )
        comments = run.primary(
            "delete comments", uow.comments.delete_many, {"post_id": post_id}
        )
        run.primary("delete post", uow.posts.delete_one, {"id": post_id})
        bookmarks = run.secondary(
            "remove bookmarks",
            uow.users.update_many,
            {"bookmarked_post_ids": post_id},
            Update(Pull("bookmarked_post_ids", post_id)),
        )
        run.finish(
            "Post and associated data deleted successfully.",
            deleted_comments=comments.deleted_count,
            removed_bookmarks=bookmarks.modified_count if bookmarks else 0,
        )
        uow.commit()

    return run.result


def update_post(
    cmd: commands.UpdatePost, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Publish a draft. Only the author may do it; scheduled posts publish on schedule."""

    user_id = required_id(cmd.user_id, "userId")
    post_id = normalize_id(cmd.post_id)
    status = PostStatus(cmd.status) if cmd.status is not None else None
    if status not in (None, PostStatus.PUBLISHED):
        raise InvalidInputError(
            "Invalid status update action.", {"status": ["Only 'published' is allowed."]}
        )
    run = start_run("update_post", uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        run.check(
            "actor is author",
            post.author_id == user_id,
            ForbiddenError("Unauthorized: Only the post author can update this post."),
        )
        view = build_post_view(uow, post, user_id)
        run.noop_if("changes requested", status is None, "No update fields provided.", post=view)
        run.noop_if(
            "not yet published",
            post.status is PostStatus.PUBLISHED,
            "Post is already published.",
            post=view,
        )
        not_draft = InvalidInputError(
            "Only draft posts can be published this way.",
            {"status": ["The post is not a draft."]},
        )
        run.check("post is a draft", post.status is PostStatus.DRAFT, not_draft)
        result = run.primary(
            "publish post",
            uow.posts.update_one,
            {"id": post_id, "status": PostStatus.DRAFT},
            Update(Set("status", PostStatus.PUBLISHED), Set("scheduled_at", None)),
        )
        updated = uow.posts.find_one({"id": post_id})
        if updated is None:
            raise NotFoundError("Post", post_id)
        if result.matched_count == 0:
            if updated.status is not PostStatus.PUBLISHED:
                raise not_draft
            run.noop("Post is already published.", post=build_post_view(uow, updated, user_id))
        run.finish("Post published successfully!", post=build_post_view(uow, updated, user_id))
        uow.commit()

    return run.result


def vote_in_poll(
    cmd: commands.VoteInPoll, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Record a user's single vote in a poll.

    Repeating the same vote is a no-op; voting for another option after
    having voted is a conflict. The voter guard and both writes are one
    atomic update, so concurrent votes by one user count once.
    """

    user_id = required_id(cmd.user_id, "userId")
    option_id = required_id(cmd.option_id, "optionId", "Option ID")
    post_id = normalize_id(cmd.post_id)
    run = start_run("vote_in_poll", uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        run.require(
            "user exists", uow.users.find_one({"id": user_id}), NotFoundError("User", user_id)
        )
        run.check(
            "post is a poll",
            post.is_poll,
            InvalidInputError(
                "This post is not a poll or has no options.",
                {"optionId": ["The post has no poll options."]},
            ),
        )
        run.require(
            "option exists",
            post.poll_option(option_id),
            NotFoundError("Poll option", option_id, "Poll option not found."),
        )
        already_voted = ConflictError("You have already voted in this poll.")
        previous = post.voted_option_id(user_id)
        run.noop_if(
            "not already voted for this option",
            previous == option_id,
            "You have already voted for this option.",
            post=build_post_view(uow, post, user_id),
        )
        run.check("has not voted", previous is None, already_voted)
        result = run.primary(
            "record vote",
            uow.posts.update_one,
            {"id": post_id, "poll_voter_ids": NotEqual(user_id)},
            Update(
                AddToSet("poll_voter_ids", user_id),
                AddToSet("poll_votes", PollVote(user_id=user_id, option_id=option_id)),
            ),
        )
        updated = uow.posts.find_one({"id": post_id})
        if updated is None:
            raise NotFoundError("Post", post_id)
        view = build_post_view(uow, updated, user_id)
        if result.matched_count == 0:
            if updated.voted_option_id(user_id) != option_id:
                raise already_voted
            run.noop("You have already voted for this option.", post=view)
        run.finish("Vote recorded successfully!", post=view)
        uow.commit()

    return run.result


def add_comment(
    cmd: commands.AddComment, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    author_id = required_id(cmd.author_id, "authorId", "Author ID")
    post_id = normalize_id(cmd.post_id)
    content = cmd.content.strip()
    if not content:
        raise InvalidInputError("Comment content is required.", {"content": ["Required."]})
    run = start_run("add_comment", uow, id_generator)

    with uow, run:
        post = run.require(
            "post exists", uow.posts.find_one({"id": post_id}), NotFoundError("Post", post_id)
        )
        author = run.require(
            "author exists",
            uow.users.find_one({"id": author_id}),
            NotFoundError("User", author_id, "Author not found."),
        )
        comment = Comment(
            id=id_generator.new_id(),
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_id=normalize_id(cmd.parent_id) if cmd.parent_id else None,
        )
        run.primary("insert comment", uow.comments.insert_one, comment)
        run.secondary(
            "link comment to post",
            uow.posts.update_one,
            {"id": post_id},
            Update(AddToSet("comment_ids", comment.id)),
        )
        if post.author_id != author_id:
            run.emit(notify.new_comment(post_id, post.title, post.author_id, author.actor))
        run.finish("Comment added successfully!", comment=comment)
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.CreatePost: create_post,
    commands.UpdatePost: update_post,
    commands.VoteInPoll: vote_in_poll,
    commands.LikePost: like_post,
    commands.UnlikePost: unlike_post,
    commands.BookmarkPost: bookmark_post,
    commands.UnbookmarkPost: unbookmark_post,
    commands.DeletePost: delete_post,
    commands.AddComment: add_comment,
}
