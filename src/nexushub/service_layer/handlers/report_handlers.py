"""Handlers for content reports and their review."""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from nexushub.domain.documents import Report
from nexushub.domain.errors import (
    InvalidInputError,
    NotFoundError,
    ReportAlreadyFinalizedError,
)
from nexushub.domain.value_objects import ItemType, ReasonCategory, ReportStatus
from nexushub.interfaces.collection import Set, StoreUnavailableError, Update, normalize_id
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer import notifications as notify
from nexushub.service_layer.coordinator import WorkResult

from .helpers import required_id, start_run

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 30

GENERIC_LABELS = {
    ItemType.POST: "a post",
    ItemType.COMMENT: "a comment",
    ItemType.USER: "a user",
}


def submit_report(
    cmd: commands.SubmitReport, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    reporter_id = required_id(cmd.reporter_user_id, "reporterUserId", "Reporter ID")
    item_id = normalize_id(cmd.reported_item_id)
    item_type = ItemType(cmd.item_type)
    reason = ReasonCategory(cmd.reason_category)
    reason_text = (cmd.reason_text or "").strip() or None
    if reason is ReasonCategory.OTHER and reason_text is None:
        raise InvalidInputError(
            "Please describe the reason for reporting.",
            {"reasonText": ["Required when the reason is 'other'."]},
        )
    run = start_run("submit_report", uow, id_generator)

    with uow, run:
        run.require(
            "reporter exists",
            uow.users.find_one({"id": reporter_id}),
            NotFoundError("User", reporter_id, "Reporter not found."),
        )
        if item_type is ItemType.POST:
            run.require(
                "reported post exists",
                uow.posts.find_one({"id": item_id}),
                NotFoundError("Post", item_id, "Reported post not found."),
            )
        report = Report(
            id=id_generator.new_id(),
            reported_item_id=item_id,
            item_type=item_type,
            reporter_user_id=reporter_id,
            reason_category=reason,
            reason_text=reason_text,
        )
        run.primary("insert report", uow.reports.insert_one, report)
        run.finish("Report submitted successfully. Our team will review it.", report=report)
        uow.commit()

    return run.result


def _item_summary(uow: AbstractUnitOfWork, report: Report) -> tuple[str, str | None]:
    """A short description of the reported item and a link to it, best effort.

    The report is already finalized when this runs, so a store failure falls
    back to a generic label without a link.
    """
    try:
        return _describe_item(uow, report)
    except StoreUnavailableError:
        logger.warning(
            "Could not look up %s %s for report %s",
            report.item_type.value,
            report.reported_item_id,
            report.id,
            exc_info=True,
        )
        return GENERIC_LABELS[report.item_type], None


def _describe_item(uow: AbstractUnitOfWork, report: Report) -> tuple[str, str | None]:
    item_id = report.reported_item_id
    if report.item_type is ItemType.POST:
        post = uow.posts.find_one({"id": item_id})
        if post is not None and post.title:
            return f'post "{post.title[:PREVIEW_LENGTH]}..."', f"/posts/{item_id}"
        return "a post", (f"/posts/{item_id}" if post else None)
    if report.item_type is ItemType.COMMENT:
        comment = uow.comments.find_one({"id": item_id})
        return "a comment", (f"/posts/{comment.post_id}" if comment else None)
    user = uow.users.find_one({"id": item_id})
    if user is not None:
        return f'user "{user.name}"', f"/profile/{item_id}"
    return "a user", None


def review_report(
    cmd: commands.ReviewReport, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Move a pending report to one of the reviewed states.

    Reviewed states are terminal; a second review is a conflict and leaves
    the report untouched.
    """

    report_id = normalize_id(cmd.report_id)
    reviewer_id = required_id(cmd.reviewer_id, "reviewerId", "Reviewer ID")
    new_status = ReportStatus(cmd.new_status)
    if not new_status.is_terminal:
        raise InvalidInputError(
            "Invalid status provided.",
            {"status": ["Must be reviewed_action_taken or reviewed_no_action."]},
        )
    run = start_run("review_report", uow, id_generator)

    with uow, run:
        report = run.require(
            "report exists",
            uow.reports.find_one({"id": report_id}),
            NotFoundError("Report", report_id),
        )
        run.check(
            "report is pending",
            report.status.can_transition_to(new_status),
            ReportAlreadyFinalizedError(report_id, report.status.value),
        )
        reviewer = run.require(
            "reviewer exists",
            uow.users.find_one({"id": reviewer_id}),
            NotFoundError("User", reviewer_id, "Reviewer not found."),
        )
        reviewed = replace(
            report,
            status=new_status,
            reviewer_id=reviewer_id,
            reviewed_at=datetime.now(timezone.utc),
            review_notes=cmd.review_notes,
        )
        result = run.primary(
            "set review status",
            uow.reports.update_one,
            {"id": report_id, "status": ReportStatus.PENDING},
            Update(
                Set("status", reviewed.status),
                Set("reviewer_id", reviewed.reviewer_id),
                Set("reviewed_at", reviewed.reviewed_at),
                Set("review_notes", reviewed.review_notes),
            ),
        )
        if result.matched_count == 0:
            current = uow.reports.find_one({"id": report_id})
            status = current.status.value if current else new_status.value
            raise ReportAlreadyFinalizedError(report_id, status)

        preview, link = _item_summary(uow, report)
        run.emit(
            notify.report_reviewed(
                report_id,
                report.reporter_user_id,
                preview,
                link,
                action_taken=new_status is ReportStatus.REVIEWED_ACTION_TAKEN,
                actor=reviewer.actor,
            )
        )
        run.finish("Report status updated successfully.", report=reviewed)
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.SubmitReport: submit_report,
    commands.ReviewReport: review_report,
}
