"""Report routes: submission and moderator review."""

from fastapi import APIRouter

from nexushub.service_layer import commands

from ..dependencies import Bus
from ..responses import write_response
from ..schemas import ReviewReportIn, SubmitReportIn

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.post("")
def submit_report(body: SubmitReportIn, bus: Bus):
    result = bus.handle(
        commands.SubmitReport(
            reporter_user_id=body.reporter_user_id,
            reported_item_id=body.item_id,
            item_type=body.item_type,
            reason_category=body.reason_category,
            reason_text=body.reason_text,
        )
    )
    return write_response(result, created=True)


@router.patch("/{report_id}/status")
def review_report(report_id: str, body: ReviewReportIn, bus: Bus):
    result = bus.handle(
        commands.ReviewReport(
            report_id=report_id,
            reviewer_id=body.reviewer_id,
            new_status=body.new_status,
            review_notes=body.review_notes,
        )
    )
    return write_response(result)
