# ch_core/pdf/subscribers.py
from uuid import UUID

from ch_core.common.events import subscribe
from ch_core.pdf.models import PdfSubjectType
from ch_core.pdf.services import PdfJobService


@subscribe("audit.completion.completed")
def on_audit_completed(payload: dict) -> None:
    PdfJobService.enqueue(
        organization_id=UUID(payload["organization_id"]),
        team_id=UUID(payload["team_id"]),
        subject_type=PdfSubjectType.AUDIT_COMPLETION,
        subject_id=UUID(payload["completion_id"]),
    )


@subscribe("audit.completion.deleted")
def on_audit_deleted(payload: dict) -> None:
    PdfJobService.delete_jobs_for(
        subject_type=PdfSubjectType.AUDIT_COMPLETION,
        subject_id=UUID(payload["completion_id"]),
    )


@subscribe("assessment.submitted")
def on_assessment_submitted(payload: dict) -> None:
    PdfJobService.enqueue(
        organization_id=UUID(payload["organization_id"]),
        team_id=UUID(payload["team_id"]),
        subject_type=PdfSubjectType.ASSESSMENT,
        subject_id=UUID(payload["assessment_id"]),
    )
