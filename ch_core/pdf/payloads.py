# ch_core/pdf/payloads.py
"""Stored records -> builder input (the same camelCase shape the HTTP bridge accepts)."""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from ch_core.assessments.models import Assessment, FormType
from ch_core.audits.models import AuditCompletion
from ch_core.pdf.builders import FORMS, form_for
from ch_core.pdf.models import PdfSubjectType
from ch_core.pdf.rendering import PdfDocument

SUBJECT_MODELS = {
    PdfSubjectType.AUDIT_COMPLETION.value: AuditCompletion,
    PdfSubjectType.ASSESSMENT.value: Assessment,
}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def completion_payload(completion: AuditCompletion) -> Dict[str, Any]:
    return {
        "completionId": str(completion.id),
        "templateName": completion.template_name,
        "domain": completion.domain,
        "residentName": completion.resident_name,
        "roomNumber": completion.room_number,
        "auditedBy": completion.audited_by,
        "completedAt": _iso(completion.completed_at),
        "nextAuditDue": _iso(completion.next_audit_due),
        "version": completion.version,
        "items": completion.items or [],
        "overallNotes": completion.overall_notes,
    }


def assessment_payload(assessment: Assessment) -> Dict[str, Any]:
    data = dict(assessment.data or {})
    resident = assessment.resident
    data.setdefault("residentName", resident.full_name)
    data.setdefault("firstName", resident.first_name)
    data.setdefault("lastName", resident.last_name)
    data.setdefault("bedroomNumber", resident.room_number)
    data["assessmentId"] = str(assessment.id)
    data["formId"] = str(assessment.id)
    return data


def load_subject(subject_type: str, subject_id: UUID):
    model = SUBJECT_MODELS.get(str(subject_type))
    if model is None:
        return None
    return model.objects.filter(pk=subject_id).first()


def document_for(subject_type: str, subject) -> Tuple[PdfDocument, str]:
    """(document, filename) for a stored completion or assessment."""
    if str(subject_type) == PdfSubjectType.AUDIT_COMPLETION:
        form = FORMS["audit-completion"]
        data = completion_payload(subject)
    else:
        form = form_for(subject.form_type)
        data = assessment_payload(subject)
    return form.build(data), form.filename(data)


# Bridge routes that take an id and read the stored record.
STORED_FORMS = {
    "pre-admission": ("formId", "Form ID is required", "Form not found", FormType.PRE_ADMISSION),
    "infection-prevention": (
        "assessmentId",
        "Assessment ID is required",
        "Assessment not found",
        FormType.INFECTION_PREVENTION,
    ),
    "moving-handling": ("assessmentId", "Assessment ID is required", "Assessment not found", FormType.MOVING_HANDLING),
    "audit-completion": ("completionId", "Completion ID is required", "Audit completion not found", None),
}


def find_stored(form: str, raw_id: Any):
    """Stored record for an id-based bridge route, or None."""
    try:
        pk = UUID(str(raw_id))
    except ValueError:
        return None

    _, _, _, form_type = STORED_FORMS[form]
    if form_type is None:
        return AuditCompletion.objects.filter(pk=pk).first()
    return Assessment.objects.select_related("resident").filter(pk=pk, form_type=form_type).first()


def stored_payload(record) -> Dict[str, Any]:
    if isinstance(record, AuditCompletion):
        return completion_payload(record)
    return assessment_payload(record)
