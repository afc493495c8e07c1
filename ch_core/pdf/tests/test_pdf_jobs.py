# ch_core/pdf/tests/test_pdf_jobs.py
import pytest
from django.core.files.storage import default_storage
from django.core.management import call_command
from django.db import transaction

from ch_core.activity.models import ActivityEvent
from ch_core.assessments.services import lifecycle
from ch_core.audits.models import AuditCompletion, CompletionStatus
from ch_core.audits.services import AuditCompletionService
from ch_core.pdf.models import PdfJob, PdfJobStatus, PdfSubjectType
from ch_core.pdf.rendering import RenderError
from ch_core.pdf.selectors import pdf_status_for
from ch_core.pdf.services import PdfJobService
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


def _renderer_down(doc, **kwargs):
    raise RenderError("down")


def _complete(organization, team, template, user):
    draft, _ = AuditCompletionService.get_or_create_draft(
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=user.id,
        template_id=template.id,
    )
    return AuditCompletionService.complete_audit(
        organization_id=organization.id,
        actor_user_id=user.id,
        completion_id=draft.id,
        items=[{"itemId": "i1", "itemName": "MAR charts signed", "status": "compliant"}],
    )


def test_completing_audit_renders_pdf_after_commit(
    django_capture_on_commit_callbacks, organization, team, template, user
):
    with django_capture_on_commit_callbacks(execute=True):
        completion = _complete(organization, team, template, user)

    job = PdfJob.objects.get(subject_id=completion.id)
    assert job.subject_type == PdfSubjectType.AUDIT_COMPLETION
    assert job.status == PdfJobStatus.SUCCEEDED
    assert job.attempts == 1
    assert default_storage.exists(job.file)

    completion.refresh_from_db()
    assert completion.pdf_file == job.file
    assert completion.pdf_url
    assert completion.pdf_generated_at is not None
    assert ActivityEvent.objects.filter(event_code="pdf.job.succeeded", entity_id=job.id).exists()


def test_job_is_written_with_completion_and_runs_after_commit(
    django_capture_on_commit_callbacks, organization, team, template, user
):
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        completion = _complete(organization, team, template, user)

        job = PdfJob.objects.get(subject_id=completion.id)
        assert job.status == PdfJobStatus.PENDING
        assert job.attempts == 0
        assert job.started_at is None
        assert pdf_status_for(subject_type=PdfSubjectType.AUDIT_COMPLETION, subject_id=completion.id) == "pending"

    # Only the render is deferred to commit.
    assert len(callbacks) == 1
    job.refresh_from_db()
    assert job.attempts == 0


def test_job_rolls_back_with_completion(organization, team, template, user):
    with pytest.raises(RuntimeError):
        with transaction.atomic():
            completion = _complete(organization, team, template, user)
            assert PdfJob.objects.filter(subject_id=completion.id).count() == 1
            raise RuntimeError("abort")

    assert PdfJob.objects.count() == 0
    assert not AuditCompletion.objects.filter(status=CompletionStatus.COMPLETED).exists()


def test_render_failure_keeps_completion(monkeypatch, django_capture_on_commit_callbacks, organization, team, template, user):
    def boom(doc, **kwargs):
        raise RenderError("PDF rendering timed out after 30s")

    monkeypatch.setattr("ch_core.pdf.services.render_with_timeout", boom)

    with django_capture_on_commit_callbacks(execute=True):
        completion = _complete(organization, team, template, user)

    job = PdfJob.objects.get(subject_id=completion.id)
    assert job.status == PdfJobStatus.FAILED
    assert "timed out" in job.error_details

    completion.refresh_from_db()
    assert completion.status == CompletionStatus.COMPLETED
    assert completion.pdf_url == ""
    assert ActivityEvent.objects.filter(event_code="pdf.job.failed", entity_id=job.id).exists()


def test_rerun_picks_up_failed_jobs(monkeypatch, django_capture_on_commit_callbacks, organization, team, template, user):
    monkeypatch.setattr("ch_core.pdf.services.render_with_timeout", _renderer_down)
    with django_capture_on_commit_callbacks(execute=True):
        completion = _complete(organization, team, template, user)
    monkeypatch.undo()

    results = PdfJobService.rerun()

    assert [j.status for j in results] == [PdfJobStatus.SUCCEEDED]
    assert results[0].attempts == 2
    completion.refresh_from_db()
    assert completion.pdf_url


def test_jobs_disabled(settings, django_capture_on_commit_callbacks, organization, team, template, user):
    settings.PDF_JOBS_ENABLED = False
    with django_capture_on_commit_callbacks(execute=True):
        _complete(organization, team, template, user)
    assert PdfJob.objects.count() == 0


def test_deleting_completion_removes_jobs(django_capture_on_commit_callbacks, organization, team, template, user):
    with django_capture_on_commit_callbacks(execute=True):
        completion = _complete(organization, team, template, user)
    job = PdfJob.objects.get(subject_id=completion.id)
    stored = job.file

    AuditCompletionService.delete_response(
        organization_id=organization.id,
        actor_user_id=user.id,
        completion_id=completion.id,
    )

    assert not PdfJob.objects.filter(subject_id=completion.id).exists()
    assert not default_storage.exists(stored)
    assert not AuditCompletion.objects.filter(pk=completion.id).exists()


def test_submitting_assessment_renders_pdf(django_capture_on_commit_callbacks, organization, team, resident, user):
    draft, _ = lifecycle.create_draft(
        organization_id=organization.id,
        team_id=team.id,
        resident_id=resident.id,
        form_type="skin-integrity",
        data={"sensoryPerception": 2, "moisture": 2, "activity": 2, "mobility": 2, "nutrition": 2, "frictionShear": 1},
        actor_user_id=user.id,
        idempotency_key=None,
    )
    with django_capture_on_commit_callbacks(execute=True):
        submitted, _ = lifecycle.submit(
            organization_id=organization.id,
            assessment_id=draft.id,
            actor_user_id=user.id,
            idempotency_key=None,
        )

    job = PdfJob.objects.get(subject_id=submitted.id)
    assert job.subject_type == PdfSubjectType.ASSESSMENT
    assert job.status == PdfJobStatus.SUCCEEDED
    assert job.attempts == 1
    assert job.file.endswith("skin-integrity-assessment-Mary-Jones.pdf")

    # Reviewing carries the rendered file over without a new job.
    with django_capture_on_commit_callbacks(execute=True):
        reviewed, _ = lifecycle.review(
            organization_id=organization.id,
            assessment_id=submitted.id,
            actor_user_id=user.id,
            idempotency_key=None,
        )
    submitted.refresh_from_db()
    assert reviewed.pdf_url == submitted.pdf_url
    assert not PdfJob.objects.filter(subject_id=reviewed.id).exists()


def test_job_endpoints(api_client, django_capture_on_commit_callbacks, organization, team, template, user):
    with django_capture_on_commit_callbacks(execute=True):
        completion = _complete(organization, team, template, user)

    listed = api_client.get("/api/v1/pdf/jobs/", {"subject_id": str(completion.id)}, **scoped(organization, team))
    assert listed.status_code == 200, listed.data
    assert listed.data["count"] == 1
    job_id = listed.data["results"][0]["id"]

    url = api_client.get(
        "/api/v1/pdf/jobs/download-url/",
        {"subject_type": "audit_completion", "subject_id": str(completion.id)},
        **scoped(organization, team),
    )
    assert url.status_code == 200, url.data
    assert url.data["pdf_status"] == "succeeded"
    assert url.data["url"]

    rerun = api_client.post(f"/api/v1/pdf/jobs/{job_id}/rerun/", **scoped(organization, team))
    assert rerun.status_code == 200, rerun.data
    assert rerun.data["attempts"] == 2

    detail = api_client.get(f"/api/v1/audits/completions/{completion.id}/", **scoped(organization, team))
    assert detail.data["pdf_status"] == "succeeded"


def test_download_url_is_null_before_render(api_client, organization, team, template, user):
    # Render callbacks never fire inside the test transaction.
    completion = _complete(organization, team, template, user)

    r = api_client.get(
        "/api/v1/pdf/jobs/download-url/",
        {"subject_type": "audit_completion", "subject_id": str(completion.id)},
        **scoped(organization, team),
    )
    assert r.status_code == 200
    assert r.data["url"] is None
    assert r.data["pdf_status"] == "pending"


def test_run_pdf_jobs_command(monkeypatch, django_capture_on_commit_callbacks, organization, team, template, user):
    monkeypatch.setattr("ch_core.pdf.services.render_with_timeout", _renderer_down)
    with django_capture_on_commit_callbacks(execute=True):
        _complete(organization, team, template, user)
    monkeypatch.undo()

    call_command("run_pdf_jobs", "--dry-run")
    assert PdfJob.objects.get().status == PdfJobStatus.FAILED

    call_command("run_pdf_jobs")
    assert PdfJob.objects.get().status == PdfJobStatus.SUCCEEDED


def test_submit_writes_pending_job_before_commit(django_capture_on_commit_callbacks, organization, team, resident, user):
    draft, _ = lifecycle.create_draft(
        organization_id=organization.id,
        team_id=team.id,
        resident_id=resident.id,
        form_type="skin-integrity",
        data={"sensoryPerception": 3, "moisture": 3, "activity": 3, "mobility": 3, "nutrition": 3, "frictionShear": 2},
        actor_user_id=user.id,
        idempotency_key=None,
    )
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        submitted, _ = lifecycle.submit(
            organization_id=organization.id,
            assessment_id=draft.id,
            actor_user_id=user.id,
            idempotency_key=None,
        )
        job = PdfJob.objects.get(subject_id=submitted.id)
        assert job.subject_type == PdfSubjectType.ASSESSMENT
        assert job.status == PdfJobStatus.PENDING

    assert len(callbacks) == 1
