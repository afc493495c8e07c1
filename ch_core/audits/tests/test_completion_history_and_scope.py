# ch_core/audits/tests/test_completion_history_and_scope.py
from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone

from ch_core.audits import selectors
from ch_core.audits.models import AuditCompletion, CompletionStatus
from ch_core.audits.services import AuditCompletionService, AuditTemplateService
from ch_core.common.api.exceptions import ConflictError
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


def _complete_once(organization, team, template, user, resident=None):
    draft, _ = AuditCompletionService.get_or_create_draft(
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=user.id,
        template_id=template.id,
        resident_id=resident.id if resident else None,
    )
    return AuditCompletionService.complete_audit(
        organization_id=organization.id,
        actor_user_id=user.id,
        completion_id=draft.id,
        items=[{"itemId": "i1", "itemName": "MAR charts signed", "status": "compliant"}],
    )


def test_history_cap_archives_oldest(settings, organization, team, template, user):
    settings.AUDIT_HISTORY_LIMIT = 3

    done = [_complete_once(organization, team, template, user) for _ in range(5)]

    current = selectors.current_completed(AuditCompletion.objects.filter(template=template))
    assert current.count() == 3

    archived = list(selectors.archived_completions(organization_id=organization.id, template_id=template.id, resident_id=None))
    assert {c.id for c in archived} == {done[0].id, done[1].id}

    latest = selectors.latest_completion(organization_id=organization.id, template_id=template.id)
    assert latest.id == done[-1].id

    history = selectors.completion_history(organization_id=organization.id, template_id=template.id)
    assert [c.id for c in history] == [done[3].id, done[2].id]


def test_history_api_excludes_latest(api_client, organization, team, template, user):
    first = _complete_once(organization, team, template, user)
    second = _complete_once(organization, team, template, user)

    r = api_client.get(
        "/api/v1/audits/completions/history/",
        {"template": str(template.id)},
        **scoped(organization, team),
    )
    assert r.status_code == 200, r.data
    assert [c["id"] for c in r.data] == [str(first.id)]

    latest = api_client.get(
        "/api/v1/audits/completions/latest/",
        {"template": str(template.id)},
        **scoped(organization, team),
    )
    assert latest.data["id"] == str(second.id)


def test_overdue_and_upcoming(organization, team, template, user):
    completion = _complete_once(organization, team, template, user)
    now = timezone.now()

    AuditCompletion.objects.filter(pk=completion.id).update(next_audit_due=now - timedelta(days=1))
    overdue = selectors.overdue_completions(organization_id=organization.id)
    assert [c.id for c in overdue] == [completion.id]
    assert selectors.upcoming_completions(organization_id=organization.id) == []

    AuditCompletion.objects.filter(pk=completion.id).update(next_audit_due=now + timedelta(days=3))
    assert selectors.overdue_completions(organization_id=organization.id) == []
    upcoming = selectors.upcoming_completions(organization_id=organization.id, window_days=7)
    assert [c.id for c in upcoming] == [completion.id]


def test_other_organization_row_is_forbidden(api_client, organization, team, other_organization, other_team, user):
    foreign_template = AuditTemplateService.create_template(
        organization_id=other_organization.id,
        team_id=other_team.id,
        actor_user_id=None,
        domain="environment",
        name="Kitchen Audit",
        frequency="quarterly",
        items=[{"name": "Fridge temperatures logged"}],
    )
    foreign, _ = AuditCompletionService.get_or_create_draft(
        organization_id=other_organization.id,
        team_id=other_team.id,
        actor_user_id=None,
        template_id=foreign_template.id,
    )

    r = api_client.get(f"/api/v1/audits/completions/{foreign.id}/", **scoped(organization, team))
    assert r.status_code == 403, r.data
    assert r.data["error"]["code"] == "permission_denied"

    t = api_client.get(f"/api/v1/audits/templates/{foreign_template.id}/", **scoped(organization, team))
    assert t.status_code == 403, t.data

    # Listing never leaks other organizations' rows.
    listed = api_client.get("/api/v1/audits/completions/", **scoped(organization, team))
    assert listed.status_code == 200
    assert all(row["organization_id"] == str(organization.id) for row in listed.data["results"])


def test_missing_scope_headers_is_400(api_client):
    r = api_client.get("/api/v1/audits/completions/")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"
    assert "X-Organization-Id" in r.data["error"]["message"]


def test_template_delete_keeps_completions(api_client, organization, team, template, user):
    completion = _complete_once(organization, team, template, user)

    r = api_client.delete(f"/api/v1/audits/templates/{template.id}/", **scoped(organization, team))
    assert r.status_code == 204

    completion.refresh_from_db()
    assert completion.template_id is None
    assert completion.template_name == "Medication Audit"
    assert completion.status == CompletionStatus.COMPLETED

    rows = selectors.all_latest_completions(organization_id=organization.id)
    assert [c.id for c in rows] == [completion.id]


def test_frequency_must_match_domain(api_client, organization, team):
    r = api_client.post(
        "/api/v1/audits/templates/",
        {"domain": "care_file", "name": "Care Plan Review", "frequency": "monthly", "items": []},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 400, r.data
    assert "frequency" in r.data["error"]["details"]


def test_cleanup_removes_only_unanswered_old_drafts(organization, team, template, user, resident):
    empty, _ = AuditCompletionService.get_or_create_draft(
        organization_id=organization.id, team_id=team.id, actor_user_id=user.id, template_id=template.id
    )
    answered, _ = AuditCompletionService.get_or_create_draft(
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=user.id,
        template_id=template.id,
        resident_id=resident.id,
    )
    AuditCompletionService.update_response(
        organization_id=organization.id,
        actor_user_id=user.id,
        completion_id=answered.id,
        items=[{"itemId": "i1", "itemName": "MAR charts signed", "status": "compliant"}],
    )

    old = timezone.now() - timedelta(days=45)
    AuditCompletion.objects.filter(pk__in=[empty.id, answered.id]).update(created_at=old)

    removed = AuditCompletionService.cleanup_old_drafts(max_age_days=30)

    assert removed == 1
    assert not AuditCompletion.objects.filter(pk=empty.id).exists()
    assert AuditCompletion.objects.filter(pk=answered.id).exists()


def test_list_by_resident(api_client, organization, team, template, user, resident):
    _complete_once(organization, team, template, user)
    mine = _complete_once(organization, team, template, user, resident=resident)

    r = api_client.get("/api/v1/audits/completions/", {"resident": str(resident.id)}, **scoped(organization, team))
    assert r.status_code == 200, r.data
    assert [row["id"] for row in r.data["results"]] == [str(mine.id)]

    missing = api_client.get(
        "/api/v1/audits/completions/",
        {"resident": "00000000-0000-0000-0000-00000000abcd"},
        **scoped(organization, team),
    )
    assert missing.status_code == 404


def test_concurrent_correction_reports_conflict_without_db_error(monkeypatch, organization, team, template, user):
    original = _complete_once(organization, team, template, user)

    def unique_violation(**kwargs):
        raise IntegrityError("duplicate key value violates unique constraint")

    # Another request inserted the correction between the check and the insert.
    monkeypatch.setattr(AuditCompletion.objects, "create", unique_violation)

    with pytest.raises(ConflictError) as exc:
        AuditCompletionService.correct_completion(
            organization_id=organization.id,
            actor_user_id=user.id,
            completion_id=original.id,
        )

    assert exc.value.__cause__ is None
    assert exc.value.__suppress_context__ is True
