# ch_core/audits/tests/test_action_plans_and_resident_items.py
from datetime import timedelta

import pytest
from django.utils import timezone

from ch_core.audits.models import AuditActionPlan
from ch_core.audits.services import AuditCompletionService
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db


@pytest.fixture
def completion(organization, team, template, user):
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
        items=[{"itemId": "i1", "itemName": "MAR charts signed", "status": "non-compliant"}],
    )


def test_action_plan_create_status_and_count(api_client, organization, team, completion, user):
    r = api_client.post(
        "/api/v1/audits/action-plans/",
        {
            "completion_id": str(completion.id),
            "description": "Retrain night staff on MAR signing",
            "assigned_to_id": user.id,
            "priority": "High",
            "due_date": str(timezone.localdate() - timedelta(days=1)),
        },
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 201, r.data
    assert r.data["status"] == "pending"
    assert r.data["template_id"] == str(completion.template_id)
    assert r.data["assigned_to_name"] == "Test Auditor"
    assert r.data["created_by_name"] == "Test Auditor"
    assert r.data["is_overdue"] is True
    plan_id = r.data["id"]

    s = api_client.post(
        f"/api/v1/audits/action-plans/{plan_id}/status/",
        {"status": "completed", "comment": "Training done"},
        format="json",
        **scoped(organization, team),
    )
    assert s.status_code == 200, s.data
    assert s.data["status"] == "completed"
    assert s.data["latest_comment"] == "Training done"
    assert s.data["completed_at"] is not None
    assert s.data["is_overdue"] is False
    assert [h["status"] for h in s.data["status_history"]] == ["completed"]

    c = api_client.get(
        "/api/v1/audits/action-plans/count/",
        {"completion": str(completion.id)},
        **scoped(organization, team),
    )
    assert c.status_code == 200
    assert c.data["count"] == 1
    assert c.data["open"] == 0


def test_action_plan_viewed_clears_new_flag(api_client, organization, team, completion):
    r = api_client.post(
        "/api/v1/audits/action-plans/",
        {"completion_id": str(completion.id), "description": "Replace sharps bin"},
        format="json",
        **scoped(organization, team),
    )
    assert r.data["is_new"] is True

    v = api_client.post(f"/api/v1/audits/action-plans/{r.data['id']}/viewed/", **scoped(organization, team))
    assert v.status_code == 200
    assert v.data["is_new"] is False
    assert v.data["viewed_at"] is not None


def test_deleting_completion_cascades_action_plans(api_client, organization, team, completion):
    api_client.post(
        "/api/v1/audits/action-plans/",
        {"completion_id": str(completion.id), "description": "Fix fridge seal"},
        format="json",
        **scoped(organization, team),
    )
    assert AuditActionPlan.objects.filter(completion=completion).count() == 1

    r = api_client.delete(f"/api/v1/audits/completions/{completion.id}/", **scoped(organization, team))
    assert r.status_code == 204
    assert AuditActionPlan.objects.count() == 0


def test_action_plan_for_unknown_completion_is_404(api_client, organization, team):
    r = api_client.post(
        "/api/v1/audits/action-plans/",
        {"completion_id": "00000000-0000-0000-0000-00000000abcd", "description": "Nothing"},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 404, r.data


def test_resident_item_upsert_and_overdue_count(api_client, organization, team, resident):
    yesterday = timezone.localdate() - timedelta(days=1)

    first = api_client.post(
        "/api/v1/audits/resident-items/upsert/",
        {"resident_id": str(resident.id), "item_name": "Care plan review", "due_date": str(yesterday)},
        format="json",
        **scoped(organization, team),
    )
    assert first.status_code == 201, first.data
    assert first.data["status"] == "pending"
    assert first.data["is_overdue"] is True

    count = api_client.get(
        "/api/v1/audits/resident-items/overdue-count/",
        {"resident": str(resident.id)},
        **scoped(organization, team),
    )
    assert count.data["overdue"] == 1

    second = api_client.post(
        "/api/v1/audits/resident-items/upsert/",
        {"resident_id": str(resident.id), "item_name": "Care plan review", "status": "completed", "auditor_name": "J. Smith"},
        format="json",
        **scoped(organization, team),
    )
    assert second.status_code == 200, second.data
    assert second.data["id"] == first.data["id"]
    assert second.data["auditor_name"] == "J. Smith"
    # Untouched fields survive a partial upsert.
    assert second.data["due_date"] == str(yesterday)

    count = api_client.get(
        "/api/v1/audits/resident-items/overdue-count/",
        {"resident": str(resident.id)},
        **scoped(organization, team),
    )
    assert count.data["overdue"] == 0

    listed = api_client.get("/api/v1/audits/resident-items/", {"resident": str(resident.id)}, **scoped(organization, team))
    assert listed.status_code == 200
    assert [row["item_name"] for row in listed.data["results"]] == ["Care plan review"]
