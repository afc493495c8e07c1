# ch_core/audits/tests/test_domains_and_frequencies.py
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from ch_core.audits import selectors
from ch_core.audits.models import AuditCompletion
from ch_core.audits.services import AuditCompletionService, AuditTemplateService
from ch_core.audits.services.frequency import next_due
from ch_core.tests.helpers import scoped

BASE = "/api/v1/audits/completions/"
COMPLETED_AT = datetime(2024, 3, 5, 9, 30, tzinfo=dt_timezone.utc)


@pytest.mark.parametrize(
    "frequency, days",
    [
        ("daily", 1),
        ("weekly", 7),
        ("monthly", 30),
        ("quarterly", 90),
        ("3months", 90),
        ("6months", 180),
        ("yearly", 365),
        ("fortnightly", 180),
        ("", 180),
        (None, 180),
    ],
)
def test_next_due_interval(frequency, days):
    assert next_due(COMPLETED_AT, frequency) == COMPLETED_AT + timedelta(days=days)


def test_next_due_yearly_from_epoch():
    epoch = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
    due = next_due(epoch, "yearly")
    assert int(due.timestamp() * 1000) == 31536000000


def test_adhoc_has_no_next_due():
    assert next_due(COMPLETED_AT, "adhoc") is None


def _template(organization, team, user, *, domain, frequency, name):
    return AuditTemplateService.create_template(
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=user.id,
        domain=domain,
        name=name,
        frequency=frequency,
        items=[{"id": "q1", "name": "Checked"}],
    )


def _complete(organization, team, template, user, resident=None):
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
        items=[{"itemId": "q1", "itemName": "Checked", "status": "compliant"}],
    )


@pytest.mark.django_db
def test_clinical_audit_lifecycle(api_client, organization, team):
    t = api_client.post(
        "/api/v1/audits/templates/",
        {"domain": "clinical", "name": "Falls Audit", "frequency": "monthly", "items": [{"id": "q1", "name": "Falls log"}]},
        format="json",
        **scoped(organization, team),
    )
    assert t.status_code == 201, t.data
    assert t.data["domain"] == "clinical"

    d = api_client.post(f"{BASE}draft/", {"template_id": t.data["id"]}, format="json", **scoped(organization, team))
    assert d.status_code == 201, d.data
    assert d.data["domain"] == "clinical"

    c = api_client.post(
        f"{BASE}{d.data['id']}/complete/",
        {"items": [{"itemId": "q1", "itemName": "Falls log", "status": "compliant"}]},
        format="json",
        **scoped(organization, team),
    )
    assert c.status_code == 200, c.data

    row = AuditCompletion.objects.get(pk=d.data["id"])
    assert row.next_audit_due == row.completed_at + timedelta(days=30)

    latest = api_client.get(f"{BASE}all-latest/", {"domain": "clinical"}, **scoped(organization, team))
    assert latest.status_code == 200, latest.data
    assert [r["id"] for r in latest.data] == [d.data["id"]]


@pytest.mark.django_db
@pytest.mark.parametrize("frequency, days", [("daily", 1), ("weekly", 7)])
def test_resident_audit_short_intervals(organization, team, user, resident, frequency, days):
    template = _template(organization, team, user, domain="resident", frequency=frequency, name="Room Check")

    completion = _complete(organization, team, template, user, resident=resident)

    assert completion.domain == "resident"
    assert completion.resident_id == resident.id
    assert completion.next_audit_due == completion.completed_at + timedelta(days=days)


@pytest.mark.django_db
def test_adhoc_audit_is_never_overdue_or_upcoming(organization, team, user, resident):
    template = _template(organization, team, user, domain="resident", frequency="adhoc", name="Incident Review")

    completion = _complete(organization, team, template, user, resident=resident)

    assert completion.next_audit_due is None
    later = completion.completed_at + timedelta(days=400)
    assert selectors.overdue_completions(organization_id=organization.id, now=later) == []
    assert selectors.upcoming_completions(organization_id=organization.id, now=later, window_days=400) == []
    assert [c.id for c in selectors.all_latest_completions(organization_id=organization.id)] == [completion.id]


@pytest.mark.django_db
@pytest.mark.parametrize(
    "domain, frequency",
    [
        ("clinical", "3months"),
        ("clinical", "daily"),
        ("resident", "6months"),
        ("governance", "adhoc"),
        ("care_file", "weekly"),
    ],
)
def test_domain_rejects_frequency_it_does_not_offer(api_client, organization, team, domain, frequency):
    r = api_client.post(
        "/api/v1/audits/templates/",
        {"domain": domain, "name": "Audit", "frequency": frequency, "items": []},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 400, r.data
    assert "frequency" in r.data["error"]["details"]
