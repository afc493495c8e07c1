# ch_core/audits/tests/test_completion_lifecycle_api.py
from datetime import timedelta

import pytest

from ch_core.audits.models import AuditCompletion
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/audits/completions/"


def _draft(api_client, organization, team, template, **extra):
    return api_client.post(
        f"{BASE}draft/",
        {"template_id": str(template.id), **extra},
        format="json",
        **scoped(organization, team),
    )


def _answers():
    return [
        {"itemId": "i1", "itemName": "MAR charts signed", "status": "compliant"},
        {"itemId": "i2", "itemName": "Controlled drugs checked", "status": "checked"},
        {"itemId": "i3", "itemName": "Comments", "notes": "All good"},
    ]


def test_draft_is_created_once_then_reused(api_client, organization, team, template):
    first = _draft(api_client, organization, team, template)
    assert first.status_code == 201, first.data
    assert first.data["status"] == "draft"
    assert first.data["template_name"] == "Medication Audit"
    assert [i["itemId"] for i in first.data["items"]] == ["i1", "i2", "i3"]
    assert first.data["audited_by"] == "Test Auditor"

    again = _draft(api_client, organization, team, template)
    assert again.status_code == 200, again.data
    assert again.data["id"] == first.data["id"]
    assert AuditCompletion.objects.filter(template=template).count() == 1


def test_autosave_moves_forward_only(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]

    r = api_client.patch(
        f"{BASE}{cid}/autosave/",
        {"items": _answers()[:1], "status": "in-progress"},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 200, r.data
    assert r.data["status"] == "in-progress"
    assert r.data["items"][0]["status"] == "compliant"

    back = api_client.patch(
        f"{BASE}{cid}/autosave/",
        {"status": "draft"},
        format="json",
        **scoped(organization, team),
    )
    assert back.status_code == 409, back.data
    assert back.data["error"]["code"] == "conflict"


def test_autosave_rejects_unknown_item_status(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]

    r = api_client.patch(
        f"{BASE}{cid}/autosave/",
        {"items": [{"itemId": "i1", "itemName": "MAR charts signed", "status": "maybe"}]},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"
    assert "items" in r.data["error"]["details"]


def test_complete_sets_next_due_from_frequency(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]

    r = api_client.post(f"{BASE}{cid}/complete/", {"items": _answers()}, format="json", **scoped(organization, team))
    assert r.status_code == 200, r.data
    assert r.data["status"] == "completed"

    row = AuditCompletion.objects.get(pk=cid)
    assert row.completed_at is not None
    assert row.next_audit_due == row.completed_at + timedelta(days=30)

    twice = api_client.post(f"{BASE}{cid}/complete/", {}, format="json", **scoped(organization, team))
    assert twice.status_code == 409, twice.data


def test_latest_is_null_until_completed(api_client, organization, team, template):
    r = api_client.get(f"{BASE}latest/", {"template": str(template.id)}, **scoped(organization, team))
    assert r.status_code == 200
    assert r.data is None

    cid = _draft(api_client, organization, team, template).data["id"]
    r = api_client.get(f"{BASE}latest/", {"template": str(template.id)}, **scoped(organization, team))
    assert r.data is None

    api_client.post(f"{BASE}{cid}/complete/", {"items": _answers()}, format="json", **scoped(organization, team))
    r = api_client.get(f"{BASE}latest/", {"template": str(template.id)}, **scoped(organization, team))
    assert r.status_code == 200
    assert r.data["id"] == cid


def test_correction_creates_new_version(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]
    api_client.post(f"{BASE}{cid}/complete/", {"items": _answers()}, format="json", **scoped(organization, team))

    fixed = _answers()
    fixed[0]["status"] = "non-compliant"
    r = api_client.post(f"{BASE}{cid}/correct/", {"items": fixed}, format="json", **scoped(organization, team))
    assert r.status_code == 201, r.data
    assert r.data["version"] == 2
    assert r.data["supersedes_id"] == cid
    assert r.data["items"][0]["status"] == "non-compliant"

    original = AuditCompletion.objects.get(pk=cid)
    assert original.items[0]["status"] == "compliant"

    latest = api_client.get(f"{BASE}latest/", {"template": str(template.id)}, **scoped(organization, team))
    assert latest.data["id"] == r.data["id"]

    versions = api_client.get(f"{BASE}{r.data['id']}/versions/", **scoped(organization, team))
    assert versions.status_code == 200
    assert [v["id"] for v in versions.data] == [cid]

    again = api_client.post(f"{BASE}{cid}/correct/", {}, format="json", **scoped(organization, team))
    assert again.status_code == 409, again.data


def test_autosave_on_completed_row_produces_correction(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]
    api_client.post(f"{BASE}{cid}/complete/", {"items": _answers()}, format="json", **scoped(organization, team))

    r = api_client.patch(
        f"{BASE}{cid}/autosave/",
        {"overall_notes": "Late entry"},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 201, r.data
    assert r.data["id"] != cid
    assert r.data["overall_notes"] == "Late entry"
    assert AuditCompletion.objects.get(pk=cid).overall_notes == ""


def test_archived_template_cannot_start_draft(api_client, organization, team, template):
    r = api_client.post(f"/api/v1/audits/templates/{template.id}/archive/", format="json", **scoped(organization, team))
    assert r.status_code == 200, r.data
    assert r.data["is_active"] is False

    d = _draft(api_client, organization, team, template)
    assert d.status_code == 400, d.data


def test_resident_level_drafts_are_separate(api_client, organization, team, template, resident):
    org_level = _draft(api_client, organization, team, template)
    per_resident = _draft(api_client, organization, team, template, resident_id=str(resident.id))

    assert org_level.status_code == 201
    assert per_resident.status_code == 201
    assert per_resident.data["resident_name"] == "Mary Jones"
    assert per_resident.data["room_number"] == "12"
    assert org_level.data["id"] != per_resident.data["id"]


def test_delete_completion(api_client, organization, team, template):
    cid = _draft(api_client, organization, team, template).data["id"]

    r = api_client.delete(f"{BASE}{cid}/", **scoped(organization, team))
    assert r.status_code == 204
    assert not AuditCompletion.objects.filter(pk=cid).exists()

    missing = api_client.get(f"{BASE}{cid}/", **scoped(organization, team))
    assert missing.status_code == 404
    assert missing.data["error"]["code"] == "not_found"
