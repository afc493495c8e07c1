# ch_core/assessments/tests/test_assessment_lifecycle_api.py
import pytest

from ch_core.assessments.models import Assessment, AssessmentStatus
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/assessments/"


def _draft(api_client, organization, team, resident, *, key=None, form_type="skin-integrity", data=None):
    headers = scoped(organization, team)
    if key:
        headers["HTTP_IDEMPOTENCY_KEY"] = key
    return api_client.post(
        f"{BASE}draft/",
        {"resident_id": str(resident.id), "form_type": form_type, "data": data or {"sensoryPerception": 3}},
        format="json",
        **headers,
    )


def _post(api_client, organization, team, url, body=None, key=None):
    headers = scoped(organization, team)
    if key:
        headers["HTTP_IDEMPOTENCY_KEY"] = key
    return api_client.post(url, body or {}, format="json", **headers)


def test_draft_with_same_key_is_reused(api_client, organization, team, resident):
    a = _draft(api_client, organization, team, resident, key="draft-1")
    assert a.status_code == 201, a.data
    assert a.data["status"] == "draft"
    assert a.data["version"] == 1

    b = _draft(api_client, organization, team, resident, key="draft-1")
    assert b.status_code == 200, b.data
    assert b.data["id"] == a.data["id"]

    c = _draft(api_client, organization, team, resident)
    assert c.status_code == 201
    assert c.data["id"] != a.data["id"]


def test_update_draft_merges_or_replaces(api_client, organization, team, resident):
    doc_id = _draft(api_client, organization, team, resident).data["id"]

    merged = api_client.patch(
        f"{BASE}{doc_id}/",
        {"data": {"moisture": 2}},
        format="json",
        **scoped(organization, team),
    )
    assert merged.status_code == 200, merged.data
    assert merged.data["data"] == {"sensoryPerception": 3, "moisture": 2}

    replaced = api_client.patch(
        f"{BASE}{doc_id}/",
        {"data": {"activity": 1}, "replace": True},
        format="json",
        **scoped(organization, team),
    )
    assert replaced.data["data"] == {"activity": 1}


def test_submit_review_amend_chain(api_client, organization, team, resident):
    draft_id = _draft(api_client, organization, team, resident).data["id"]

    sub = _post(api_client, organization, team, f"{BASE}{draft_id}/submit/")
    assert sub.status_code == 201, sub.data
    assert sub.data["status"] == "submitted"
    assert sub.data["version"] == 1
    assert sub.data["supersedes_id"] == draft_id
    assert sub.data["submitted_at"] is not None

    edit = api_client.patch(
        f"{BASE}{sub.data['id']}/",
        {"data": {"moisture": 1}},
        format="json",
        **scoped(organization, team),
    )
    assert edit.status_code == 409, edit.data

    rev = _post(api_client, organization, team, f"{BASE}{sub.data['id']}/review/")
    assert rev.status_code == 201, rev.data
    assert rev.data["status"] == "reviewed"
    assert rev.data["version"] == 1
    assert rev.data["reviewed_by"] is not None

    amd = _post(
        api_client,
        organization,
        team,
        f"{BASE}{rev.data['id']}/amend/",
        {"data_patch": {"moisture": 4}},
    )
    assert amd.status_code == 201, amd.data
    assert amd.data["status"] == "submitted"
    assert amd.data["version"] == 2
    assert amd.data["data"] == {"sensoryPerception": 3, "moisture": 4}

    latest = api_client.get(
        f"{BASE}latest/",
        {"resident": str(resident.id), "form_type": "skin-integrity"},
        **scoped(organization, team),
    )
    assert latest.status_code == 200
    assert latest.data["id"] == amd.data["id"]

    chain = api_client.get(f"{BASE}{amd.data['id']}/versions/", **scoped(organization, team))
    assert chain.status_code == 200
    assert [row["status"] for row in chain.data] == ["reviewed", "submitted", "draft"]


def test_submit_replay_returns_same_row(api_client, organization, team, resident):
    draft_id = _draft(api_client, organization, team, resident).data["id"]

    first = _post(api_client, organization, team, f"{BASE}{draft_id}/submit/", key="submit-1")
    again = _post(api_client, organization, team, f"{BASE}{draft_id}/submit/", key="submit-1")

    assert first.status_code == 201, first.data
    assert again.status_code == 200, again.data
    assert again.data["id"] == first.data["id"]
    assert Assessment.objects.filter(status=AssessmentStatus.SUBMITTED).count() == 1


def test_acting_on_superseded_row_is_conflict(api_client, organization, team, resident):
    draft_id = _draft(api_client, organization, team, resident).data["id"]
    _post(api_client, organization, team, f"{BASE}{draft_id}/submit/", key="submit-1")

    other_key = _post(api_client, organization, team, f"{BASE}{draft_id}/submit/", key="submit-2")
    assert other_key.status_code == 409, other_key.data
    assert other_key.data["error"]["code"] == "conflict"


def test_review_requires_submitted(api_client, organization, team, resident):
    draft_id = _draft(api_client, organization, team, resident).data["id"]

    r = _post(api_client, organization, team, f"{BASE}{draft_id}/review/")
    assert r.status_code == 409, r.data


def test_latest_ignores_drafts_unless_asked(api_client, organization, team, resident):
    draft_id = _draft(api_client, organization, team, resident).data["id"]
    params = {"resident": str(resident.id), "form_type": "skin-integrity"}

    r = api_client.get(f"{BASE}latest/", params, **scoped(organization, team))
    assert r.status_code == 200
    assert r.data is None

    r = api_client.get(f"{BASE}latest/", {**params, "include_drafts": "true"}, **scoped(organization, team))
    assert r.data["id"] == draft_id


def test_assessment_of_other_organization_is_forbidden(
    api_client, organization, team, resident, other_organization, other_team
):
    draft_id = _draft(api_client, organization, team, resident).data["id"]

    r = api_client.get(f"{BASE}{draft_id}/", **scoped(other_organization, other_team))
    assert r.status_code == 403, r.data
