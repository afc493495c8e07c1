# ch_core/activity/tests/test_activity_api.py
import pytest

from ch_core.activity.services import ActivityService
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/activity/events/"


def test_activity_is_filtered_and_org_scoped(api_client, organization, team, other_organization, other_team, resident):
    ActivityService.log(
        event_code="resident.updated",
        entity_type="Resident",
        entity_id=resident.id,
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=None,
        metadata={"resident_id": resident.id},
    )
    ActivityService.log(
        event_code="resident.created",
        entity_type="Resident",
        entity_id=resident.id,
        organization_id=other_organization.id,
        team_id=other_team.id,
        actor_user_id=None,
    )

    r = api_client.get(BASE, **scoped(organization, team))
    assert r.status_code == 200, r.data
    assert [row["event_code"] for row in r.data["results"]] == ["resident.updated"]
    # UUIDs are stored as plain strings
    assert r.data["results"][0]["metadata"] == {"resident_id": str(resident.id)}

    filtered = api_client.get(BASE, {"event_code": "resident.created"}, **scoped(organization, team))
    assert filtered.data["count"] == 0


def test_invalid_entity_id_is_400(api_client, organization, team):
    r = api_client.get(BASE, {"entity_id": "nope"}, **scoped(organization, team))
    assert r.status_code == 400
    assert "entity_id" in r.data["error"]["details"]
