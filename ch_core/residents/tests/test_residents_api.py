# ch_core/residents/tests/test_residents_api.py
import pytest
from django.contrib.auth.models import Group

from ch_core.activity.models import ActivityEvent
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/residents/"


def test_create_and_search_residents(api_client, organization, team):
    r = api_client.post(
        BASE,
        {"first_name": "Alan", "last_name": "Price", "room_number": "4", "nhs_number": "943 476 5919"},
        format="json",
        **scoped(organization, team),
    )
    assert r.status_code == 201, r.data
    assert r.data["full_name"] == "Alan Price"
    assert ActivityEvent.objects.filter(event_code="resident.created", entity_id=r.data["id"]).exists()

    api_client.post(BASE, {"first_name": "Beth", "last_name": "Adams"}, format="json", **scoped(organization, team))

    listed = api_client.get(BASE, **scoped(organization, team))
    assert [row["last_name"] for row in listed.data["results"]] == ["Adams", "Price"]

    found = api_client.get(BASE, {"q": "pri"}, **scoped(organization, team))
    assert [row["id"] for row in found.data["results"]] == [r.data["id"]]


def test_duplicate_nhs_number_is_400(api_client, organization, team):
    body = {"first_name": "Alan", "last_name": "Price", "nhs_number": "9434765919"}
    assert api_client.post(BASE, body, format="json", **scoped(organization, team)).status_code == 201

    again = api_client.post(BASE, body, format="json", **scoped(organization, team))
    assert again.status_code == 400, again.data
    assert "nhs_number" in again.data["error"]["details"]


def test_deactivated_residents_hidden_by_default(api_client, organization, team, resident):
    r = api_client.patch(f"{BASE}{resident.id}/", {"is_active": False}, format="json", **scoped(organization, team))
    assert r.status_code == 200, r.data
    assert r.data["is_active"] is False

    assert api_client.get(BASE, **scoped(organization, team)).data["count"] == 0
    assert api_client.get(BASE, {"include_inactive": "true"}, **scoped(organization, team)).data["count"] == 1


def test_empty_update_is_400(api_client, organization, team, resident):
    r = api_client.patch(f"{BASE}{resident.id}/", {}, format="json", **scoped(organization, team))
    assert r.status_code == 400


def test_readonly_user_cannot_create(api_client, user, organization, team):
    user.groups.set([Group.objects.get_or_create(name="READONLY")[0]])

    r = api_client.post(BASE, {"first_name": "A", "last_name": "B"}, format="json", **scoped(organization, team))
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"

    assert api_client.get(BASE, **scoped(organization, team)).status_code == 200
