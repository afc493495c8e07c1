import json

import pytest
from django.contrib.auth.models import User
from django.test import RequestFactory

from ch_core.common.middleware import OrganizationTeamScopeMiddleware


def _run(path, user, **headers):
    req = RequestFactory().get(path, **headers)
    req.user = user
    mw = OrganizationTeamScopeMiddleware(get_response=lambda r: None)
    return req, mw.process_request(req)


@pytest.fixture
def plain_user(db):
    return User.objects.create_user(username="u1", password="pass123")


def test_missing_scope_returns_error_envelope(plain_user):
    _, resp = _run("/api/v1/audits/completions/", plain_user)

    assert resp is not None
    assert resp.status_code == 400

    body = json.loads(resp.content.decode("utf-8"))
    assert body["error"]["code"] == "validation_error"
    assert "Missing scope headers" in body["error"]["message"]
    assert body["error"]["request_id"]


def test_request_id_header_is_echoed(plain_user):
    _, resp = _run("/api/v1/residents/", plain_user, HTTP_X_REQUEST_ID="req-123")

    body = json.loads(resp.content.decode("utf-8"))
    assert body["error"]["request_id"] == "req-123"


def test_invalid_scope_returns_error_envelope(plain_user):
    _, resp = _run(
        "/api/v1/residents/",
        plain_user,
        HTTP_X_ORGANIZATION_ID="not-a-uuid",
        HTTP_X_TEAM_ID="also-not-a-uuid",
    )

    assert resp.status_code == 400
    body = json.loads(resp.content.decode("utf-8"))
    assert "Invalid scope headers" in body["error"]["message"]


def test_non_member_returns_403_envelope(plain_user, monkeypatch):
    monkeypatch.setattr(
        "ch_core.common.middleware.is_user_member_of_team",
        lambda **kwargs: False,
        raising=True,
    )

    _, resp = _run(
        "/api/v1/residents/",
        plain_user,
        HTTP_X_ORGANIZATION_ID="11111111-1111-1111-1111-111111111111",
        HTTP_X_TEAM_ID="22222222-2222-2222-2222-222222222222",
    )

    assert resp.status_code == 403
    body = json.loads(resp.content.decode("utf-8"))
    assert body["error"]["code"] == "permission_denied"
    assert "do not have access" in body["error"]["message"].lower()


def test_member_scope_is_attached(user, organization, team):
    req, resp = _run(
        "/api/v1/residents/",
        user,
        HTTP_X_ORGANIZATION_ID=str(organization.id),
        HTTP_X_TEAM_ID=str(team.id),
    )

    assert resp is None
    assert req.organization_id == organization.id
    assert req.team_id == team.id


@pytest.mark.parametrize(
    "path",
    [
        "/api/v1/me/",
        "/api/v1/session/bootstrap/",
        "/api/v1/auth/login/",
        "/api/v1/pdf/admission/",
        "/api/pdf/nhs-report/",
        "/api/docs/",
    ],
)
def test_unscoped_paths_pass_without_headers(plain_user, path):
    _, resp = _run(path, plain_user)
    assert resp is None


def test_pdf_jobs_listing_is_scoped(plain_user):
    _, resp = _run("/api/v1/pdf/jobs/", plain_user)
    assert resp is not None
    assert resp.status_code == 400
