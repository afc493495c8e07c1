# ch_core/pdf/tests/test_pdf_bridge_api.py
import pytest
from rest_framework.test import APIClient

from ch_core.assessments.services import lifecycle
from ch_core.pdf.rendering import RenderError

pytestmark = pytest.mark.django_db

AUTH = {"HTTP_AUTHORIZATION": "Bearer test-pdf-token"}


@pytest.fixture
def service_client():
    return APIClient()


def test_admission_renders_pdf(service_client):
    r = service_client.post(
        "/api/v1/pdf/admission/",
        {"firstName": "Mary", "lastName": "Jones", "bedroomNumber": "12", "submittedAt": 1709596800000},
        format="json",
        **AUTH,
    )
    assert r.status_code == 200
    assert r["Content-Type"] == "application/pdf"
    assert r["Content-Disposition"] == 'attachment; filename="admission-assessment-Mary-Jones.pdf"'
    assert r.content.startswith(b"%PDF")
    assert int(r["Content-Length"]) == len(r.content)


def test_unscoped_alias_also_works(service_client):
    r = service_client.post("/api/pdf/dnacpr/", {"residentName": "Mary Jones"}, format="json", **AUTH)
    assert r.status_code == 200
    assert 'filename="dnacpr-Mary-Jones.pdf"' in r["Content-Disposition"]


@pytest.mark.parametrize(
    "form, message",
    [
        ("admission", "Assessment data is required"),
        ("dnacpr", "DNACPR data is required"),
        ("peep", "PEEP data is required"),
        ("skin-integrity", "Assessment data is required"),
    ],
)
def test_empty_body_is_400(service_client, form, message):
    r = service_client.post(f"/api/v1/pdf/{form}/", {}, format="json", **AUTH)
    assert r.status_code == 400, r.data
    assert r.data["error"]["message"] == message


def test_nhs_report_needs_incident_and_trust_report(service_client):
    r = service_client.post("/api/v1/pdf/nhs-report/", {"incident": {"id": "x"}}, format="json", **AUTH)
    assert r.status_code == 400
    assert r.data["error"]["message"] == "Incident and trust report data are required"

    ok = service_client.post(
        "/api/v1/pdf/nhs-report/",
        {"incident": {"id": "inc-0001", "date": "2024-03-05"}, "trustReport": {"summary": "Fall"}},
        format="json",
        **AUTH,
    )
    assert ok.status_code == 200
    assert 'filename="nhs-report-2024-03-05-c-0001.pdf"' in ok["Content-Disposition"]


def test_missing_or_wrong_token_is_401(service_client):
    r = service_client.post("/api/v1/pdf/admission/", {"firstName": "Mary"}, format="json")
    assert r.status_code == 401
    assert r.data["error"]["message"] == "Unauthorized"

    r = service_client.post(
        "/api/v1/pdf/admission/",
        {"firstName": "Mary"},
        format="json",
        HTTP_AUTHORIZATION="Bearer nope",
    )
    assert r.status_code == 401


def test_unset_token_rejects_everything(settings, service_client):
    settings.PDF_API_TOKEN = ""
    r = service_client.post("/api/v1/pdf/admission/", {"firstName": "Mary"}, format="json", **AUTH)
    assert r.status_code == 401


def test_auth_disabled_skips_token(settings, service_client):
    settings.PDF_API_AUTH_DISABLED = True
    r = service_client.post("/api/v1/pdf/peep/", {"residentName": "Mary Jones"}, format="json")
    assert r.status_code == 200


def test_unknown_form_is_404(service_client):
    r = service_client.post("/api/v1/pdf/tax-return/", {"a": 1}, format="json", **AUTH)
    assert r.status_code == 404


def test_stored_form_by_id(service_client, organization, team, resident, user):
    doc, _ = lifecycle.create_draft(
        organization_id=organization.id,
        team_id=team.id,
        resident_id=resident.id,
        form_type="moving-handling",
        data={"weight": "70kg"},
        actor_user_id=user.id,
        idempotency_key=None,
    )

    missing = service_client.post("/api/v1/pdf/moving-handling/", {}, format="json", **AUTH)
    assert missing.status_code == 400
    assert missing.data["error"]["message"] == "Assessment ID is required"

    unknown = service_client.post(
        "/api/v1/pdf/moving-handling/",
        {"assessmentId": "00000000-0000-0000-0000-000000000001"},
        format="json",
        **AUTH,
    )
    assert unknown.status_code == 404
    assert unknown.data["error"]["message"] == "Assessment not found"

    # Right id, wrong form route.
    wrong = service_client.post(
        "/api/v1/pdf/infection-prevention/",
        {"assessmentId": str(doc.id)},
        format="json",
        **AUTH,
    )
    assert wrong.status_code == 404

    ok = service_client.post("/api/v1/pdf/moving-handling/", {"assessmentId": str(doc.id)}, format="json", **AUTH)
    assert ok.status_code == 200
    assert ok.content.startswith(b"%PDF")


def test_render_failure_is_500_envelope(monkeypatch, service_client):
    def boom(doc, **kwargs):
        raise RenderError("layout exploded")

    monkeypatch.setattr("ch_core.pdf.api.views.render_with_timeout", boom)

    r = service_client.post("/api/v1/pdf/peep/", {"residentName": "Mary Jones"}, format="json", **AUTH)
    assert r.status_code == 500
    assert r.data["error"]["message"] == "Failed to generate PDF"
    assert r.data["error"]["details"] == "layout exploded"
