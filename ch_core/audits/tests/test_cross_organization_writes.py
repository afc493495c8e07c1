# ch_core/audits/tests/test_cross_organization_writes.py
import pytest

from ch_core.audits.models import AuditCompletion, AuditTemplate, CompletionStatus
from ch_core.audits.services import AuditCompletionService, AuditTemplateService
from ch_core.residents.models import Resident
from ch_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/audits/completions/"
ANSWERS = [{"itemId": "k1", "itemName": "Fridge temperatures logged", "status": "compliant"}]


@pytest.fixture
def foreign_template(other_organization, other_team):
    return AuditTemplateService.create_template(
        organization_id=other_organization.id,
        team_id=other_team.id,
        actor_user_id=None,
        domain="environment",
        name="Kitchen Audit",
        frequency="quarterly",
        items=[{"id": "k1", "name": "Fridge temperatures logged"}],
    )


@pytest.fixture
def foreign_draft(other_organization, other_team, foreign_template):
    draft, _ = AuditCompletionService.get_or_create_draft(
        organization_id=other_organization.id,
        team_id=other_team.id,
        actor_user_id=None,
        template_id=foreign_template.id,
    )
    return draft


@pytest.fixture
def foreign_completed(other_organization, foreign_draft):
    return AuditCompletionService.complete_audit(
        organization_id=other_organization.id,
        actor_user_id=None,
        completion_id=foreign_draft.id,
        items=ANSWERS,
    )


def _assert_forbidden(r):
    assert r.status_code == 403, r.data
    assert r.data["error"]["code"] == "permission_denied"


def test_draft_on_foreign_template(api_client, organization, team, foreign_template):
    r = api_client.post(f"{BASE}draft/", {"template_id": str(foreign_template.id)}, format="json", **scoped(organization, team))

    _assert_forbidden(r)
    assert not AuditCompletion.objects.filter(template=foreign_template).exists()


def test_draft_for_foreign_resident(api_client, organization, team, template, other_organization, other_team):
    stranger = Resident.objects.create(
        organization_id=other_organization.id,
        team_id=other_team.id,
        first_name="Alan",
        last_name="Price",
        room_number="3",
    )

    r = api_client.post(
        f"{BASE}draft/",
        {"template_id": str(template.id), "resident_id": str(stranger.id)},
        format="json",
        **scoped(organization, team),
    )

    _assert_forbidden(r)
    assert not AuditCompletion.objects.filter(resident=stranger).exists()
    assert not AuditCompletion.objects.filter(template=template).exists()


def test_autosave_foreign_completion(api_client, organization, team, foreign_draft):
    r = api_client.patch(
        f"{BASE}{foreign_draft.id}/autosave/",
        {"overall_notes": "Overwritten", "status": "in-progress"},
        format="json",
        **scoped(organization, team),
    )

    _assert_forbidden(r)
    foreign_draft.refresh_from_db()
    assert foreign_draft.overall_notes == ""
    assert foreign_draft.status == CompletionStatus.DRAFT


def test_complete_foreign_completion(api_client, organization, team, foreign_draft):
    r = api_client.post(f"{BASE}{foreign_draft.id}/complete/", {"items": ANSWERS}, format="json", **scoped(organization, team))

    _assert_forbidden(r)
    foreign_draft.refresh_from_db()
    assert foreign_draft.status == CompletionStatus.DRAFT
    assert foreign_draft.completed_at is None
    assert foreign_draft.next_audit_due is None


def test_correct_foreign_completion(api_client, organization, team, foreign_completed):
    r = api_client.post(f"{BASE}{foreign_completed.id}/correct/", {}, format="json", **scoped(organization, team))

    _assert_forbidden(r)
    assert not AuditCompletion.objects.filter(supersedes=foreign_completed).exists()


def test_delete_foreign_completion(api_client, organization, team, foreign_completed):
    r = api_client.delete(f"{BASE}{foreign_completed.id}/", **scoped(organization, team))

    _assert_forbidden(r)
    assert AuditCompletion.objects.filter(pk=foreign_completed.id).exists()


def test_edit_or_delete_foreign_template(api_client, organization, team, foreign_template):
    patched = api_client.patch(
        f"/api/v1/audits/templates/{foreign_template.id}/",
        {"name": "Renamed"},
        format="json",
        **scoped(organization, team),
    )
    _assert_forbidden(patched)

    archived = api_client.post(f"/api/v1/audits/templates/{foreign_template.id}/archive/", **scoped(organization, team))
    _assert_forbidden(archived)

    deleted = api_client.delete(f"/api/v1/audits/templates/{foreign_template.id}/", **scoped(organization, team))
    _assert_forbidden(deleted)

    foreign_template.refresh_from_db()
    assert foreign_template.name == "Kitchen Audit"
    assert foreign_template.is_active is True
    assert AuditTemplate.objects.filter(pk=foreign_template.id).exists()
