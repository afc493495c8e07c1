# ch_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from ch_core.organizations.models import Organization
from ch_core.residents.models import Resident
from ch_core.teams.models import Team


@pytest.fixture
def organization(db):
    return Organization.objects.create(code="test-org", name="Test Care Group")


@pytest.fixture
def team(db, organization):
    return Team.objects.create(organization=organization, code="main", name="Main Home")


@pytest.fixture
def user(db, organization, team):
    """
    Test user with ADMIN group + team membership.
      auth_user -> UserProfile -> TeamMembership
    """
    from ch_core.iam.models import Role, TeamMembership, UserProfile

    User = get_user_model()
    user = User.objects.create_user(
        username="testuser",
        password="testpass",
        first_name="Test",
        last_name="Auditor",
        is_active=True,
    )

    admin_group, _ = Group.objects.get_or_create(name="ADMIN")
    user.groups.add(admin_group)

    user_profile = UserProfile.objects.create(
        user=user,
        organization=organization,
        display_name="Test Auditor",
        is_active=True,
    )

    admin_role, _ = Role.objects.get_or_create(
        organization=organization,
        code="admin",
        defaults={"name": "Administrator", "is_active": True},
    )

    TeamMembership.objects.create(
        organization=organization,
        team=team,
        user_profile=user_profile,
        role=admin_role,
        is_active=True,
    )

    return user


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def other_organization(db):
    return Organization.objects.create(code="other-org", name="Other Care Group")


@pytest.fixture
def other_team(db, other_organization):
    return Team.objects.create(organization=other_organization, code="other", name="Other Home")


@pytest.fixture
def resident(db, organization, team):
    return Resident.objects.create(
        organization_id=organization.id,
        team_id=team.id,
        first_name="Mary",
        last_name="Jones",
        room_number="12",
    )


@pytest.fixture
def template(db, organization, team, user):
    from ch_core.audits.services import AuditTemplateService

    return AuditTemplateService.create_template(
        organization_id=organization.id,
        team_id=team.id,
        actor_user_id=user.id,
        domain="governance",
        name="Medication Audit",
        frequency="monthly",
        items=[
            {"id": "i1", "name": "MAR charts signed"},
            {"id": "i2", "name": "Controlled drugs checked", "type": "checkbox"},
            {"id": "i3", "name": "Comments", "type": "notes"},
        ],
    )
