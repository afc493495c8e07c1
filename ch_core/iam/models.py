# ch_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models

from ch_core.organizations.models import Organization
from ch_core.teams.models import Team


class Permission(models.Model):
    """
    Atomic capability, e.g. "audits.complete", "assessments.review".
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=128, unique=True)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "iam_permission"

    def __str__(self) -> str:
        return self.code


class Role(models.Model):
    """
    Organization-scoped role (each provider can define its own).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="roles")

    name = models.CharField(max_length=128)
    code = models.SlugField(max_length=64)

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "iam_role"
        constraints = [
            models.UniqueConstraint(fields=["organization", "code"], name="uq_role_organization_code"),
        ]

    def __str__(self) -> str:
        return self.code


class RolePermission(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="role_permissions")
    permission = models.ForeignKey(Permission, on_delete=models.PROTECT, related_name="permission_roles")

    class Meta:
        db_table = "iam_role_permission"
        constraints = [
            models.UniqueConstraint(fields=["role", "permission"], name="uq_role_permission"),
        ]


class UserProfile(models.Model):
    """
    Staff profile anchored to Django's AUTH_USER_MODEL.
    display_name is what audits record as "audited by".
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="care_profile")
    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="user_profiles")
    display_name = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_user_profile"

    def __str__(self) -> str:
        return f"{self.user.username} ({self.organization.code})"


class TeamMembership(models.Model):
    """
    Assigns a user to a team with a role.
    This is the enforcement point for team-level access.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="team_memberships")
    team = models.ForeignKey(Team, on_delete=models.PROTECT, related_name="memberships")

    user_profile = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name="memberships")
    role = models.ForeignKey(Role, on_delete=models.PROTECT, related_name="memberships")

    is_primary = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "iam_team_membership"
        constraints = [
            models.UniqueConstraint(fields=["team", "user_profile"], name="uq_team_user_profile_membership"),
        ]
        indexes = [
            models.Index(fields=["organization", "team"]),
        ]
