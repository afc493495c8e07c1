# ch_core/teams/models.py
from __future__ import annotations

import uuid

from django.db import models

from ch_core.organizations.models import Organization


class TeamType(models.TextChoices):
    CARE_HOME = "CARE_HOME", "Care home"
    UNIT = "UNIT", "Unit / floor"
    OFFICE = "OFFICE", "Office"


class Team(models.Model):
    """
    A care home (or a unit within one) under an Organization.
    Audits, residents and memberships are scoped to a team.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="teams")

    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64)  # unique per organization

    team_type = models.CharField(
        max_length=16,
        choices=TeamType.choices,
        default=TeamType.CARE_HOME,
        db_index=True,
    )

    phone = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address_line1 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=128, blank=True, default="")
    postcode = models.CharField(max_length=16, blank=True, default="")

    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "teams_team"
        constraints = [
            models.UniqueConstraint(fields=["organization", "code"], name="uq_team_organization_code"),
        ]
        indexes = [
            models.Index(fields=["organization", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"
