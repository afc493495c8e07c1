# ch_core/residents/models.py
from django.db import models

from ch_core.common.models import ScopedModel


class Resident(ScopedModel):
    """
    Person living in a care home (team). Resident-level audits and clinical
    assessments hang off this record.
    """
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128)
    date_of_birth = models.DateField(null=True, blank=True)
    nhs_number = models.CharField(max_length=32, blank=True, default="")
    room_number = models.CharField(max_length=32, blank=True, default="")

    admitted_on = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "residents_resident"
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "nhs_number"],
                condition=~models.Q(nhs_number=""),
                name="uq_resident_org_nhs_number",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_id", "team_id", "last_name"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name
