# ch_core/organizations/services.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from ch_core.common.logging import get_logger
from ch_core.organizations.models import Organization, OrganizationStatus

log = get_logger(__name__)


class OrganizationService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        code: str,
        metadata: Optional[dict] = None,
        status: str = OrganizationStatus.ACTIVE,
    ) -> Organization:
        code = (code or "").strip()
        name = (name or "").strip()

        if not code:
            raise ValidationError({"code": "This field is required."})
        if not name:
            raise ValidationError({"name": "This field is required."})
        if Organization.objects.filter(code=code).exists():
            raise ValidationError({"code": "An organization with this code already exists."})

        org = Organization.objects.create(name=name, code=code, status=status, metadata=metadata or {})
        log.info("Organization {} created ({})", org.id, org.code)
        return org

    @staticmethod
    @transaction.atomic
    def update(
        *,
        organization_id: UUID,
        name: Optional[str] = None,
        status: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> Organization:
        org = Organization.objects.select_for_update().get(id=organization_id)

        if name is not None:
            if not name.strip():
                raise ValidationError({"name": "This field may not be blank."})
            org.name = name.strip()
        if status is not None:
            if status not in OrganizationStatus.values:
                raise ValidationError({"status": f"Invalid status. Allowed: {list(OrganizationStatus.values)}"})
            org.status = status
        if metadata is not None:
            org.metadata = metadata

        org.save()
        return org
