# ch_core/audits/services/resident_items.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ch_core.activity.services import ActivityService
from ch_core.audits.models import ResidentAuditItem, ResidentItemStatus
from ch_core.residents.selectors import get_owned_resident

_UNSET = object()


class ResidentAuditItemService:
    @staticmethod
    @transaction.atomic
    def upsert_item(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        resident_id: UUID,
        item_name: str,
        status: Optional[str] = None,
        auditor_name=_UNSET,
        last_audited_date=_UNSET,
        due_date=_UNSET,
    ) -> tuple[ResidentAuditItem, bool]:
        """Create or update the (resident, item_name) row. Only supplied fields change."""
        resident = get_owned_resident(organization_id=organization_id, resident_id=resident_id)

        name = (item_name or "").strip()
        if not name:
            raise ValidationError({"item_name": "Item name is required."})
        if status is not None and status not in ResidentItemStatus.values:
            raise ValidationError({"status": f"Unknown status '{status}'."})

        defaults = {}
        if status is not None:
            defaults["status"] = status
        if auditor_name is not _UNSET:
            defaults["auditor_name"] = auditor_name or ""
        if last_audited_date is not _UNSET:
            defaults["last_audited_date"] = last_audited_date
        if due_date is not _UNSET:
            defaults["due_date"] = due_date

        try:
            with transaction.atomic():
                item, created = ResidentAuditItem.objects.update_or_create(
                    resident=resident,
                    item_name=name,
                    defaults=defaults,
                    create_defaults={
                        **defaults,
                        "organization_id": resident.organization_id,
                        "team_id": resident.team_id,
                    },
                )
        except IntegrityError:
            # Concurrent first write for this item; apply ours on top.
            item = ResidentAuditItem.objects.select_for_update().get(resident=resident, item_name=name)
            for k, v in defaults.items():
                setattr(item, k, v)
            item.save()
            created = False

        ActivityService.log(
            event_code="audit.resident_item.created" if created else "audit.resident_item.updated",
            entity_type="ResidentAuditItem",
            entity_id=item.id,
            organization_id=item.organization_id,
            team_id=item.team_id,
            actor_user_id=actor_user_id,
            metadata={"resident_id": resident.id, "item_name": name, "status": item.status},
        )
        return item, created
