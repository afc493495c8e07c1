# ch_core/audits/services/templates.py
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from ch_core.activity.services import ActivityService
from ch_core.audits.models import AuditTemplate, TemplateItemType
from ch_core.audits.selectors import get_owned_template
from ch_core.audits.services.frequency import validate_frequency
from ch_core.common.logging import get_logger

log = get_logger(__name__)


def normalize_template_items(items: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Ordered item definitions. Missing ids are generated, missing type is
    "compliance". An empty list is allowed (items get added later).
    """
    out: List[Dict[str, Any]] = []
    seen_ids = set()
    for idx, raw in enumerate(items or []):
        if not isinstance(raw, dict):
            raise ValidationError({"items": f"Item {idx} must be an object."})
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValidationError({"items": f"Item {idx} needs a name."})

        item_type = raw.get("type") or TemplateItemType.COMPLIANCE.value
        if item_type not in TemplateItemType.values:
            raise ValidationError({"items": f"Item {idx} has unknown type '{item_type}'."})

        item_id = str(raw.get("id") or uuid.uuid4().hex)
        if item_id in seen_ids:
            raise ValidationError({"items": f"Duplicate item id '{item_id}'."})
        seen_ids.add(item_id)

        out.append({"id": item_id, "name": name, "type": item_type})
    return out


class AuditTemplateService:
    @staticmethod
    @transaction.atomic
    def create_template(
        *,
        organization_id: UUID,
        team_id: UUID,
        actor_user_id: int | None,
        domain: str,
        name: str,
        frequency: str,
        items: Optional[List[Dict[str, Any]]] = None,
        description: str = "",
        category: str = "",
    ) -> AuditTemplate:
        validate_frequency(domain, frequency)

        template = AuditTemplate.objects.create(
            organization_id=organization_id,
            team_id=team_id,
            domain=domain,
            name=name.strip(),
            description=description or "",
            category=category or "",
            items=normalize_template_items(items),
            frequency=frequency,
            created_by_id=actor_user_id,
        )

        ActivityService.log(
            event_code="audit.template.created",
            entity_type="AuditTemplate",
            entity_id=template.id,
            organization_id=organization_id,
            team_id=team_id,
            actor_user_id=actor_user_id,
            metadata={"domain": domain, "frequency": frequency, "item_count": len(template.items)},
        )
        return template

    @staticmethod
    @transaction.atomic
    def update_template(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        template_id: UUID,
        data: Dict[str, Any],
    ) -> AuditTemplate:
        """
        In-place edit. Not versioned: existing completions keep their own
        snapshots and next_audit_due.
        """
        template = get_owned_template(organization_id=organization_id, template_id=template_id, for_update=True)

        changed = []
        if "name" in data:
            template.name = str(data["name"]).strip()
            changed.append("name")
        if "description" in data:
            template.description = data["description"] or ""
            changed.append("description")
        if "category" in data:
            template.category = data["category"] or ""
            changed.append("category")
        if "items" in data:
            template.items = normalize_template_items(data["items"])
            changed.append("items")
        if "frequency" in data:
            validate_frequency(template.domain, data["frequency"])
            template.frequency = data["frequency"]
            changed.append("frequency")
        if "is_active" in data:
            template.is_active = bool(data["is_active"])
            changed.append("is_active")

        template.save()

        ActivityService.log(
            event_code="audit.template.updated",
            entity_type="AuditTemplate",
            entity_id=template.id,
            organization_id=template.organization_id,
            team_id=template.team_id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": changed},
        )
        return template

    @staticmethod
    @transaction.atomic
    def archive_template(*, organization_id: UUID, actor_user_id: int | None, template_id: UUID) -> AuditTemplate:
        template = get_owned_template(organization_id=organization_id, template_id=template_id, for_update=True)
        if template.is_active:
            template.is_active = False
            template.save(update_fields=["is_active", "updated_at"])

            ActivityService.log(
                event_code="audit.template.archived",
                entity_type="AuditTemplate",
                entity_id=template.id,
                organization_id=template.organization_id,
                team_id=template.team_id,
                actor_user_id=actor_user_id,
            )
        return template

    @staticmethod
    @transaction.atomic
    def delete_template(*, organization_id: UUID, actor_user_id: int | None, template_id: UUID) -> None:
        """
        Removes the template row only. Completions and action plans stay;
        their template reference is cleared and template_name keeps the label.
        """
        template = get_owned_template(organization_id=organization_id, template_id=template_id, for_update=True)
        retained = template.completions.count()

        ActivityService.log(
            event_code="audit.template.deleted",
            entity_type="AuditTemplate",
            entity_id=template.id,
            organization_id=template.organization_id,
            team_id=template.team_id,
            actor_user_id=actor_user_id,
            metadata={"name": template.name, "retained_completions": retained},
        )
        template.delete()
        log.info("Deleted audit template {}; {} completion(s) retained", template_id, retained)
