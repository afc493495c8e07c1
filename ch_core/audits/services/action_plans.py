# ch_core/audits/services/action_plans.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ch_core.activity.services import ActivityService
from ch_core.audits.models import ActionPlanPriority, ActionPlanStatus, AuditActionPlan
from ch_core.audits.selectors import get_owned_action_plan, get_owned_completion

DETAIL_FIELDS = {"description", "assigned_to_name", "priority", "due_date"}


def _resolve_assignee(assigned_to_id: int | None):
    if assigned_to_id is None:
        return None
    user = get_user_model().objects.filter(id=assigned_to_id).first()
    if user is None:
        raise ValidationError({"assigned_to": "Unknown user."})
    return user


class ActionPlanService:
    @staticmethod
    @transaction.atomic
    def create_action_plan(
        *,
        organization_id: UUID,
        team_id: UUID,
        actor_user_id: int | None,
        actor_name: str = "",
        completion_id: UUID,
        description: str,
        assigned_to_id: int | None = None,
        assigned_to_name: str = "",
        priority: str = ActionPlanPriority.MEDIUM,
        due_date: Optional[date] = None,
    ) -> AuditActionPlan:
        # Plan and completion must share the organization.
        completion = get_owned_completion(organization_id=organization_id, completion_id=completion_id)
        assignee = _resolve_assignee(assigned_to_id)

        plan = AuditActionPlan.objects.create(
            organization_id=organization_id,
            team_id=completion.team_id or team_id,
            completion=completion,
            template_id=completion.template_id,
            description=description,
            assigned_to=assignee,
            assigned_to_name=assigned_to_name or (assignee.get_full_name() if assignee else ""),
            priority=priority,
            due_date=due_date,
            status=ActionPlanStatus.PENDING,
            created_by_id=actor_user_id,
            created_by_name=actor_name or "",
        )

        ActivityService.log(
            event_code="audit.action_plan.created",
            entity_type="AuditActionPlan",
            entity_id=plan.id,
            organization_id=organization_id,
            team_id=plan.team_id,
            actor_user_id=actor_user_id,
            metadata={"completion_id": completion.id, "priority": priority},
        )
        return plan

    @staticmethod
    @transaction.atomic
    def update_action_plan(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        plan_id: UUID,
        data: Dict[str, Any],
    ) -> AuditActionPlan:
        plan = get_owned_action_plan(organization_id=organization_id, plan_id=plan_id, for_update=True)

        updates = {k: v for k, v in (data or {}).items() if k in DETAIL_FIELDS}
        for k, v in updates.items():
            setattr(plan, k, v)
        if "assigned_to_id" in (data or {}):
            plan.assigned_to = _resolve_assignee(data["assigned_to_id"])
            updates["assigned_to_id"] = data["assigned_to_id"]
        plan.save()

        ActivityService.log(
            event_code="audit.action_plan.updated",
            entity_type="AuditActionPlan",
            entity_id=plan.id,
            organization_id=plan.organization_id,
            team_id=plan.team_id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates)},
        )
        return plan

    @staticmethod
    @transaction.atomic
    def update_status(
        *,
        organization_id: UUID,
        actor_user_id: int | None,
        actor_name: str = "",
        plan_id: UUID,
        status: str,
        comment: str = "",
    ) -> AuditActionPlan:
        if status not in ActionPlanStatus.values:
            raise ValidationError({"status": f"Unknown status '{status}'."})

        plan = get_owned_action_plan(organization_id=organization_id, plan_id=plan_id, for_update=True)
        now = timezone.now()

        history = list(plan.status_history or [])
        history.append(
            {
                "status": status,
                "comment": comment or "",
                "updated_by": actor_user_id,
                "updated_by_name": actor_name or "",
                "updated_at": now.isoformat(),
            }
        )
        plan.status_history = history
        plan.status = status
        if comment:
            plan.latest_comment = comment
        plan.completed_at = now if status == ActionPlanStatus.COMPLETED else None
        plan.save()

        ActivityService.log(
            event_code="audit.action_plan.status_changed",
            entity_type="AuditActionPlan",
            entity_id=plan.id,
            organization_id=plan.organization_id,
            team_id=plan.team_id,
            actor_user_id=actor_user_id,
            metadata={"status": status},
        )
        return plan

    @staticmethod
    @transaction.atomic
    def mark_viewed(*, organization_id: UUID, plan_id: UUID) -> AuditActionPlan:
        plan = get_owned_action_plan(organization_id=organization_id, plan_id=plan_id, for_update=True)
        if plan.is_new or plan.viewed_at is None:
            plan.is_new = False
            plan.viewed_at = timezone.now()
            plan.save(update_fields=["is_new", "viewed_at", "updated_at"])
        return plan

    @staticmethod
    @transaction.atomic
    def delete_action_plan(*, organization_id: UUID, actor_user_id: int | None, plan_id: UUID) -> None:
        plan = get_owned_action_plan(organization_id=organization_id, plan_id=plan_id, for_update=True)

        ActivityService.log(
            event_code="audit.action_plan.deleted",
            entity_type="AuditActionPlan",
            entity_id=plan.id,
            organization_id=plan.organization_id,
            team_id=plan.team_id,
            actor_user_id=actor_user_id,
            metadata={"completion_id": plan.completion_id},
        )
        plan.delete()
