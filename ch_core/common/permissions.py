# ch_core/common/permissions.py
from __future__ import annotations

from typing import Set

from rest_framework.permissions import SAFE_METHODS, BasePermission

# Django auth Group names
ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_NURSE = "NURSE"
ROLE_CARER = "CARER"
ROLE_AUDITOR = "AUDITOR"
ROLE_READONLY = "READONLY"

ALL_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_NURSE, ROLE_CARER, ROLE_AUDITOR, ROLE_READONLY}
CLINICAL_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_NURSE}
AUDIT_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_NURSE, ROLE_AUDITOR}


def user_roles(user) -> Set[str]:
    """
    Roles come from Django groups. Superusers are ADMIN.
    Authenticated users with no group are READONLY.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if not roles:
        roles.add(ROLE_READONLY)

    return roles


class BaseRolePermission(BasePermission):
    """
    Role-based access per viewset action.

    - ADMIN bypass.
    - allowed_roles_per_action maps action -> roles.
    - Unknown SAFE actions fall back to list/retrieve; unknown writes are denied.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        return {
            "POST": "create",
            "PUT": "update",
            "PATCH": "partial_update",
            "DELETE": "destroy",
        }.get(method)

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)
        if ROLE_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            read_action = "retrieve" if ("pk" in kwargs or "id" in kwargs) else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return bool(roles & allowed)
        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class OrganizationPermission(BaseRolePermission):
    pass


class TeamPermission(BaseRolePermission):
    allowed_roles_per_action = {
        **BaseRolePermission.allowed_roles_per_action,
        "create": {ROLE_ADMIN, ROLE_MANAGER},
        "partial_update": {ROLE_ADMIN, ROLE_MANAGER},
    }


class ResidentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": CLINICAL_ROLES,
        "update": CLINICAL_ROLES,
        "partial_update": CLINICAL_ROLES,
        "destroy": {ROLE_ADMIN},
    }


class AuditTemplatePermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": {ROLE_ADMIN, ROLE_MANAGER},
        "update": {ROLE_ADMIN, ROLE_MANAGER},
        "partial_update": {ROLE_ADMIN, ROLE_MANAGER},
        "archive": {ROLE_ADMIN, ROLE_MANAGER},
        "destroy": {ROLE_ADMIN, ROLE_MANAGER},
    }


class AuditCompletionPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "draft": AUDIT_ROLES,
        "autosave": AUDIT_ROLES,
        "complete": AUDIT_ROLES,
        "correct": {ROLE_ADMIN, ROLE_MANAGER, ROLE_AUDITOR},
        "destroy": {ROLE_ADMIN, ROLE_MANAGER},
    }


class ActionPlanPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": AUDIT_ROLES,
        "partial_update": AUDIT_ROLES,
        "update": AUDIT_ROLES,
        # Assignees (often carers) move their own plans along.
        "set_status": AUDIT_ROLES | {ROLE_CARER},
        "viewed": ALL_ROLES,
        "destroy": {ROLE_ADMIN, ROLE_MANAGER},
    }


class ResidentAuditItemPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "upsert": AUDIT_ROLES | {ROLE_CARER},
    }


class AssessmentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "draft": CLINICAL_ROLES | {ROLE_CARER},
        "partial_update": CLINICAL_ROLES | {ROLE_CARER},
        "submit": CLINICAL_ROLES,
        "review": {ROLE_ADMIN, ROLE_MANAGER},
        "amend": CLINICAL_ROLES,
    }


class ActivityLogPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_MANAGER, ROLE_AUDITOR},
        "retrieve": {ROLE_ADMIN, ROLE_MANAGER, ROLE_AUDITOR},
    }


class PdfJobPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "download_url": ALL_ROLES,
        "rerun": {ROLE_ADMIN, ROLE_MANAGER},
    }
