# ch_core/iam/api/session.py

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ch_core.common.permissions import user_roles
from ch_core.iam.api.me import user_payload
from ch_core.iam.api.schema_serializers import SessionBootstrapResponseSerializer
from ch_core.iam.models import RolePermission, TeamMembership
from ch_core.iam.scope import assert_user_membership, resolve_scope_from_headers
from ch_core.iam.services.membership import list_user_teams

API_VERSION = "0.1.0"


def _mini(obj) -> dict:
    return {"id": str(obj.id), "code": getattr(obj, "code", None), "name": getattr(obj, "name", None)}


class SessionBootstrapView(APIView):
    """
    Frontend bootstrap.

    Scope headers are optional: when present they are validated, otherwise
    the primary (or first) membership is chosen as the active scope.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        responses={200: SessionBootstrapResponseSerializer},
        tags=["IAM"],
        parameters=[
            OpenApiParameter(name="X-Organization-Id", location=OpenApiParameter.HEADER, required=False, type=str),
            OpenApiParameter(name="X-Team-Id", location=OpenApiParameter.HEADER, required=False, type=str),
        ],
    )
    def get(self, request):
        memberships = list_user_teams(request.user.id)

        scope = resolve_scope_from_headers(request)
        if scope is not None:
            assert_user_membership(request.user, scope)
            active_scope = {"organization_id": str(scope.organization_id), "team_id": str(scope.team_id)}
        else:
            chosen = next((m for m in memberships if m["is_primary"]), None) or (memberships[0] if memberships else None)
            active_scope = (
                {"organization_id": chosen["organization_id"], "team_id": chosen["team_id"]} if chosen else None
            )

        active_organization = active_team = active_role = None
        permissions: list[str] = []

        if active_scope:
            membership = (
                TeamMembership.objects.select_related("organization", "team", "role")
                .filter(
                    is_active=True,
                    organization_id=active_scope["organization_id"],
                    team_id=active_scope["team_id"],
                    user_profile__user_id=request.user.id,
                    user_profile__is_active=True,
                )
                .first()
            )
            if membership:
                active_organization = _mini(membership.organization)
                active_team = _mini(membership.team)
                active_role = _mini(membership.role)
                permissions = list(
                    RolePermission.objects.filter(role_id=membership.role_id).values_list("permission__code", flat=True)
                )

        return Response(
            {
                "user": user_payload(request.user),
                "memberships": memberships,
                "active_scope": active_scope,
                "active_organization": active_organization,
                "active_team": active_team,
                "active_role": active_role,
                "permissions": permissions,
                "roles": sorted(user_roles(request.user)),
                "server_time": timezone.now(),
                "api_version": API_VERSION,
            }
        )
