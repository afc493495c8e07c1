# ch_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ch_core.iam.api.schema_serializers import MeResponseSerializer, ScopeSwitchRequestSerializer
from ch_core.iam.scope import NOT_A_MEMBER_MSG, assert_user_membership, resolve_scope_from_headers
from ch_core.iam.services.membership import display_name_for, is_user_member_of_team, list_user_teams


def user_payload(user) -> dict:
    return {
        "id": user.id,
        "username": getattr(user, "username", None),
        "email": getattr(user, "email", None),
        "display_name": display_name_for(user),
        "is_superuser": bool(getattr(user, "is_superuser", False)),
    }


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["IAM"])
    def get(self, request):
        """
        User info + team memberships.
        Scope headers are optional; when sent they must be valid and the user a member.
        """
        scope = resolve_scope_from_headers(request)
        active_scope = None
        if scope is not None:
            assert_user_membership(request.user, scope)
            active_scope = {"organization_id": str(scope.organization_id), "team_id": str(scope.team_id)}

        return Response(
            {
                "user": user_payload(request.user),
                "memberships": list_user_teams(request.user.id),
                "active_scope": active_scope,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(request=ScopeSwitchRequestSerializer, responses={200: MeResponseSerializer}, tags=["IAM"])
    def post(self, request):
        """
        Validate a scope switch. The client keeps sending the returned
        organization/team as X-Organization-Id / X-Team-Id headers.
        """
        ser = ScopeSwitchRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        organization_id = ser.validated_data["organization_id"]
        team_id = ser.validated_data["team_id"]

        if not is_user_member_of_team(user_id=request.user.id, organization_id=organization_id, team_id=team_id):
            raise PermissionDenied(NOT_A_MEMBER_MSG)

        return Response(
            {
                "user": user_payload(request.user),
                "memberships": list_user_teams(request.user.id),
                "active_scope": {"organization_id": str(organization_id), "team_id": str(team_id)},
            },
            status=status.HTTP_200_OK,
        )
