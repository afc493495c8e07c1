from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.response import Response

from ch_core.common.api.params import pk_uuid
from ch_core.common.permissions import TeamPermission
from ch_core.common.scope import require_scope
from ch_core.teams.api.serializers import TeamCreateSerializer, TeamSerializer, TeamUpdateSerializer
from ch_core.teams.models import Team
from ch_core.teams.selectors import team_by_id, teams_for_organization
from ch_core.teams.services import TeamService, TeamUpdate


def _truthy(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


@extend_schema_view(
    list=extend_schema(tags=["Teams"], responses={200: TeamSerializer(many=True)}),
    retrieve=extend_schema(tags=["Teams"], responses={200: TeamSerializer}),
    create=extend_schema(tags=["Teams"], request=TeamCreateSerializer, responses={201: TeamSerializer}),
    partial_update=extend_schema(tags=["Teams"], request=TeamUpdateSerializer, responses={200: TeamSerializer}),
)
class TeamViewSet(viewsets.ViewSet):
    """Teams of the organization named in X-Organization-Id."""

    permission_classes = [TeamPermission]

    serializer_class = TeamSerializer
    queryset = Team.objects.none()

    def list(self, request):
        scope = require_scope(request)
        active_only = _truthy(request.query_params.get("active_only"), True)
        qs = teams_for_organization(organization_id=scope.organization_id, active_only=active_only)
        return Response(TeamSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        obj = team_by_id(organization_id=scope.organization_id, team_id=pk_uuid(pk, "Team"))
        return Response(TeamSerializer(obj).data, status=status.HTTP_200_OK)

    def create(self, request):
        scope = require_scope(request)
        ser = TeamCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = TeamService.create(organization_id=scope.organization_id, **ser.validated_data)
        return Response(TeamSerializer(obj).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = TeamUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        obj = TeamService.update(
            organization_id=scope.organization_id,
            team_id=pk_uuid(pk, "Team"),
            patch=TeamUpdate(**ser.validated_data),
        )
        return Response(TeamSerializer(obj).data, status=status.HTTP_200_OK)
