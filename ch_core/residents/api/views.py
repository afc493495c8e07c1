# ch_core/residents/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.response import Response

from ch_core.common.api.pagination import paginate
from ch_core.common.api.params import parse_bool, pk_uuid
from ch_core.common.permissions import ResidentPermission
from ch_core.common.scope import require_scope
from ch_core.residents.api.serializers import (
    ResidentCreateSerializer,
    ResidentSerializer,
    ResidentUpdateSerializer,
)
from ch_core.residents.models import Resident
from ch_core.residents.selectors import get_owned_resident, search_residents
from ch_core.residents.services import ResidentService


@extend_schema_view(
    list=extend_schema(tags=["Residents"]),
    retrieve=extend_schema(tags=["Residents"]),
    create=extend_schema(tags=["Residents"], request=ResidentCreateSerializer, responses={201: ResidentSerializer}),
    partial_update=extend_schema(tags=["Residents"], request=ResidentUpdateSerializer, responses={200: ResidentSerializer}),
)
class ResidentViewSet(viewsets.ViewSet):
    permission_classes = [ResidentPermission]

    serializer_class = ResidentSerializer
    queryset = Resident.objects.none()

    def list(self, request):
        scope = require_scope(request)
        include_inactive = parse_bool(request.query_params.get("include_inactive"))
        qs = search_residents(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            q=request.query_params.get("q"),
            active_only=not include_inactive,
        )
        return paginate(request, qs, ResidentSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        resident = get_owned_resident(organization_id=scope.organization_id, resident_id=pk_uuid(pk, "Resident"))
        return Response(ResidentSerializer(resident).data, status=status.HTTP_200_OK)

    def create(self, request):
        scope = require_scope(request)
        ser = ResidentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        resident = ResidentService.create_resident(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            actor_user_id=request.user.id,
            **ser.validated_data,
        )
        return Response(ResidentSerializer(resident).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = ResidentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        resident = ResidentService.update_resident(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            resident_id=pk_uuid(pk, "Resident"),
            data=ser.validated_data,
        )
        return Response(ResidentSerializer(resident).data, status=status.HTTP_200_OK)
