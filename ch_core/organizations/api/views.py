from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from ch_core.common.api.params import pk_uuid
from ch_core.common.permissions import OrganizationPermission
from ch_core.organizations.api.serializers import (
    OrganizationCreateSerializer,
    OrganizationSerializer,
    OrganizationUpdateSerializer,
)
from ch_core.organizations.models import Organization
from ch_core.organizations.selectors import get_organization, organizations_for_user
from ch_core.organizations.services import OrganizationService


@extend_schema_view(
    list=extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer(many=True)}),
    retrieve=extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer}),
    create=extend_schema(tags=["Organizations"], request=OrganizationCreateSerializer, responses={201: OrganizationSerializer}),
    partial_update=extend_schema(tags=["Organizations"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer}),
)
class OrganizationViewSet(viewsets.ViewSet):
    """
    Reads are limited to organizations the caller belongs to.
    Creating organizations is a platform (staff) operation.
    """

    permission_classes = [OrganizationPermission]

    serializer_class = OrganizationSerializer
    queryset = Organization.objects.none()

    def get_permissions(self):
        if self.action == "create":
            return [IsAdminUser()]
        return super().get_permissions()

    def _assert_member(self, request, organization_id: UUID) -> None:
        if request.user.is_superuser:
            return
        if not organizations_for_user(user_id=request.user.id).filter(id=organization_id).exists():
            raise PermissionDenied("You do not belong to this organization.")

    def list(self, request):
        qs = Organization.objects.order_by("name") if request.user.is_superuser else organizations_for_user(user_id=request.user.id)
        return Response(OrganizationSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    def retrieve(self, request, pk=None):
        organization_id = pk_uuid(pk, "Organization")
        self._assert_member(request, organization_id)
        obj = get_organization(organization_id=organization_id)
        return Response(OrganizationSerializer(obj).data, status=status.HTTP_200_OK)

    def create(self, request):
        ser = OrganizationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        org = OrganizationService.create(**ser.validated_data)
        return Response(OrganizationSerializer(org).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        organization_id = pk_uuid(pk, "Organization")
        self._assert_member(request, organization_id)
        get_organization(organization_id=organization_id)

        ser = OrganizationUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        org = OrganizationService.update(organization_id=organization_id, **ser.validated_data)
        return Response(OrganizationSerializer(org).data, status=status.HTTP_200_OK)
