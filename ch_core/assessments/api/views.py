# ch_core/assessments/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ch_core.assessments import selectors
from ch_core.assessments.api.serializers import (
    AmendSerializer,
    AssessmentSerializer,
    CreateDraftSerializer,
    LatestQuerySerializer,
    ListQuerySerializer,
    UpdateDraftSerializer,
)
from ch_core.assessments.models import Assessment, AssessmentStatus
from ch_core.assessments.services import lifecycle
from ch_core.assessments.services.idempotency import get_key_from_request
from ch_core.common.api.pagination import paginate
from ch_core.common.api.params import pk_uuid
from ch_core.common.permissions import AssessmentPermission
from ch_core.common.scope import require_scope

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.HEADER,
    required=False,
    description="Retries with the same key return the row created by the first call.",
)


def _created_or_ok(doc, created: bool) -> Response:
    return Response(
        AssessmentSerializer(doc).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@extend_schema_view(
    list=extend_schema(
        tags=["Assessments"],
        responses={200: AssessmentSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="resident", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="form_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="current_only", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="team_only", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Assessments"], responses={200: AssessmentSerializer}),
    partial_update=extend_schema(
        tags=["Assessments"],
        request=UpdateDraftSerializer,
        responses={200: AssessmentSerializer, 409: OpenApiTypes.OBJECT},
    ),
)
class AssessmentViewSet(viewsets.ViewSet):
    """
    Resident assessment forms (admission, DNACPR, PEEP, Braden...).
    Drafts are edited in place; everything after submit is append-only.
    """

    permission_classes = [AssessmentPermission]

    serializer_class = AssessmentSerializer
    queryset = Assessment.objects.none()

    def _assessment_id(self, pk):
        return pk_uuid(pk, "Assessment")

    def list(self, request):
        scope = require_scope(request)
        ser = ListQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        params = ser.validated_data

        qs = selectors.list_assessments(
            organization_id=scope.organization_id,
            team_id=scope.team_id if params["team_only"] else None,
            resident_id=params.get("resident"),
            form_type=params.get("form_type"),
            status=params.get("status"),
            current_only=params["current_only"],
        )
        return paginate(request, qs, AssessmentSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        doc = selectors.get_owned_assessment(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
        )
        return Response(AssessmentSerializer(doc).data, status=status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = UpdateDraftSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doc = lifecycle.update_draft(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
            data=ser.validated_data["data"],
            replace=ser.validated_data["replace"],
            actor_user_id=request.user.id,
        )
        return Response(AssessmentSerializer(doc).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Assessments"],
        request=CreateDraftSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: AssessmentSerializer, 200: AssessmentSerializer},
    )
    @action(detail=False, methods=["post"])
    def draft(self, request):
        scope = require_scope(request)
        ser = CreateDraftSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doc, created = lifecycle.create_draft(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            resident_id=ser.validated_data["resident_id"],
            form_type=ser.validated_data["form_type"],
            data=ser.validated_data.get("data") or {},
            actor_user_id=request.user.id,
            idempotency_key=get_key_from_request(request),
        )
        return _created_or_ok(doc, created)

    @extend_schema(
        tags=["Assessments"],
        request=None,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: AssessmentSerializer, 200: AssessmentSerializer, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        scope = require_scope(request)
        doc, created = lifecycle.submit(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
            actor_user_id=request.user.id,
            idempotency_key=get_key_from_request(request),
        )
        return _created_or_ok(doc, created)

    @extend_schema(
        tags=["Assessments"],
        request=None,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: AssessmentSerializer, 200: AssessmentSerializer, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def review(self, request, pk=None):
        scope = require_scope(request)
        doc, created = lifecycle.review(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
            actor_user_id=request.user.id,
            idempotency_key=get_key_from_request(request),
        )
        return _created_or_ok(doc, created)

    @extend_schema(
        tags=["Assessments"],
        request=AmendSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: AssessmentSerializer, 200: AssessmentSerializer, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def amend(self, request, pk=None):
        scope = require_scope(request)
        ser = AmendSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doc, created = lifecycle.amend(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
            data_patch=ser.validated_data["data_patch"],
            actor_user_id=request.user.id,
            idempotency_key=get_key_from_request(request),
        )
        return _created_or_ok(doc, created)

    @extend_schema(
        tags=["Assessments"],
        parameters=[
            OpenApiParameter(name="resident", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="form_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(
                name="include_drafts",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Include DRAFT rows too (default false).",
            ),
        ],
        responses={200: AssessmentSerializer},
        description="Head of the version chain for the resident and form, or null.",
    )
    @action(detail=False, methods=["get"])
    def latest(self, request):
        scope = require_scope(request)
        ser = LatestQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        params = ser.validated_data

        statuses = selectors.DEFAULT_LATEST_STATUSES
        if params["include_drafts"]:
            statuses = (AssessmentStatus.DRAFT, *statuses)

        doc = selectors.latest_assessment(
            organization_id=scope.organization_id,
            resident_id=params["resident"],
            form_type=params["form_type"],
            statuses=statuses,
        )
        data = AssessmentSerializer(doc).data if doc else None
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Assessments"], responses={200: AssessmentSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def versions(self, request, pk=None):
        scope = require_scope(request)
        doc = selectors.get_owned_assessment(
            organization_id=scope.organization_id,
            assessment_id=self._assessment_id(pk),
        )
        rows = selectors.version_chain(doc)
        return Response(AssessmentSerializer(rows, many=True).data, status=status.HTTP_200_OK)
