from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.exceptions import ValidationError

from ch_core.activity.api.serializers import ActivityEventSerializer
from ch_core.activity.models import ActivityEvent
from ch_core.activity.selectors import list_activity_events
from ch_core.common.api.pagination import paginate
from ch_core.common.api.params import parse_bool
from ch_core.common.permissions import ActivityLogPermission
from ch_core.common.scope import require_scope


class ActivityEventViewSet(viewsets.GenericViewSet):
    """Change log for the caller's organization (newest first)."""

    permission_classes = [ActivityLogPermission]

    serializer_class = ActivityEventSerializer
    queryset = ActivityEvent.objects.none()

    @extend_schema(
        tags=["Activity"],
        responses={200: ActivityEventSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="event_code", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="team_only",
                type=OpenApiTypes.BOOL,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Restrict to the X-Team-Id team.",
            ),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        entity_id = None
        entity_id_raw = request.query_params.get("entity_id")
        if entity_id_raw:
            try:
                entity_id = UUID(str(entity_id_raw))
            except ValueError:
                raise ValidationError({"entity_id": "Invalid UUID."})

        team_only = parse_bool(request.query_params.get("team_only"))

        qs = list_activity_events(
            organization_id=scope.organization_id,
            team_id=scope.team_id if team_only else None,
            entity_type=request.query_params.get("entity_type") or None,
            entity_id=entity_id,
            event_code=request.query_params.get("event_code") or None,
        )
        return paginate(request, qs, ActivityEventSerializer)
