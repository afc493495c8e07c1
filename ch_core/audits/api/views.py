# ch_core/audits/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from ch_core.audits import selectors
from ch_core.audits.api.serializers import (
    ActionPlanCreateSerializer,
    ActionPlanSerializer,
    ActionPlanStatusSerializer,
    ActionPlanUpdateSerializer,
    AuditCompletionSerializer,
    AuditTemplateCreateSerializer,
    AuditTemplateSerializer,
    AuditTemplateUpdateSerializer,
    AutosaveSerializer,
    CompleteSerializer,
    DraftRequestSerializer,
    PairQuerySerializer,
    ResidentAuditItemSerializer,
    ResidentAuditItemUpsertSerializer,
)
from ch_core.audits.models import AuditActionPlan, AuditCompletion, AuditTemplate, ResidentAuditItem
from ch_core.audits.services import (
    ActionPlanService,
    AuditCompletionService,
    AuditTemplateService,
    ResidentAuditItemService,
)
from ch_core.common.api.pagination import paginate
from ch_core.common.api.params import parse_bool, parse_uuid, pk_uuid
from ch_core.common.permissions import (
    ActionPlanPermission,
    AuditCompletionPermission,
    AuditTemplatePermission,
    ResidentAuditItemPermission,
)
from ch_core.common.scope import require_scope
from ch_core.iam.services.membership import display_name_for

DOMAIN_PARAM = OpenApiParameter(name="domain", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False)
TEMPLATE_PARAM = OpenApiParameter(name="template", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)
RESIDENT_PARAM = OpenApiParameter(name="resident", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False)
TEAM_ONLY_PARAM = OpenApiParameter(
    name="team_only",
    type=OpenApiTypes.BOOL,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Restrict to the X-Team-Id team.",
)


def _pair_params(request) -> dict:
    ser = PairQuerySerializer(data=request.query_params)
    ser.is_valid(raise_exception=True)
    return ser.validated_data


# ----------------------------
# Templates
# ----------------------------
@extend_schema_view(
    list=extend_schema(
        tags=["Audit Templates"],
        responses={200: AuditTemplateSerializer(many=True)},
        parameters=[
            DOMAIN_PARAM,
            TEAM_ONLY_PARAM,
            OpenApiParameter(name="include_inactive", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Audit Templates"], responses={200: AuditTemplateSerializer}),
    create=extend_schema(tags=["Audit Templates"], request=AuditTemplateCreateSerializer, responses={201: AuditTemplateSerializer}),
    partial_update=extend_schema(
        tags=["Audit Templates"], request=AuditTemplateUpdateSerializer, responses={200: AuditTemplateSerializer}
    ),
    destroy=extend_schema(tags=["Audit Templates"], responses={204: None}),
)
class AuditTemplateViewSet(viewsets.ViewSet):
    permission_classes = [AuditTemplatePermission]

    serializer_class = AuditTemplateSerializer
    queryset = AuditTemplate.objects.none()

    def list(self, request):
        scope = require_scope(request)
        domain = request.query_params.get("domain") or None

        if parse_bool(request.query_params.get("team_only")):
            qs = selectors.templates_by_team(organization_id=scope.organization_id, team_id=scope.team_id, domain=domain)
        else:
            qs = selectors.templates_by_organization(
                organization_id=scope.organization_id,
                domain=domain,
                include_inactive=parse_bool(request.query_params.get("include_inactive")),
            )
        return paginate(request, qs, AuditTemplateSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        template = selectors.get_owned_template(
            organization_id=scope.organization_id,
            template_id=pk_uuid(pk, "Audit template"),
        )
        return Response(AuditTemplateSerializer(template).data, status=status.HTTP_200_OK)

    def create(self, request):
        scope = require_scope(request)
        ser = AuditTemplateCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        template = AuditTemplateService.create_template(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            actor_user_id=request.user.id,
            **ser.validated_data,
        )
        return Response(AuditTemplateSerializer(template).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = AuditTemplateUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        template = AuditTemplateService.update_template(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            template_id=pk_uuid(pk, "Audit template"),
            data=ser.validated_data,
        )
        return Response(AuditTemplateSerializer(template).data, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        scope = require_scope(request)
        AuditTemplateService.delete_template(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            template_id=pk_uuid(pk, "Audit template"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Audit Templates"], request=None, responses={200: AuditTemplateSerializer})
    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        scope = require_scope(request)
        template = AuditTemplateService.archive_template(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            template_id=pk_uuid(pk, "Audit template"),
        )
        return Response(AuditTemplateSerializer(template).data, status=status.HTTP_200_OK)


# ----------------------------
# Completions
# ----------------------------
@extend_schema_view(
    list=extend_schema(
        tags=["Audit Completions"],
        responses={200: AuditCompletionSerializer(many=True)},
        parameters=[
            DOMAIN_PARAM,
            OpenApiParameter(name="template", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            RESIDENT_PARAM,
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            TEAM_ONLY_PARAM,
        ],
    ),
    retrieve=extend_schema(tags=["Audit Completions"], responses={200: AuditCompletionSerializer}),
    destroy=extend_schema(tags=["Audit Completions"], responses={204: None}),
)
class AuditCompletionViewSet(viewsets.ViewSet):
    """
    Audit attempts. Writes go through the lifecycle actions
    (draft / autosave / complete / correct); reads expose the current view
    and the version chain.
    """

    permission_classes = [AuditCompletionPermission]

    serializer_class = AuditCompletionSerializer
    queryset = AuditCompletion.objects.none()

    def _completion_id(self, pk):
        return pk_uuid(pk, "Audit completion")

    # ----------------------------
    # Reads
    # ----------------------------
    def list(self, request):
        scope = require_scope(request)
        qs = selectors.list_completions(
            organization_id=scope.organization_id,
            team_id=scope.team_id if parse_bool(request.query_params.get("team_only")) else None,
            domain=request.query_params.get("domain") or None,
            template_id=parse_uuid(request.query_params.get("template"), "template"),
            resident_id=parse_uuid(request.query_params.get("resident"), "resident"),
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, AuditCompletionSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        completion = selectors.get_owned_completion(
            organization_id=scope.organization_id,
            completion_id=self._completion_id(pk),
        )
        return Response(AuditCompletionSerializer(completion).data, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        scope = require_scope(request)
        AuditCompletionService.delete_response(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            completion_id=self._completion_id(pk),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Audit Completions"], responses={200: AuditCompletionSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def versions(self, request, pk=None):
        scope = require_scope(request)
        completion = selectors.get_owned_completion(
            organization_id=scope.organization_id,
            completion_id=self._completion_id(pk),
        )
        rows = selectors.previous_versions(completion)
        return Response(AuditCompletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[TEMPLATE_PARAM, RESIDENT_PARAM],
        responses={200: AuditCompletionSerializer},
        description="Latest completed audit for the pair, or null when none exists.",
    )
    @action(detail=False, methods=["get"])
    def latest(self, request):
        scope = require_scope(request)
        params = _pair_params(request)
        completion = selectors.latest_completion(
            organization_id=scope.organization_id,
            template_id=params["template"],
            resident_id=params.get("resident"),
        )
        data = AuditCompletionSerializer(completion).data if completion else None
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[
            TEMPLATE_PARAM,
            RESIDENT_PARAM,
            OpenApiParameter(name="limit", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: AuditCompletionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def history(self, request):
        scope = require_scope(request)
        params = _pair_params(request)
        rows = selectors.completion_history(
            organization_id=scope.organization_id,
            template_id=params["template"],
            resident_id=params.get("resident"),
            limit=params.get("limit"),
        )
        return Response(AuditCompletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[DOMAIN_PARAM, TEAM_ONLY_PARAM],
        responses={200: AuditCompletionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="all-latest")
    def all_latest(self, request):
        scope = require_scope(request)
        rows = selectors.all_latest_completions(
            organization_id=scope.organization_id,
            domain=request.query_params.get("domain") or None,
            team_id=scope.team_id if parse_bool(request.query_params.get("team_only")) else None,
        )
        return Response(AuditCompletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[DOMAIN_PARAM, TEAM_ONLY_PARAM],
        responses={200: AuditCompletionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def overdue(self, request):
        scope = require_scope(request)
        rows = selectors.overdue_completions(
            organization_id=scope.organization_id,
            domain=request.query_params.get("domain") or None,
            team_id=scope.team_id if parse_bool(request.query_params.get("team_only")) else None,
        )
        return Response(AuditCompletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[
            DOMAIN_PARAM,
            TEAM_ONLY_PARAM,
            OpenApiParameter(name="days", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: AuditCompletionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def upcoming(self, request):
        scope = require_scope(request)
        days_raw = request.query_params.get("days")
        window_days = None
        if days_raw:
            if not days_raw.isdigit():
                raise ValidationError({"days": "Must be a positive integer."})
            window_days = int(days_raw)

        rows = selectors.upcoming_completions(
            organization_id=scope.organization_id,
            domain=request.query_params.get("domain") or None,
            team_id=scope.team_id if parse_bool(request.query_params.get("team_only")) else None,
            window_days=window_days,
        )
        return Response(AuditCompletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[
            OpenApiParameter(name="template", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            RESIDENT_PARAM,
        ],
        responses={200: AuditCompletionSerializer(many=True)},
        description="Open drafts for a (template, resident?) pair, or every open draft of the X-Team-Id team.",
    )
    @action(detail=False, methods=["get"])
    def drafts(self, request):
        scope = require_scope(request)
        template_id = parse_uuid(request.query_params.get("template"), "template")
        if template_id:
            qs = selectors.open_drafts(
                organization_id=scope.organization_id,
                template_id=template_id,
                resident_id=parse_uuid(request.query_params.get("resident"), "resident"),
            )
        else:
            qs = selectors.drafts_by_team(organization_id=scope.organization_id, team_id=scope.team_id)
        return paginate(request, qs, AuditCompletionSerializer)

    @extend_schema(
        tags=["Audit Completions"],
        parameters=[TEMPLATE_PARAM, RESIDENT_PARAM],
        responses={200: AuditCompletionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def archived(self, request):
        scope = require_scope(request)
        params = _pair_params(request)
        qs = selectors.archived_completions(
            organization_id=scope.organization_id,
            template_id=params["template"],
            resident_id=params.get("resident"),
        )
        return paginate(request, qs, AuditCompletionSerializer)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    @extend_schema(
        tags=["Audit Completions"],
        request=DraftRequestSerializer,
        responses={201: AuditCompletionSerializer, 200: AuditCompletionSerializer},
    )
    @action(detail=False, methods=["post"])
    def draft(self, request):
        scope = require_scope(request)
        ser = DraftRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        completion, created = AuditCompletionService.get_or_create_draft(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            actor_user_id=request.user.id,
            template_id=ser.validated_data["template_id"],
            resident_id=ser.validated_data.get("resident_id"),
            audited_by=ser.validated_data.get("audited_by") or display_name_for(request.user),
        )
        return Response(
            AuditCompletionSerializer(completion).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Audit Completions"],
        request=AutosaveSerializer,
        responses={200: AuditCompletionSerializer, 201: AuditCompletionSerializer, 409: OpenApiTypes.OBJECT},
        description="Autosave an open audit. On a completed audit a correction is created (201).",
    )
    @action(detail=True, methods=["post", "patch"])
    def autosave(self, request, pk=None):
        scope = require_scope(request)
        ser = AutosaveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        completion_id = self._completion_id(pk)
        completion = AuditCompletionService.update_response(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            completion_id=completion_id,
            **ser.validated_data,
        )
        created = completion.id != completion_id
        return Response(
            AuditCompletionSerializer(completion).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Audit Completions"],
        request=CompleteSerializer,
        responses={200: AuditCompletionSerializer, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        scope = require_scope(request)
        ser = CompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        completion = AuditCompletionService.complete_audit(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            completion_id=self._completion_id(pk),
            **ser.validated_data,
        )
        return Response(AuditCompletionSerializer(completion).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Completions"],
        request=CompleteSerializer,
        responses={201: AuditCompletionSerializer, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def correct(self, request, pk=None):
        scope = require_scope(request)
        ser = CompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        correction = AuditCompletionService.correct_completion(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            completion_id=self._completion_id(pk),
            **ser.validated_data,
        )
        return Response(AuditCompletionSerializer(correction).data, status=status.HTTP_201_CREATED)


# ----------------------------
# Action plans
# ----------------------------
@extend_schema_view(
    list=extend_schema(
        tags=["Audit Action Plans"],
        responses={200: ActionPlanSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="completion", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="template", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="assignee",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description='User id, or "me".',
            ),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Audit Action Plans"], responses={200: ActionPlanSerializer}),
    create=extend_schema(tags=["Audit Action Plans"], request=ActionPlanCreateSerializer, responses={201: ActionPlanSerializer}),
    partial_update=extend_schema(
        tags=["Audit Action Plans"], request=ActionPlanUpdateSerializer, responses={200: ActionPlanSerializer}
    ),
    destroy=extend_schema(tags=["Audit Action Plans"], responses={204: None}),
)
class ActionPlanViewSet(viewsets.ViewSet):
    permission_classes = [ActionPlanPermission]

    serializer_class = ActionPlanSerializer
    queryset = AuditActionPlan.objects.none()

    def _plan_id(self, pk):
        return pk_uuid(pk, "Action plan")

    def _assignee(self, request) -> int | None:
        raw = (request.query_params.get("assignee") or "").strip()
        if not raw:
            return None
        if raw == "me":
            return request.user.id
        if not raw.isdigit():
            raise ValidationError({"assignee": 'Must be a user id or "me".'})
        return int(raw)

    def list(self, request):
        scope = require_scope(request)
        qs = selectors.list_action_plans(
            organization_id=scope.organization_id,
            completion_id=parse_uuid(request.query_params.get("completion"), "completion"),
            template_id=parse_uuid(request.query_params.get("template"), "template"),
            assignee_id=self._assignee(request),
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, ActionPlanSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        plan = selectors.get_owned_action_plan(organization_id=scope.organization_id, plan_id=self._plan_id(pk))
        return Response(ActionPlanSerializer(plan).data, status=status.HTTP_200_OK)

    def create(self, request):
        scope = require_scope(request)
        ser = ActionPlanCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        plan = ActionPlanService.create_action_plan(
            organization_id=scope.organization_id,
            team_id=scope.team_id,
            actor_user_id=request.user.id,
            actor_name=display_name_for(request.user),
            **ser.validated_data,
        )
        return Response(ActionPlanSerializer(plan).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        scope = require_scope(request)
        ser = ActionPlanUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        plan = ActionPlanService.update_action_plan(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            plan_id=self._plan_id(pk),
            data=ser.validated_data,
        )
        return Response(ActionPlanSerializer(plan).data, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        scope = require_scope(request)
        ActionPlanService.delete_action_plan(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            plan_id=self._plan_id(pk),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Audit Action Plans"], request=ActionPlanStatusSerializer, responses={200: ActionPlanSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        scope = require_scope(request)
        ser = ActionPlanStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        plan = ActionPlanService.update_status(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            actor_name=display_name_for(request.user),
            plan_id=self._plan_id(pk),
            **ser.validated_data,
        )
        return Response(ActionPlanSerializer(plan).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Audit Action Plans"], request=None, responses={200: ActionPlanSerializer})
    @action(detail=True, methods=["post"])
    def viewed(self, request, pk=None):
        scope = require_scope(request)
        plan = ActionPlanService.mark_viewed(organization_id=scope.organization_id, plan_id=self._plan_id(pk))
        return Response(ActionPlanSerializer(plan).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Audit Action Plans"],
        parameters=[
            OpenApiParameter(name="completion", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    @action(detail=False, methods=["get"])
    def count(self, request):
        scope = require_scope(request)
        completion_id = parse_uuid(request.query_params.get("completion"), "completion", required=True)
        data = selectors.action_plan_counts(organization_id=scope.organization_id, completion_id=completion_id)
        return Response(data, status=status.HTTP_200_OK)


# ----------------------------
# Resident audit items
# ----------------------------
@extend_schema_view(
    list=extend_schema(
        tags=["Resident Audit Items"],
        responses={200: ResidentAuditItemSerializer(many=True)},
        parameters=[RESIDENT_PARAM],
    ),
)
class ResidentAuditItemViewSet(viewsets.ViewSet):
    permission_classes = [ResidentAuditItemPermission]

    serializer_class = ResidentAuditItemSerializer
    queryset = ResidentAuditItem.objects.none()

    def list(self, request):
        scope = require_scope(request)
        resident_id = parse_uuid(request.query_params.get("resident"), "resident")
        if resident_id:
            qs = selectors.resident_items_for_resident(organization_id=scope.organization_id, resident_id=resident_id)
        else:
            qs = selectors.resident_items_for_team(organization_id=scope.organization_id, team_id=scope.team_id)
        return paginate(request, qs, ResidentAuditItemSerializer)

    @extend_schema(
        tags=["Resident Audit Items"],
        request=ResidentAuditItemUpsertSerializer,
        responses={201: ResidentAuditItemSerializer, 200: ResidentAuditItemSerializer},
    )
    @action(detail=False, methods=["post"])
    def upsert(self, request):
        scope = require_scope(request)
        ser = ResidentAuditItemUpsertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item, created = ResidentAuditItemService.upsert_item(
            organization_id=scope.organization_id,
            actor_user_id=request.user.id,
            **ser.validated_data,
        )
        return Response(
            ResidentAuditItemSerializer(item).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Resident Audit Items"],
        parameters=[
            OpenApiParameter(name="resident", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    @action(detail=False, methods=["get"], url_path="overdue-count")
    def overdue_count(self, request):
        scope = require_scope(request)
        resident_id = parse_uuid(request.query_params.get("resident"), "resident", required=True)
        count = selectors.overdue_item_count(organization_id=scope.organization_id, resident_id=resident_id)
        return Response({"resident_id": str(resident_id), "overdue": count}, status=status.HTTP_200_OK)
