# ch_core/pdf/api/views.py
from __future__ import annotations

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ch_core.common.api.exceptions import build_error_envelope
from ch_core.common.api.pagination import paginate
from ch_core.common.api.params import parse_uuid, pk_uuid
from ch_core.common.logging import get_logger
from ch_core.common.permissions import PdfJobPermission
from ch_core.common.scope import require_scope
from ch_core.pdf import selectors
from ch_core.pdf.api.serializers import DownloadUrlSerializer, PdfJobSerializer
from ch_core.pdf.auth import PdfApiTokenAuthentication
from ch_core.pdf.builders import FORMS
from ch_core.pdf.models import PdfJob
from ch_core.pdf.payloads import STORED_FORMS, SUBJECT_MODELS, find_stored, stored_payload
from ch_core.pdf.rendering import render_with_timeout
from ch_core.pdf.services import PdfJobService

log = get_logger(__name__)

RENDER_FAILED_MSG = "Failed to generate PDF"

# Routes that render the posted body as-is, and their 400 message.
BODY_FORMS = {
    "admission": "Assessment data is required",
    "dnacpr": "DNACPR data is required",
    "peep": "PEEP data is required",
    "skin-integrity": "Assessment data is required",
    "nhs-report": "Incident and trust report data are required",
}


def _pdf_response(content: bytes, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    response["Content-Length"] = str(len(content))
    return response


class PdfRenderView(APIView):
    """
    Server-to-server bridge: POST a form (or the id of a stored one) and get
    the rendered A4 PDF back. Nothing is cached or stored.
    """

    authentication_classes = [PdfApiTokenAuthentication]
    permission_classes = [IsAuthenticated]

    def _payload(self, request, form: str) -> dict:
        data = request.data
        if not isinstance(data, dict):
            data = {}

        if form in STORED_FORMS:
            key, missing_msg, not_found_msg, _ = STORED_FORMS[form]
            raw_id = data.get(key)
            if not raw_id:
                raise ValidationError(missing_msg)
            record = find_stored(form, raw_id)
            if record is None:
                raise NotFound(not_found_msg)
            return stored_payload(record)

        if not data:
            raise ValidationError(BODY_FORMS[form])
        if form == "nhs-report" and not (data.get("incident") and data.get("trustReport")):
            raise ValidationError(BODY_FORMS[form])
        return dict(data)

    @extend_schema(
        tags=["PDF"],
        request=OpenApiTypes.OBJECT,
        responses={
            (200, "application/pdf"): OpenApiTypes.BINARY,
            400: OpenApiTypes.OBJECT,
            401: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            500: OpenApiTypes.OBJECT,
        },
    )
    def post(self, request, form: str):
        if form not in BODY_FORMS and form not in STORED_FORMS:
            raise NotFound(f"Unknown PDF form '{form}'.")

        data = self._payload(request, form)
        pdf_form = FORMS[form]

        try:
            content = render_with_timeout(pdf_form.build(data))
            filename = pdf_form.filename(data)
        except Exception as exc:
            log.exception("PDF generation error for {}", form)
            return Response(
                build_error_envelope(
                    request=request,
                    code="server_error",
                    message=RENDER_FAILED_MSG,
                    details=str(exc) or "Unknown error",
                ),
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        log.info("Rendered {} PDF {} ({} bytes)", form, filename, len(content))
        return _pdf_response(content, filename)


@extend_schema_view(
    list=extend_schema(
        tags=["PDF"],
        responses={200: PdfJobSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="subject_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="subject_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["PDF"], responses={200: PdfJobSerializer}),
)
class PdfJobViewSet(viewsets.ViewSet):
    permission_classes = [PdfJobPermission]

    serializer_class = PdfJobSerializer
    queryset = PdfJob.objects.none()

    def list(self, request):
        scope = require_scope(request)
        qs = selectors.list_jobs(
            organization_id=scope.organization_id,
            subject_id=parse_uuid(request.query_params.get("subject_id"), "subject_id"),
            subject_type=request.query_params.get("subject_type") or None,
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, PdfJobSerializer)

    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        job = selectors.get_owned_job(organization_id=scope.organization_id, job_id=pk_uuid(pk, "PDF job"))
        return Response(PdfJobSerializer(job).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["PDF"],
        parameters=[
            OpenApiParameter(name="subject_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="subject_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: DownloadUrlSerializer},
        description="Rendered file URL for a completion or assessment; null when there is none.",
    )
    @action(detail=False, methods=["get"], url_path="download-url")
    def download_url(self, request):
        scope = require_scope(request)
        subject_type = request.query_params.get("subject_type") or ""
        model = SUBJECT_MODELS.get(subject_type)
        if model is None:
            raise ValidationError({"subject_type": f"Must be one of {sorted(SUBJECT_MODELS)}."})
        subject_id = parse_uuid(request.query_params.get("subject_id"), "subject_id", required=True)

        subject = model.objects.filter(pk=subject_id).first()
        if subject is not None and subject.organization_id != scope.organization_id:
            raise PermissionDenied("Subject belongs to another organization.")
        data = {
            "subject_type": subject_type,
            "subject_id": subject_id,
            "url": selectors.download_url_for(subject),
            "pdf_status": selectors.pdf_status_for(subject_type=subject_type, subject_id=subject_id),
        }
        return Response(DownloadUrlSerializer(data).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["PDF"], request=None, responses={200: PdfJobSerializer})
    @action(detail=True, methods=["post"])
    def rerun(self, request, pk=None):
        scope = require_scope(request)
        job = selectors.get_owned_job(organization_id=scope.organization_id, job_id=pk_uuid(pk, "PDF job"))
        job = PdfJobService.run_job(job_id=job.id)
        return Response(PdfJobSerializer(job).data, status=status.HTTP_200_OK)
