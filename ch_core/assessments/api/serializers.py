from __future__ import annotations

from rest_framework import serializers

from ch_core.assessments.models import Assessment, AssessmentStatus, FormType
from ch_core.pdf.models import PdfSubjectType
from ch_core.pdf.selectors import pdf_status_for


class AssessmentSerializer(serializers.ModelSerializer):
    resident_id = serializers.UUIDField(read_only=True)
    supersedes_id = serializers.UUIDField(read_only=True, allow_null=True)
    pdf_status = serializers.SerializerMethodField()

    class Meta:
        model = Assessment
        fields = [
            "id",
            "organization_id",
            "team_id",
            "resident_id",
            "form_type",
            "status",
            "version",
            "supersedes_id",
            "data",
            "idempotency_key",
            "submitted_at",
            "reviewed_at",
            "reviewed_by",
            "created_by",
            "pdf_url",
            "pdf_generated_at",
            "pdf_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_pdf_status(self, obj) -> str:
        return pdf_status_for(subject_type=PdfSubjectType.ASSESSMENT, subject_id=obj.id)


class CreateDraftSerializer(serializers.Serializer):
    resident_id = serializers.UUIDField()
    form_type = serializers.ChoiceField(choices=FormType.choices)
    data = serializers.DictField(required=False, default=dict)


class UpdateDraftSerializer(serializers.Serializer):
    data = serializers.DictField()
    replace = serializers.BooleanField(required=False, default=False)


class AmendSerializer(serializers.Serializer):
    data_patch = serializers.DictField()


class LatestQuerySerializer(serializers.Serializer):
    resident = serializers.UUIDField()
    form_type = serializers.ChoiceField(choices=FormType.choices)
    include_drafts = serializers.BooleanField(required=False, default=False)


class ListQuerySerializer(serializers.Serializer):
    resident = serializers.UUIDField(required=False)
    form_type = serializers.ChoiceField(choices=FormType.choices, required=False)
    status = serializers.ChoiceField(choices=AssessmentStatus.choices, required=False)
    current_only = serializers.BooleanField(required=False, default=False)
    team_only = serializers.BooleanField(required=False, default=False)
