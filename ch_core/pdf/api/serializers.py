from __future__ import annotations

from rest_framework import serializers

from ch_core.pdf.models import PdfJob


class PdfJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = PdfJob
        fields = [
            "id",
            "organization_id",
            "team_id",
            "subject_type",
            "subject_id",
            "status",
            "attempts",
            "error_details",
            "file",
            "started_at",
            "finished_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DownloadUrlSerializer(serializers.Serializer):
    subject_type = serializers.CharField()
    subject_id = serializers.UUIDField()
    url = serializers.CharField(allow_null=True)
    pdf_status = serializers.CharField()
