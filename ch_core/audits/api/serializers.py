from __future__ import annotations

from rest_framework import serializers

from ch_core.audits.models import (
    ActionPlanPriority,
    ActionPlanStatus,
    AuditActionPlan,
    AuditCompletion,
    AuditDomain,
    AuditFrequency,
    AuditTemplate,
    CompletionStatus,
    ResidentAuditItem,
    ResidentItemStatus,
)
from ch_core.pdf.models import PdfSubjectType
from ch_core.pdf.selectors import pdf_status_for


# ----------------------------
# Templates
# ----------------------------
class AuditTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditTemplate
        fields = [
            "id",
            "organization_id",
            "team_id",
            "domain",
            "name",
            "description",
            "category",
            "items",
            "frequency",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AuditTemplateCreateSerializer(serializers.Serializer):
    domain = serializers.ChoiceField(choices=AuditDomain.choices)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    items = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    frequency = serializers.ChoiceField(choices=AuditFrequency.choices)


class AuditTemplateUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=128, required=False, allow_blank=True)
    items = serializers.ListField(child=serializers.DictField(), required=False)
    frequency = serializers.ChoiceField(choices=AuditFrequency.choices, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


# ----------------------------
# Completions
# ----------------------------
class AuditCompletionSerializer(serializers.ModelSerializer):
    template_id = serializers.UUIDField(read_only=True, allow_null=True)
    resident_id = serializers.UUIDField(read_only=True, allow_null=True)
    supersedes_id = serializers.UUIDField(read_only=True, allow_null=True)
    pdf_status = serializers.SerializerMethodField()

    class Meta:
        model = AuditCompletion
        fields = [
            "id",
            "organization_id",
            "team_id",
            "domain",
            "template_id",
            "template_name",
            "resident_id",
            "resident_name",
            "room_number",
            "items",
            "overall_notes",
            "status",
            "audited_by",
            "audited_at",
            "frequency",
            "completed_at",
            "next_audit_due",
            "version",
            "supersedes_id",
            "is_archived",
            "pdf_file",
            "pdf_url",
            "pdf_generated_at",
            "pdf_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_pdf_status(self, obj) -> str:
        return pdf_status_for(subject_type=PdfSubjectType.AUDIT_COMPLETION, subject_id=obj.id)


class DraftRequestSerializer(serializers.Serializer):
    template_id = serializers.UUIDField()
    resident_id = serializers.UUIDField(required=False, allow_null=True)
    audited_by = serializers.CharField(max_length=255, required=False, allow_blank=True)


class AutosaveSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), required=False)
    overall_notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=CompletionStatus.choices, required=False)
    audited_by = serializers.CharField(max_length=255, required=False, allow_blank=True)


class CompleteSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), required=False)
    overall_notes = serializers.CharField(required=False, allow_blank=True)
    audited_by = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PairQuerySerializer(serializers.Serializer):
    """(template, resident?) selector used by latest/history/drafts/archived."""
    template = serializers.UUIDField()
    resident = serializers.UUIDField(required=False, allow_null=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)


# ----------------------------
# Action plans
# ----------------------------
class ActionPlanSerializer(serializers.ModelSerializer):
    completion_id = serializers.UUIDField(read_only=True)
    template_id = serializers.UUIDField(read_only=True, allow_null=True)
    assigned_to_id = serializers.IntegerField(read_only=True, allow_null=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = AuditActionPlan
        fields = [
            "id",
            "organization_id",
            "team_id",
            "completion_id",
            "template_id",
            "description",
            "assigned_to_id",
            "assigned_to_name",
            "priority",
            "due_date",
            "status",
            "is_overdue",
            "latest_comment",
            "status_history",
            "is_new",
            "viewed_at",
            "completed_at",
            "created_by",
            "created_by_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ActionPlanCreateSerializer(serializers.Serializer):
    completion_id = serializers.UUIDField()
    description = serializers.CharField()
    assigned_to_id = serializers.IntegerField(required=False, allow_null=True)
    assigned_to_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    priority = serializers.ChoiceField(choices=ActionPlanPriority.choices, required=False, default=ActionPlanPriority.MEDIUM)
    due_date = serializers.DateField(required=False, allow_null=True)


class ActionPlanUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(required=False)
    assigned_to_id = serializers.IntegerField(required=False, allow_null=True)
    assigned_to_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=ActionPlanPriority.choices, required=False)
    due_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class ActionPlanStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ActionPlanStatus.choices)
    comment = serializers.CharField(required=False, allow_blank=True, default="")


# ----------------------------
# Resident audit items
# ----------------------------
class ResidentAuditItemSerializer(serializers.ModelSerializer):
    resident_id = serializers.UUIDField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = ResidentAuditItem
        fields = [
            "id",
            "organization_id",
            "team_id",
            "resident_id",
            "item_name",
            "status",
            "auditor_name",
            "last_audited_date",
            "due_date",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ResidentAuditItemUpsertSerializer(serializers.Serializer):
    resident_id = serializers.UUIDField()
    item_name = serializers.CharField(max_length=255)
    status = serializers.ChoiceField(choices=ResidentItemStatus.choices, required=False)
    auditor_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    last_audited_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
