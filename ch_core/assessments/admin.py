from django.contrib import admin

from ch_core.assessments.models import Assessment


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ("form_type", "resident", "status", "version", "submitted_at", "organization_id", "created_at")
    list_filter = ("form_type", "status")
    search_fields = ("resident__first_name", "resident__last_name", "idempotency_key")
    readonly_fields = ("supersedes", "submitted_at", "reviewed_at", "pdf_file", "pdf_url", "pdf_generated_at")
    ordering = ("-created_at",)
