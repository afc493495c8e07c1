from django.contrib import admin

from ch_core.pdf.models import PdfJob


@admin.register(PdfJob)
class PdfJobAdmin(admin.ModelAdmin):
    list_display = ("subject_type", "subject_id", "status", "attempts", "finished_at", "organization_id", "created_at")
    list_filter = ("subject_type", "status")
    search_fields = ("subject_id", "error_details")
    readonly_fields = ("file", "attempts", "started_at", "finished_at", "error_details")
    ordering = ("-created_at",)
