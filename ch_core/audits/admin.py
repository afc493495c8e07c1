from django.contrib import admin

from ch_core.audits.models import AuditActionPlan, AuditCompletion, AuditTemplate, ResidentAuditItem


@admin.register(AuditTemplate)
class AuditTemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "domain", "frequency", "organization_id", "team_id", "is_active", "updated_at")
    list_filter = ("domain", "frequency", "is_active")
    search_fields = ("name", "category")
    ordering = ("name",)


class ActionPlanInline(admin.TabularInline):
    model = AuditActionPlan
    extra = 0
    fields = ("description", "assigned_to_name", "priority", "due_date", "status")
    show_change_link = True


@admin.register(AuditCompletion)
class AuditCompletionAdmin(admin.ModelAdmin):
    list_display = (
        "template_name",
        "resident_name",
        "status",
        "version",
        "completed_at",
        "next_audit_due",
        "is_archived",
        "organization_id",
    )
    list_filter = ("domain", "status", "is_archived")
    search_fields = ("template_name", "resident_name", "audited_by")
    readonly_fields = ("supersedes", "completed_at", "next_audit_due", "pdf_file", "pdf_url", "pdf_generated_at")
    ordering = ("-created_at",)
    inlines = [ActionPlanInline]


@admin.register(AuditActionPlan)
class AuditActionPlanAdmin(admin.ModelAdmin):
    list_display = ("description", "assigned_to_name", "priority", "due_date", "status", "is_new")
    list_filter = ("status", "priority")
    search_fields = ("description", "assigned_to_name")


@admin.register(ResidentAuditItem)
class ResidentAuditItemAdmin(admin.ModelAdmin):
    list_display = ("item_name", "resident", "status", "auditor_name", "due_date")
    list_filter = ("status",)
    search_fields = ("item_name", "auditor_name")
