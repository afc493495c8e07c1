from django.contrib import admin

from ch_core.residents.models import Resident


@admin.register(Resident)
class ResidentAdmin(admin.ModelAdmin):
    list_display = ("last_name", "first_name", "room_number", "nhs_number", "organization_id", "team_id", "is_active")
    list_filter = ("is_active",)
    search_fields = ("first_name", "last_name", "nhs_number", "room_number")
    ordering = ("last_name", "first_name")
