from __future__ import annotations

from django.contrib import admin

from ch_core.teams.models import Team


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "organization", "team_type", "is_active", "city", "updated_at")
    list_filter = ("is_active", "team_type", "organization")
    search_fields = ("name", "code", "organization__code", "organization__name", "city", "postcode")
    readonly_fields = ("id", "created_at", "updated_at")
    ordering = ("organization", "name")
