# ch_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from ch_core.iam.models import Permission, Role, RolePermission, TeamMembership, UserProfile


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ("code", "description")
    search_fields = ("code", "description")
    ordering = ("code",)


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ("permission",)


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "organization", "is_active")
    list_filter = ("organization", "is_active")
    search_fields = ("code", "name")
    inlines = [RolePermissionInline]


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "display_name", "organization", "is_active", "created_at")
    list_filter = ("organization", "is_active")
    search_fields = ("user__username", "user__email", "display_name")


@admin.register(TeamMembership)
class TeamMembershipAdmin(admin.ModelAdmin):
    list_display = ("organization", "team", "user_profile", "role", "is_primary", "is_active")
    list_filter = ("organization", "team", "role", "is_active")
    search_fields = ("team__name", "team__code", "user_profile__user__username")
