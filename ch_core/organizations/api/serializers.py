from __future__ import annotations

from rest_framework import serializers

from ch_core.organizations.models import Organization, OrganizationStatus


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ["id", "name", "code", "status", "metadata", "created_at", "updated_at"]
        read_only_fields = fields


class OrganizationCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    code = serializers.SlugField(max_length=64)
    status = serializers.ChoiceField(
        choices=OrganizationStatus.choices, required=False, default=OrganizationStatus.ACTIVE
    )
    metadata = serializers.JSONField(required=False, default=dict)


class OrganizationUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    status = serializers.ChoiceField(choices=OrganizationStatus.choices, required=False)
    metadata = serializers.JSONField(required=False)
