from __future__ import annotations

from rest_framework import serializers

from ch_core.residents.models import Resident


class ResidentCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=128)
    last_name = serializers.CharField(max_length=128)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    nhs_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    room_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    admitted_on = serializers.DateField(required=False, allow_null=True)


class ResidentUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=128, required=False)
    last_name = serializers.CharField(max_length=128, required=False)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    nhs_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    room_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    admitted_on = serializers.DateField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class ResidentSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Resident
        fields = [
            "id",
            "organization_id",
            "team_id",
            "first_name",
            "last_name",
            "full_name",
            "date_of_birth",
            "nhs_number",
            "room_number",
            "admitted_on",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
