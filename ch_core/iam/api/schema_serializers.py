# ch_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class MeUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField(allow_null=True, required=False)
    email = serializers.EmailField(allow_null=True, required=False)
    display_name = serializers.CharField(allow_blank=True, required=False)
    is_superuser = serializers.BooleanField()


class ActiveScopeSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField()
    team_id = serializers.UUIDField()


class MeResponseSerializer(serializers.Serializer):
    user = MeUserSerializer()
    memberships = serializers.ListField(child=serializers.DictField())
    active_scope = ActiveScopeSerializer(allow_null=True, required=False)


class MiniSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    code = serializers.CharField(allow_null=True, required=False)
    name = serializers.CharField(allow_null=True, required=False)


class SessionBootstrapResponseSerializer(MeResponseSerializer):
    active_organization = MiniSerializer(allow_null=True, required=False)
    active_team = MiniSerializer(allow_null=True, required=False)
    active_role = MiniSerializer(allow_null=True, required=False)
    permissions = serializers.ListField(child=serializers.CharField(), required=False)
    roles = serializers.ListField(child=serializers.CharField(), required=False)
    server_time = serializers.DateTimeField(required=False)
    api_version = serializers.CharField(required=False)


class ScopeSwitchRequestSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField()
    team_id = serializers.UUIDField()
