# ch_core/iam/api/auth.py

from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer

from ch_core.common.logging import get_logger
from ch_core.iam.api.schema_serializers import DetailResponseSerializer, LoginRequestSerializer

log = get_logger(__name__)


def _seconds(value: Any) -> int:
    """JWT lifetime setting (timedelta or seconds) -> seconds; 0 means session cookie."""
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _cookie_names() -> tuple[str, str]:
    jwt_cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
    return jwt_cfg.get("AUTH_COOKIE", "ch_access"), jwt_cfg.get("AUTH_COOKIE_REFRESH", "ch_refresh")


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    jwt_cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
    access_name, refresh_name = _cookie_names()

    common = {
        "httponly": True,
        "secure": bool(jwt_cfg.get("AUTH_COOKIE_SECURE", False)),
        "samesite": jwt_cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }
    response.set_cookie(
        access_name,
        access,
        max_age=_seconds(jwt_cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=10))),
        **common,
    )
    response.set_cookie(
        refresh_name,
        refresh,
        max_age=_seconds(jwt_cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=14))),
        **common,
    )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=LoginRequestSerializer, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        serializer = TokenObtainPairSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        res = Response({"detail": "login ok"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        log.info("Login ok for {}", request.data.get("username"))
        return res


class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        _, refresh_name = _cookie_names()
        refresh = request.COOKIES.get(refresh_name) or request.data.get("refresh")

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        res = Response({"detail": "refreshed"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data.get("refresh", refresh),
        )
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        for name in _cookie_names():
            res.delete_cookie(name, path="/")
        return res
