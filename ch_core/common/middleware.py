from __future__ import annotations

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework.exceptions import ValidationError

from ch_core.common.api.exceptions import build_error_envelope
from ch_core.iam.services.membership import is_user_member_of_team
from ch_core.iam.scope import MISSING_SCOPE_MSG, NOT_A_MEMBER_MSG, resolve_scope_from_headers


class OrganizationTeamScopeMiddleware(MiddlewareMixin):
    """
    Enforces organization/team scope for API requests.

    Behavior:
      - Enforced for /api/v1/* and the /api/* alias.
      - Most endpoints need BOTH X-Organization-Id and X-Team-Id (400 if missing).
      - /me/ and /session/bootstrap/: headers optional, validated when given.
      - Auth endpoints and the PDF bridge (token-authenticated) ignore scope.
      - Docs/schema/admin are public.
      - Invalid UUIDs -> 400, not a member -> 403.
      - On success attaches request.scope, request.organization_id, request.team_id.
    """

    ENFORCED_PREFIXES = ("/api/v1/", "/api/")

    PUBLIC_PATH_PREFIXES = (
        "/admin/",
        "/api/docs/",
        "/api/schema/",
    )

    UNSCOPED_PATH_PREFIXES = (
        "/api/v1/pdf/",
        "/api/pdf/",
    )

    # Job listing under the PDF prefix is a normal scoped endpoint.
    SCOPED_UNDER_UNSCOPED_PREFIXES = (
        "/api/v1/pdf/jobs/",
        "/api/pdf/jobs/",
    )

    AUTH_PATH_SUFFIXES = (
        "/auth/login/",
        "/auth/refresh/",
        "/auth/logout/",
    )

    ALLOW_NO_SCOPE_EXACT_PATHS = (
        "/api/v1/",
        "/api/",
    )

    ALLOW_NO_SCOPE_SUFFIXES = (
        "/me/",
        "/session/bootstrap/",
    )

    def _starts_with_any(self, path: str, prefixes: tuple[str, ...]) -> bool:
        return any(path.startswith(p) for p in prefixes)

    def _endswith_any(self, path: str, suffixes: tuple[str, ...]) -> bool:
        return any(path.endswith(s) for s in suffixes)

    def _json_error(self, request, *, status_code: int, code: str, message: str) -> JsonResponse:
        return JsonResponse(
            build_error_envelope(request=request, code=code, message=message, details=None),
            status=status_code,
        )

    def process_request(self, request):
        request.scope = None
        request.organization_id = None
        request.team_id = None

        path = getattr(request, "path", "") or ""

        if self._starts_with_any(path, self.PUBLIC_PATH_PREFIXES):
            return None
        if not self._starts_with_any(path, self.ENFORCED_PREFIXES):
            return None
        if path in self.ALLOW_NO_SCOPE_EXACT_PATHS:
            return None
        if self._starts_with_any(path, self.UNSCOPED_PATH_PREFIXES) and not self._starts_with_any(
            path, self.SCOPED_UNDER_UNSCOPED_PREFIXES
        ):
            return None
        if self._endswith_any(path, self.AUTH_PATH_SUFFIXES):
            return None

        # Unauthenticated requests are rejected later by DRF; header auth applies scope itself.
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        try:
            scope = resolve_scope_from_headers(request)
        except ValidationError as exc:
            return self._json_error(
                request,
                status_code=400,
                code="validation_error",
                message=str(exc.detail[0]),
            )

        if scope is None:
            if self._endswith_any(path, self.ALLOW_NO_SCOPE_SUFFIXES):
                return None
            return self._json_error(request, status_code=400, code="validation_error", message=MISSING_SCOPE_MSG)

        if not is_user_member_of_team(
            user_id=user.id,
            organization_id=scope.organization_id,
            team_id=scope.team_id,
        ):
            return self._json_error(request, status_code=403, code="permission_denied", message=NOT_A_MEMBER_MSG)

        request.scope = scope
        request.organization_id = scope.organization_id
        request.team_id = scope.team_id
        return None
