# ch_core/pdf/auth.py
from __future__ import annotations

import hmac

from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from ch_core.common.logging import get_logger

log = get_logger(__name__)

UNAUTHORIZED_MSG = "Unauthorized"


class PdfServiceUser:
    """Caller identity for the server-to-server PDF bridge (not a database user)."""

    id = None
    pk = None
    username = "pdf-service"
    is_active = True
    is_authenticated = True
    is_anonymous = False
    is_superuser = False

    def __str__(self) -> str:
        return self.username


class PdfApiTokenAuthentication(BaseAuthentication):
    """
    Authorization: Bearer <PDF_API_TOKEN>

    PDF_API_AUTH_DISABLED skips the check (local development). With the check
    on and no token configured every request is refused.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        if settings.PDF_API_AUTH_DISABLED:
            return PdfServiceUser(), None

        expected = settings.PDF_API_TOKEN or ""
        header = get_authorization_header(request).split()

        if not expected:
            log.warning("PDF API called but PDF_API_TOKEN is not configured")
            raise AuthenticationFailed(UNAUTHORIZED_MSG)

        if len(header) != 2 or header[0].lower() != self.keyword.lower().encode():
            log.info("PDF API authentication failed: missing bearer token")
            raise AuthenticationFailed(UNAUTHORIZED_MSG)

        try:
            token = header[1].decode()
        except UnicodeError:
            raise AuthenticationFailed(UNAUTHORIZED_MSG)

        if not hmac.compare_digest(token, expected):
            log.info("PDF API authentication failed: token mismatch")
            raise AuthenticationFailed(UNAUTHORIZED_MSG)

        return PdfServiceUser(), token

    def authenticate_header(self, request):
        # Non-empty so DRF answers 401 rather than 403.
        return f'{self.keyword} realm="pdf"'
