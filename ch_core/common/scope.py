# ch_core/common/scope.py
from __future__ import annotations

from rest_framework.exceptions import ValidationError

from ch_core.iam.scope import MISSING_SCOPE_MSG, Scope, resolve_scope_from_headers


def require_scope(request) -> Scope:
    """
    Scope for a view. Prefers what the middleware/auth layer already attached,
    otherwise reads the headers. Raises 400 (error envelope) when missing.

    Membership is not re-checked here; middleware and auth own that.
    """
    scope = getattr(request, "scope", None)
    if scope is None:
        # DRF Request proxies attribute access to the underlying HttpRequest.
        scope = resolve_scope_from_headers(request)
    if scope is None:
        raise ValidationError(MISSING_SCOPE_MSG)

    request.scope = scope
    return scope
