from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..deps.providers import get_auth_service, get_settings
from ..exceptions import AuthenticationError
from ..logging_config import get_logger

logger = get_logger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie."""
    auth_hdr = request.headers.get("authorization")
    if auth_hdr and auth_hdr.lower().startswith("bearer "):
        return auth_hdr.split(" ", 1)[1].strip() or None
    return request.cookies.get(get_settings().auth_cookie_name) or None


class CurrentUserMiddleware(BaseHTTPMiddleware):
    """Resolve the current user once per request and attach to request.state.current_user.

    Behavior:
    - Read a bearer token from the Authorization header or the auth cookie and
      verify it with the AuthService; the resulting TokenClaims become
      request.state.current_user.
    - Failures to validate do not short-circuit the request; downstream
      dependencies (get_current_user, page gates) decide what to do.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.current_user = None

        # Skip health/metrics endpoints early
        path = request.url.path or ""
        if path.startswith("/health") or path.startswith("/metrics"):
            return await call_next(request)

        token = extract_token(request)
        if token:
            try:
                claims = get_auth_service().verify_token(token)
                request.state.current_user = claims
                logger.debug("token_verified", extra={"user_id": claims.subject, "path": path})
            except AuthenticationError as e:
                # Log verification failures for diagnostics but do not raise here
                logger.warning("token_verification_failed", extra={"error": str(e), "path": path})

        return await call_next(request)
