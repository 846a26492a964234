"""
Site Inspection Platform
Authentication middleware and role decorators.

Provides:
    - Bearer-token session resolution for every /api/v1/* request
      (g.current_user = User row, g.current_profile = UserProfile snapshot)
    - ``require_role`` decorator for administrative endpoints

Security model:
    - All /api/v1/* endpoints require a valid session, except the public
      prefixes below (login, health, stored photos).
    - Read access is global for authenticated users; write access is decided
      per operation by app.services.access_policy, never here.
"""

import functools
import logging

from flask import g, request

from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.services.access_policy import UserProfile

logger = logging.getLogger(__name__)

# Paths that skip authentication entirely
PUBLIC_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
    "/api/v1/photos/",
)


def bearer_token() -> str | None:
    """Extract the raw token from the Authorization header."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


def init_auth(app):
    """Register the session-resolution hook."""

    @app.before_request
    def _authenticate():
        g.current_user = None
        g.current_profile = None

        path = request.path
        if not path.startswith("/api/v1/") or request.method == "OPTIONS":
            return None
        if path.startswith(PUBLIC_PREFIXES):
            return None

        from app.services.auth_service import resolve_session

        token = bearer_token()
        if not token:
            raise AuthenticationError("Autenticação necessária")
        user = resolve_session(token)
        g.current_user = user
        g.current_profile = user.to_profile()
        return None


def current_profile() -> UserProfile:
    profile = getattr(g, "current_profile", None)
    if profile is None:
        raise AuthenticationError("Autenticação necessária")
    return profile


def require_role(*roles: str):
    """Decorator: only users whose canonical role is in ``roles`` may call."""

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            profile = current_profile()
            if profile.role not in roles:
                logger.warning(
                    "User %s denied: role '%s' not in %s on %s",
                    profile.id, profile.role, roles, f.__name__,
                )
                raise PermissionDeniedError(profile.id, f.__name__, f"requires role {' or '.join(roles)}")
            return f(*args, **kwargs)
        return decorated
    return decorator
