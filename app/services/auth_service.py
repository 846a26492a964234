"""
Auth Service — login, session lookup, sign-out, own password change.

The identity provider is deliberately thin: the core only needs the
authenticated user's id to load their profile. Each login persists an
AuthSession keyed by the token hash, so sign-out revokes immediately
instead of waiting for the token to expire.
"""

from __future__ import annotations

import logging

import jwt as pyjwt

from app.core.exceptions import AuthenticationError, ValidationError
from app.models import db
from app.models.auth import AuthSession, User
from app.services.jwt_service import decode_access_token, generate_access_token, hash_token
from app.utils.crypto import MIN_PASSWORD_LENGTH, hash_password, verify_password
from app.utils.helpers import commit_or_raise, utcnow

logger = logging.getLogger(__name__)


def login(email: str, password: str, *, ip_address: str | None = None,
          user_agent: str | None = None) -> dict:
    """Verify credentials and open a session. Returns the token payload."""
    email = (email or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or user.status != "active" or not verify_password(password or "", user.password_hash):
        logger.warning("Failed login attempt", extra={"event_type": "login_failed"})
        raise AuthenticationError("E-mail ou senha inválidos")

    token, expires_at = generate_access_token(user.id, user.role)
    db.session.add(AuthSession(
        user_id=user.id,
        token_hash=hash_token(token),
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500],
        expires_at=expires_at,
    ))
    user.last_login_at = utcnow()
    commit_or_raise("login")

    logger.info("User logged in", extra={"user_id": user.id})
    return {
        "access_token": token,
        "token_type": "Bearer",
        "expires_at": expires_at.isoformat(),
        "user": user.to_dict(),
    }


def resolve_session(token: str) -> User:
    """Return the user behind an access token with an active session."""
    try:
        payload = decode_access_token(token)
    except pyjwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Sessão expirada") from exc
    except pyjwt.InvalidTokenError as exc:
        raise AuthenticationError("Token inválido") from exc

    session = AuthSession.query.filter_by(token_hash=hash_token(token)).first()
    if session is None or not session.is_active or session.is_expired:
        raise AuthenticationError("Sessão encerrada")

    user = db.session.get(User, int(payload["sub"]))
    if user is None or user.status != "active":
        raise AuthenticationError("Usuário inexistente ou inativo")
    return user


def sign_out(token: str) -> bool:
    """Deactivate the session behind ``token``. Returns False if none was active."""
    session = AuthSession.query.filter_by(token_hash=hash_token(token), is_active=True).first()
    if session is None:
        return False
    session.is_active = False
    commit_or_raise("sign out")
    logger.info("User signed out", extra={"user_id": session.user_id})
    return True


def update_own_password(user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password or "", user.password_hash):
        raise ValidationError("Senha atual incorreta", details={"current_password": "incorreta"})
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"A nova senha deve ter ao menos {MIN_PASSWORD_LENGTH} caracteres",
            details={"new_password": "muito curta"},
        )
    user.password_hash = hash_password(new_password)
    commit_or_raise("password update")
    logger.info("Password changed", extra={"user_id": user.id})
