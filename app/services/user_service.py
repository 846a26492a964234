"""
User Service — administrative profile and account management.

Role normalisation lives here, at the data-access boundary: legacy role
names ("Diretoria", "Engenheiro", ...) are mapped to canonical roles
before any row is written, so business logic only ever sees
admin | executive | manager | assistant.
"""

from __future__ import annotations

import logging

from flask import current_app

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import db
from app.models.auth import ProjectAssignment, User
from app.models.project import Project
from app.services.access_policy import CANONICAL_ROLES
from app.utils.crypto import MIN_PASSWORD_LENGTH, hash_password
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

_EDITABLE_PROFILE_FIELDS = ("full_name", "role", "status", "assigned_project_ids")


def normalize_role(raw_role: str | None) -> str:
    """Map a stored or submitted role name to its canonical form.

    Raises ValidationError for names that are neither canonical nor a
    configured alias.
    """
    role = (raw_role or "").strip()
    if role in CANONICAL_ROLES:
        return role
    aliases = {k.lower(): v for k, v in current_app.config.get("ROLE_ALIASES", {}).items()}
    canonical = aliases.get(role.lower())
    if canonical is None and role.lower() in CANONICAL_ROLES:
        canonical = role.lower()
    if canonical is None:
        raise ValidationError(
            f"Perfil desconhecido: {raw_role!r}",
            details={"role": f"use one of: {', '.join(CANONICAL_ROLES)}"},
        )
    return canonical


def _set_assignments(user: User, project_ids) -> None:
    if project_ids is not None and not isinstance(project_ids, (list, tuple)):
        raise ValidationError("Atribuição inválida", details={"assigned_project_ids": "expected a list of project ids"})
    try:
        wanted = {int(pid) for pid in (project_ids or [])}
    except (TypeError, ValueError):
        raise ValidationError(
            "Atribuição inválida",
            details={"assigned_project_ids": "project ids must be integers"},
        ) from None
    if wanted:
        found = {p.id for p in Project.query.filter(Project.id.in_(wanted)).all()}
        missing = sorted(wanted - found)
        if missing:
            raise ValidationError(
                "Obras inexistentes na atribuição",
                details={"assigned_project_ids": missing},
            )
    current = {a.project_id: a for a in user.assignments}
    for pid, assignment in current.items():
        if pid not in wanted:
            user.assignments.remove(assignment)
    for pid in sorted(wanted - set(current)):
        user.assignments.append(ProjectAssignment(project_id=pid))


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def list_profiles() -> list[User]:
    return User.query.order_by(User.full_name.asc(), User.email.asc()).all()


def update_profile(user_id: int, data: dict) -> User:
    """Apply a partial profile update (name, role, status, assignments)."""
    user = get_user(user_id)
    unknown = sorted(set(data) - set(_EDITABLE_PROFILE_FIELDS))
    if unknown:
        raise ValidationError(
            "Campos não editáveis no perfil",
            details={field: "not editable" for field in unknown},
        )

    try:
        if "full_name" in data:
            full_name = str(data.get("full_name") or "").strip()
            if not full_name:
                raise ValidationError("full_name cannot be empty", details={"full_name": "required"})
            user.full_name = full_name
        if "role" in data:
            user.role = normalize_role(data.get("role"))
        if "status" in data:
            status = str(data.get("status") or "").strip()
            if status not in ("active", "inactive"):
                raise ValidationError("Invalid status", details={"status": "active | inactive"})
            user.status = status
        if "assigned_project_ids" in data:
            _set_assignments(user, data.get("assigned_project_ids"))
    except ValidationError:
        # discard partial edits
        db.session.rollback()
        raise

    commit_or_raise("profile update")
    logger.info("Profile updated", extra={"user_id": user.id})
    return user


def create_account(data: dict) -> User:
    """Create identity + profile in one step.

    ``data``: email, password, name, role, project_ids.
    """
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "")
    name = str(data.get("name") or data.get("full_name") or "").strip()

    errors = {}
    if not email or "@" not in email:
        errors["email"] = "valid e-mail required"
    if len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"at least {MIN_PASSWORD_LENGTH} characters"
    if not name:
        errors["name"] = "required"
    if errors:
        raise ValidationError("Dados de conta inválidos", details=errors)

    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email, message=f"E-mail já cadastrado: {email}")

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=name,
        role=normalize_role(data.get("role") or "assistant"),
        status="active",
    )
    _set_assignments(user, data.get("project_ids") or data.get("assigned_project_ids"))
    db.session.add(user)
    commit_or_raise("account creation")

    logger.info("Account created", extra={"user_id": user.id})
    return user


def delete_account_completely(email: str) -> None:
    """Remove identity, profile, assignments and sessions for ``email``."""
    email = (email or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise NotFoundError(resource="User", resource_id=email)
    user_id = user.id
    db.session.delete(user)
    commit_or_raise("account deletion")
    logger.info("Account deleted", extra={"user_id": user_id})


def normalize_stored_roles() -> tuple[int, dict[int, str]]:
    """One-time migration: rewrite legacy role names to canonical ones.

    Rows with an unrecognised role are left untouched and reported.

    Returns (rows changed, {user_id: unrecognised role}).
    """
    changed = 0
    unknown: dict[int, str] = {}
    for user in User.query.all():
        try:
            canonical = normalize_role(user.role)
        except ValidationError:
            logger.warning("Unrecognised stored role %r", user.role, extra={"user_id": user.id})
            unknown[user.id] = user.role
            continue
        if canonical != user.role:
            logger.info("Normalising role %r → %r", user.role, canonical, extra={"user_id": user.id})
            user.role = canonical
            changed += 1
    if changed:
        commit_or_raise("role normalisation")
    return changed, unknown
