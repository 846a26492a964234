"""
Access Policy — (role, assigned projects, project id) → read / write / sign.

Pure functions over a ``UserProfile`` snapshot; no DB access. Blueprints and
the lifecycle service ask once per operation instead of threading
"read only" flags around.

Default policy:
    admin      read all, write all, may sign inspector + manager slots
    executive  read all, never writes
    manager    read all, writes assigned projects, signs manager slot
    assistant  read all, writes assigned projects, signs inspector slot

The table is data so the role set can grow without touching callers.

Usage:
    from app.services.access_policy import can_write, check_write

    if can_write(profile, project_id):
        ...
    check_write(profile, project_id, action="edit report")  # raises
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from app.core.exceptions import PermissionDeniedError


@dataclass(frozen=True)
class UserProfile:
    """Authenticated user as seen by the core — canonical role only."""
    id: int | None
    email: str
    full_name: str
    role: str
    assigned_project_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RolePolicy:
    global_read: bool = True
    global_write: bool = False
    assigned_write: bool = False
    signature_slots: frozenset[str] = frozenset()


CANONICAL_ROLES = ("admin", "executive", "manager", "assistant")

DEFAULT_ROLE_POLICY: Mapping[str, RolePolicy] = {
    "admin": RolePolicy(global_write=True, signature_slots=frozenset({"inspector", "manager"})),
    "executive": RolePolicy(),
    "manager": RolePolicy(assigned_write=True, signature_slots=frozenset({"manager"})),
    "assistant": RolePolicy(assigned_write=True, signature_slots=frozenset({"inspector"})),
}

_NO_ACCESS = RolePolicy(global_read=False)


def _policy_for(role: str, policy: Mapping[str, RolePolicy] | None) -> RolePolicy:
    return (policy or DEFAULT_ROLE_POLICY).get(role, _NO_ACCESS)


def can_read(user: UserProfile | None, project_id: int | None = None,
             policy: Mapping[str, RolePolicy] | None = None) -> bool:
    """Every authenticated user with a known role may read every project."""
    if user is None:
        return False
    return _policy_for(user.role, policy).global_read


def can_write(user: UserProfile | None, project_id: int,
              policy: Mapping[str, RolePolicy] | None = None) -> bool:
    if user is None:
        return False
    rules = _policy_for(user.role, policy)
    if rules.global_write:
        return True
    if rules.assigned_write:
        return project_id in user.assigned_project_ids
    return False


def can_sign(user: UserProfile | None, slot: str,
             policy: Mapping[str, RolePolicy] | None = None) -> bool:
    """Role restriction on a signature slot (separation of duties)."""
    if user is None:
        return False
    return slot in _policy_for(user.role, policy).signature_slots


def is_admin(user: UserProfile | None) -> bool:
    return user is not None and user.role == "admin"


def check_write(user: UserProfile | None, project_id: int, action: str = "write",
                policy: Mapping[str, RolePolicy] | None = None) -> None:
    """Raise PermissionDeniedError unless ``can_write`` holds."""
    if not can_write(user, project_id, policy):
        role = user.role if user else "anonymous"
        raise PermissionDeniedError(
            user.id if user else None,
            action,
            f"role '{role}' has no write access to project {project_id}",
        )


def check_sign(user: UserProfile | None, project_id: int, slot: str,
               policy: Mapping[str, RolePolicy] | None = None) -> None:
    """Raise unless the user may write the project AND fill this slot."""
    check_write(user, project_id, action=f"sign as {slot}", policy=policy)
    if not can_sign(user, slot, policy):
        raise PermissionDeniedError(
            user.id,
            f"sign as {slot}",
            f"role '{user.role}' may not fill the '{slot}' signature",
        )
