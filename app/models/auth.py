"""
Auth Models — users (profiles), project assignments, login sessions.

A User row carries both the identity (email + password hash) and the
profile (full name, canonical role, assigned projects). Roles stored here
are always canonical; legacy names are normalised by user_service before
they are written.
"""

import uuid
from datetime import datetime, timezone

from app.models import db
from app.services.access_policy import UserProfile


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    password_hash = db.Column(db.String(256))
    full_name = db.Column(db.String(200), nullable=False, default="")
    role = db.Column(
        db.String(30),
        nullable=False,
        default="assistant",
        comment="admin | executive | manager | assistant",
    )
    status = db.Column(db.String(20), default="active")  # active, inactive
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_users_email", "email"),
    )

    # Relationships
    assignments = db.relationship(
        "ProjectAssignment", back_populates="user", cascade="all, delete-orphan",
    )
    sessions = db.relationship(
        "AuthSession", back_populates="user", lazy="dynamic", cascade="all, delete-orphan",
    )

    @property
    def assigned_project_ids(self) -> list[int]:
        return sorted(a.project_id for a in self.assignments)

    def to_profile(self) -> UserProfile:
        """Immutable snapshot consumed by the access policy."""
        return UserProfile(
            id=self.id,
            email=self.email,
            full_name=self.full_name or self.email,
            role=self.role,
            assigned_project_ids=frozenset(self.assigned_project_ids),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "status": self.status,
            "assigned_project_ids": self.assigned_project_ids,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User #{self.id} {self.email} {self.role}>"


# ═══════════════════════════════════════════════════════════════
# 2. PROJECT_ASSIGNMENTS (User ↔ Project write scope)
# ═══════════════════════════════════════════════════════════════
class ProjectAssignment(db.Model):
    __tablename__ = "project_assignments"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    assigned_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_assignment"),
        db.Index("ix_project_assignments_user", "user_id"),
    )

    user = db.relationship("User", back_populates="assignments")


# ═══════════════════════════════════════════════════════════════
# 3. AUTH_SESSIONS (one per login; logout deactivates)
# ═══════════════════════════════════════════════════════════════
class AuthSession(db.Model):
    __tablename__ = "auth_sessions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash = db.Column(db.String(64), nullable=False, unique=True)  # SHA-256 of the access token
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user = db.relationship("User", back_populates="sessions")

    @property
    def is_expired(self):
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at

    def to_dict(self):
        return {
            "id": self.id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
