"""
Shared pytest fixtures for the Site Inspection Platform test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / auth_headers: profile rows and bearer headers for them
    - project: Pre-created Project row
"""

import functools
import shutil

import pytest

from app import create_app
from app.models import db as _db
from app.models.auth import AuthSession, ProjectAssignment, User
from app.models.project import Project
from app.services.jwt_service import generate_access_token, hash_token
from app.utils.crypto import hash_password

TEST_PASSWORD = "Senha123!"


@functools.lru_cache(maxsize=1)
def _password_hash():
    # bcrypt is slow on purpose; hash once per session
    return hash_password(TEST_PASSWORD)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    yield application
    shutil.rmtree(application.config["PHOTO_UPLOAD_FOLDER"], ignore_errors=True)


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Factories ────────────────────────────────────────────────────────────


def create_project(name="Obra Centro", location="São Paulo"):
    project = Project(name=name, location=location)
    _db.session.add(project)
    _db.session.commit()
    return project


def create_user(email, role="assistant", full_name=None, project_ids=()):
    user = User(
        email=email,
        password_hash=_password_hash(),
        full_name=full_name or email.split("@")[0].title(),
        role=role,
        status="active",
    )
    _db.session.add(user)
    for pid in project_ids:
        user.assignments.append(ProjectAssignment(project_id=pid))
    _db.session.commit()
    return user


def bearer_for(user):
    """Open a session for ``user`` without going through bcrypt."""
    token, expires_at = generate_access_token(user.id, user.role)
    _db.session.add(AuthSession(user_id=user.id, token_hash=hash_token(token), expires_at=expires_at))
    _db.session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def project():
    return create_project()


@pytest.fixture()
def make_user():
    return create_user


@pytest.fixture()
def auth_headers():
    return bearer_for


@pytest.fixture()
def admin(project):
    return create_user("admin@obra.test", role="admin", full_name="Ana Admin")


@pytest.fixture()
def admin_headers(admin):
    return bearer_for(admin)
