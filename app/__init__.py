"""
Site Inspection Platform
Flask Application Factory.

Usage:
    from app import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import IntegrityError

from app.auth import init_auth
from app.config import config
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ReferentialIntegrityError,
    ReportLockedError,
    StorageError,
    UploadError,
    ValidationError,
)
from app.middleware.logging_config import configure_logging
from app.middleware.rate_limiter import init_rate_limits
from app.middleware.timing import init_request_timing
from app.models import db
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)


def _register_error_handlers(app):
    """Map the core exception hierarchy onto the api_error envelope."""

    @app.errorhandler(NotFoundError)
    def _not_found(exc):
        return api_error(E.NOT_FOUND, str(exc))

    @app.errorhandler(ReportLockedError)
    def _locked(exc):
        return api_error(E.REPORT_LOCKED, str(exc), details={"violations": exc.violations})

    @app.errorhandler(ValidationError)
    def _invalid(exc):
        if exc.violations:
            return api_error(
                E.LIFECYCLE_BLOCK, str(exc),
                details={"violations": exc.violations, **exc.details},
            )
        return api_error(E.VALIDATION_INVALID, str(exc), status=422, details=exc.details)

    @app.errorhandler(PermissionDeniedError)
    def _forbidden(exc):
        logger.warning("Permission denied: %s", exc, extra={"user_id": exc.user_id, "event_type": "forbidden"})
        return api_error(E.FORBIDDEN, str(exc), details={"action": exc.action, "reason": exc.reason})

    @app.errorhandler(ReferentialIntegrityError)
    def _referenced(exc):
        return api_error(
            E.REFERENTIAL_INTEGRITY, str(exc),
            details={"dependent": exc.dependent, "count": exc.count},
        )

    @app.errorhandler(ConflictError)
    def _conflict(exc):
        code = E.CONFLICT_STATE if exc.field == "status" else E.CONFLICT_DUPLICATE
        return api_error(code, str(exc), details={"field": exc.field})

    @app.errorhandler(UploadError)
    def _upload(exc):
        return api_error(E.UPLOAD_FAILED, str(exc))

    @app.errorhandler(StorageError)
    def _storage(exc):
        logger.error("Storage error: %s (%s)", exc, exc.detail, extra={"error_code": E.DATABASE})
        status = 409 if isinstance(exc.__cause__, IntegrityError) else None
        return api_error(E.DATABASE, str(exc), status=status,
                         details={"detail": exc.detail} if exc.detail else None)

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(exc):
        return api_error(E.UNAUTHENTICATED, str(exc))

    @app.errorhandler(404)
    def _route_not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def _too_large(e):
        return api_error(E.UPLOAD_FAILED, "Request body too large", status=413)

    @app.errorhandler(429)
    def _rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def _server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("normalize-roles")
    def normalize_roles_cmd():
        """Rewrite legacy role names (Diretoria, Engenheiro, ...) to canonical roles."""
        from app.services.user_service import normalize_stored_roles
        changed, unknown = normalize_stored_roles()
        click.echo(f"Normalised {changed} profile role(s).")
        for user_id, role in sorted(unknown.items()):
            click.echo(f"Unrecognised role {role!r} on user {user_id}; left unchanged", err=True)

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    @click.option("--name", default="Administrador")
    def create_admin_cmd(email, password, name):
        """Create an admin account (first-run bootstrap)."""
        from app.services.user_service import create_account
        user = create_account({"email": email, "password": password, "name": name, "role": "admin"})
        click.echo(f"Admin account created: {user.email} (id={user.id})")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # instantiate so ProductionConfig can refuse missing settings
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing + session resolution ──────────────────────────────
    init_request_timing(app)
    init_auth(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from app.models import auth as _auth_models        # noqa: F401
    from app.models import project as _project_models  # noqa: F401
    from app.models import report as _report_models    # noqa: F401

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(app.instance_path, exist_ok=True)

    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Checklist catalog (fail fast on a malformed definition) ──────────
    from app.services.checklist_catalog import get_catalog
    catalog = get_catalog()
    app.logger.info("Checklist catalog loaded: %d categories, %d items",
                    len(catalog.categories), len(catalog))

    # ── Blueprints ───────────────────────────────────────────────────────
    from app.blueprints.admin_bp import admin_bp
    from app.blueprints.auth_bp import auth_bp
    from app.blueprints.project_bp import project_bp
    from app.blueprints.report_bp import reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(admin_bp)

    # ── Health check ─────────────────────────────────────────────────────
    @app.route("/api/v1/health")
    def health():
        return {"status": "ok", "app": "Site Inspection Platform"}

    _register_error_handlers(app)
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
