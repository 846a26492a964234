"""
Rate limiting (Flask-Limiter).

The Limiter instance lives in app/__init__.py with no default limits;
this module applies the per-route limits once blueprints are registered.

    - Login:  LOGIN_RATE_LIMIT per remote IP (default 10/minute)
    - Writes: 120/minute per remote IP on report/project routes

Rate limiting is disabled in testing mode.
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "120/minute"


def init_rate_limits(app, limiter):
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    login_view = app.view_functions.get("auth_bp.login")
    if login_view is not None:
        app.view_functions["auth_bp.login"] = limiter.limit(app.config["LOGIN_RATE_LIMIT"])(login_view)

    for bp_name in ("reports", "project_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PUT", "PATCH", "DELETE"])(bp)

    app.logger.info("Rate limiter configured — login: %s, writes: %s",
                    app.config["LOGIN_RATE_LIMIT"], WRITE_LIMIT)
