"""
Auth Blueprint — session endpoints.

  POST /api/v1/auth/login     — email + password → access token
  POST /api/v1/auth/logout    — revoke the current session
  GET  /api/v1/auth/session   — current user profile
  POST /api/v1/auth/password  — change own password
"""

from flask import Blueprint, g, jsonify, request

from app.blueprints import json_body
from app.auth import bearer_token, current_profile
from app.services import auth_service

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Body: { "email": "...", "password": "..." }
    """
    data = json_body()
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    payload = auth_service.login(
        email, password,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent", ""),
    )
    return jsonify(payload), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
def logout():
    auth_service.sign_out(bearer_token())
    return jsonify({"message": "Logged out successfully"}), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/session
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/session", methods=["GET"])
def session():
    current_profile()
    return jsonify({"user": g.current_user.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/password
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/password", methods=["POST"])
def change_password():
    """
    Body: { "current_password": "...", "new_password": "..." }
    """
    current_profile()
    data = json_body()
    auth_service.update_own_password(
        g.current_user,
        str(data.get("current_password") or ""),
        str(data.get("new_password") or ""),
    )
    return jsonify({"message": "Password updated"}), 200
