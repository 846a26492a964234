"""
Admin Blueprint — user profile management.

  GET    /api/v1/admin/users              — list profiles
  POST   /api/v1/admin/users              — create account (identity + profile)
  PATCH  /api/v1/admin/users/<id>         — update name / role / status / assignments
  DELETE /api/v1/admin/users?email=...    — delete account completely

All endpoints require the admin role.
"""

import logging

from flask import Blueprint, jsonify, request

from app.blueprints import json_body
from app.auth import require_role
from app.services import user_service

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/api/v1/admin")


@admin_bp.route("/users", methods=["GET"])
@require_role("admin")
def list_users():
    return jsonify([u.to_dict() for u in user_service.list_profiles()]), 200


@admin_bp.route("/users", methods=["POST"])
@require_role("admin")
def create_user():
    """
    Body: { "email", "password", "name", "role", "project_ids": [...] }
    """
    data = json_body()
    user = user_service.create_account(data)
    return jsonify(user.to_dict()), 201


@admin_bp.route("/users/<int:user_id>", methods=["PATCH"])
@require_role("admin")
def update_user(user_id):
    data = json_body()
    user = user_service.update_profile(user_id, data)
    return jsonify(user.to_dict()), 200


@admin_bp.route("/users", methods=["DELETE"])
@require_role("admin")
def delete_user():
    email = request.args.get("email", "").strip()
    if not email:
        return jsonify({"error": "email query parameter is required"}), 400
    user_service.delete_account_completely(email)
    return jsonify({"deleted": True}), 200
