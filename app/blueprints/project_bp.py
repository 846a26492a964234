"""
Project Blueprint — construction sites under inspection.

  GET    /api/v1/projects         — list (any authenticated user)
  POST   /api/v1/projects         — create (admin)
  PATCH  /api/v1/projects/<id>    — rename / relocate (admin)
  DELETE /api/v1/projects/<id>    — delete; blocked while reports exist (admin)
"""

from flask import Blueprint, jsonify, request

from app.blueprints import json_body
from app.auth import require_role
from app.services import project_service

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
def list_projects():
    projects = project_service.list_projects()
    return jsonify([p.to_dict() for p in projects]), 200


@project_bp.route("", methods=["POST"])
@require_role("admin")
def create_project():
    data = json_body()
    project = project_service.create_project(data.get("name"), data.get("location"))
    return jsonify(project.to_dict()), 201


@project_bp.route("/<int:project_id>", methods=["PATCH"])
@require_role("admin")
def update_project(project_id):
    data = json_body()
    project = project_service.update_project(project_id, data)
    return jsonify(project.to_dict()), 200


@project_bp.route("/<int:project_id>", methods=["DELETE"])
@require_role("admin")
def delete_project(project_id):
    project_service.delete_project(project_id)
    return jsonify({"deleted": True}), 200
