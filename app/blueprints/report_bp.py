"""
Report Blueprint — inspection reports, signatures, photos, dashboards.

  GET    /api/v1/checklist                                  — catalog with numbering
  GET    /api/v1/reports[?project_id=]                      — list, most recent first
  GET    /api/v1/reports/<id>                               — one report
  GET    /api/v1/projects/<id>/reports/latest               — latest report of a project
  POST   /api/v1/projects/<id>/reports                      — build + persist next draft
  PUT    /api/v1/reports/<id>                               — save draft edits
  GET    /api/v1/reports/<id>/readiness                     — outstanding gates
  POST   /api/v1/reports/<id>/signatures/<slot>             — sign
  DELETE /api/v1/reports/<id>/signatures/<slot>             — revoke signature
  POST   /api/v1/reports/<id>/complete                      — Draft → Completed
  POST   /api/v1/reports/<id>/items/<item_id>/photos        — upload + attach (multipart "file")
  DELETE /api/v1/reports/<id>/items/<item_id>/photos/<pid>  — detach + remove
  GET    /api/v1/photos/<name>                              — serve a stored photo
  GET    /api/v1/reports/pending-actions?period=            — NCs grouped by project
  GET    /api/v1/dashboard/summary                          — latest report per project
"""

from flask import Blueprint, jsonify, request, send_from_directory

from app.blueprints import json_body
from app.auth import current_profile
from app.services import dashboard_service, photo_storage, report_service
from app.services import report_lifecycle as lifecycle
from app.services.checklist_catalog import get_catalog

reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# Checklist
# ═════════════════════════════════════════════════════════════════════════════


@reports_bp.route("/checklist", methods=["GET"])
def get_checklist():
    return jsonify(get_catalog().to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════════
# Reports — read
# ═════════════════════════════════════════════════════════════════════════════


@reports_bp.route("/reports", methods=["GET"])
def list_reports():
    project_id = request.args.get("project_id", type=int)
    reports = report_service.list_reports(project_id)
    return jsonify([report_service.report_payload(r) for r in reports]), 200


@reports_bp.route("/reports/<int:report_id>", methods=["GET"])
def get_report(report_id):
    report = report_service.get_report(report_id)
    return jsonify(report_service.report_payload(report)), 200


@reports_bp.route("/projects/<int:project_id>/reports/latest", methods=["GET"])
def get_latest_report(project_id):
    report = report_service.get_latest_report(project_id)
    if report is None:
        return jsonify({"report": None}), 200
    return jsonify({"report": report_service.report_payload(report)}), 200


@reports_bp.route("/reports/<int:report_id>/readiness", methods=["GET"])
def get_readiness(report_id):
    report = report_service.get_report(report_id)
    return jsonify(lifecycle.readiness(report)), 200


# ═════════════════════════════════════════════════════════════════════════════
# Reports — lifecycle
# ═════════════════════════════════════════════════════════════════════════════


@reports_bp.route("/projects/<int:project_id>/reports", methods=["POST"])
def create_draft(project_id):
    report = report_service.create_draft(project_id, current_profile())
    return jsonify(report_service.report_payload(report)), 201


@reports_bp.route("/reports/<int:report_id>", methods=["PUT"])
def save_draft(report_id):
    """
    Body: {
        "inspector"?: "...",
        "inspection_date"?: "YYYY-MM-DD",
        "results"?: [{"item_id", "status"?, "comment"?, "action_plan"?}]
    }
    """
    data = json_body()
    report = report_service.edit_report(report_id, current_profile(), data)
    return jsonify(report_service.report_payload(report)), 200


@reports_bp.route("/reports/<int:report_id>/signatures/<slot>", methods=["POST"])
def sign(report_id, slot):
    report = report_service.sign_report(report_id, current_profile(), slot)
    return jsonify(report_service.report_payload(report)), 200


@reports_bp.route("/reports/<int:report_id>/signatures/<slot>", methods=["DELETE"])
def revoke_signature(report_id, slot):
    report = report_service.revoke_signature(report_id, current_profile(), slot)
    return jsonify(report_service.report_payload(report)), 200


@reports_bp.route("/reports/<int:report_id>/complete", methods=["POST"])
def complete(report_id):
    report = report_service.complete_report(report_id, current_profile())
    return jsonify(report_service.report_payload(report)), 200


# ═════════════════════════════════════════════════════════════════════════════
# Photos
# ═════════════════════════════════════════════════════════════════════════════


@reports_bp.route("/reports/<int:report_id>/items/<item_id>/photos", methods=["POST"])
def upload_photo(report_id, item_id):
    photo = report_service.attach_photo(
        report_id, current_profile(), item_id, request.files.get("file"),
    )
    return jsonify(photo.to_dict()), 201


@reports_bp.route("/reports/<int:report_id>/items/<item_id>/photos/<photo_id>", methods=["DELETE"])
def delete_photo(report_id, item_id, photo_id):
    report_service.detach_photo(report_id, current_profile(), item_id, photo_id)
    return jsonify({"deleted": True}), 200


@reports_bp.route("/photos/<name>", methods=["GET"])
def get_photo(name):
    folder, safe_name = photo_storage.photo_path(name)
    return send_from_directory(folder, safe_name)


# ═════════════════════════════════════════════════════════════════════════════
# Dashboards
# ═════════════════════════════════════════════════════════════════════════════


@reports_bp.route("/reports/pending-actions", methods=["GET"])
def pending_actions():
    period = request.args.get("period", dashboard_service.PERIOD_LATEST)
    return jsonify(dashboard_service.pending_actions(period)), 200


@reports_bp.route("/dashboard/summary", methods=["GET"])
def dashboard_summary():
    return jsonify(dashboard_service.portfolio_summary()), 200
