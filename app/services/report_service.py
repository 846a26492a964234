"""
Report Service — persistence and orchestration of inspection reports.

Each public operation is one request/response against storage:
load the aggregate → apply one lifecycle operation → write the whole
content blob back. Scores are recomputed on every save, so a stored
report's derived fields always match its results.

Concurrent edits of the same report are last-writer-wins; a recorded
signature locks the checklist, which is the only conflict prevention.
"""

from __future__ import annotations

import logging

from flask import current_app
from werkzeug.datastructures import FileStorage

from app.core.exceptions import ConflictError, NotFoundError, ReportLockedError
from app.models import db
from app.models.inspection import InspectionReport, Photo, ReportStatus
from app.models.report import Report
from app.services import photo_storage, report_lifecycle as lifecycle
from app.services.access_policy import UserProfile, check_write
from app.services.draft_builder import build_draft
from app.services.project_service import get_project
from app.utils.helpers import commit_or_raise, local_today

logger = logging.getLogger(__name__)


# ── Storage ──────────────────────────────────────────────────────────────────


def _recency_key(report: InspectionReport):
    return (report.inspection_date, report.created_date)


def list_reports(project_id: int | None = None) -> list[InspectionReport]:
    """All reports, most recent inspection first."""
    query = Report.query
    if project_id is not None:
        query = query.filter_by(project_id=project_id)
    reports = [row.to_domain() for row in query.all()]
    return sorted(reports, key=_recency_key, reverse=True)


def get_report(report_id: int) -> InspectionReport:
    row = db.session.get(Report, report_id)
    if row is None:
        raise NotFoundError(resource="Report", resource_id=report_id)
    return row.to_domain()


def get_latest_report(project_id: int) -> InspectionReport | None:
    """Latest report by inspection date, then creation timestamp."""
    reports = list_reports(project_id)
    return reports[0] if reports else None


def save_report(report: InspectionReport) -> InspectionReport:
    """Insert (no id) or update (id) the aggregate, recomputing scores first."""
    lifecycle.recompute(report)

    if report.id is None:
        row = Report()
        db.session.add(row)
    else:
        row = db.session.get(Report, report.id)
        if row is None:
            raise NotFoundError(resource="Report", resource_id=report.id)
        if (row.content or {}).get("status") == ReportStatus.COMPLETED.value:
            raise ReportLockedError(
                f"Relatório {report.id} já foi concluído e não pode ser alterado",
                violations=[{"code": "report_completed", "message": "Relatório concluído é imutável"}],
            )

    row.load_domain(report)
    commit_or_raise("report save")
    report.id = row.id

    logger.info(
        "Report saved",
        extra={"report_id": report.id, "project_id": report.project_id},
    )
    return report


# ── Lifecycle operations ─────────────────────────────────────────────────────


def create_draft(project_id: int, user: UserProfile) -> InspectionReport:
    """Build the next draft from the latest report and persist it."""
    get_project(project_id)
    check_write(user, project_id, action="create report")

    reports = list_reports(project_id)
    # any Draft blocks, whatever its inspection date
    open_draft = next((r for r in reports if not r.is_completed), None)
    if open_draft is not None:
        raise ConflictError(
            "Report", "status", ReportStatus.DRAFT.value,
            message=f"A obra já possui um rascunho em aberto (relatório {open_draft.id}); continue a inspeção existente",
        )
    prior = reports[0] if reports else None

    draft = build_draft(project_id, prior, today=local_today(current_app.config.get("LOCAL_TIMEZONE")))
    save_report(draft)
    logger.info(
        "Draft created",
        extra={"report_id": draft.id, "project_id": project_id, "user_id": user.id},
    )
    return draft


def edit_report(report_id: int, user: UserProfile, changes: dict) -> InspectionReport:
    report = get_report(report_id)
    lifecycle.update_draft(report, user, changes)
    return save_report(report)


def sign_report(report_id: int, user: UserProfile, slot: str) -> InspectionReport:
    report = get_report(report_id)
    lifecycle.sign_report(report, user, slot)
    return save_report(report)


def revoke_signature(report_id: int, user: UserProfile, slot: str) -> InspectionReport:
    report = get_report(report_id)
    lifecycle.revoke_signature(report, user, slot)
    return save_report(report)


def complete_report(report_id: int, user: UserProfile) -> InspectionReport:
    report = get_report(report_id)
    lifecycle.complete_report(report, user)
    return save_report(report)


def attach_photo(report_id: int, user: UserProfile, item_id: str, file: FileStorage | None) -> Photo:
    """Upload, then attach. Any failure leaves the stored photo list untouched."""
    report = get_report(report_id)
    lifecycle.assert_mutable(report)
    check_write(user, report.project_id, action="attach photo")
    if report.result_for(item_id) is None:
        raise NotFoundError(resource="Checklist item", resource_id=item_id)

    url = photo_storage.upload(file)
    photo = Photo(id=f"photo-{url.rsplit('/', 1)[-1].split('.', 1)[0]}", url=url)
    try:
        lifecycle.add_photo(report, user, item_id, photo)
        save_report(report)
    except Exception:
        photo_storage.delete(url)
        raise
    return photo


def detach_photo(report_id: int, user: UserProfile, item_id: str, photo_id: str) -> None:
    report = get_report(report_id)
    photo = lifecycle.remove_photo(report, user, item_id, photo_id)
    save_report(report)
    photo_storage.delete(photo.url)


# ── Read models ──────────────────────────────────────────────────────────────


def lead_time(report: InspectionReport, alert_days: int | None = None) -> dict:
    """Days from inspection to closure; observational, never a gate."""
    if alert_days is None:
        alert_days = current_app.config.get("LEAD_TIME_ALERT_DAYS", 3)
    if report.closed_date is None or report.inspection_date is None:
        return {"days": None, "alert": False, "threshold_days": alert_days}
    days = (report.closed_date.date() - report.inspection_date).days
    return {"days": days, "alert": days > alert_days, "threshold_days": alert_days}


def report_payload(report: InspectionReport) -> dict:
    data = report.to_dict()
    data["state"] = lifecycle.derived_state(report)
    data["lead_time"] = lead_time(report)
    return data
