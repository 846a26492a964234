"""
Dashboard Service — read-only aggregations over stored reports.

  - portfolio_summary: latest report per project (score, label, open actions)
  - pending_actions:   non-conformities grouped by project, either from each
                       project's latest report ("latest") or from every
                       report inspected in a given month ("YYYY-MM")

Chart rendering is the client's job; this module only shapes data.
"""

from __future__ import annotations

import logging
import re

from app.core.exceptions import ValidationError
from app.models.inspection import InspectionReport, InspectionStatus
from app.services import project_service, report_service
from app.services.checklist_catalog import get_catalog

logger = logging.getLogger(__name__)

PERIOD_LATEST = "latest"
_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _latest_by_project(reports: list[InspectionReport]) -> dict[int, InspectionReport]:
    latest: dict[int, InspectionReport] = {}
    for report in reports:  # already most-recent first
        latest.setdefault(report.project_id, report)
    return latest


def open_action_count(report: InspectionReport) -> int:
    """Non-conformities whose action plan has no corrective description yet."""
    return sum(
        1 for r in report.non_conformities()
        if r.action_plan is None or not (r.action_plan.actions or "").strip()
    )


def portfolio_summary() -> dict:
    projects = project_service.list_projects()
    latest = _latest_by_project(report_service.list_reports())

    rows = []
    for project in projects:
        report = latest.get(project.id)
        rows.append({
            "project": project.to_dict(),
            "latest_report_id": report.id if report else None,
            "inspection_date": report.inspection_date.isoformat() if report else None,
            "status": report.status.value if report else None,
            "score": report.score if report else None,
            "evaluation": report.evaluation if report else None,
            "category_scores": dict(report.category_scores) if report else {},
            "open_actions": open_action_count(report) if report else 0,
        })

    answered = [
        r for report in latest.values() for r in report.results
        if r.is_answered and r.status != InspectionStatus.NOT_APPLICABLE
    ]
    return {
        "projects": rows,
        "total_open_actions": sum(row["open_actions"] for row in rows),
        "status_counts": {
            "compliant": sum(1 for r in answered if r.status == InspectionStatus.COMPLIANT),
            "non_compliant": sum(1 for r in answered if r.status == InspectionStatus.NON_COMPLIANT),
        },
    }


def pending_actions(period: str = PERIOD_LATEST) -> list[dict]:
    """Non-conformities grouped by project, projects with most NCs first."""
    period = (period or PERIOD_LATEST).strip()
    if period != PERIOD_LATEST and not _MONTH_RE.match(period):
        raise ValidationError(
            f"Período inválido: {period!r}",
            details={"period": "'latest' or YYYY-MM"},
        )

    reports = report_service.list_reports()
    if period == PERIOD_LATEST:
        relevant = list(_latest_by_project(reports).values())
    else:
        relevant = [r for r in reports if r.inspection_date.isoformat()[:7] == period]

    catalog = get_catalog()
    projects = {p.id: p for p in project_service.list_projects()}
    groups: dict[int, dict] = {}
    for report in relevant:
        project = projects.get(report.project_id)
        if project is None:
            continue
        for result in report.non_conformities():
            loc = catalog.lookup(result.item_id)
            group = groups.setdefault(project.id, {"project": project.to_dict(), "items": []})
            group["items"].append({
                "id": f"{report.id}-{result.item_id}",
                "report_id": report.id,
                "report_status": report.status.value,
                "inspection_date": report.inspection_date.isoformat(),
                "item_id": result.item_id,
                "item_text": loc.item.text if loc else "Item não encontrado",
                "category_id": loc.category.id if loc else "",
                "comment": result.comment,
                "action_plan": result.action_plan.to_dict() if result.action_plan else None,
            })

    return sorted(groups.values(), key=lambda g: len(g["items"]), reverse=True)
