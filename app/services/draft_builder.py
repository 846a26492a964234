"""
Draft Carry-Forward Builder.

Builds the next inspection draft for a project. Every catalog item gets an
empty result, except items the prior report left Non-Compliant: those keep
the corrective action plan and get a marker comment naming the prior
inspection date, while their status stays unset so the new inspector must
re-evaluate them.

Non-conformities are never resolved by the passage of time alone.

Usage:
    from app.services.draft_builder import build_draft

    draft = build_draft(project_id, prior_report)   # unsaved, status=Draft
"""

from __future__ import annotations

import logging
import re
from datetime import date

from app.models.inspection import (
    ActionPlan,
    InspectionItemResult,
    InspectionReport,
    ReportStatus,
    Signatures,
)
from app.services.checklist_catalog import ChecklistCatalog, get_catalog
from app.services.scoring import compute_scores
from app.utils.helpers import local_today, utcnow

logger = logging.getLogger(__name__)

CARRY_FORWARD_LABEL = "PENDÊNCIA ANTERIOR"

# Matches one or more stacked markers at the start of a comment
_MARKER_RE = re.compile(r"^(?:\s*\[" + re.escape(CARRY_FORWARD_LABEL) + r" \([^)]*\)\]:\s*)+")


def strip_carry_forward_marker(comment: str) -> str:
    return _MARKER_RE.sub("", comment or "").strip()


def carry_forward_comment(prior_date: date | None, prior_comment: str) -> str:
    date_text = prior_date.isoformat() if prior_date else "sem data"
    return f"[{CARRY_FORWARD_LABEL} ({date_text})]: {strip_carry_forward_marker(prior_comment)}"


def _empty_result(item_id: str) -> InspectionItemResult:
    return InspectionItemResult(item_id=item_id, action_plan=ActionPlan())


def build_draft(
    project_id: int,
    prior_report: InspectionReport | None = None,
    *,
    catalog: ChecklistCatalog | None = None,
    today: date | None = None,
) -> InspectionReport:
    """Return a new, unsaved Draft covering every catalog item exactly once.

    Args:
        project_id: Project the draft belongs to.
        prior_report: Most recent earlier report of the project, if any.
        catalog: Defaults to the process-wide catalog.
        today: Inspection date default; the current local date when omitted.
    """
    if catalog is None:
        catalog = get_catalog()
    now = utcnow()

    prior_by_item = {}
    if prior_report is not None:
        prior_by_item = {r.item_id: r for r in prior_report.results}

    results: list[InspectionItemResult] = []
    carried = 0
    for item_id in catalog.item_ids:
        result = _empty_result(item_id)
        prior = prior_by_item.get(item_id)
        if prior is not None and prior.is_non_conformity:
            result.comment = carry_forward_comment(prior_report.inspection_date, prior.comment)
            result.action_plan = prior.action_plan.copy() if prior.action_plan else ActionPlan()
            carried += 1
        results.append(result)

    if len({r.item_id for r in results}) != len(catalog):
        raise ValueError("Draft results must cover every checklist item exactly once")

    draft = InspectionReport(
        project_id=project_id,
        results=results,
        inspection_date=today or local_today(now=now),
        created_date=now,
        inspector="",
        status=ReportStatus.DRAFT,
        signatures=Signatures(),
    )
    card = compute_scores(draft.results, catalog)
    draft.apply_scores(card.score, card.evaluation, card.category_scores)

    logger.debug(
        "Draft built for project %s: %d items, %d carried forward",
        project_id, len(results), carried,
    )
    return draft
