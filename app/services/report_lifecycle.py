"""
Report Lifecycle Service — Draft → Completed state machine.

Owns every mutation of an InspectionReport. Operates on the in-memory
aggregate only; persistence is the caller's job (see report_service).

States:
    Draft      mutable; "pending signatures" is derived, never stored
    Completed  terminal, frozen

Gates:
    checklist complete     every result has a status
    action plans complete  every Non-Compliant result has actions,
                           responsible and deadline
    dual signature         inspector and manager slots both filled

Signing requires the first two gates; completing requires all three.
A recorded signature locks the checklist until it is revoked, so nobody
signs off on findings that change afterwards.

Every gate failure lists all violated conditions, never just the first.

Usage:
    from app.services import report_lifecycle as lifecycle

    lifecycle.update_draft(report, user, {"results": [...]})
    lifecycle.sign_report(report, user, "inspector")
    lifecycle.complete_report(report, user)
"""

from __future__ import annotations

import logging
from datetime import datetime

from app.core.exceptions import NotFoundError, ReportLockedError, ValidationError
from app.models.inspection import (
    SIGNATURE_SLOTS,
    ActionPlan,
    ActionResources,
    InspectionReport,
    InspectionStatus,
    Photo,
    ReportStatus,
)
from app.services.access_policy import UserProfile, check_sign, check_write
from app.services.checklist_catalog import ChecklistCatalog, get_catalog
from app.services.scoring import compute_scores
from app.utils.helpers import parse_date_input, utcnow

logger = logging.getLogger(__name__)

SLOT_LABELS = {"inspector": "Inspetor", "manager": "Engenheiro"}

# Derived sub-states of a report, for display
STATE_IN_PROGRESS = "in_progress"
STATE_PENDING_SIGNATURES = "pending_signatures"
STATE_READY_TO_COMPLETE = "ready_to_complete"
STATE_COMPLETED = "completed"


# ── Derived data ─────────────────────────────────────────────────────────────


def recompute(report: InspectionReport, catalog: ChecklistCatalog | None = None) -> InspectionReport:
    """Refresh score, evaluation and category scores from the results."""
    card = compute_scores(report.results, catalog)
    report.apply_scores(card.score, card.evaluation, card.category_scores)
    return report


# ── Gate evaluation ──────────────────────────────────────────────────────────


def checklist_violations(report: InspectionReport) -> list[dict]:
    """Violations of the completeness and action-plan gates."""
    violations = []

    unanswered = [r.item_id for r in report.results if not r.is_answered]
    if unanswered:
        violations.append({
            "code": "unanswered_items",
            "message": f"{len(unanswered)} item(ns) sem resposta",
            "count": len(unanswered),
            "item_ids": unanswered,
        })

    gaps = [
        {"item_id": r.item_id, "missing": r.action_plan_gaps()}
        for r in report.results
        if r.action_plan_gaps()
    ]
    if gaps:
        described = "; ".join(f"{g['item_id']}: {', '.join(g['missing'])}" for g in gaps)
        violations.append({
            "code": "incomplete_action_plans",
            "message": (
                f"{len(gaps)} não conformidade(s) sem plano de ação completo ({described})"
            ),
            "count": len(gaps),
            "items": gaps,
        })

    return violations


def signature_violations(report: InspectionReport) -> list[dict]:
    missing = report.signatures.missing()
    if not missing:
        return []
    labels = " e ".join(SLOT_LABELS[slot] for slot in missing)
    return [{
        "code": "missing_signatures",
        "message": f"Assinatura pendente: {labels}",
        "count": len(missing),
        "slots": missing,
    }]


def completion_violations(report: InspectionReport) -> list[dict]:
    """Every condition currently blocking Draft → Completed."""
    return checklist_violations(report) + signature_violations(report)


def derived_state(report: InspectionReport) -> str:
    if report.is_completed:
        return STATE_COMPLETED
    if checklist_violations(report):
        return STATE_IN_PROGRESS
    if signature_violations(report):
        return STATE_PENDING_SIGNATURES
    return STATE_READY_TO_COMPLETE


def category_completeness(report: InspectionReport, catalog: ChecklistCatalog | None = None) -> dict[str, bool]:
    """Per category: has every item been answered?"""
    if catalog is None:
        catalog = get_catalog()
    answered = {r.item_id for r in report.results if r.is_answered}
    return {
        category.id: all(item_id in answered for item_id in catalog.category_item_ids(category.id))
        for category in catalog.categories
    }


def readiness(report: InspectionReport, catalog: ChecklistCatalog | None = None) -> dict:
    violations = [] if report.is_completed else completion_violations(report)
    return {
        "report_id": report.id,
        "status": report.status.value,
        "state": derived_state(report),
        "can_sign": not report.is_completed and not checklist_violations(report),
        "can_complete": not report.is_completed and not violations,
        "violations": violations,
        "category_completeness": category_completeness(report, catalog),
    }


# ── Guards ───────────────────────────────────────────────────────────────────


def assert_mutable(report: InspectionReport) -> None:
    if report.is_completed:
        raise ReportLockedError(
            f"Relatório {report.id} já foi concluído e não pode ser alterado",
            violations=[{"code": "report_completed", "message": "Relatório concluído é imutável"}],
        )


def _assert_checklist_unlocked(report: InspectionReport) -> None:
    signed = [slot for slot in SIGNATURE_SLOTS if report.signatures.get(slot)]
    if not signed:
        return
    violations = [
        {
            "code": "signature_recorded",
            "message": f"Assinatura de {report.signatures.get(slot)} ({SLOT_LABELS[slot]}) já registrada",
            "slot": slot,
        }
        for slot in signed
    ]
    raise ReportLockedError(
        "O checklist está bloqueado por assinatura; revogue a assinatura para editar",
        violations=violations,
    )


# ── Mutations ────────────────────────────────────────────────────────────────


def _apply_action_plan_patch(current: ActionPlan | None, patch: dict | None) -> ActionPlan | None:
    if patch is None:
        return current
    if not isinstance(patch, dict):
        raise ValueError("action_plan must be an object")
    plan = current.copy() if current else ActionPlan()
    if "actions" in patch:
        plan.actions = str(patch.get("actions") or "")
    if "responsible" in patch:
        plan.responsible = str(patch.get("responsible") or "")
    if "deadline" in patch:
        plan.deadline = parse_date_input(patch.get("deadline"))
    if "resources" in patch:
        resources = patch.get("resources")
        if resources is not None and not isinstance(resources, dict):
            raise ValueError("action_plan.resources must be an object")
        plan.resources = ActionResources.from_dict(resources)
    return plan


def update_draft(
    report: InspectionReport,
    user: UserProfile,
    changes: dict,
    catalog: ChecklistCatalog | None = None,
) -> InspectionReport:
    """Apply a partial edit to a Draft and recompute its scores.

    ``changes`` keys (all optional):
        inspector, inspection_date,
        results: [{"item_id", "status"?, "comment"?, "action_plan"?}]

    No gating: partial answers and empty fields are fine on a Draft.
    """
    assert_mutable(report)
    check_write(user, report.project_id, action="edit report")
    if catalog is None:
        catalog = get_catalog()

    if not isinstance(changes, dict):
        raise ValidationError("Alterações inválidas no relatório", details={"body": "expected a JSON object"})
    result_patches = changes.get("results") or []
    if not isinstance(result_patches, list):
        raise ValidationError("Alterações inválidas no relatório", details={"results": "expected a list"})
    if result_patches or "inspection_date" in changes:
        _assert_checklist_unlocked(report)

    errors: dict[str, str] = {}
    staged = []
    for index, patch in enumerate(result_patches):
        if not isinstance(patch, dict):
            errors[f"results[{index}]"] = "expected an object"
            continue
        item_id = str(patch.get("item_id") or patch.get("itemId") or "")
        result = report.result_for(item_id)
        if result is None or item_id not in catalog:
            errors[item_id or "?"] = "item inexistente no checklist"
            continue
        try:
            status = InspectionStatus.parse(patch["status"]) if "status" in patch else result.status
            plan = _apply_action_plan_patch(result.action_plan, patch.get("action_plan", patch.get("actionPlan")))
        except ValueError as exc:
            errors[item_id] = str(exc)
            continue
        comment = str(patch.get("comment") or "") if "comment" in patch else result.comment
        staged.append((result, status, comment, plan))

    new_date = report.inspection_date
    if "inspection_date" in changes:
        try:
            new_date = parse_date_input(changes.get("inspection_date")) or report.inspection_date
        except ValueError as exc:
            errors["inspection_date"] = str(exc)

    if errors:
        raise ValidationError("Alterações inválidas no relatório", details=errors)

    for result, status, comment, plan in staged:
        result.status = status
        result.comment = comment
        result.action_plan = plan
    report.inspection_date = new_date

    if "inspector" in changes:
        report.inspector = str(changes.get("inspector") or "").strip()
    if not report.inspector:
        report.inspector = user.full_name

    return recompute(report, catalog)


def sign_report(report: InspectionReport, user: UserProfile, slot: str) -> InspectionReport:
    """Record ``user`` in a signature slot.

    Requires a complete checklist and complete action plans; the slot's
    role restriction is enforced by the access policy.
    """
    if slot not in SIGNATURE_SLOTS:
        raise ValidationError(f"Assinatura desconhecida: {slot!r}", details={"slot": "inspector | manager"})
    assert_mutable(report)
    check_sign(user, report.project_id, slot)

    existing = report.signatures.get(slot)
    if existing:
        raise ValidationError(
            f"Assinatura de {existing} já registrada como {SLOT_LABELS[slot]}",
            violations=[{"code": "signature_recorded", "message": f"Assinatura de {existing} já registrada", "slot": slot}],
        )

    violations = checklist_violations(report)
    if violations:
        raise ValidationError(
            "O relatório ainda não pode ser assinado",
            violations=violations,
        )

    report.signatures.set(slot, user.full_name)
    logger.info(
        "Signature recorded",
        extra={"report_id": report.id, "project_id": report.project_id, "slot": slot, "user_id": user.id},
    )
    return report


def revoke_signature(report: InspectionReport, user: UserProfile, slot: str) -> InspectionReport:
    """Withdraw a recorded signature on a Draft, unlocking the checklist."""
    if slot not in SIGNATURE_SLOTS:
        raise ValidationError(f"Assinatura desconhecida: {slot!r}", details={"slot": "inspector | manager"})
    assert_mutable(report)
    check_sign(user, report.project_id, slot)

    if not report.signatures.get(slot):
        raise ValidationError(
            f"Nenhuma assinatura de {SLOT_LABELS[slot]} para revogar",
            violations=[{"code": "signature_absent", "message": "Assinatura não registrada", "slot": slot}],
        )
    report.signatures.set(slot, "")
    logger.info(
        "Signature revoked",
        extra={"report_id": report.id, "project_id": report.project_id, "slot": slot, "user_id": user.id},
    )
    return report


def complete_report(
    report: InspectionReport,
    user: UserProfile,
    now: datetime | None = None,
    catalog: ChecklistCatalog | None = None,
) -> InspectionReport:
    """Draft → Completed. Raises ValidationError listing every unmet gate."""
    assert_mutable(report)
    check_write(user, report.project_id, action="complete report")

    violations = completion_violations(report)
    if violations:
        raise ValidationError(
            "O relatório não pode ser concluído: "
            + "; ".join(v["message"] for v in violations),
            violations=violations,
        )

    report.status = ReportStatus.COMPLETED
    if report.closed_date is None:
        report.closed_date = now or utcnow()
    recompute(report, catalog)

    logger.info(
        "Report completed",
        extra={"report_id": report.id, "project_id": report.project_id, "user_id": user.id},
    )
    return report


def add_photo(report: InspectionReport, user: UserProfile, item_id: str, photo: Photo) -> InspectionReport:
    assert_mutable(report)
    check_write(user, report.project_id, action="attach photo")
    _assert_checklist_unlocked(report)
    result = report.result_for(item_id)
    if result is None:
        raise NotFoundError(resource="Checklist item", resource_id=item_id)
    result.photos = [*result.photos, photo]
    return report


def remove_photo(report: InspectionReport, user: UserProfile, item_id: str, photo_id: str) -> Photo:
    assert_mutable(report)
    check_write(user, report.project_id, action="remove photo")
    _assert_checklist_unlocked(report)
    result = report.result_for(item_id)
    if result is None:
        raise NotFoundError(resource="Checklist item", resource_id=item_id)
    for photo in result.photos:
        if photo.id == photo_id:
            result.photos = [p for p in result.photos if p.id != photo_id]
            return photo
    raise NotFoundError(resource="Photo", resource_id=photo_id)
