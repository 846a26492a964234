"""
Draft carry-forward tests.

Tests cover:
  - Fresh draft: one empty result per catalog item
  - Open non-conformities carried forward with marker + copied action plan
  - Markers never stack across successive drafts
  - The prior report is never mutated
"""

from datetime import date, datetime, timezone

from app.models.inspection import (
    ActionPlan,
    InspectionItemResult,
    InspectionReport,
    InspectionStatus,
    ReportStatus,
    Signatures,
)
from app.services.checklist_catalog import ChecklistCatalog, get_catalog
from app.services.draft_builder import build_draft, carry_forward_comment, strip_carry_forward_marker
from app.utils.helpers import local_today


def _prior_report(**overrides):
    catalog = get_catalog()
    results = [InspectionItemResult(item_id=i, status=InspectionStatus.COMPLIANT) for i in catalog.item_ids]
    report = InspectionReport(
        project_id=7,
        results=results,
        id=1,
        inspection_date=date(2024, 3, 10),
        status=ReportStatus.COMPLETED,
        signatures=Signatures(inspector="Ana", manager="Bruno"),
        inspector="Ana",
    )
    for key, value in overrides.items():
        setattr(report, key, value)
    return report


class TestFreshDraft:
    def test_covers_every_item_once(self):
        draft = build_draft(3)
        ids = [r.item_id for r in draft.results]
        assert ids == list(get_catalog().item_ids)
        assert len(set(ids)) == len(ids)

    def test_everything_empty(self):
        draft = build_draft(3, today=date(2024, 5, 1))
        assert draft.status == ReportStatus.DRAFT
        assert draft.id is None
        assert draft.inspector == ""
        assert draft.signatures.missing() == ["inspector", "manager"]
        assert draft.inspection_date == date(2024, 5, 1)
        for result in draft.results:
            assert result.status is None
            assert result.comment == ""
            assert result.photos == []
            assert result.action_plan is not None and result.action_plan.is_empty

    def test_scores_computed(self):
        draft = build_draft(3)
        assert draft.score == 0
        assert draft.evaluation == "RUIM"
        assert set(draft.category_scores) == {c.id for c in get_catalog().categories}

    def test_empty_catalog_gives_empty_draft(self):
        draft = build_draft(3, catalog=ChecklistCatalog([]))
        assert draft.results == []
        assert draft.category_scores == {}
        assert draft.score == 100

    def test_default_date_is_local_calendar_day(self, monkeypatch):
        # 01:30 UTC on May 3rd is still May 2nd in São Paulo
        late_evening = datetime(2024, 5, 3, 1, 30, tzinfo=timezone.utc)
        monkeypatch.setattr("app.services.draft_builder.utcnow", lambda: late_evening)
        assert build_draft(3).inspection_date == date(2024, 5, 2)

    def test_local_today_timezone(self):
        now = datetime(2024, 5, 3, 1, 30, tzinfo=timezone.utc)
        assert local_today(now=now) == date(2024, 5, 2)
        assert local_today("UTC", now=now) == date(2024, 5, 3)


class TestCarryForward:
    def test_non_conformity_carried(self):
        prior = _prior_report()
        nc = prior.result_for("massa-2")
        nc.status = InspectionStatus.NON_COMPLIANT
        nc.comment = "crack in wall"
        nc.action_plan = ActionPlan(actions="repair", responsible="Bob", deadline=date(2024, 1, 1))

        draft = build_draft(7, prior)
        carried = draft.result_for("massa-2")

        assert carried.status is None
        assert carried.comment.startswith("[PENDÊNCIA ANTERIOR (2024-03-10)]")
        assert carried.comment.endswith("crack in wall")
        assert carried.action_plan == nc.action_plan
        assert carried.action_plan is not nc.action_plan
        assert carried.photos == []

    def test_compliant_and_na_start_fresh(self):
        prior = _prior_report()
        prior.result_for("campo-1").status = InspectionStatus.NOT_APPLICABLE
        prior.result_for("campo-1").comment = "sem terraplenagem"

        draft = build_draft(7, prior)
        for item_id in ("campo-1", "massa-1"):
            result = draft.result_for(item_id)
            assert result.status is None
            assert result.comment == ""
            assert result.action_plan.is_empty

    def test_prior_without_plan_gets_empty_plan(self):
        prior = _prior_report()
        prior.result_for("quimicos-1").status = InspectionStatus.NON_COMPLIANT
        prior.result_for("quimicos-1").action_plan = None

        carried = build_draft(7, prior).result_for("quimicos-1")
        assert carried.action_plan is not None
        assert carried.action_plan.is_empty

    def test_prior_not_mutated(self):
        prior = _prior_report()
        nc = prior.result_for("massa-3")
        nc.status = InspectionStatus.NON_COMPLIANT
        nc.action_plan = ActionPlan(actions="limpar", responsible="Caio", deadline=date(2024, 4, 1))

        draft = build_draft(7, prior)
        draft.result_for("massa-3").action_plan.actions = "alterado"

        assert nc.action_plan.actions == "limpar"
        assert nc.status == InspectionStatus.NON_COMPLIANT

    def test_markers_do_not_accumulate(self):
        first = _prior_report()
        first.result_for("massa-1").status = InspectionStatus.NON_COMPLIANT
        first.result_for("massa-1").comment = "baia sem cobertura"

        second = build_draft(7, first)
        second.inspection_date = date(2024, 4, 10)
        second.result_for("massa-1").status = InspectionStatus.NON_COMPLIANT

        third = build_draft(7, second)
        comment = third.result_for("massa-1").comment
        assert comment == "[PENDÊNCIA ANTERIOR (2024-04-10)]: baia sem cobertura"
        assert comment.count("PENDÊNCIA ANTERIOR") == 1


class TestMarkerHelpers:
    def test_strip_stacked_markers(self):
        text = "[PENDÊNCIA ANTERIOR (2024-01-01)]: [PENDÊNCIA ANTERIOR (2023-12-01)]: vazamento"
        assert strip_carry_forward_marker(text) == "vazamento"

    def test_strip_leaves_plain_comment(self):
        assert strip_carry_forward_marker("  vazamento ") == "vazamento"

    def test_comment_format(self):
        assert carry_forward_comment(date(2024, 2, 29), "óleo no solo") == (
            "[PENDÊNCIA ANTERIOR (2024-02-29)]: óleo no solo"
        )
