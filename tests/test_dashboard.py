"""
Dashboard tests — pending actions and portfolio summary.
"""

from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.models import db
from app.models.inspection import ActionPlan, InspectionStatus
from app.models.project import Project
from app.services import dashboard_service, report_service
from app.services.draft_builder import build_draft


def _store_report(project_id, inspection_date, non_conformities=(), plan=None):
    report = build_draft(project_id, today=inspection_date)
    for result in report.results:
        result.status = InspectionStatus.COMPLIANT
    for item_id in non_conformities:
        result = report.result_for(item_id)
        result.status = InspectionStatus.NON_COMPLIANT
        result.comment = f"problema em {item_id}"
        result.action_plan = plan.copy() if plan else ActionPlan()
    return report_service.save_report(report)


class TestPendingActions:
    def test_latest_groups_by_project(self, project, admin):
        other = Project(name="Obra Norte", location="Recife")
        db.session.add(other)
        db.session.commit()

        _store_report(project.id, date(2024, 4, 2), ["massa-1"])
        _store_report(project.id, date(2024, 5, 2), ["massa-2", "campo-1"])
        _store_report(other.id, date(2024, 5, 3), ["quimicos-4"])

        groups = dashboard_service.pending_actions("latest")
        assert [g["project"]["id"] for g in groups] == [project.id, other.id]
        assert [i["item_id"] for i in groups[0]["items"]] == ["massa-2", "campo-1"]
        item = groups[1]["items"][0]
        assert item["category_id"] == "quimicos"
        assert item["item_text"]
        assert item["comment"] == "problema em quimicos-4"

    def test_month_period_spans_reports(self, project, admin):
        _store_report(project.id, date(2024, 4, 2), ["massa-1"])
        _store_report(project.id, date(2024, 4, 20), ["massa-2"])
        _store_report(project.id, date(2024, 5, 2), ["campo-1"])

        groups = dashboard_service.pending_actions("2024-04")
        assert len(groups) == 1
        assert sorted(i["item_id"] for i in groups[0]["items"]) == ["massa-1", "massa-2"]

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            dashboard_service.pending_actions("abril")

    def test_endpoint(self, client, project, admin_headers):
        _store_report(project.id, date(2024, 4, 2), ["massa-1"])
        res = client.get("/api/v1/reports/pending-actions?period=2024-04", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()[0]["items"][0]["item_id"] == "massa-1"

        res = client.get("/api/v1/reports/pending-actions?period=2024-13", headers=admin_headers)
        assert res.status_code == 422


class TestPortfolioSummary:
    def test_summary(self, client, project, admin_headers):
        plan = ActionPlan(actions="refazer", responsible="Bia", deadline=date(2024, 6, 1))
        _store_report(project.id, date(2024, 5, 2), ["massa-1", "massa-2"], plan=plan)
        _store_report(project.id, date(2024, 4, 2), ["campo-1"])

        res = client.get("/api/v1/dashboard/summary", headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()
        row = data["projects"][0]
        assert row["inspection_date"] == "2024-05-02"
        assert row["open_actions"] == 0
        assert row["evaluation"] in ("ÓTIMO", "BOM", "REGULAR", "RUIM")
        assert data["status_counts"]["non_compliant"] == 2

    def test_open_actions_count_missing_descriptions(self, project, admin):
        report = _store_report(project.id, date(2024, 5, 2), ["massa-1", "efluentes-1"])
        assert dashboard_service.open_action_count(report) == 2

    def test_project_without_reports(self, project, admin):
        summary = dashboard_service.portfolio_summary()
        assert summary["projects"][0]["latest_report_id"] is None
        assert summary["total_open_actions"] == 0
