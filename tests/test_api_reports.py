"""
Report API tests — draft creation, edits, signatures, completion,
readiness, listings and lead time.
"""

from datetime import date

import pytest

from app.models import db as _db
from app.models.report import Report
from app.services.checklist_catalog import get_catalog

PLAN = {"actions": "Cobrir baia", "responsible": "Bruno", "deadline": "2024-07-01"}


@pytest.fixture()
def team(project, make_user, auth_headers):
    assistant = make_user("sara@obra.test", role="assistant", full_name="Sara Lima", project_ids=[project.id])
    manager = make_user("marcos@obra.test", role="manager", full_name="Marcos Reis", project_ids=[project.id])
    executive = make_user("eva@obra.test", role="executive", full_name="Eva Dir")
    return {
        "assistant": auth_headers(assistant),
        "manager": auth_headers(manager),
        "executive": auth_headers(executive),
    }


def _create_draft(client, project, headers):
    res = client.post(f"/api/v1/projects/{project.id}/reports", headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def _answer_everything(client, report_id, headers, nc_plan=PLAN):
    results = [{"item_id": i, "status": "Conforme"} for i in get_catalog().item_ids]
    results[0] = {"item_id": results[0]["item_id"], "status": "Não Conforme",
                  "comment": "baia descoberta", "action_plan": nc_plan}
    res = client.put(f"/api/v1/reports/{report_id}", json={"results": results}, headers=headers)
    assert res.status_code == 200, res.get_json()
    return res.get_json()


def _complete_cycle(client, project, team):
    report = _create_draft(client, project, team["assistant"])
    _answer_everything(client, report["id"], team["assistant"])
    assert client.post(f"/api/v1/reports/{report['id']}/signatures/inspector",
                       headers=team["assistant"]).status_code == 200
    assert client.post(f"/api/v1/reports/{report['id']}/signatures/manager",
                       headers=team["manager"]).status_code == 200
    res = client.post(f"/api/v1/reports/{report['id']}/complete", headers=team["manager"])
    assert res.status_code == 200, res.get_json()
    return res.get_json()


# ═══════════════════════════════════════════════════════════════
# Draft creation
# ═══════════════════════════════════════════════════════════════

class TestCreateDraft:
    def test_fresh_draft(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        assert report["status"] == "Draft"
        assert report["state"] == "in_progress"
        assert len(report["results"]) == len(get_catalog())
        assert report["lead_time"]["days"] is None

    def test_open_draft_blocks_new_one(self, client, project, team):
        first = _create_draft(client, project, team["assistant"])
        res = client.post(f"/api/v1/projects/{project.id}/reports", headers=team["assistant"])
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"
        assert str(first["id"]) in res.get_json()["error"]

    def test_backdated_draft_still_blocks_new_one(self, client, project, team):
        _complete_cycle(client, project, team)
        draft = _create_draft(client, project, team["assistant"])
        res = client.put(f"/api/v1/reports/{draft['id']}", json={"inspection_date": "2000-01-01"},
                         headers=team["assistant"])
        assert res.status_code == 200

        res = client.post(f"/api/v1/projects/{project.id}/reports", headers=team["assistant"])
        assert res.status_code == 409
        assert str(draft["id"]) in res.get_json()["error"]
        assert Report.query.filter_by(project_id=project.id).count() == 2

    def test_executive_cannot_create(self, client, project, team):
        res = client.post(f"/api/v1/projects/{project.id}/reports", headers=team["executive"])
        assert res.status_code == 403

    def test_unknown_project(self, client, team):
        res = client.post("/api/v1/projects/4242/reports", headers=team["assistant"])
        assert res.status_code == 404

    def test_carry_forward_after_completion(self, client, project, team):
        completed = _complete_cycle(client, project, team)
        nc_item = get_catalog().item_ids[0]

        draft = _create_draft(client, project, team["assistant"])
        carried = next(r for r in draft["results"] if r["item_id"] == nc_item)
        assert carried["status"] is None
        assert carried["comment"] == (
            f"[PENDÊNCIA ANTERIOR ({completed['inspection_date']})]: baia descoberta"
        )
        assert carried["action_plan"]["responsible"] == "Bruno"
        assert carried["action_plan"]["deadline"] == "2024-07-01"


# ═══════════════════════════════════════════════════════════════
# Edits
# ═══════════════════════════════════════════════════════════════

class TestEditDraft:
    def test_save_recomputes_score_and_fills_inspector(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        saved = _answer_everything(client, report["id"], team["assistant"])
        assert saved["inspector"] == "Sara Lima"
        assert saved["category_scores"]["massa"] == 83
        assert saved["score"] == 97
        assert saved["evaluation"] == "ÓTIMO"
        assert saved["state"] == "pending_signatures"

        stored = _db.session.get(Report, report["id"])
        _db.session.refresh(stored)
        assert stored.content["score"] == 97

    def test_invalid_status_rejected(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        res = client.put(f"/api/v1/reports/{report['id']}",
                         json={"results": [{"item_id": "massa-1", "status": "OK"}]},
                         headers=team["assistant"])
        assert res.status_code == 422
        assert "massa-1" in res.get_json()["details"]

    @pytest.mark.parametrize("body", [
        ["massa-1"],
        {"results": ["x"]},
        {"results": "massa-1"},
        {"results": [{"item_id": "massa-1", "action_plan": "corrigir"}]},
    ])
    def test_malformed_payload_rejected(self, client, project, team, body):
        report = _create_draft(client, project, team["assistant"])
        res = client.put(f"/api/v1/reports/{report['id']}", json=body, headers=team["assistant"])
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_unassigned_user_cannot_edit(self, client, project, team, make_user, auth_headers):
        report = _create_draft(client, project, team["assistant"])
        outsider = auth_headers(make_user("out@obra.test", role="assistant"))
        res = client.put(f"/api/v1/reports/{report['id']}", json={"inspector": "x"}, headers=outsider)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_unknown_report(self, client, team):
        res = client.put("/api/v1/reports/777", json={}, headers=team["assistant"])
        assert res.status_code == 404


# ═══════════════════════════════════════════════════════════════
# Signatures and completion
# ═══════════════════════════════════════════════════════════════

class TestSignAndComplete:
    def test_sign_requires_answers(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        res = client.post(f"/api/v1/reports/{report['id']}/signatures/inspector", headers=team["assistant"])
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "LIFECYCLE_BLOCK"
        assert body["details"]["violations"][0]["code"] == "unanswered_items"

    def test_wrong_slot_for_role(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        _answer_everything(client, report["id"], team["assistant"])
        res = client.post(f"/api/v1/reports/{report['id']}/signatures/manager", headers=team["assistant"])
        assert res.status_code == 403

    def test_signed_report_locks_edits(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        _answer_everything(client, report["id"], team["assistant"])
        client.post(f"/api/v1/reports/{report['id']}/signatures/inspector", headers=team["assistant"])

        res = client.put(f"/api/v1/reports/{report['id']}",
                         json={"results": [{"item_id": "massa-2", "status": "NC"}]},
                         headers=team["assistant"])
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_REPORT_LOCKED"

        res = client.delete(f"/api/v1/reports/{report['id']}/signatures/inspector", headers=team["assistant"])
        assert res.status_code == 200
        assert res.get_json()["signatures"]["inspector"] == ""

    def test_complete_lists_every_violation(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        _answer_everything(client, report["id"], team["assistant"], nc_plan={"actions": "Cobrir"})
        res = client.post(f"/api/v1/reports/{report['id']}/complete", headers=team["manager"])
        assert res.status_code == 422
        codes = [v["code"] for v in res.get_json()["details"]["violations"]]
        assert codes == ["incomplete_action_plans", "missing_signatures"]

    def test_full_cycle(self, client, project, team):
        completed = _complete_cycle(client, project, team)
        assert completed["status"] == "Completed"
        assert completed["state"] == "completed"
        assert completed["closed_date"] is not None
        assert completed["signatures"] == {"inspector": "Sara Lima", "manager": "Marcos Reis"}
        assert completed["lead_time"]["days"] == 0
        assert completed["lead_time"]["alert"] is False

    def test_completed_is_immutable(self, client, project, team):
        completed = _complete_cycle(client, project, team)
        res = client.put(f"/api/v1/reports/{completed['id']}", json={"inspector": "Outro"},
                         headers=team["manager"])
        assert res.status_code == 409
        res = client.post(f"/api/v1/reports/{completed['id']}/complete", headers=team["manager"])
        assert res.status_code == 409
        res = client.delete(f"/api/v1/reports/{completed['id']}/signatures/manager", headers=team["manager"])
        assert res.status_code == 409

    def test_unknown_slot(self, client, project, team):
        report = _create_draft(client, project, team["assistant"])
        res = client.post(f"/api/v1/reports/{report['id']}/signatures/witness", headers=team["assistant"])
        assert res.status_code == 422


# ═══════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════

class TestReads:
    def test_checklist_endpoint(self, client, team):
        res = client.get("/api/v1/checklist", headers=team["executive"])
        assert res.status_code == 200
        data = res.get_json()
        assert data["total_items"] == len(get_catalog())
        assert data["categories"][0]["sub_categories"][0]["items"][0]["number"] == "1.1.1"

    def test_list_latest_and_readiness(self, client, project, team):
        completed = _complete_cycle(client, project, team)
        draft = _create_draft(client, project, team["assistant"])

        res = client.get(f"/api/v1/reports?project_id={project.id}", headers=team["executive"])
        ids = [r["id"] for r in res.get_json()]
        assert set(ids) == {completed["id"], draft["id"]}

        res = client.get(f"/api/v1/projects/{project.id}/reports/latest", headers=team["executive"])
        assert res.get_json()["report"]["id"] == draft["id"]

        res = client.get(f"/api/v1/reports/{draft['id']}/readiness", headers=team["executive"])
        info = res.get_json()
        assert info["state"] == "in_progress"
        assert info["can_complete"] is False
        assert set(info["category_completeness"]) == {c.id for c in get_catalog().categories}

    def test_latest_of_empty_project(self, client, project, team):
        res = client.get(f"/api/v1/projects/{project.id}/reports/latest", headers=team["executive"])
        assert res.status_code == 200
        assert res.get_json() == {"report": None}

    def test_list_most_recent_inspection_first(self, client, project, team):
        completed = _complete_cycle(client, project, team)
        draft = _create_draft(client, project, team["assistant"])
        client.put(f"/api/v1/reports/{draft['id']}", json={"inspection_date": "2020-01-15"},
                   headers=team["assistant"])

        res = client.get("/api/v1/reports", headers=team["executive"])
        assert [r["id"] for r in res.get_json()] == [completed["id"], draft["id"]]
        assert date.fromisoformat(res.get_json()[1]["inspection_date"]) == date(2020, 1, 15)
