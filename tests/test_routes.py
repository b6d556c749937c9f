"""HTTP API tests — ROI, gate, case workflow and LLM routes."""

import os
import sys

# Ensure the package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient

from decision_workspace.config import WorkspaceSettings
from decision_workspace.dependencies import get_case_service, get_settings
from decision_workspace.main import app
from decision_workspace.services.case_service import CaseService
from decision_workspace.services.gate_validator import SUCCESS_METRIC_ISSUE

client = TestClient(app)

ZERO_RETURNS = {
    "cost_savings": 0,
    "revenue_increase": 0,
    "efficiency": 0,
    "customer_satisfaction": 0,
    "quality": 0,
    "risk_reduction": 0,
    "capability": 0,
}
ZERO_INVESTS = {"data": 0, "engineering": 0, "change": 0}

GOOD_FORM = {
    "problem_statement": "Claims review takes 5 days per file and the backlog grew to 300 files",
    "owner_team": "Claims Ops",
    "scope": "department",
    "cost_of_inaction_type": "financial",
    "baseline": "5 days per claim",
    "success_metric": "cut review time by 40%",
    "target_improvement": "3 days per claim",
}

FIT = {
    "is_ai_problem": True,
    "ai_role": "analyst",
    "data_readiness": "ready",
    "hitl_required": True,
    "technical_feasibility": "high",
}

DECISION = {
    "recommendation_options": [
        {
            "id": "pilot",
            "title": "Pilot triage",
            "description": "Pilot document triage with one claims team.",
            "rationale": "Low risk way to measure the review time impact.",
            "confidence": "high",
        },
        {
            "id": "wait",
            "title": "Do nothing",
            "description": "Keep the current manual review process.",
            "rationale": "Avoids spend while the backlog is tolerated.",
            "confidence": "low",
        },
    ],
    "selected_decision": "pilot",
    "rationale_text": "The pilot is cheap and the metric is easy to track.",
    "next_steps": ["Pick the pilot team"],
}


def _roi_payload(return_weights=None, invest_weights=None, return_scores=None, invest_scores=None):
    return {
        "weights": {
            "return_weights": {**ZERO_RETURNS, **(return_weights or {})},
            "invest_weights": {**ZERO_INVESTS, **(invest_weights or {})},
        },
        "scores": {
            "return_scores": {**ZERO_RETURNS, **(return_scores or {})},
            "invest_scores": {**ZERO_INVESTS, **(invest_scores or {})},
        },
    }


@pytest.fixture(autouse=True)
def fresh_workspace():
    """Default settings and an empty case registry for every test."""
    settings = WorkspaceSettings()
    service = CaseService(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_case_service] = lambda: service
    yield
    app.dependency_overrides.pop(get_settings, None)
    app.dependency_overrides.pop(get_case_service, None)


def _create_case(**body):
    res = client.post("/cases", json=body)
    assert res.status_code == 201, f"Case creation failed: {res.text}"
    return res.json()


def _gated_case():
    case = _create_case()
    res = client.put(f"/cases/{case['id']}/step1", json=GOOD_FORM)
    assert res.status_code == 200
    assert res.json()["step1"]["gate_status"]["passed"] is True
    return res.json()


# ===================================================================== #
#  General                                                                #
# ===================================================================== #

class TestGeneral:
    def test_root(self):
        res = client.get("/")
        assert res.status_code == 200
        assert res.json()["name"] == "AI Decision Workspace"

    def test_health(self):
        res = client.get("/health")
        assert res.json()["status"] == "healthy"


# ===================================================================== #
#  ROI                                                                    #
# ===================================================================== #

class TestRoiRoutes:
    def test_defaults(self):
        data = client.get("/roi/defaults").json()

        assert data["threshold_x"] == 0.5
        assert data["weights"]["invest_weights"]["engineering"] == 5
        assert data["scores"]["return_scores"]["quality"] == 1
        assert data["factor_labels"]["invest_weights"]["change"]["zh"] == "变革管理"
        assert data["score_descriptions"]["3"]["en"] == "High potential/requirement"

    def test_calculate(self):
        payload = _roi_payload(
            return_weights={"efficiency": 5},
            invest_weights={"engineering": 5},
            return_scores={"efficiency": 3},
            invest_scores={"engineering": 3},
        )
        res = client.post("/roi/calculate", json=payload)

        assert res.status_code == 200
        data = res.json()
        assert data["quadrant"] == "strategic-bets"
        assert data["totals"]["return_total_raw"] == 15
        assert data["totals"]["invest_total_norm"] == 1.0
        assert data["quadrant_label"] == {"en": "Strategic Bets", "zh": "战略押注"}

    def test_calculate_rejects_invalid_ranges(self):
        payload = _roi_payload(
            return_weights={"efficiency": 7},
            invest_weights={"data": 1},
            invest_scores={"data": 4},
        )
        res = client.post("/roi/calculate", json=payload)

        assert res.status_code == 422
        assert res.json()["detail"]["issues"] == [
            "Return weight for efficiency must be between 0 and 5",
            "Investment score for data must be between 0 and 3",
        ]

    def test_calculate_rejects_non_numeric(self):
        payload = _roi_payload(return_weights={"efficiency": "5"}, invest_weights={"data": 1})
        assert client.post("/roi/calculate", json=payload).status_code == 422

    def test_calculate_rejects_missing_factor(self):
        payload = _roi_payload(return_weights={"efficiency": 1}, invest_weights={"data": 1})
        del payload["scores"]["invest_scores"]["change"]
        assert client.post("/roi/calculate", json=payload).status_code == 422

    def test_validate(self):
        data = client.post("/roi/validate", json=_roi_payload()).json()

        assert data["valid"] is False
        assert data["issues"] == [
            "At least one return weight must be greater than 0",
            "At least one investment weight must be greater than 0",
        ]

    def test_weight_percentages(self):
        weights = _roi_payload(
            return_weights={"efficiency": 1, "quality": 3}, invest_weights={"data": 2}
        )["weights"]
        data = client.post("/roi/weight-percentages", json=weights).json()

        assert data["return_weights"]["quality"] == 75
        assert data["invest_weights"]["data"] == 100
        assert data["invest_weights"]["change"] == 0


# ===================================================================== #
#  Gate                                                                   #
# ===================================================================== #

class TestGateRoutes:
    def test_validate_form(self):
        data = client.post("/gate/validate", json=GOOD_FORM).json()
        assert data["passed"] is True
        assert data["issues"] == []
        assert data["validated_at"] is not None

    def test_validate_form_with_issues(self):
        res = client.post("/gate/validate", json={"problem_statement": "我们要提升效率"})

        assert res.status_code == 200
        assert res.json()["passed"] is False
        assert res.json()["issues"] == [
            "Problem statement is too short",
            "Problem statement is too generic",
            SUCCESS_METRIC_ISSUE,
        ]

    def test_problem_statement(self):
        data = client.post(
            "/gate/problem-statement", json={"text": "我们要构建一个AI系统来提升效率"}
        ).json()
        assert data == {"passed": False, "issues": ['Avoid solution-leading phrases like "构建"']}

    def test_success_metric(self):
        bad = client.post("/gate/success-metric", json={"text": "improve customer happiness"})
        good = client.post("/gate/success-metric", json={"text": "reduce response time by 50%"})

        assert bad.json() == {"passed": False, "issues": [SUCCESS_METRIC_ISSUE]}
        assert good.json() == {"passed": True, "issues": []}


# ===================================================================== #
#  Cases                                                                  #
# ===================================================================== #

class TestCaseRoutes:
    def test_create_list_get_delete(self):
        case = _create_case(title="Quarterly close")

        listed = client.get("/cases").json()["cases"]
        assert [c["id"] for c in listed] == [case["id"]]
        assert client.get(f"/cases/{case['id']}").json()["title"] == "Quarterly close"

        assert client.delete(f"/cases/{case['id']}").status_code == 204
        assert client.get(f"/cases/{case['id']}").status_code == 404
        assert client.delete(f"/cases/{case['id']}").status_code == 404

    def test_archive(self):
        case = _create_case()
        client.post(f"/cases/{case['id']}/archive")

        assert client.get("/cases").json()["cases"] == []
        assert len(client.get("/cases", params={"include_archived": True}).json()["cases"]) == 1

    def test_sample_case(self):
        case = _create_case(sample=True)
        target = client.get(f"/cases/{case['id']}/target-step").json()

        assert case["step2b"]["model"]["quadrant"] == "hygiene"
        assert target == {"case_id": case["id"], "target": "step-2b"}

    def test_step1_gate_failure_is_reported_on_case(self):
        case = _create_case()
        res = client.put(f"/cases/{case['id']}/step1", json={"problem_statement": "build it"})

        assert res.status_code == 200
        assert res.json()["step1"]["gate_status"]["passed"] is False
        assert res.json()["current_step"] == 1

    def test_later_steps_require_gate(self):
        case = _create_case()

        assert client.put(f"/cases/{case['id']}/step2a", json=FIT).status_code == 409
        res = client.put(f"/cases/{case['id']}/step2b", json=_roi_payload())
        assert res.status_code == 409
        assert client.post(f"/cases/{case['id']}/export").status_code == 409
        assert client.get(f"/cases/{case['id']}/export/markdown").status_code == 409

    def test_unknown_case(self):
        assert client.put("/cases/missing/step1", json=GOOD_FORM).status_code == 404
        assert client.post("/cases/missing/suggest-scores").status_code == 404

    def test_full_workflow(self):
        case = _gated_case()
        case_id = case["id"]
        assert case["current_step"] == 2

        res = client.put(f"/cases/{case_id}/step2a", json=FIT)
        assert res.status_code == 200

        roi = _roi_payload(
            return_weights={"efficiency": 5},
            invest_weights={"engineering": 5},
            return_scores={"efficiency": 3},
            invest_scores={"engineering": 1},
        )
        res = client.put(f"/cases/{case_id}/step2b", json=roi)
        assert res.status_code == 200
        assert res.json()["issues"] == []
        assert res.json()["case"]["step2b"]["model"]["quadrant"] == "quick-wins"

        res = client.post(f"/cases/{case_id}/step2b/confirm", json={})
        assert res.json()["step2b"]["model"]["why_here"]["confirmed"] is True

        res = client.put(f"/cases/{case_id}/step3", json=DECISION)
        assert res.status_code == 200
        assert res.json()["current_step"] == 3

        res = client.post(f"/cases/{case_id}/export")
        assert res.status_code == 200
        summary = res.json()
        assert summary["markdown"].startswith("# AI Decision Summary / 决策摘要")
        assert '"selected_decision": "pilot"' in summary["json"]

        res = client.get(f"/cases/{case_id}/export/markdown")
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/markdown")
        assert "## Decision / 决策" in res.text

        target = client.get(f"/cases/{case_id}/target-step").json()["target"]
        assert target == "step-4"

    def test_step2b_issues_leave_case_unchanged(self):
        case = _gated_case()
        res = client.put(f"/cases/{case['id']}/step2b", json=_roi_payload())

        assert res.status_code == 200
        assert len(res.json()["issues"]) == 2
        assert res.json()["case"]["step2b"] is None

    def test_step3_requires_roi(self):
        case = _gated_case()
        assert client.put(f"/cases/{case['id']}/step3", json=DECISION).status_code == 409

    def test_step3_rejects_unknown_selection(self):
        case = _gated_case()
        body = {**DECISION, "selected_decision": "other"}
        assert client.put(f"/cases/{case['id']}/step3", json=body).status_code == 422

    def test_json_export_and_import(self):
        case = _gated_case()
        raw = client.get(f"/cases/{case['id']}/json")
        assert raw.status_code == 200

        client.delete(f"/cases/{case['id']}")
        res = client.post(
            "/cases/import", content=raw.content, headers={"Content-Type": "application/json"}
        )

        assert res.status_code == 201
        imported = res.json()
        assert imported["step1"]["gate_status"]["passed"] is True
        imported["step1"]["gate_status"]["validated_at"] = case["step1"]["gate_status"]["validated_at"]
        assert imported == case

    def test_import_rejects_garbage(self):
        res = client.post("/cases/import", content=b"not json")

        assert res.status_code == 422
        assert res.json()["detail"][0]["type"] == "json_invalid"
        assert "input" not in res.json()["detail"][0]

    def test_import_rejects_out_of_range_roi(self):
        case = _create_case(sample=True)
        doc = client.get(f"/cases/{case['id']}/json").json()
        doc["step2b"]["model"]["weights"]["invest_weights"]["data"] = 9
        client.delete(f"/cases/{case['id']}")

        res = client.post("/cases/import", json=doc)

        assert res.status_code == 422
        assert res.json()["detail"]["issues"] == [
            "Investment weight for data must be between 0 and 5"
        ]
        assert client.get(f"/cases/{case['id']}").status_code == 404


# ===================================================================== #
#  AI suggestions and LLM                                                 #
# ===================================================================== #

class TestSuggestionRoutes:
    def test_suggest_scores(self):
        case = _gated_case()
        data = client.post(f"/cases/{case['id']}/suggest-scores").json()

        assert data["provider"] == "mock"
        assert data["issues"] == []
        assert data["scores"]["return_scores"]["efficiency"] == 3
        assert client.get(f"/cases/{case['id']}").json()["step2b"] is None

    def test_text_suggestions(self):
        case = _create_case(sample=True)
        case_id = case["id"]

        questions = client.post(f"/cases/{case_id}/suggest-questions", json={"provider": "mock"})
        rewrite = client.post(f"/cases/{case_id}/suggest-rewrite")
        notes = client.post(f"/cases/{case_id}/suggest-score-notes")
        recommendation = client.post(f"/cases/{case_id}/suggest-recommendation")

        assert "clarifying questions" in questions.json()["text"]
        assert "structured problem statement" in rewrite.json()["text"]
        assert notes.status_code == 200
        assert recommendation.json()["provider"] == "mock"

    def test_score_notes_require_roi(self):
        case = _gated_case()
        assert client.post(f"/cases/{case['id']}/suggest-score-notes").status_code == 409


class TestLlmRoutes:
    def test_providers(self):
        data = client.get("/llm/providers").json()

        assert data["default_provider"] == "mock"
        assert data["best_available"] == "mock"
        assert {p["provider"] for p in data["providers"]} == {"openai", "gemini", "deepseek", "mock"}

    def test_generate(self):
        res = client.post("/llm/generate", json={"user_prompt": "hello"})

        assert res.status_code == 200
        assert res.json()["provider"] == "mock"
        assert res.json()["model"] == "mock-v1"

    def test_generate_rejects_bad_temperature(self):
        assert client.post("/llm/generate", json={"temperature": 3}).status_code == 422

    def test_generate_batch(self):
        res = client.post(
            "/llm/generate-batch",
            json=[{"user_prompt": "first"}, {"user_prompt": "second", "provider": "gemini"}],
        )

        assert res.status_code == 200
        assert [r["provider"] for r in res.json()] == ["mock", "mock"]
        assert 'regarding "second..."' in res.json()[1]["text"]
