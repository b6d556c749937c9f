"""Case service tests — workflow ordering, gate enforcement, ROI updates, export."""

import os
import sys

# Ensure the package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from decision_workspace.config import WorkspaceSettings
from decision_workspace.schemas.case_schema import (
    DecisionModel,
    FitModel,
    ProblemForm,
    RecommendationOption,
)
from decision_workspace.schemas.roi_schema import InvestFactors, QuadrantRationale, RoiScores
from decision_workspace.services.case_service import (
    NEW_CASE_TITLE,
    CaseImportError,
    CaseNotFoundError,
    CaseService,
    GateNotPassedError,
    WorkflowOrderError,
    dump_case,
    load_case,
)
from decision_workspace.services.roi_calculator import DEFAULT_SCORES, DEFAULT_WEIGHTS

GOOD_FORM = ProblemForm(
    problem_statement="Claims review takes 5 days per file and the backlog grew to 300 files",
    owner_team="Claims Ops",
    scope="department",
    cost_of_inaction_type="financial",
    baseline="5 days per claim",
    success_metric="cut review time by 40%",
    target_improvement="3 days per claim",
    timeline_weeks=12,
)

FIT = FitModel(
    is_ai_problem=True,
    ai_role="analyst",
    data_readiness="ready",
    hitl_required=True,
    technical_feasibility="high",
)


def _decision(selected="pilot"):
    return DecisionModel(
        recommendation_options=[
            RecommendationOption(
                id="pilot",
                title="Pilot triage",
                description="Pilot document triage with one claims team.",
                rationale="Low risk way to measure the review time impact.",
                confidence="high",
            ),
            RecommendationOption(
                id="wait",
                title="Do nothing",
                description="Keep the current manual review process.",
                rationale="Avoids spend while the backlog is tolerated.",
                counterarguments=["Backlog keeps growing"],
                confidence="low",
            ),
        ],
        selected_decision=selected,
        rationale_text="The pilot is cheap and the metric is easy to track.",
        next_steps=["Pick the pilot team"],
    )


@pytest.fixture
def service():
    return CaseService(WorkspaceSettings())


@pytest.fixture
def gated_case(service):
    case = service.create_case()
    return service.submit_problem_form(case.id, GOOD_FORM)


# ===================================================================== #
#  CRUD                                                                   #
# ===================================================================== #

class TestCrud:
    def test_new_case_is_blank(self, service):
        case = service.create_case()

        assert case.title == NEW_CASE_TITLE
        assert case.current_step == 1
        assert case.step1.gate_status.passed is False
        assert case.step2a is None and case.step2b is None
        assert service.target_step(case.id) == "step-1"

    def test_get_unknown_case(self, service):
        with pytest.raises(CaseNotFoundError):
            service.get_case("missing")

    def test_returned_cases_are_copies(self, service):
        case = service.create_case(title="Original")
        case.title = "Mutated"
        assert service.get_case(case.id).title == "Original"

    def test_delete(self, service):
        case = service.create_case()
        service.delete_case(case.id)
        with pytest.raises(CaseNotFoundError):
            service.get_case(case.id)
        with pytest.raises(CaseNotFoundError):
            service.delete_case(case.id)

    def test_list_orders_by_update_and_hides_archived(self, service):
        first = service.create_case(title="First")
        second = service.create_case(title="Second")
        archived = service.create_case(title="Archived")
        service.archive_case(archived.id)
        service.submit_problem_form(first.id, GOOD_FORM)

        titles = [c.title for c in service.list_cases()]
        assert titles == ["First", "Second"]
        assert len(service.list_cases(include_archived=True)) == 3
        assert second.id in {c.id for c in service.list_cases()}

    def test_sample_case(self, service):
        case = service.create_case(sample=True)

        assert case.title == "Customer Support Triage / 客服分流"
        assert case.step1.gate_status.passed is True
        assert case.step2a.model.ai_role == "assistant"
        assert case.step2b.model.quadrant == "hygiene"
        assert case.step2b.model.why_here.confirmed is False
        assert service.target_step(case.id) == "step-2b"

    def test_json_round_trip(self, service, gated_case):
        raw = service.export_raw(gated_case.id)
        assert load_case(raw) == gated_case
        assert dump_case(load_case(raw)) == raw

    def test_import_case(self, service, gated_case):
        other = CaseService(WorkspaceSettings())
        imported = other.import_case(service.export_raw(gated_case.id))
        assert other.get_case(gated_case.id) == imported

    def test_import_rejects_malformed_json(self, service):
        with pytest.raises(ValidationError):
            service.import_case('{"id": "x"}')

    def test_import_recomputes_gate(self, service):
        case = service.create_case()
        service.submit_problem_form(
            case.id, ProblemForm(problem_statement="build AI", success_metric="better")
        )
        doc = json.loads(service.export_raw(case.id))
        doc["step1"]["gate_status"] = {"passed": True, "issues": [], "validated_at": None}

        other = CaseService(WorkspaceSettings())
        imported = other.import_case(json.dumps(doc))

        assert imported.step1.gate_status.passed is False
        assert len(imported.step1.gate_status.issues) == 3
        assert imported.step1.gate_status.validated_at is not None
        with pytest.raises(GateNotPassedError):
            other.save_fit_model(case.id, FIT)

    def test_import_recomputes_roi_totals(self, service):
        case = service.create_case(sample=True)
        doc = json.loads(service.export_raw(case.id))
        doc["step2b"]["model"]["quadrant"] = "strategic-bets"
        doc["step2b"]["model"]["totals"]["return_total_norm"] = 0.9

        imported = CaseService(WorkspaceSettings()).import_case(json.dumps(doc))
        model = imported.step2b.model

        assert model.quadrant == "hygiene"
        assert model.totals.return_total_norm == pytest.approx(1 / 3)
        assert model.why_here == case.step2b.model.why_here

    def test_import_rejects_out_of_range_scores(self, service):
        case = service.create_case(sample=True)
        doc = json.loads(service.export_raw(case.id))
        doc["step2b"]["model"]["scores"]["return_scores"]["efficiency"] = 7

        other = CaseService(WorkspaceSettings())
        with pytest.raises(CaseImportError) as exc_info:
            other.import_case(json.dumps(doc))

        assert exc_info.value.issues == ["Return score for efficiency must be between 0 and 3"]
        assert other.list_cases() == []

    def test_list_while_registry_changes(self, service):
        def churn(i):
            case = service.create_case(title=f"Case {i}")
            service.list_cases(include_archived=True)
            service.delete_case(case.id)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(churn, range(200)))

        assert service.list_cases() == []


# ===================================================================== #
#  Step 1                                                                 #
# ===================================================================== #

class TestProblemForm:
    def test_passing_gate_advances(self, gated_case):
        assert gated_case.step1.gate_status.passed is True
        assert gated_case.step1.gate_status.issues == []
        assert gated_case.current_step == 2
        assert gated_case.title == GOOD_FORM.problem_statement[:40]

    def test_failing_gate_keeps_step(self, service):
        case = service.create_case(title="Keep me")
        case = service.submit_problem_form(
            case.id, ProblemForm(problem_statement="build a bot", success_metric="faster")
        )

        assert case.step1.gate_status.passed is False
        assert len(case.step1.gate_status.issues) == 3
        assert case.current_step == 1
        assert case.title == "Keep me"

    def test_gate_is_recomputed_from_scratch(self, service, gated_case):
        case = service.submit_problem_form(gated_case.id, ProblemForm())
        assert case.step1.gate_status.passed is False
        assert service.target_step(case.id) == "step-1"

    def test_timeline_bounds(self):
        with pytest.raises(ValidationError):
            ProblemForm(timeline_weeks=0)
        with pytest.raises(ValidationError):
            ProblemForm(timeline_weeks=105)


# ===================================================================== #
#  Step 2A / 2B                                                           #
# ===================================================================== #

class TestRoiStep:
    def test_fit_model_requires_gate(self, service):
        case = service.create_case()
        with pytest.raises(GateNotPassedError):
            service.save_fit_model(case.id, FIT)

    def test_fit_model_saved(self, service, gated_case):
        case = service.save_fit_model(gated_case.id, FIT)
        assert case.step2a.model == FIT
        assert service.target_step(case.id) == "step-2a"

    def test_roi_requires_gate(self, service):
        case = service.create_case()
        with pytest.raises(GateNotPassedError):
            service.update_roi(case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES)

    def test_roi_update(self, service, gated_case):
        case, issues = service.update_roi(gated_case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES)

        model = case.step2b.model
        assert issues == []
        assert model.quadrant == "hygiene"
        assert model.totals.return_total_raw == 22
        assert model.why_here.text.startswith("This initiative falls in the Hygiene / Tactical")
        assert len(model.why_here.text) <= 500
        assert model.why_here.confirmed is False
        assert model.last_calculated_at is not None

    def test_invalid_roi_leaves_case_unchanged(self, service, gated_case):
        bad_scores = RoiScores(
            return_scores=DEFAULT_SCORES.return_scores,
            invest_scores=InvestFactors(data=4, engineering=1, change=1),
        )
        case, issues = service.update_roi(gated_case.id, DEFAULT_WEIGHTS, bad_scores)

        assert issues == ["Investment score for data must be between 0 and 3"]
        assert case.step2b is None
        assert service.get_case(gated_case.id) == gated_case

    def test_supplied_rationale_is_kept(self, service, gated_case):
        rationale = QuadrantRationale(text="Our own reading of the chart.", confirmed=True)
        case, _ = service.update_roi(gated_case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES, rationale)
        assert case.step2b.model.why_here == rationale

    def test_confirm_rationale(self, service, gated_case):
        service.update_roi(gated_case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES)

        case = service.confirm_rationale(gated_case.id)
        assert case.step2b.model.why_here.confirmed is True

        case = service.confirm_rationale(gated_case.id, "Edited rationale text.")
        assert case.step2b.model.why_here.text == "Edited rationale text."

    def test_confirm_without_roi(self, service, gated_case):
        with pytest.raises(WorkflowOrderError):
            service.confirm_rationale(gated_case.id)


# ===================================================================== #
#  Step 3 / 4                                                             #
# ===================================================================== #

class TestDecisionAndExport:
    def test_decision_requires_roi(self, service, gated_case):
        with pytest.raises(WorkflowOrderError):
            service.save_decision(gated_case.id, _decision())

    def test_decision_saved(self, service, gated_case):
        service.update_roi(gated_case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES)
        case = service.save_decision(gated_case.id, _decision())

        assert case.step3.model.selected_decision == "pilot"
        assert case.step3.model.decision_made_at is not None
        assert case.current_step == 3
        assert service.target_step(case.id) == "step-3"

    def test_selected_decision_must_be_an_option(self):
        with pytest.raises(ValidationError):
            _decision(selected="unknown")

    def test_export_requires_gate(self, service):
        case = service.create_case()
        with pytest.raises(GateNotPassedError):
            service.export_case(case.id)
        with pytest.raises(GateNotPassedError):
            service.render_markdown(case.id)

    def test_export(self, service, gated_case):
        service.update_roi(gated_case.id, DEFAULT_WEIGHTS, DEFAULT_SCORES)
        service.save_decision(gated_case.id, _decision())

        summary = service.export_case(gated_case.id)
        case = service.get_case(gated_case.id)

        assert summary.markdown.startswith("# AI Decision Summary / 决策摘要")
        assert json.loads(summary.json_text)["id"] == gated_case.id
        assert case.step4.summary == summary
        assert case.step4.last_exported_at == summary.generated_at
        assert case.current_step == 4
        assert service.target_step(case.id) == "step-4"
