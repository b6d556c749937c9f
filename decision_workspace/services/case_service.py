"""Case aggregate service.

Holds workflow cases in process memory and applies step submissions.
Derived values (gate status, ROI totals, quadrant, export summary) are
always recomputed and replaced wholesale; callers only ever receive copies.
Durable storage is the caller's concern: ``dump_case`` / ``load_case``
expose a case as opaque JSON.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..config import WorkspaceSettings
from ..schemas.case_schema import (
    Case,
    DecisionModel,
    FitModel,
    ProblemForm,
    Step1,
    Step2A,
    Step2B,
    Step3,
    Step4,
    SummaryCache,
)
from ..schemas.roi_schema import QuadrantRationale, RoiModel, RoiScores, RoiWeights
from .export_service import to_json, to_markdown
from .gate_validator import GateValidator
from .roi_calculator import DEFAULT_SCORES, DEFAULT_WEIGHTS, RoiCalculator

logger = logging.getLogger(__name__)

NEW_CASE_TITLE = "New Case"
_AUTO_TITLE_LENGTH = 40
_RATIONALE_MAX_LENGTH = 500


class WorkspaceError(Exception):
    """Base class for workflow misuse (not data-quality issues)."""


class CaseNotFoundError(WorkspaceError):
    def __init__(self, case_id: str):
        super().__init__(f"Case {case_id} not found")
        self.case_id = case_id


class GateNotPassedError(WorkspaceError):
    def __init__(self, case_id: str):
        super().__init__(f"Case {case_id} has not passed the problem gate")
        self.case_id = case_id


class WorkflowOrderError(WorkspaceError):
    """A step was submitted before the step it depends on."""


class CaseImportError(WorkspaceError):
    """An imported case carries step data that fails validation."""

    def __init__(self, case_id: str, issues: List[str]):
        super().__init__(f"Case {case_id} cannot be imported: {'; '.join(issues)}")
        self.case_id = case_id
        self.issues = issues



def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_empty_case(title: str = NEW_CASE_TITLE) -> Case:
    now = _now()
    return Case(
        id=str(uuid.uuid4()),
        title=title,
        created_at=now,
        updated_at=now,
        step1=Step1(),
        current_step=1,
    )


def create_sample_case(calculator: RoiCalculator, gate: GateValidator) -> Case:
    """Seeded example case used to show a populated workspace."""
    now = _now()
    form = ProblemForm(
        problem_statement="客服工单量激增，导致响应时间延长，客户满意度下降。",
        owner_team="Customer Support",
        scope="department",
        cost_of_inaction_type="operational",
        baseline="平均首响时间 12 小时，满意度 78%。",
        success_metric="首响时间降低 50%",
        target_improvement="将首响时间降低到 6 小时以内。",
    )
    roi = calculator.calculate(DEFAULT_WEIGHTS, DEFAULT_SCORES)

    return Case(
        id=str(uuid.uuid4()),
        title="Customer Support Triage / 客服分流",
        created_at=now,
        updated_at=now,
        step1=Step1(form=form, gate_status=gate.evaluate(form)),
        step2a=Step2A(
            model=FitModel(
                is_ai_problem=True,
                ai_role="assistant",
                data_readiness="some",
                hitl_required=True,
                technical_feasibility="medium",
            )
        ),
        step2b=Step2B(
            model=RoiModel(
                weights=DEFAULT_WEIGHTS,
                scores=DEFAULT_SCORES,
                totals=roi.totals,
                quadrant=roi.quadrant,
                why_here=QuadrantRationale(
                    text="初步判断属于快速胜利区，但需要完善数据流程。",
                    confirmed=False,
                ),
                last_calculated_at=now,
            )
        ),
        current_step=1,
    )


def target_step(case: Case) -> str:
    """Where a returning user should land for *case*."""
    if not case.step1.gate_status.passed:
        return "step-1"
    if case.step4:
        return "step-4"
    if case.step3:
        return "step-3"
    if case.step2b:
        return "step-2b"
    if case.step2a:
        return "step-2a"
    return "step-1"


def dump_case(case: Case) -> str:
    return case.model_dump_json(by_alias=True)


def load_case(raw: str | bytes) -> Case:
    return Case.model_validate_json(raw)


class CaseService:
    """In-memory case registry applying the four-step workflow rules."""

    def __init__(
        self,
        settings: WorkspaceSettings,
        calculator: Optional[RoiCalculator] = None,
        gate: Optional[GateValidator] = None,
    ):
        self.settings = settings
        self.calculator = calculator or RoiCalculator(settings)
        self.gate = gate or GateValidator(settings)
        self._cases: Dict[str, Case] = {}

    # ── storage helpers ────────────────────────────────────────────────

    def _get(self, case_id: str) -> Case:
        case = self._cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        return case

    def _put(self, case: Case) -> Case:
        self._cases[case.id] = case
        return case.model_copy(deep=True)

    def _require_gate(self, case: Case) -> None:
        if not case.step1.gate_status.passed:
            raise GateNotPassedError(case.id)

    # ── CRUD ───────────────────────────────────────────────────────────

    def create_case(self, title: Optional[str] = None, sample: bool = False) -> Case:
        if sample:
            case = create_sample_case(self.calculator, self.gate)
            if title:
                case = case.model_copy(update={"title": title})
        else:
            case = create_empty_case(title or NEW_CASE_TITLE)
        logger.info("[CASE] Created %s (%s)", case.id, case.title)
        return self._put(case)

    def get_case(self, case_id: str) -> Case:
        return self._get(case_id).model_copy(deep=True)

    def list_cases(self, include_archived: bool = False) -> List[Case]:
        """Most recently updated first."""
        cases = [
            c for c in list(self._cases.values()) if include_archived or not c.is_archived
        ]
        cases.sort(key=lambda c: c.updated_at, reverse=True)
        return [c.model_copy(deep=True) for c in cases]

    def delete_case(self, case_id: str) -> None:
        self._get(case_id)
        del self._cases[case_id]
        logger.info("[CASE] Deleted %s", case_id)

    def archive_case(self, case_id: str) -> Case:
        case = self._get(case_id)
        return self._put(case.model_copy(update={"is_archived": True, "updated_at": _now()}))

    def import_case(self, raw: str | bytes) -> Case:
        """Register a case previously produced by ``dump_case``.

        The gate is re-evaluated from the stored form and ROI totals are
        recalculated from the stored weights and scores. Out-of-range ROI
        input rejects the whole import.
        """
        return self._put(self._rederive(load_case(raw)))

    def _rederive(self, case: Case) -> Case:
        gate_status = self.gate.evaluate(case.step1.form)
        update = {"step1": Step1(form=case.step1.form, gate_status=gate_status)}

        if case.step2b is not None:
            stored = case.step2b.model
            issues = self.calculator.validate(stored.weights, stored.scores)
            if issues:
                logger.info("[CASE] Import of %s rejected: %s", case.id, issues)
                raise CaseImportError(case.id, issues)
            result = self.calculator.calculate(stored.weights, stored.scores)
            model = stored.model_copy(update={"totals": result.totals, "quadrant": result.quadrant})
            update["step2b"] = Step2B(model=model)

        return case.model_copy(update=update)

    def export_raw(self, case_id: str) -> str:
        return dump_case(self._get(case_id))

    # ── Step 1 ─────────────────────────────────────────────────────────

    def submit_problem_form(self, case_id: str, form: ProblemForm) -> Case:
        """Store the form and recompute the gate from scratch."""
        case = self._get(case_id)
        gate_status = self.gate.evaluate(form)

        title = case.title
        if title == NEW_CASE_TITLE and form.problem_statement.strip():
            title = form.problem_statement.strip()[:_AUTO_TITLE_LENGTH]

        current_step = max(case.current_step, 2) if gate_status.passed else case.current_step

        return self._put(
            case.model_copy(
                update={
                    "title": title,
                    "step1": Step1(form=form, gate_status=gate_status),
                    "current_step": current_step,
                    "updated_at": _now(),
                }
            )
        )

    # ── Step 2A / 2B ───────────────────────────────────────────────────

    def save_fit_model(self, case_id: str, model: FitModel) -> Case:
        case = self._get(case_id)
        self._require_gate(case)
        return self._put(
            case.model_copy(update={"step2a": Step2A(model=model), "updated_at": _now()})
        )

    def update_roi(
        self,
        case_id: str,
        weights: RoiWeights,
        scores: RoiScores,
        rationale: Optional[QuadrantRationale] = None,
    ) -> Tuple[Case, List[str]]:
        """Validate and recompute step 2B.

        On validation issues the case is left untouched and the issues are
        returned alongside the unchanged case.
        """
        case = self._get(case_id)
        self._require_gate(case)

        issues = self.calculator.validate(weights, scores)
        if issues:
            logger.info("[CASE] ROI update for %s rejected: %s", case_id, issues)
            return case.model_copy(deep=True), issues

        result = self.calculator.calculate(weights, scores)
        now = _now()
        why_here = rationale or QuadrantRationale(
            text=result.rationale[:_RATIONALE_MAX_LENGTH], confirmed=False
        )

        model = RoiModel(
            weights=weights,
            scores=scores,
            totals=result.totals,
            quadrant=result.quadrant,
            why_here=why_here,
            last_calculated_at=now,
        )
        updated = case.model_copy(
            update={"step2b": Step2B(model=model), "updated_at": now}
        )
        return self._put(updated), []

    def confirm_rationale(self, case_id: str, text: Optional[str] = None) -> Case:
        case = self._get(case_id)
        if case.step2b is None:
            raise WorkflowOrderError(f"Case {case_id} has no ROI model to confirm")

        current = case.step2b.model.why_here
        why_here = QuadrantRationale(text=text or current.text, confirmed=True)
        model = case.step2b.model.model_copy(update={"why_here": why_here})
        return self._put(
            case.model_copy(update={"step2b": Step2B(model=model), "updated_at": _now()})
        )

    # ── Step 3 / 4 ─────────────────────────────────────────────────────

    def save_decision(self, case_id: str, model: DecisionModel) -> Case:
        case = self._get(case_id)
        self._require_gate(case)
        if case.step2b is None:
            raise WorkflowOrderError(f"Case {case_id} needs an ROI model before a decision")

        if model.decision_made_at is None:
            model = model.model_copy(update={"decision_made_at": _now()})

        return self._put(
            case.model_copy(
                update={
                    "step3": Step3(model=model),
                    "current_step": max(case.current_step, 3),
                    "updated_at": _now(),
                }
            )
        )

    def export_case(self, case_id: str) -> SummaryCache:
        case = self._get(case_id)
        self._require_gate(case)

        now = _now()
        case = case.model_copy(update={"updated_at": now})
        summary = SummaryCache(
            markdown=to_markdown(case),
            json_text=to_json(case),
            generated_at=now,
        )
        self._put(
            case.model_copy(
                update={
                    "step4": Step4(summary=summary, last_exported_at=now),
                    "current_step": 4,
                }
            )
        )
        logger.info("[CASE] Exported %s", case_id)
        return summary

    def render_markdown(self, case_id: str) -> str:
        """Markdown summary of the current case state, without storing it."""
        case = self._get(case_id)
        self._require_gate(case)
        return to_markdown(case)

    def target_step(self, case_id: str) -> str:
        return target_step(self._get(case_id))
