from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import TIMELINE_WEEKS_MAX, TIMELINE_WEEKS_MIN
from .roi_schema import QuadrantRationale, RoiModel, RoiScores, RoiWeights


class ProblemForm(BaseModel):
    """Step 1 form.

    Free-text fields are plain strings so a fresh case can hold an empty
    form; their quality is judged by the gate, not by the model.
    """

    problem_statement: str = ""
    owner_team: str = ""
    scope: Literal["team", "department", "company", "enterprise"] = "team"
    cost_of_inaction_type: Literal[
        "financial", "competitive", "operational", "reputational"
    ] = "financial"
    baseline: str = ""
    success_metric: str = ""
    target_improvement: str = ""
    timeline_weeks: Optional[int] = Field(
        default=None, ge=TIMELINE_WEEKS_MIN, le=TIMELINE_WEEKS_MAX
    )
    stakeholders: Optional[List[str]] = None


class GateStatus(BaseModel):
    """Result of one gate evaluation. Replaced wholesale on every submit."""

    passed: bool = False
    issues: List[str] = Field(default_factory=list)
    validated_at: Optional[datetime] = None


class FitModel(BaseModel):
    """Step 2A: is this an AI problem at all, and what kind."""

    is_ai_problem: bool
    ai_role: Literal["assistant", "automation", "analyst", "creator", "other"]
    data_readiness: Literal["none", "some", "ready", "abundant"]
    hitl_required: bool = Field(..., description="Human-in-the-loop required")
    ethical_considerations: Optional[List[str]] = None
    technical_feasibility: Literal["low", "medium", "high"]


class RecommendationOption(BaseModel):
    id: str
    title: str = Field(..., min_length=5)
    description: str = Field(..., min_length=20)
    rationale: str = Field(..., min_length=20)
    counterarguments: List[str] = Field(default_factory=list)
    confidence: Literal["low", "medium", "high"]


class DecisionModel(BaseModel):
    """Step 3: the options considered and the one chosen."""

    recommendation_options: List[RecommendationOption] = Field(..., min_length=2)
    selected_decision: str = Field(..., min_length=1, description="ID of selected option")
    rationale_text: str = Field(..., min_length=20)
    next_steps: List[str] = Field(..., min_length=1)
    decision_made_at: Optional[datetime] = None

    @model_validator(mode="after")
    def selected_option_exists(self) -> "DecisionModel":
        ids = {option.id for option in self.recommendation_options}
        if self.selected_decision not in ids:
            raise ValueError(
                f"selected_decision '{self.selected_decision}' is not one of {sorted(ids)}"
            )
        return self


class SummaryCache(BaseModel):
    markdown: str
    json_text: str = Field(..., alias="json")
    generated_at: datetime

    model_config = ConfigDict(populate_by_name=True)


# ── Case aggregate ──────────────────────────────────────────────────────

class Step1(BaseModel):
    form: ProblemForm = Field(default_factory=ProblemForm)
    gate_status: GateStatus = Field(default_factory=GateStatus)


class Step2A(BaseModel):
    model: FitModel


class Step2B(BaseModel):
    model: RoiModel


class Step3(BaseModel):
    model: DecisionModel


class Step4(BaseModel):
    summary: SummaryCache
    last_exported_at: Optional[datetime] = None


class Case(BaseModel):
    """One workflow instance. Loaded and saved as opaque JSON by callers."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime

    step1: Step1 = Field(default_factory=Step1)
    step2a: Optional[Step2A] = None
    step2b: Optional[Step2B] = None
    step3: Optional[Step3] = None
    step4: Optional[Step4] = None

    current_step: int = Field(default=1, ge=1, le=4)
    is_archived: bool = False
    tags: List[str] = Field(default_factory=list)


# ── API payloads ────────────────────────────────────────────────────────

class CaseCreateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sample: bool = False


class GateValidationRequest(BaseModel):
    text: str


class IssuesResponse(BaseModel):
    passed: bool
    issues: List[str] = Field(default_factory=list)


class RoiUpdateRequest(BaseModel):
    weights: RoiWeights
    scores: RoiScores
    rationale: Optional[QuadrantRationale] = None


class RoiUpdateResponse(BaseModel):
    case: Case
    issues: List[str] = Field(default_factory=list)


class CaseListResponse(BaseModel):
    cases: List[Case] = Field(default_factory=list)


class RationaleConfirmRequest(BaseModel):
    text: Optional[str] = Field(default=None, min_length=10, max_length=500)


class TargetStepResponse(BaseModel):
    case_id: str
    target: Literal["step-1", "step-2a", "step-2b", "step-3", "step-4"]
