"""Prompt builders for the text-generation boundary.

Each builder returns a ``(system_prompt, user_prompt)`` pair. The outputs
are suggestions for a human to accept or reject; nothing generated here
bypasses the gate or the ROI validators.
"""

from __future__ import annotations

import json
from typing import Optional, Tuple

from ..constants import INVEST_FACTORS, RETURN_FACTORS
from ..schemas.case_schema import FitModel, ProblemForm
from ..schemas.roi_schema import RoiModel, RoiScores, RoiWeights

PromptPair = Tuple[str, str]

SCORE_JSON_MARKER = "Respond with JSON scores only"


def _dump(model) -> str:
    if model is None:
        return "null"
    return json.dumps(model.model_dump(mode="json"), ensure_ascii=False)


def build_interview_prompt(form: ProblemForm) -> PromptPair:
    system = "You are an AI facilitator helping clarify business problems. Ask concise questions."
    user = (
        f"Problem statement: {form.problem_statement}\n"
        f"Owner team: {form.owner_team}\n"
        f"Scope: {form.scope}\n"
        f"Cost of inaction: {form.cost_of_inaction_type}"
    )
    return system, user


def build_rewrite_prompt(form: ProblemForm) -> PromptPair:
    system = (
        "Rewrite the problem statement to be specific, measurable, "
        "and neutral about solutions."
    )
    user = (
        f"Original statement: {form.problem_statement}\n"
        f"Baseline: {form.baseline}\n"
        f"Success metric: {form.success_metric}\n"
        f"Target improvement: {form.target_improvement}"
    )
    return system, user


def build_roi_suggest_scores_prompt(model: RoiModel) -> PromptPair:
    system = "Suggest ROI scores (0-3) based on weights and context. Keep it brief."
    user = (
        f"Return weights: {_dump(model.weights.return_weights)}\n"
        f"Invest weights: {_dump(model.weights.invest_weights)}\n"
        f"Current scores: {_dump(model.scores)}"
    )
    return system, user


def build_roi_score_json_prompt(
    weights: RoiWeights,
    scores: RoiScores,
    form: Optional[ProblemForm] = None,
) -> PromptPair:
    """Ask for machine-readable scores in the ``RoiScores`` shape."""
    shape = {
        "return_scores": {name: 0 for name in RETURN_FACTORS},
        "invest_scores": {name: 0 for name in INVEST_FACTORS},
    }
    system = (
        "Suggest ROI scores as integers from 0 to 3 for every factor. "
        f"{SCORE_JSON_MARKER}, using exactly this shape: {json.dumps(shape)}"
    )
    parts = []
    if form is not None:
        parts.append(f"Problem statement: {form.problem_statement}")
        parts.append(f"Success metric: {form.success_metric}")
    parts.append(f"Weights: {_dump(weights)}")
    parts.append(f"Current scores: {_dump(scores)}")
    return system, "\n".join(parts)


def build_recommendation_prompt(
    fit: Optional[FitModel],
    roi: Optional[RoiModel],
) -> PromptPair:
    system = (
        "Provide recommendation reasons and counterarguments. "
        "Avoid making the final decision."
    )
    user = f"Fit model: {_dump(fit)}\nROI model: {_dump(roi)}"
    return system, user
