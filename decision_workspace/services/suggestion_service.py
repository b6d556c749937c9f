"""AI suggestions for the workflow.

Suggestions are untrusted input: suggested scores are parsed into the same
``RoiScores`` model a human would submit and run through
``validate_scores``. Nothing is written to a case from here.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from ..schemas.case_schema import FitModel, ProblemForm
from ..schemas.llm_schema import LLMProvider, LLMRequest, LLMResponse, ScoreSuggestion
from ..schemas.roi_schema import RoiModel, RoiScores, RoiWeights
from .llm_client import LLMClient, sanitize_json, truncate_to_tokens
from .prompts import (
    PromptPair,
    build_interview_prompt,
    build_recommendation_prompt,
    build_rewrite_prompt,
    build_roi_score_json_prompt,
    build_roi_suggest_scores_prompt,
)
from .roi_calculator import validate_scores

logger = logging.getLogger(__name__)

UNPARSEABLE_SUGGESTION = "AI suggestion could not be parsed into scores"

# Free-text form fields are unbounded; keep user prompts within this budget.
PROMPT_TOKEN_BUDGET = 2000


def _build_request(prompt: PromptPair, provider: Optional[LLMProvider]) -> LLMRequest:
    system_prompt, user_prompt = prompt
    return LLMRequest(
        provider=provider,
        system_prompt=system_prompt,
        user_prompt=truncate_to_tokens(user_prompt, PROMPT_TOKEN_BUDGET),
    )


def parse_score_suggestion(text: str) -> ScoreSuggestion:
    """Turn raw LLM text into a validated (but unapplied) score suggestion."""
    try:
        payload = json.loads(sanitize_json(text))
        scores = RoiScores.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.warning("[SUGGEST] Unparseable score suggestion: %s", exc)
        return ScoreSuggestion(scores=None, issues=[UNPARSEABLE_SUGGESTION], raw_text=text)

    return ScoreSuggestion(scores=scores, issues=validate_scores(scores), raw_text=text)


async def suggest_scores(
    client: LLMClient,
    weights: RoiWeights,
    scores: RoiScores,
    form: Optional[ProblemForm] = None,
    provider: Optional[LLMProvider] = None,
) -> ScoreSuggestion:
    prompt = build_roi_score_json_prompt(weights, scores, form)
    response = await client.generate_text(_build_request(prompt, provider))
    suggestion = parse_score_suggestion(response.text)
    return suggestion.model_copy(update={"provider": response.provider})


async def suggest_interview_questions(
    client: LLMClient,
    form: ProblemForm,
    provider: Optional[LLMProvider] = None,
) -> LLMResponse:
    return await client.generate_text(_build_request(build_interview_prompt(form), provider))


async def suggest_problem_rewrite(
    client: LLMClient,
    form: ProblemForm,
    provider: Optional[LLMProvider] = None,
) -> LLMResponse:
    return await client.generate_text(_build_request(build_rewrite_prompt(form), provider))


async def suggest_recommendation(
    client: LLMClient,
    fit: Optional[FitModel],
    roi: Optional[RoiModel],
    provider: Optional[LLMProvider] = None,
) -> LLMResponse:
    prompt = build_recommendation_prompt(fit, roi)
    return await client.generate_text(_build_request(prompt, provider))


async def suggest_score_notes(
    client: LLMClient,
    model: RoiModel,
    provider: Optional[LLMProvider] = None,
) -> LLMResponse:
    """Free-text scoring advice for the current step 2B model."""
    prompt = build_roi_suggest_scores_prompt(model)
    return await client.generate_text(_build_request(prompt, provider))
