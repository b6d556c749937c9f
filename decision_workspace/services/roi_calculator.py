"""Deterministic ROI Calculator.

Maps weighted return / investment factors onto a normalized 2D space and
classifies the result into one of four quadrants.

Rules
-----
- NO API calls
- NO LLMs
- NO bounds checking inside ``calculate_roi`` (see ``validate_weights`` /
  ``validate_scores``)
- Normalization is weight-aware: the ceiling is Σ weight × SCORE_MAX
- A zero ceiling normalizes to 0, never NaN
- Pure deterministic math
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import List, Mapping

from ..config import WorkspaceSettings
from ..constants import (
    DEFAULT_THRESHOLD_X,
    DEFAULT_THRESHOLD_Y,
    SCORE_MAX,
    SCORE_MIN,
    WEIGHT_MAX,
    WEIGHT_MIN,
)
from ..schemas.roi_schema import (
    BilingualText,
    InvestFactors,
    Quadrant,
    ReturnFactors,
    RoiCalculationResult,
    RoiScores,
    RoiTotals,
    RoiWeights,
    WeightPercentages,
)

logger = logging.getLogger(__name__)

FactorGroup = ReturnFactors | InvestFactors


# ---------------------------------------------------------------------------
# Quadrant lookups
# ---------------------------------------------------------------------------

QUADRANT_LABELS: Mapping[str, BilingualText] = MappingProxyType({
    "quick-wins": BilingualText(en="Quick Wins", zh="快速胜利"),
    "strategic-bets": BilingualText(en="Strategic Bets", zh="战略押注"),
    "hygiene": BilingualText(en="Hygiene / Tactical", zh="基础维护 / 战术性"),
    "experiments": BilingualText(en="Experiments / Optional", zh="实验性 / 可选"),
})

QUADRANT_DESCRIPTIONS: Mapping[str, BilingualText] = MappingProxyType({
    "quick-wins": BilingualText(
        en="Low investment, high return. Prioritize these initiatives for immediate impact.",
        zh="低投入，高回报。优先考虑这些举措以获得即时影响。",
    ),
    "strategic-bets": BilingualText(
        en=(
            "High investment, high return. These are long-term strategic initiatives "
            "that require significant resources but offer substantial rewards."
        ),
        zh="高投入，高回报。这些是长期战略举措，需要大量资源但提供丰厚回报。",
    ),
    "hygiene": BilingualText(
        en=(
            "Low investment, low return. Necessary maintenance or tactical improvements "
            "that keep the business running smoothly."
        ),
        zh="低投入，低回报。必要的维护或战术改进，确保业务平稳运行。",
    ),
    "experiments": BilingualText(
        en=(
            "High investment, low return. Experimental projects or optional initiatives "
            "that may provide learning but limited immediate value."
        ),
        zh="高投入，低回报。实验性项目或可选举措，可能提供学习机会但即时价值有限。",
    ),
})


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_WEIGHTS = RoiWeights(
    return_weights=ReturnFactors(
        cost_savings=3,
        revenue_increase=4,
        efficiency=4,
        customer_satisfaction=3,
        quality=3,
        risk_reduction=2,
        capability=3,
    ),
    invest_weights=InvestFactors(data=4, engineering=5, change=3),
)

DEFAULT_SCORES = RoiScores(
    return_scores=ReturnFactors(
        cost_savings=1,
        revenue_increase=1,
        efficiency=1,
        customer_satisfaction=1,
        quality=1,
        risk_reduction=1,
        capability=1,
    ),
    invest_scores=InvestFactors(data=1, engineering=1, change=1),
)


# ---------------------------------------------------------------------------
# Totals and normalization
# ---------------------------------------------------------------------------

def calculate_total_raw(weights: FactorGroup, scores: FactorGroup) -> float:
    """Σ weight × score over one factor group."""
    score_map = scores.model_dump()
    return sum(weight * score_map[name] for name, weight in weights.items())


def calculate_max_raw(weights: FactorGroup) -> float:
    """Ceiling of a group: every score at SCORE_MAX."""
    return sum(weight * SCORE_MAX for weight in weights.values())


def normalize_value(value: float, max_value: float) -> float:
    """Normalize *value* to [0, 1] against *max_value*. A zero ceiling gives 0."""
    if max_value == 0:
        return 0.0
    return min(max(value / max_value, 0.0), 1.0)


# ---------------------------------------------------------------------------
# Quadrant mapping
# ---------------------------------------------------------------------------

def determine_quadrant(
    invest_norm: float,
    return_norm: float,
    threshold_x: float = DEFAULT_THRESHOLD_X,
    threshold_y: float = DEFAULT_THRESHOLD_Y,
) -> Quadrant:
    """Classify normalized totals. Values equal to a threshold count as high."""
    is_high_investment = invest_norm >= threshold_x
    is_high_return = return_norm >= threshold_y

    if not is_high_investment and is_high_return:
        return "quick-wins"
    if is_high_investment and is_high_return:
        return "strategic-bets"
    if not is_high_investment and not is_high_return:
        return "hygiene"
    return "experiments"


def get_quadrant_label(quadrant: Quadrant) -> BilingualText:
    return QUADRANT_LABELS[quadrant]


def get_quadrant_description(quadrant: Quadrant) -> BilingualText:
    return QUADRANT_DESCRIPTIONS[quadrant]


def _percent(value: float) -> str:
    return f"{int(value * 100 + 0.5)}%"


def generate_quadrant_rationale(
    quadrant: Quadrant,
    invest_norm: float,
    return_norm: float,
) -> str:
    """Human-readable explanation of why a case landed in *quadrant*."""
    label = get_quadrant_label(quadrant)
    description = get_quadrant_description(quadrant)

    return (
        f"This initiative falls in the {label.en} quadrant ({label.zh}).\n"
        f"Investment level: {_percent(invest_norm)} (normalized).\n"
        f"Return level: {_percent(return_norm)} (normalized).\n"
        f"\n"
        f"{description.en}\n"
        f"\n"
        f"{description.zh}"
    )


# ---------------------------------------------------------------------------
# Main calculation
# ---------------------------------------------------------------------------

def calculate_roi(
    weights: RoiWeights,
    scores: RoiScores,
    threshold_x: float = DEFAULT_THRESHOLD_X,
    threshold_y: float = DEFAULT_THRESHOLD_Y,
) -> RoiCalculationResult:
    """Compute totals, normalized totals and quadrant for one case.

    Parameters
    ----------
    weights : RoiWeights
        Return and investment weights (expected 0-5).
    scores : RoiScores
        Return and investment scores (expected 0-3).
    threshold_x, threshold_y : float
        Investment / return thresholds on the normalized axes.

    Returns
    -------
    RoiCalculationResult
        Totals, quadrant tag, bilingual label and description, rationale.
    """
    return_total_raw = calculate_total_raw(weights.return_weights, scores.return_scores)
    invest_total_raw = calculate_total_raw(weights.invest_weights, scores.invest_scores)

    max_return_raw = calculate_max_raw(weights.return_weights)
    max_invest_raw = calculate_max_raw(weights.invest_weights)

    return_total_norm = normalize_value(return_total_raw, max_return_raw)
    invest_total_norm = normalize_value(invest_total_raw, max_invest_raw)

    quadrant = determine_quadrant(
        invest_total_norm, return_total_norm, threshold_x, threshold_y
    )
    logger.debug(
        "[ROI] invest=%.3f return=%.3f -> %s", invest_total_norm, return_total_norm, quadrant
    )

    return RoiCalculationResult(
        totals=RoiTotals(
            return_total_raw=return_total_raw,
            invest_total_raw=invest_total_raw,
            max_return_raw=max_return_raw,
            max_invest_raw=max_invest_raw,
            return_total_norm=return_total_norm,
            invest_total_norm=invest_total_norm,
        ),
        quadrant=quadrant,
        quadrant_label=get_quadrant_label(quadrant),
        quadrant_description=get_quadrant_description(quadrant),
        rationale=generate_quadrant_rationale(quadrant, invest_total_norm, return_total_norm),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _fmt(value: float) -> str:
    return f"{value:g}"


def validate_weights(weights: RoiWeights) -> List[str]:
    """Report all-zero groups and weights outside [WEIGHT_MIN, WEIGHT_MAX]."""
    issues: List[str] = []

    if not any(w > 0 for w in weights.return_weights.values()):
        issues.append("At least one return weight must be greater than 0")

    if not any(w > 0 for w in weights.invest_weights.values()):
        issues.append("At least one investment weight must be greater than 0")

    for group_label, group in (
        ("Return", weights.return_weights),
        ("Investment", weights.invest_weights),
    ):
        for name, weight in group.items():
            if weight < WEIGHT_MIN or weight > WEIGHT_MAX:
                issues.append(
                    f"{group_label} weight for {name} must be between "
                    f"{_fmt(WEIGHT_MIN)} and {_fmt(WEIGHT_MAX)}"
                )

    return issues


def validate_scores(scores: RoiScores) -> List[str]:
    """Report every score outside [SCORE_MIN, SCORE_MAX], naming the factor."""
    issues: List[str] = []

    for group_label, group in (
        ("Return", scores.return_scores),
        ("Investment", scores.invest_scores),
    ):
        for name, score in group.items():
            if score < SCORE_MIN or score > SCORE_MAX:
                issues.append(
                    f"{group_label} score for {name} must be between "
                    f"{_fmt(SCORE_MIN)} and {_fmt(SCORE_MAX)}"
                )

    return issues


def _group_percentages(group: FactorGroup) -> dict[str, float]:
    total = sum(group.values())
    return {
        name: (value / total) * 100 if total > 0 else 0.0
        for name, value in group.items()
    }


def calculate_weight_percentages(weights: RoiWeights) -> WeightPercentages:
    """Each weight's share of its group total (0-100). 0 when the group sums to 0."""
    return WeightPercentages(
        return_weights=_group_percentages(weights.return_weights),
        invest_weights=_group_percentages(weights.invest_weights),
    )


# ---------------------------------------------------------------------------
# Configured calculator
# ---------------------------------------------------------------------------

class RoiCalculator:
    """Calculator bound to the thresholds of one ``WorkspaceSettings``."""

    def __init__(self, settings: WorkspaceSettings):
        self.threshold_x = settings.roi_threshold_x
        self.threshold_y = settings.roi_threshold_y

    def calculate(self, weights: RoiWeights, scores: RoiScores) -> RoiCalculationResult:
        return calculate_roi(weights, scores, self.threshold_x, self.threshold_y)

    def determine_quadrant(self, invest_norm: float, return_norm: float) -> Quadrant:
        return determine_quadrant(invest_norm, return_norm, self.threshold_x, self.threshold_y)

    def validate(self, weights: RoiWeights, scores: RoiScores) -> List[str]:
        """Weight issues first, then score issues."""
        return validate_weights(weights) + validate_scores(scores)
