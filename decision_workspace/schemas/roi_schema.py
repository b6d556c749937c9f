from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Strict so that "3" or True never sneak in as numbers. Range is NOT checked
# here: out-of-range values are reported by validate_weights / validate_scores.
FactorValue = Annotated[float, Field(strict=True, allow_inf_nan=False)]

Quadrant = Literal["quick-wins", "strategic-bets", "hygiene", "experiments"]


class _FactorGroup(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def items(self) -> List[Tuple[str, float]]:
        """Factor name / value pairs in declaration order."""
        return list(self.model_dump().items())

    def values(self) -> List[float]:
        return [value for _, value in self.items()]


class ReturnFactors(_FactorGroup):
    """One value per return (benefit) factor."""

    cost_savings: FactorValue
    revenue_increase: FactorValue
    efficiency: FactorValue
    customer_satisfaction: FactorValue
    quality: FactorValue
    risk_reduction: FactorValue
    capability: FactorValue


class InvestFactors(_FactorGroup):
    """One value per investment (cost) factor."""

    data: FactorValue
    engineering: FactorValue
    change: FactorValue


class RoiWeights(BaseModel):
    """Factor weights, each expected in [0, 5]."""

    model_config = ConfigDict(frozen=True)

    return_weights: ReturnFactors
    invest_weights: InvestFactors


class RoiScores(BaseModel):
    """Factor scores, each expected in [0, 3]."""

    model_config = ConfigDict(frozen=True)

    return_scores: ReturnFactors
    invest_scores: InvestFactors


class RoiTotals(BaseModel):
    """Derived totals. Always produced by the calculator, never edited."""

    model_config = ConfigDict(frozen=True)

    return_total_raw: float = Field(..., description="Σ weight × score over return factors")
    invest_total_raw: float = Field(..., description="Σ weight × score over invest factors")
    max_return_raw: float = Field(..., description="Σ weight × 3 over return factors")
    max_invest_raw: float = Field(..., description="Σ weight × 3 over invest factors")
    return_total_norm: float = Field(..., ge=0.0, le=1.0)
    invest_total_norm: float = Field(..., ge=0.0, le=1.0)


class BilingualText(BaseModel):
    model_config = ConfigDict(frozen=True)

    en: str = Field(..., min_length=1)
    zh: str = Field(..., min_length=1)


class RoiCalculationResult(BaseModel):
    """Output of ``calculate_roi``."""

    model_config = ConfigDict(frozen=True)

    totals: RoiTotals
    quadrant: Quadrant
    quadrant_label: BilingualText
    quadrant_description: BilingualText
    rationale: str


class QuadrantRationale(BaseModel):
    text: str = Field(..., min_length=10, max_length=500)
    confirmed: bool = False


class RoiModel(BaseModel):
    """Step 2B state stored on a case."""

    weights: RoiWeights
    scores: RoiScores
    totals: RoiTotals
    quadrant: Quadrant
    why_here: QuadrantRationale
    last_calculated_at: Optional[datetime] = None


class WeightPercentages(BaseModel):
    """Each weight's share (0-100) of its group total, for display."""

    return_weights: Dict[str, float]
    invest_weights: Dict[str, float]


# ── API payloads ────────────────────────────────────────────────────────

class RoiCalculationRequest(BaseModel):
    weights: RoiWeights
    scores: RoiScores


class RoiValidationResponse(BaseModel):
    valid: bool
    issues: List[str] = Field(default_factory=list)


class RoiDefaultsResponse(BaseModel):
    weights: RoiWeights
    scores: RoiScores
    threshold_x: float
    threshold_y: float
    factor_labels: Dict[str, Dict[str, Dict[str, str]]]
    score_descriptions: Dict[int, Dict[str, str]]
