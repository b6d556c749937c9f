"""Stateless ROI calculator routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from ..constants import INVEST_FACTOR_LABELS, RETURN_FACTOR_LABELS, SCORE_DESCRIPTIONS
from ..dependencies import get_roi_calculator
from ..schemas.roi_schema import (
    RoiCalculationRequest,
    RoiCalculationResult,
    RoiDefaultsResponse,
    RoiValidationResponse,
    RoiWeights,
    WeightPercentages,
)
from ..services.roi_calculator import (
    DEFAULT_SCORES,
    DEFAULT_WEIGHTS,
    RoiCalculator,
    calculate_weight_percentages,
)

router = APIRouter(
    prefix="/roi",
    tags=["ROI"],
)


@router.get(
    "/defaults",
    response_model=RoiDefaultsResponse,
    summary="Default weights, scores and labels",
)
def roi_defaults(calculator: RoiCalculator = Depends(get_roi_calculator)) -> RoiDefaultsResponse:
    return RoiDefaultsResponse(
        weights=DEFAULT_WEIGHTS,
        scores=DEFAULT_SCORES,
        threshold_x=calculator.threshold_x,
        threshold_y=calculator.threshold_y,
        factor_labels={
            "return_weights": {k: dict(v) for k, v in RETURN_FACTOR_LABELS.items()},
            "invest_weights": {k: dict(v) for k, v in INVEST_FACTOR_LABELS.items()},
        },
        score_descriptions={k: dict(v) for k, v in SCORE_DESCRIPTIONS.items()},
    )


@router.post(
    "/calculate",
    response_model=RoiCalculationResult,
    status_code=status.HTTP_200_OK,
    summary="Calculate ROI quadrant",
    response_description="Totals, normalized totals, quadrant and rationale",
)
def calculate(
    body: RoiCalculationRequest,
    calculator: RoiCalculator = Depends(get_roi_calculator),
) -> RoiCalculationResult:
    """Validate weights and scores, then classify into a quadrant.

    Out-of-range values return 422 with the list of issues.
    """
    issues = calculator.validate(body.weights, body.scores)
    if issues:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"issues": issues},
        )
    return calculator.calculate(body.weights, body.scores)


@router.post(
    "/validate",
    response_model=RoiValidationResponse,
    summary="Validate weights and scores",
)
def validate(
    body: RoiCalculationRequest,
    calculator: RoiCalculator = Depends(get_roi_calculator),
) -> RoiValidationResponse:
    issues = calculator.validate(body.weights, body.scores)
    return RoiValidationResponse(valid=not issues, issues=issues)


@router.post(
    "/weight-percentages",
    response_model=WeightPercentages,
    summary="Each weight's share of its group",
)
def weight_percentages(weights: RoiWeights) -> WeightPercentages:
    return calculate_weight_percentages(weights)
