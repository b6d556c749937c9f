# Schemas package
from .roi_schema import (
    RoiCalculationResult,
    RoiModel,
    RoiScores,
    RoiTotals,
    RoiWeights,
    InvestFactors,
    ReturnFactors,
)
from .case_schema import Case, GateStatus, ProblemForm, SummaryCache
from .llm_schema import LLMRequest, LLMResponse, ScoreSuggestion

__all__ = [
    "ReturnFactors",
    "InvestFactors",
    "RoiWeights",
    "RoiScores",
    "RoiTotals",
    "RoiCalculationResult",
    "RoiModel",
    "ProblemForm",
    "GateStatus",
    "SummaryCache",
    "Case",
    "LLMRequest",
    "LLMResponse",
    "ScoreSuggestion",
]
