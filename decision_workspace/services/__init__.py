from .roi_calculator import RoiCalculator, calculate_roi, determine_quadrant
from .gate_validator import GateValidator, validate_problem_statement, validate_success_metric
from .case_service import CaseService
from .export_service import to_json, to_markdown
from .llm_client import LLMClient

__all__ = [
    "calculate_roi",
    "determine_quadrant",
    "RoiCalculator",
    "validate_problem_statement",
    "validate_success_metric",
    "GateValidator",
    "CaseService",
    "to_markdown",
    "to_json",
    "LLMClient",
]
