"""Step 1 quality gate.

Heuristic checks on the problem statement and the success metric. The gate
is advisory: problems are returned as a list of display strings, and an
empty list means the gate passed. Nothing here raises for bad input text.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import List, Tuple

from ..config import WorkspaceSettings
from ..schemas.case_schema import GateStatus, ProblemForm

logger = logging.getLogger(__name__)

# ── Phrase tables ───────────────────────────────────────────────────────

# Terms that presuppose a technical solution. Problem statements should
# describe the pain, not the fix.
SOLUTION_LEADING_PHRASES: Tuple[str, ...] = (
    # Chinese
    "用LLM", "用AI", "自动化", "agent", "RAG", "大模型",
    "构建", "开发", "实现", "搭建", "创建",
    # English
    "use LLM", "use AI", "automate", "build", "implement",
    "develop", "create", "set up", "deploy",
)

GENERIC_KEYWORDS: Tuple[str, ...] = (
    "提升效率", "数字化转型", "优化流程", "提高质量",
    "improve efficiency", "digital transformation",
    "optimize process", "enhance quality",
)

_GENERIC_PATTERNS = tuple(
    re.compile(re.escape(keyword), re.IGNORECASE) for keyword in GENERIC_KEYWORDS
)
_NON_CONTENT_RE = re.compile(r"[^a-z0-9\u4e00-\u9fff]", re.IGNORECASE)
_GENERIC_MIN_REMAINDER = 6

_DIGIT_RE = re.compile(r"[0-9]+")
_UNIT_RE = re.compile(r"%|\$|hours|days|weeks|months|users|customers", re.IGNORECASE)

DEFAULT_MIN_PROBLEM_LENGTH = 15
DEFAULT_MAX_PROBLEM_LENGTH = 1000

SUCCESS_METRIC_ISSUE = (
    'Success metric should include numbers and units '
    '(e.g., "increase by 20%" or "reduce by 5 hours")'
)


def _is_too_generic(lowered: str) -> bool:
    """Strip generic keywords and punctuation; judge what is left."""
    if not any(keyword.lower() in lowered for keyword in GENERIC_KEYWORDS):
        return False

    stripped = lowered
    for pattern in _GENERIC_PATTERNS:
        stripped = pattern.sub("", stripped)

    remaining = _NON_CONTENT_RE.sub("", stripped)
    return len(remaining) < _GENERIC_MIN_REMAINDER


def validate_problem_statement(
    problem_statement: str,
    min_length: int = DEFAULT_MIN_PROBLEM_LENGTH,
    max_length: int = DEFAULT_MAX_PROBLEM_LENGTH,
) -> List[str]:
    """Return quality issues for a problem statement (empty = OK)."""
    issues: List[str] = []
    lowered = problem_statement.lower()

    for phrase in SOLUTION_LEADING_PHRASES:
        if phrase.lower() in lowered:
            issues.append(f'Avoid solution-leading phrases like "{phrase}"')

    if len(problem_statement) < min_length:
        issues.append("Problem statement is too short")
    elif len(problem_statement) > max_length:
        issues.append("Problem statement is too long")

    if _is_too_generic(lowered):
        issues.append("Problem statement is too generic")

    return issues


def validate_success_metric(metric: str) -> List[str]:
    """A success metric needs at least one number and one unit token."""
    has_numbers = _DIGIT_RE.search(metric) is not None
    has_units = _UNIT_RE.search(metric) is not None

    if not has_numbers or not has_units:
        return [SUCCESS_METRIC_ISSUE]
    return []


def validate_gate(
    form: ProblemForm,
    min_length: int = DEFAULT_MIN_PROBLEM_LENGTH,
    max_length: int = DEFAULT_MAX_PROBLEM_LENGTH,
) -> List[str]:
    """Problem statement issues followed by success metric issues."""
    return [
        *validate_problem_statement(form.problem_statement, min_length, max_length),
        *validate_success_metric(form.success_metric),
    ]


class GateValidator:
    """Gate bound to the problem-length limits of one ``WorkspaceSettings``."""

    def __init__(self, settings: WorkspaceSettings):
        self.min_length = settings.min_problem_length
        self.max_length = settings.max_problem_length

    def validate_problem_statement(self, text: str) -> List[str]:
        return validate_problem_statement(text, self.min_length, self.max_length)

    def validate_success_metric(self, text: str) -> List[str]:
        return validate_success_metric(text)

    def validate(self, form: ProblemForm) -> List[str]:
        return validate_gate(form, self.min_length, self.max_length)

    def evaluate(self, form: ProblemForm) -> GateStatus:
        """Fresh ``GateStatus`` for *form*, stamped with the current UTC time."""
        issues = self.validate(form)
        if issues:
            logger.info("[GATE] Failed with %d issue(s)", len(issues))
        return GateStatus(
            passed=not issues,
            issues=issues,
            validated_at=datetime.now(timezone.utc),
        )
