"""Centralized constants shared by the calculator, the gate and the API.

Factor keys, bilingual labels and the ROI ranges live here so the
calculator, the schemas and the export all agree on them.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

# ── ROI ranges ──────────────────────────────────────────────────────────

WEIGHT_MIN: float = 0
WEIGHT_MAX: float = 5
SCORE_MIN: float = 0
SCORE_MAX: float = 3

DEFAULT_THRESHOLD_X: float = 0.5
DEFAULT_THRESHOLD_Y: float = 0.5

# ── Factor keys ─────────────────────────────────────────────────────────
# Order matters: it is the order issues and exports are listed in.

RETURN_FACTORS: Tuple[str, ...] = (
    "cost_savings",
    "revenue_increase",
    "efficiency",
    "customer_satisfaction",
    "quality",
    "risk_reduction",
    "capability",
)

INVEST_FACTORS: Tuple[str, ...] = (
    "data",
    "engineering",
    "change",
)

# ── Bilingual labels ────────────────────────────────────────────────────

RETURN_FACTOR_LABELS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "cost_savings": {"en": "Cost Savings", "zh": "成本节约"},
    "revenue_increase": {"en": "Revenue Increase", "zh": "收入增长"},
    "efficiency": {"en": "Efficiency Improvement", "zh": "效率提升"},
    "customer_satisfaction": {"en": "Customer Satisfaction", "zh": "客户满意度"},
    "quality": {"en": "Quality Enhancement", "zh": "质量提升"},
    "risk_reduction": {"en": "Risk Reduction", "zh": "风险降低"},
    "capability": {"en": "Capability Building", "zh": "能力建设"},
})

INVEST_FACTOR_LABELS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "data": {"en": "Data Preparation", "zh": "数据准备"},
    "engineering": {"en": "Engineering Effort", "zh": "工程投入"},
    "change": {"en": "Change Management", "zh": "变革管理"},
})

SCORE_DESCRIPTIONS: Mapping[int, Mapping[str, str]] = MappingProxyType({
    0: {"en": "None/Not applicable", "zh": "无/不适用"},
    1: {"en": "Low potential/requirement", "zh": "低潜力/要求"},
    2: {"en": "Moderate potential/requirement", "zh": "中等潜力/要求"},
    3: {"en": "High potential/requirement", "zh": "高潜力/要求"},
})

# ── Problem form ────────────────────────────────────────────────────────

TIMELINE_WEEKS_MIN: int = 1
TIMELINE_WEEKS_MAX: int = 104
