"""Step 4 export: Markdown and JSON renderings of a case."""

from __future__ import annotations

import json
from typing import Optional

from pydantic import BaseModel

from ..schemas.case_schema import Case


def _pretty(model: Optional[BaseModel]) -> str:
    if model is None:
        return "N/A"
    return json.dumps(model.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)


def to_markdown(case: Case) -> str:
    form = case.step1.form

    sections = [
        "# AI Decision Summary / 决策摘要",
        "## Case / 案例\n"
        f"- Title / 标题: {case.title}\n"
        f"- Updated / 更新时间: {case.updated_at.isoformat()}",
        f"## Problem Statement / 问题陈述\n{form.problem_statement}",
        f"## Baseline / 现状\n{form.baseline}",
        f"## Success Metric / 成功指标\n{form.success_metric}",
        f"## Target Improvement / 目标改进\n{form.target_improvement}",
        f"## AI Fit / AI 适配\n{_pretty(case.step2a.model if case.step2a else None)}",
        f"## ROI / ROI\n{_pretty(case.step2b.model if case.step2b else None)}",
        f"## Decision / 决策\n{_pretty(case.step3.model if case.step3 else None)}",
    ]
    return "\n\n".join(sections) + "\n"


def to_json(case: Case) -> str:
    return json.dumps(case.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)
