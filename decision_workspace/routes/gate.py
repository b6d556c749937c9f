"""Problem gate routes.

The gate is advisory, so these endpoints always answer 200 with the issue
list; an empty list means the gate passed.
"""

from fastapi import APIRouter, Depends

from ..dependencies import get_gate_validator
from ..schemas.case_schema import (
    GateStatus,
    GateValidationRequest,
    IssuesResponse,
    ProblemForm,
)
from ..services.gate_validator import GateValidator

router = APIRouter(
    prefix="/gate",
    tags=["Gate"],
)


@router.post(
    "/validate",
    response_model=GateStatus,
    summary="Evaluate the step 1 gate for a problem form",
)
def validate_form(
    form: ProblemForm,
    gate: GateValidator = Depends(get_gate_validator),
) -> GateStatus:
    return gate.evaluate(form)


@router.post(
    "/problem-statement",
    response_model=IssuesResponse,
    summary="Check a problem statement on its own",
)
def validate_problem_statement(
    body: GateValidationRequest,
    gate: GateValidator = Depends(get_gate_validator),
) -> IssuesResponse:
    issues = gate.validate_problem_statement(body.text)
    return IssuesResponse(passed=not issues, issues=issues)


@router.post(
    "/success-metric",
    response_model=IssuesResponse,
    summary="Check a success metric on its own",
)
def validate_success_metric(
    body: GateValidationRequest,
    gate: GateValidator = Depends(get_gate_validator),
) -> IssuesResponse:
    issues = gate.validate_success_metric(body.text)
    return IssuesResponse(passed=not issues, issues=issues)
