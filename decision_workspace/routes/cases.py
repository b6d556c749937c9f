"""Case workflow routes — create, step submissions, export, AI suggestions."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from ..dependencies import get_case_service, get_llm_client
from ..schemas.case_schema import (
    Case,
    CaseCreateRequest,
    CaseListResponse,
    DecisionModel,
    FitModel,
    ProblemForm,
    RationaleConfirmRequest,
    RoiUpdateRequest,
    RoiUpdateResponse,
    SummaryCache,
    TargetStepResponse,
)
from ..schemas.llm_schema import LLMResponse, ScoreSuggestion, SuggestionRequest
from ..services.case_service import (
    CaseImportError,
    CaseNotFoundError,
    CaseService,
    WorkflowOrderError,
    WorkspaceError,
)
from ..services.llm_client import LLMClient
from ..services.roi_calculator import DEFAULT_SCORES, DEFAULT_WEIGHTS
from ..services.suggestion_service import (
    suggest_interview_questions,
    suggest_problem_rewrite,
    suggest_recommendation,
    suggest_score_notes,
    suggest_scores,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["Cases"])


# ===================================================================== #
#  Utility: workspace errors -> HTTP                                      #
# ===================================================================== #

def _http_error(exc: WorkspaceError) -> HTTPException:
    if isinstance(exc, CaseNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _provider(body: Optional[SuggestionRequest]):
    return body.provider if body else None


# ===================================================================== #
#  CRUD                                                                   #
# ===================================================================== #

@router.post(
    "",
    response_model=Case,
    status_code=status.HTTP_201_CREATED,
    summary="Create a case",
)
def create_case(
    body: CaseCreateRequest,
    service: CaseService = Depends(get_case_service),
) -> Case:
    """Create a blank case, or the seeded sample case when ``sample`` is set."""
    return service.create_case(title=body.title, sample=body.sample)


@router.get("", response_model=CaseListResponse, summary="List cases")
def list_cases(
    include_archived: bool = Query(False),
    service: CaseService = Depends(get_case_service),
) -> CaseListResponse:
    return CaseListResponse(cases=service.list_cases(include_archived=include_archived))


@router.post(
    "/import",
    response_model=Case,
    status_code=status.HTTP_201_CREATED,
    summary="Register a case from its JSON document",
)
async def import_case(
    request: Request,
    service: CaseService = Depends(get_case_service),
) -> Case:
    raw = await request.body()
    try:
        return service.import_case(raw)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )
    except CaseImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"issues": exc.issues},
        )


@router.get("/{case_id}", response_model=Case, summary="Get a case")
def get_case(case_id: str, service: CaseService = Depends(get_case_service)) -> Case:
    try:
        return service.get_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.get("/{case_id}/json", summary="Case as an opaque JSON document")
def case_json(case_id: str, service: CaseService = Depends(get_case_service)) -> Response:
    try:
        raw = service.export_raw(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return Response(content=raw, media_type="application/json")


@router.delete(
    "/{case_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a case",
)
def delete_case(case_id: str, service: CaseService = Depends(get_case_service)) -> Response:
    try:
        service.delete_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{case_id}/archive", response_model=Case, summary="Archive a case")
def archive_case(case_id: str, service: CaseService = Depends(get_case_service)) -> Case:
    try:
        return service.archive_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.get(
    "/{case_id}/target-step",
    response_model=TargetStepResponse,
    summary="Step a returning user should land on",
)
def target_step(
    case_id: str,
    service: CaseService = Depends(get_case_service),
) -> TargetStepResponse:
    try:
        return TargetStepResponse(case_id=case_id, target=service.target_step(case_id))
    except WorkspaceError as exc:
        raise _http_error(exc)


# ===================================================================== #
#  Workflow steps                                                         #
# ===================================================================== #

@router.put("/{case_id}/step1", response_model=Case, summary="Submit the problem form")
def submit_step1(
    case_id: str,
    form: ProblemForm,
    service: CaseService = Depends(get_case_service),
) -> Case:
    """Store the form and re-run the gate. Gate issues are returned on the case."""
    try:
        return service.submit_problem_form(case_id, form)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.put("/{case_id}/step2a", response_model=Case, summary="Save the AI fit model")
def submit_step2a(
    case_id: str,
    model: FitModel,
    service: CaseService = Depends(get_case_service),
) -> Case:
    try:
        return service.save_fit_model(case_id, model)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.put(
    "/{case_id}/step2b",
    response_model=RoiUpdateResponse,
    summary="Score ROI and place the case in a quadrant",
)
def submit_step2b(
    case_id: str,
    body: RoiUpdateRequest,
    service: CaseService = Depends(get_case_service),
) -> RoiUpdateResponse:
    """Recompute the ROI model.

    Validation issues leave the case unchanged and are listed in ``issues``.
    """
    try:
        case, issues = service.update_roi(case_id, body.weights, body.scores, body.rationale)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return RoiUpdateResponse(case=case, issues=issues)


@router.post(
    "/{case_id}/step2b/confirm",
    response_model=Case,
    summary="Confirm (and optionally edit) the quadrant rationale",
)
def confirm_rationale(
    case_id: str,
    body: RationaleConfirmRequest,
    service: CaseService = Depends(get_case_service),
) -> Case:
    try:
        return service.confirm_rationale(case_id, body.text)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.put("/{case_id}/step3", response_model=Case, summary="Record the decision")
def submit_step3(
    case_id: str,
    model: DecisionModel,
    service: CaseService = Depends(get_case_service),
) -> Case:
    try:
        return service.save_decision(case_id, model)
    except WorkspaceError as exc:
        raise _http_error(exc)


# ===================================================================== #
#  Export                                                                 #
# ===================================================================== #

@router.post(
    "/{case_id}/export",
    response_model=SummaryCache,
    summary="Render and store the decision summary",
)
def export_case(
    case_id: str,
    service: CaseService = Depends(get_case_service),
) -> SummaryCache:
    try:
        return service.export_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)


@router.get(
    "/{case_id}/export/markdown",
    response_class=PlainTextResponse,
    summary="Markdown decision summary",
)
def export_markdown(
    case_id: str,
    service: CaseService = Depends(get_case_service),
) -> PlainTextResponse:
    try:
        markdown = service.render_markdown(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return PlainTextResponse(markdown, media_type="text/markdown; charset=utf-8")


# ===================================================================== #
#  AI suggestions (advisory, never applied)                               #
# ===================================================================== #

@router.post(
    "/{case_id}/suggest-scores",
    response_model=ScoreSuggestion,
    summary="Ask the LLM for ROI scores",
)
async def suggest_case_scores(
    case_id: str,
    body: Optional[SuggestionRequest] = None,
    service: CaseService = Depends(get_case_service),
    client: LLMClient = Depends(get_llm_client),
) -> ScoreSuggestion:
    try:
        case = service.get_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)

    if case.step2b:
        weights, scores = case.step2b.model.weights, case.step2b.model.scores
    else:
        weights, scores = DEFAULT_WEIGHTS, DEFAULT_SCORES

    logger.info("[CASE] Score suggestion requested for %s", case_id)
    return await suggest_scores(client, weights, scores, case.step1.form, _provider(body))


@router.post(
    "/{case_id}/suggest-questions",
    response_model=LLMResponse,
    summary="Clarifying interview questions for the problem",
)
async def suggest_questions(
    case_id: str,
    body: Optional[SuggestionRequest] = None,
    service: CaseService = Depends(get_case_service),
    client: LLMClient = Depends(get_llm_client),
) -> LLMResponse:
    try:
        case = service.get_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return await suggest_interview_questions(client, case.step1.form, _provider(body))


@router.post(
    "/{case_id}/suggest-rewrite",
    response_model=LLMResponse,
    summary="Rewrite the problem statement without naming a solution",
)
async def suggest_rewrite(
    case_id: str,
    body: Optional[SuggestionRequest] = None,
    service: CaseService = Depends(get_case_service),
    client: LLMClient = Depends(get_llm_client),
) -> LLMResponse:
    try:
        case = service.get_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)
    return await suggest_problem_rewrite(client, case.step1.form, _provider(body))


@router.post(
    "/{case_id}/suggest-score-notes",
    response_model=LLMResponse,
    summary="Free-text advice on the current ROI scores",
)
async def suggest_notes(
    case_id: str,
    body: Optional[SuggestionRequest] = None,
    service: CaseService = Depends(get_case_service),
    client: LLMClient = Depends(get_llm_client),
) -> LLMResponse:
    try:
        case = service.get_case(case_id)
        if case.step2b is None:
            raise WorkflowOrderError(f"Case {case_id} has no ROI model yet")
    except WorkspaceError as exc:
        raise _http_error(exc)
    return await suggest_score_notes(client, case.step2b.model, _provider(body))


@router.post(
    "/{case_id}/suggest-recommendation",
    response_model=LLMResponse,
    summary="Recommendation based on AI fit and ROI",
)
async def suggest_case_recommendation(
    case_id: str,
    body: Optional[SuggestionRequest] = None,
    service: CaseService = Depends(get_case_service),
    client: LLMClient = Depends(get_llm_client),
) -> LLMResponse:
    try:
        case = service.get_case(case_id)
    except WorkspaceError as exc:
        raise _http_error(exc)

    fit = case.step2a.model if case.step2a else None
    roi = case.step2b.model if case.step2b else None
    return await suggest_recommendation(client, fit, roi, _provider(body))
