"""Text-generation routes."""

from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_llm_client
from ..schemas.llm_schema import LLMRequest, LLMResponse, ProvidersResponse
from ..services.llm_client import LLMClient

router = APIRouter(prefix="/llm", tags=["LLM"])


@router.get("/providers", response_model=ProvidersResponse, summary="Provider availability")
def providers(client: LLMClient = Depends(get_llm_client)) -> ProvidersResponse:
    return ProvidersResponse(
        default_provider=client.resolve_provider(),
        best_available=client.best_available_provider(),
        providers=client.provider_statuses(),
    )


@router.post("/generate", response_model=LLMResponse, summary="Generate text")
async def generate(
    body: LLMRequest,
    client: LLMClient = Depends(get_llm_client),
) -> LLMResponse:
    """Generate text with the requested provider, degrading to mock on failure."""
    return await client.generate_text(body)


@router.post(
    "/generate-batch",
    response_model=List[LLMResponse],
    summary="Generate text for several requests",
)
async def generate_batch(
    body: List[LLMRequest],
    client: LLMClient = Depends(get_llm_client),
) -> List[LLMResponse]:
    """Run requests in order; a request that fails yields a placeholder response."""
    return await client.generate_text_batch(body)
