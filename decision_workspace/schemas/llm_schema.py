from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .roi_schema import RoiScores

LLMProvider = Literal["mock", "openai", "gemini", "deepseek"]


class LLMRequest(BaseModel):
    """Provider-agnostic text-generation request."""

    provider: Optional[LLMProvider] = Field(
        default=None,
        description="Provider to use. Defaults to the configured provider.",
    )
    system_prompt: str = "You are a helpful AI assistant."
    user_prompt: str = ""
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class LLMUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMResponse(BaseModel):
    text: str
    provider: LLMProvider
    model: Optional[str] = None
    usage: Optional[LLMUsage] = None
    latency_ms: Optional[float] = None


class ProviderStatus(BaseModel):
    provider: LLMProvider
    available: bool
    model: Optional[str] = None


class ProvidersResponse(BaseModel):
    default_provider: LLMProvider
    best_available: LLMProvider
    providers: List[ProviderStatus]


class ScoreSuggestion(BaseModel):
    """LLM-suggested scores. Never applied to a case automatically."""

    scores: Optional[RoiScores] = Field(
        default=None,
        description="Parsed suggestion, or null if the output could not be parsed",
    )
    issues: List[str] = Field(
        default_factory=list,
        description="validate_scores output for the suggestion, or a parse issue",
    )
    raw_text: str = ""
    provider: Optional[LLMProvider] = None


class SuggestionRequest(BaseModel):
    provider: Optional[LLMProvider] = None
