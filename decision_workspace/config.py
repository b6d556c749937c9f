"""Workspace settings.

Read once from the environment at startup and passed explicitly into the
calculator, the gate validator, the case service and the LLM client.
Nothing in the core reads ``os.environ`` on its own.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

LLM_PROVIDERS = ("mock", "openai", "gemini", "deepseek")


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_str(key: str, default: str) -> str:
    return (os.getenv(key) or default).strip()


@dataclass(frozen=True)
class ProviderConfig:
    """Connection details for one text-generation provider."""

    api_key: Optional[str]
    model: str
    base_url: str


@dataclass(frozen=True)
class WorkspaceSettings:
    roi_threshold_x: float = 0.5
    roi_threshold_y: float = 0.5
    min_problem_length: int = 15
    max_problem_length: int = 1000

    llm_provider: str = "mock"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1000
    llm_timeout: float = 40.0
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)

    debug: bool = False

    def provider_config(self, provider: str) -> Optional[ProviderConfig]:
        return self.providers.get(provider)


def _provider_from_env(prefix: str, model: str, base_url: str) -> ProviderConfig:
    api_key = os.getenv(f"{prefix}_API_KEY", "").strip() or None
    return ProviderConfig(
        api_key=api_key,
        model=_env_str(f"{prefix}_MODEL", model),
        base_url=_env_str(f"{prefix}_BASE_URL", base_url).rstrip("/"),
    )


def load_settings() -> WorkspaceSettings:
    """Build a ``WorkspaceSettings`` from environment variables.

    Malformed numbers fall back to their defaults. An unknown
    ``LLM_PROVIDER`` falls back to ``mock``.
    """
    provider = _env_str("LLM_PROVIDER", "mock").lower()
    if provider not in LLM_PROVIDERS:
        logger.warning("[CONFIG] Unknown LLM_PROVIDER %r, using mock", provider)
        provider = "mock"

    return WorkspaceSettings(
        roi_threshold_x=_env_float("ROI_THRESHOLD_X", 0.5),
        roi_threshold_y=_env_float("ROI_THRESHOLD_Y", 0.5),
        min_problem_length=_env_int("MIN_PROBLEM_LENGTH", 15),
        max_problem_length=_env_int("MAX_PROBLEM_LENGTH", 1000),
        llm_provider=provider,
        llm_temperature=_env_float("LLM_TEMPERATURE", 0.7),
        llm_max_tokens=_env_int("LLM_MAX_TOKENS", 1000),
        llm_timeout=_env_float("LLM_REQUEST_TIMEOUT", 40.0),
        providers={
            "openai": _provider_from_env(
                "OPENAI", "gpt-4o-mini", "https://api.openai.com/v1"
            ),
            "gemini": _provider_from_env(
                "GEMINI", "gemini-1.5-pro", "https://generativelanguage.googleapis.com"
            ),
            "deepseek": _provider_from_env(
                "DEEPSEEK", "deepseek-chat", "https://api.deepseek.com"
            ),
        },
        debug=os.getenv("DEBUG", "false").lower() == "true",
    )
