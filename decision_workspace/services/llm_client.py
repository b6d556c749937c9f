"""Provider-agnostic LLM client.

All text generation goes through ``LLMClient.generate_text()``.
This ensures:
  - Provider, model, temperature, timeout and token limits come from
    ``WorkspaceSettings``.
  - A provider without an API key degrades to the mock provider.
  - A failing real provider (HTTP error, timeout, malformed body) degrades
    to the mock provider instead of surfacing an error to the workflow.
  - Consistent logging across providers.

Generated text is advisory. Scores or statements derived from it must go
through the same validators as human input.
"""

from __future__ import annotations

import logging
import math
import re
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import WorkspaceSettings
from ..schemas.llm_schema import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ProviderStatus,
)
from .mock_llm import MOCK_MODEL, estimate_mock_tokens, generate_mock_text

logger = logging.getLogger(__name__)

PREFERRED_ORDER: tuple[LLMProvider, ...] = ("openai", "gemini", "deepseek", "mock")

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")


class LLMProviderError(Exception):
    """A real provider returned something unusable."""


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def estimate_tokens(text: str) -> int:
    """Rough token count: ~2 chars per CJK token, ~4 chars otherwise."""
    cjk = len(_CJK_RE.findall(text))
    other = len(text) - cjk
    return math.ceil(cjk / 2 + other / 4)


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    current = estimate_tokens(text)
    if current <= max_tokens:
        return text

    ratio = max_tokens / current
    target_length = math.floor(len(text) * ratio * 0.9)
    return text[:target_length] + "..."


# ---------------------------------------------------------------------------
# JSON sanitizer
# ---------------------------------------------------------------------------

def sanitize_json(raw: str) -> str:
    """Extract a JSON object from raw LLM output.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Prose before/after JSON
      - Trailing commas before } or ]

    Raises ValueError if no JSON object is found.
    """
    text = raw.strip().lstrip("\ufeff")

    if text.startswith("```"):
        parts = text.split("```")
        text = parts[1] if len(parts) >= 3 else text[3:]

    text = text.strip()
    if text.lower().startswith("json"):
        text = text[4:].strip()

    brace_idx = text.find("{")
    if brace_idx == -1:
        raise ValueError("LLM did not return a JSON object — no '{' found")
    text = text[brace_idx:]

    rbrace_idx = text.rfind("}")
    if rbrace_idx == -1:
        raise ValueError("LLM did not return a JSON object — no '}' found")
    text = text[: rbrace_idx + 1]

    return re.sub(r",\s*([}\]])", r"\1", text)


def _usage_from_openai(data: Dict[str, Any]) -> Optional[LLMUsage]:
    usage = data.get("usage")
    if not usage:
        return None
    return LLMUsage(
        prompt_tokens=usage.get("prompt_tokens", 0),
        completion_tokens=usage.get("completion_tokens", 0),
        total_tokens=usage.get("total_tokens", 0),
    )


def _gemini_model_path(model: str) -> str:
    trimmed = (model or "").strip()
    if not trimmed:
        return "models/gemini-1.5-pro"
    if "/" in trimmed:
        return trimmed.lstrip("/")
    return f"models/{trimmed}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class LLMClient:
    """Text-generation boundary bound to one ``WorkspaceSettings``.

    Parameters
    ----------
    settings : WorkspaceSettings
        Provider keys, models, default provider and generation limits.
    transport : httpx.AsyncBaseTransport, optional
        Custom transport, used by tests to stub provider APIs.
    """

    def __init__(
        self,
        settings: WorkspaceSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    # ── provider detection ─────────────────────────────────────────────

    def is_provider_available(self, provider: LLMProvider) -> bool:
        if provider == "mock":
            return True
        config = self.settings.provider_config(provider)
        return bool(config and config.api_key)

    def best_available_provider(self) -> LLMProvider:
        for provider in PREFERRED_ORDER:
            if self.is_provider_available(provider):
                return provider
        return "mock"

    def resolve_provider(self, requested: Optional[LLMProvider] = None) -> LLMProvider:
        return requested or self.settings.llm_provider  # type: ignore[return-value]

    def provider_statuses(self) -> List[ProviderStatus]:
        statuses = []
        for provider in PREFERRED_ORDER:
            config = self.settings.provider_config(provider)
            statuses.append(
                ProviderStatus(
                    provider=provider,
                    available=self.is_provider_available(provider),
                    model=config.model if config else MOCK_MODEL,
                )
            )
        return statuses

    # ── generation ─────────────────────────────────────────────────────

    async def generate_text(self, request: LLMRequest) -> LLMResponse:
        """Generate text with the requested (or configured) provider.

        Falls back to the mock provider when the provider is unavailable or
        fails. Only a failure of the mock provider itself propagates.
        """
        provider = self.resolve_provider(request.provider)

        if not self.is_provider_available(provider):
            logger.warning("[LLM] Provider %s not available, falling back to mock", provider)
            return self._generate_mock(request)

        if provider == "mock":
            return self._generate_mock(request)

        try:
            if provider == "gemini":
                return await self._generate_gemini(request)
            return await self._generate_openai_compatible(provider, request)
        except (httpx.HTTPError, LLMProviderError, KeyError, IndexError, ValueError) as exc:
            logger.error("[LLM] Generation with %s failed: %s", provider, exc)
            logger.info("[LLM] Falling back to mock provider")
            return self._generate_mock(request)

    async def generate_text_batch(self, requests: List[LLMRequest]) -> List[LLMResponse]:
        """Sequential batch. A failed request yields a placeholder response."""
        results: List[LLMResponse] = []
        for request in requests:
            try:
                results.append(await self.generate_text(request))
            except Exception as exc:
                logger.error("[LLM] Batch generation failed for one request: %s", exc)
                results.append(
                    LLMResponse(
                        text="Generation failed",
                        provider=request.provider or "mock",
                    )
                )
        return results

    # ── providers ──────────────────────────────────────────────────────

    def _temperature(self, request: LLMRequest) -> float:
        if request.temperature is None:
            return self.settings.llm_temperature
        return request.temperature

    def _max_tokens(self, request: LLMRequest) -> int:
        return request.max_tokens or self.settings.llm_max_tokens

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.llm_timeout, transport=self._transport)

    def _generate_mock(self, request: LLMRequest) -> LLMResponse:
        start = time.perf_counter()
        text = generate_mock_text(request.system_prompt, request.user_prompt)
        prompt_tokens = estimate_mock_tokens(request.system_prompt + request.user_prompt)
        completion_tokens = estimate_mock_tokens(text)

        return LLMResponse(
            text=text,
            provider="mock",
            model=MOCK_MODEL,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=estimate_mock_tokens(
                    request.system_prompt + request.user_prompt + text
                ),
            ),
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def _generate_openai_compatible(
        self,
        provider: LLMProvider,
        request: LLMRequest,
    ) -> LLMResponse:
        """OpenAI and DeepSeek share the chat completions API."""
        config = self.settings.provider_config(provider)
        assert config is not None
        start = time.perf_counter()

        payload = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": self._temperature(request),
            "max_tokens": self._max_tokens(request),
        }
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

        logger.info("[LLM] Calling %s model=%s", provider, config.model)
        async with self._client() as client:
            response = await client.post(
                f"{config.base_url}/chat/completions",
                headers=headers,
                json=payload,
            )

        if response.status_code != 200:
            raise LLMProviderError(
                f"{provider} API error: {response.status_code} {response.text[:400]}"
            )

        data = response.json()
        text = (data["choices"][0].get("message", {}).get("content") or "").strip()
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info("[LLM] %s responded in %.0fms", provider, latency_ms)

        return LLMResponse(
            text=text,
            provider=provider,
            model=config.model,
            usage=_usage_from_openai(data),
            latency_ms=latency_ms,
        )

    async def _generate_gemini(self, request: LLMRequest) -> LLMResponse:
        config = self.settings.provider_config("gemini")
        assert config is not None
        start = time.perf_counter()

        payload = {
            "systemInstruction": {"parts": [{"text": request.system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": request.user_prompt}]}],
            "generationConfig": {
                "temperature": self._temperature(request),
                "maxOutputTokens": self._max_tokens(request),
            },
        }
        url = f"{config.base_url}/v1beta/{_gemini_model_path(config.model)}:generateContent"

        logger.info("[LLM] Calling gemini model=%s", config.model)
        async with self._client() as client:
            response = await client.post(
                url,
                params={"key": config.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )

        if response.status_code != 200:
            raise LLMProviderError(
                f"Gemini API error: {response.status_code} {response.text[:400]}"
            )

        data = response.json()
        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or [{}]
        text = parts[0].get("text") or ""

        return LLMResponse(
            text=text,
            provider="gemini",
            model=config.model,
            latency_ms=(time.perf_counter() - start) * 1000,
        )
