"""
Gemini language-model provider (REST generateContent endpoint).

Requires: GEMINI_API_KEY. Keys that do not look like Google API keys are
treated as missing. Failed calls are logged and answered by MockLanguageModel.
"""

import logging
from time import time
from typing import Any, Dict, Optional

import httpx

from fundmanager.config import settings
from fundmanager.core.exceptions import UpstreamUnavailable

from .base_provider import LanguageModel
from .mock_provider import MockLanguageModel

logger = logging.getLogger(__name__)

GOOGLE_API_KEY_PREFIX = "AIzaSy"


def is_valid_gemini_key(api_key: Optional[str]) -> bool:
    """Whether the key has the shape of a Google API key."""
    return bool(api_key) and api_key.startswith(GOOGLE_API_KEY_PREFIX)


def _extract_text(data: Dict[str, Any]) -> str:
    """Text of the first candidate part, or "" when absent."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


class GeminiProvider(LanguageModel):
    """Gemini implementation with mock fallback on any upstream failure."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        fallback: Optional[LanguageModel] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or settings.GEMINI_API_KEY
        if not is_valid_gemini_key(self._api_key):
            raise ValueError("GEMINI_API_KEY is not configured or is not a valid Google API key.")
        self.model = model or settings.GEMINI_MODEL
        self._api_base = (api_base or settings.GEMINI_API_BASE).rstrip("/")
        self._timeout = httpx.Timeout(timeout if timeout is not None else settings.GEMINI_TIMEOUT_SECONDS)
        self._fallback = fallback or MockLanguageModel()
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._api_base}/models/{self.model}:generateContent"

    async def complete(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.2) -> str:
        try:
            return await self._generate(prompt, max_tokens, temperature)
        except UpstreamUnavailable as e:
            logger.warning(f"Gemini API failed, using mock response: {e}")
            return await self._fallback.complete(prompt, max_tokens, temperature)

    async def _generate(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

        logger.info(
            "external_api_call",
            extra={"provider": "gemini", "operation": "generate_content", "model": self.model},
        )
        start_time = time()

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                f"HTTP {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamUnavailable(f"{type(exc).__name__}: {exc}") from exc

        text = _extract_text(data) if isinstance(data, dict) else ""
        logger.info(
            "external_api_success",
            extra={
                "provider": "gemini",
                "operation": "generate_content",
                "duration_ms": (time() - start_time) * 1000,
                "response_chars": len(text),
            },
        )
        return text

    def get_provider_name(self) -> str:
        return "Gemini"
