"""
Valyu financial-data provider.

- POST {VALYU_API_URL}/enrich  → sector, market cap, CO2 emission for a ticker
- POST {VALYU_API_URL}/search  → candidate peer companies
- POST {VALYU_SEARCH_URL}      → free-text deep search (financial / ESG documents)

Requires: VALYU_API_KEY. Every failed call (network error, timeout, non-2xx,
unparseable body) is logged and answered by the mock provider instead.
"""

import logging
from time import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from fundmanager.config import settings
from fundmanager.core.exceptions import UpstreamUnavailable

from .base_provider import (
    EnrichmentData,
    FinancialDataProvider,
    PeerCandidate,
    SearchResponse,
    parse_peer_candidates,
)
from .mock_provider import MockFinancialDataProvider

logger = logging.getLogger(__name__)

ENRICHMENT_FIELDS = ["sector", "market_cap", "co2_emission"]


class ValyuProvider(FinancialDataProvider):
    """Valyu implementation with mock fallback on any upstream failure."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        search_url: Optional[str] = None,
        timeout: Optional[float] = None,
        fallback: Optional[FinancialDataProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or settings.VALYU_API_KEY
        if not self._api_key:
            raise ValueError("VALYU_API_KEY is not configured.")
        self._api_url = (api_url or settings.VALYU_API_URL).rstrip("/")
        self._search_url = search_url or settings.VALYU_SEARCH_URL
        self._timeout = httpx.Timeout(timeout if timeout is not None else settings.VALYU_TIMEOUT_SECONDS)
        self._fallback = fallback or MockFinancialDataProvider()
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, url: str, payload: Dict[str, Any], operation: str) -> Dict[str, Any]:
        """POST JSON and return the decoded object, or raise UpstreamUnavailable."""
        logger.info(
            "external_api_call",
            extra={"provider": "valyu", "operation": operation},
        )
        start_time = time()

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=self._headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "external_api_failure",
                extra={
                    "provider": "valyu",
                    "operation": operation,
                    "status_code": exc.response.status_code,
                    "duration_ms": (time() - start_time) * 1000,
                    "error": exc.response.text[:200],
                },
            )
            raise UpstreamUnavailable(
                f"Valyu {operation} returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            # ValueError: body was not JSON
            logger.warning(
                "external_api_failure",
                extra={
                    "provider": "valyu",
                    "operation": operation,
                    "duration_ms": (time() - start_time) * 1000,
                    "error": f"{type(exc).__name__}: {exc}",
                },
            )
            raise UpstreamUnavailable(f"Valyu {operation} failed: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"Valyu {operation} returned a non-object body")

        logger.info(
            "external_api_success",
            extra={
                "provider": "valyu",
                "operation": operation,
                "duration_ms": (time() - start_time) * 1000,
            },
        )
        return data

    async def enrich_holding(self, ticker: str) -> EnrichmentData:
        """Enrich a ticker; zeroed "Unknown" record on failure."""
        try:
            data = await self._post(
                f"{self._api_url}/enrich",
                {"ticker": ticker, "fields": ENRICHMENT_FIELDS},
                "enrich_holding",
            )
            return EnrichmentData.model_validate({**data, "ticker": data.get("ticker") or ticker})
        except (UpstreamUnavailable, ValidationError) as e:
            logger.warning(f"Failed to enrich {ticker}, using default data: {e}")
            return await self._fallback.enrich_holding(ticker)

    async def search_companies(self, query: str, max_results: int = 100) -> List[PeerCandidate]:
        """Search for peer candidates; empty list on failure."""
        try:
            data = await self._post(
                f"{self._api_url}/search",
                {"query": query, "max_num_results": max_results},
                "search_companies",
            )
        except UpstreamUnavailable as e:
            logger.warning(f"Valyu company search failed, no candidates: {e}")
            return await self._fallback.search_companies(query, max_results)

        results = data.get("results") or []
        if not isinstance(results, list):
            logger.warning("Valyu company search returned non-list results")
            return await self._fallback.search_companies(query, max_results)
        return parse_peer_candidates(results)

    async def search(
        self,
        query: str,
        included_sources: Optional[List[str]] = None,
        max_num_results: Optional[int] = None,
        relevance_threshold: Optional[float] = None,
    ) -> SearchResponse:
        """Deep search; templated mock results on failure."""
        payload: Dict[str, Any] = {"query": query}
        if included_sources is not None:
            payload["included_sources"] = included_sources
        if max_num_results is not None:
            payload["max_num_results"] = max_num_results
        if relevance_threshold is not None:
            payload["relevance_threshold"] = relevance_threshold

        try:
            data = await self._post(self._search_url, payload, "search")
            return SearchResponse.model_validate(data)
        except (UpstreamUnavailable, ValidationError) as e:
            logger.warning(f"Valyu search failed, using mock response: {e}")
            return await self._fallback.search(
                query,
                included_sources=included_sources,
                max_num_results=max_num_results,
                relevance_threshold=relevance_threshold,
            )

    def get_provider_name(self) -> str:
        return "Valyu"
