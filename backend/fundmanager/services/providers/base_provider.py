"""
Provider interfaces for the financial-data source and the language model.

Each interface has a live implementation (Valyu, Gemini) and a mock
implementation; provider_factory picks one from configuration. Live
implementations hand over to their mock counterpart whenever the upstream
call fails, so callers never see upstream errors.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class SourceCitation(BaseModel):
    """Where a piece of provider data came from."""

    title: Optional[str] = None
    url: Optional[str] = None
    dataset_name: Optional[str] = None


class EnrichmentData(BaseModel):
    """Sector, market cap and carbon data for one ticker."""

    ticker: str
    sector: Optional[str] = None
    market_cap: Optional[Decimal] = None
    co2_emission: Optional[Decimal] = None
    sources: List[SourceCitation] = Field(default_factory=list)

    @field_validator("sources", mode="before")
    @classmethod
    def _none_sources_to_empty(cls, v: Any) -> Any:
        return v or []


class PeerCandidate(BaseModel):
    """
    A company returned by a peer search.

    Raw search records are validated into this type once, at the provider
    boundary; filtering, ranking and persistence all work on it.
    """

    ticker: str
    sector: Optional[str] = None
    market_cap: Optional[Decimal] = None
    co2_emission: Optional[Decimal] = None
    sources: List[SourceCitation] = Field(default_factory=list)

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be blank")
        return v

    @field_validator("sources", mode="before")
    @classmethod
    def _none_sources_to_empty(cls, v: Any) -> Any:
        return v or []


class SearchResult(BaseModel):
    """Single free-text search hit. Unknown fields are kept for prompt context."""

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None


class SearchResponse(BaseModel):
    """Free-text search response. Unknown top-level fields are kept as returned."""

    model_config = ConfigDict(extra="allow")

    results: List[SearchResult] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def _none_results_to_empty(cls, v: Any) -> Any:
        return v or []


def parse_peer_candidates(raw_results: Iterable[Any]) -> List[PeerCandidate]:
    """Validate raw search records into PeerCandidates, dropping unusable ones."""
    candidates: List[PeerCandidate] = []
    for raw in raw_results:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object peer search result: %r", raw)
            continue
        try:
            candidates.append(PeerCandidate.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid peer search result %s: %s",
                raw.get("ticker"),
                e.errors()[0]["msg"] if e.errors() else e,
            )
    return candidates


class FinancialDataProvider(ABC):
    """
    Abstract base class for the financial-data source.

    Implementations: ValyuProvider, MockFinancialDataProvider
    """

    @abstractmethod
    async def enrich_holding(self, ticker: str) -> EnrichmentData:
        """
        Get sector, market cap and CO2 emission for a ticker.

        Never raises for upstream failures: returns a zeroed record with
        sector "Unknown" instead.
        """

    @abstractmethod
    async def search_companies(self, query: str, max_results: int = 100) -> List[PeerCandidate]:
        """
        Search for candidate peer companies.

        Never raises for upstream failures: returns an empty list instead.
        """

    @abstractmethod
    async def search(
        self,
        query: str,
        included_sources: Optional[List[str]] = None,
        max_num_results: Optional[int] = None,
        relevance_threshold: Optional[float] = None,
    ) -> SearchResponse:
        """
        Free-text search over financial and ESG sources.

        Never raises for upstream failures: returns templated mock results instead.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get human-readable provider name."""


class LanguageModel(ABC):
    """
    Abstract base class for text completion.

    Implementations: GeminiProvider, MockLanguageModel
    """

    @abstractmethod
    async def complete(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.2) -> str:
        """
        Complete a prompt and return the generated text.

        Never raises for upstream failures: returns deterministic mock text
        keyed on the prompt instead.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get human-readable provider name."""
