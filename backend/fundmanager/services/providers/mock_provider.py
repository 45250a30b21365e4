"""
Deterministic stand-ins for the live providers.

Used when no credential is configured, when mock mode is selected, and as the
fallback of every live call that fails. Lets the whole API run and be demoed
with no external services.
"""

import json
from decimal import Decimal
from typing import List, Optional

from .base_provider import (
    EnrichmentData,
    FinancialDataProvider,
    LanguageModel,
    PeerCandidate,
    SearchResponse,
    SearchResult,
)

MOCK_SIMILAR_COMPANIES = [
    "Apple Inc.",
    "Microsoft Corporation",
    "Alphabet Inc.",
    "Amazon.com Inc.",
    "Meta Platforms Inc.",
]

MOCK_EXTRACTION = {
    "company": "Shell",
    "free_cash_flow_2024": "$15.2B",
    "market_cap_2024": "$240B",
    "sector": "Energy",
    "carbon_emissions_2024": "156",
    "source_ids": [1, 2, 3],
}


class MockFinancialDataProvider(FinancialDataProvider):
    """Financial-data provider returning degraded-mode data."""

    async def enrich_holding(self, ticker: str) -> EnrichmentData:
        return EnrichmentData(
            ticker=ticker,
            sector="Unknown",
            market_cap=Decimal("0"),
            co2_emission=Decimal("0"),
            sources=[],
        )

    async def search_companies(self, query: str, max_results: int = 100) -> List[PeerCandidate]:
        # No candidates: peer finding degrades to an empty shortlist
        return []

    async def search(
        self,
        query: str,
        included_sources: Optional[List[str]] = None,
        max_num_results: Optional[int] = None,
        relevance_threshold: Optional[float] = None,
    ) -> SearchResponse:
        return SearchResponse(
            results=[
                SearchResult(
                    title=f"Sample Financial Report - {query}",
                    url="https://example.com/report1",
                    content=f"Sample financial data for {query} in 2024",
                ),
                SearchResult(
                    title=f"ESG Report - {query}",
                    url="https://example.com/report2",
                    content=f"Environmental, Social, and Governance report for {query}",
                ),
            ]
        )

    def get_provider_name(self) -> str:
        return "Mock Financial Data"


class MockLanguageModel(LanguageModel):
    """Language model returning fixed responses keyed on the prompt text."""

    async def complete(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.2) -> str:
        if "Extract financial" in prompt:
            return json.dumps(MOCK_EXTRACTION)
        if "similar" in prompt:
            return json.dumps(MOCK_SIMILAR_COMPANIES)
        return json.dumps([])

    def get_provider_name(self) -> str:
        return "Mock Language Model"
