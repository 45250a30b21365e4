"""
External data providers behind stable interfaces.

- Financial data: Valyu (live) or mock
- Language model: Gemini (live) or mock

Live providers substitute mock data on any upstream failure.
"""

from .base_provider import (
    EnrichmentData,
    FinancialDataProvider,
    LanguageModel,
    PeerCandidate,
    SearchResponse,
    SearchResult,
    SourceCitation,
)
from .mock_provider import MockFinancialDataProvider, MockLanguageModel
from .provider_factory import get_financial_data_provider, get_language_model

__all__ = [
    "EnrichmentData",
    "FinancialDataProvider",
    "LanguageModel",
    "PeerCandidate",
    "SearchResponse",
    "SearchResult",
    "SourceCitation",
    "MockFinancialDataProvider",
    "MockLanguageModel",
    "get_financial_data_provider",
    "get_language_model",
]
