"""
Provider factory.

Centralizes the live/mock selection for the financial-data provider and the
language model.
"""

import logging
from typing import Optional

from fundmanager.config import settings

from .base_provider import FinancialDataProvider, LanguageModel
from .gemini_provider import is_valid_gemini_key
from .mock_provider import MockFinancialDataProvider, MockLanguageModel

logger = logging.getLogger(__name__)


class ProviderFactory:
    """Factory for creating financial-data and language-model providers."""

    _financial_instance: Optional[FinancialDataProvider] = None
    _llm_instance: Optional[LanguageModel] = None

    @classmethod
    def get_financial_data_provider(cls, provider_name: Optional[str] = None) -> FinancialDataProvider:
        """
        Get financial-data provider instance.

        Args:
            provider_name: Override provider (valyu, mock).
                          If None, uses settings.FINANCIAL_DATA_PROVIDER

        Returns:
            FinancialDataProvider instance; the mock provider when Valyu is
            selected but VALYU_API_KEY is not set

        Raises:
            ValueError: If provider not supported
        """
        if provider_name is None and cls._financial_instance is not None:
            return cls._financial_instance

        use_default = provider_name is None
        provider_name = (provider_name or settings.FINANCIAL_DATA_PROVIDER).lower()

        if provider_name == "valyu":
            if settings.VALYU_API_KEY:
                # Import only if needed
                from .valyu_provider import ValyuProvider
                provider: FinancialDataProvider = ValyuProvider()
            else:
                logger.warning("VALYU_API_KEY not set - using mock financial data")
                provider = MockFinancialDataProvider()
        elif provider_name == "mock":
            provider = MockFinancialDataProvider()
        else:
            raise ValueError(
                f"Unsupported financial data provider: {provider_name}. "
                f"Supported: valyu, mock"
            )

        logger.info(f"Using financial data provider: {provider.get_provider_name()}")

        if use_default:
            cls._financial_instance = provider

        return provider

    @classmethod
    def get_language_model(cls, provider_name: Optional[str] = None) -> LanguageModel:
        """
        Get language-model provider instance.

        Args:
            provider_name: Override provider (gemini, mock).
                          If None, uses settings.LLM_PROVIDER

        Returns:
            LanguageModel instance; the mock model when Gemini is selected
            but no valid GEMINI_API_KEY is set

        Raises:
            ValueError: If provider not supported
        """
        if provider_name is None and cls._llm_instance is not None:
            return cls._llm_instance

        use_default = provider_name is None
        provider_name = (provider_name or settings.LLM_PROVIDER).lower()

        if provider_name == "gemini":
            if is_valid_gemini_key(settings.GEMINI_API_KEY):
                from .gemini_provider import GeminiProvider
                provider: LanguageModel = GeminiProvider()
            else:
                logger.warning("Using mock Gemini API responses (no valid API key)")
                provider = MockLanguageModel()
        elif provider_name == "mock":
            provider = MockLanguageModel()
        else:
            raise ValueError(
                f"Unsupported language model provider: {provider_name}. "
                f"Supported: gemini, mock"
            )

        logger.info(f"Using language model: {provider.get_provider_name()}")

        if use_default:
            cls._llm_instance = provider

        return provider

    @classmethod
    def reset(cls) -> None:
        """Drop cached default instances (settings changed, tests)."""
        cls._financial_instance = None
        cls._llm_instance = None


def get_financial_data_provider(provider_name: Optional[str] = None) -> FinancialDataProvider:
    """Convenience function to get the financial-data provider."""
    return ProviderFactory.get_financial_data_provider(provider_name)


def get_language_model(provider_name: Optional[str] = None) -> LanguageModel:
    """Convenience function to get the language model."""
    return ProviderFactory.get_language_model(provider_name)
