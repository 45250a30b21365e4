"""Service for portfolio creation, enrichment and carbon metrics."""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.core.exceptions import NotFoundError, PortfolioValidationError
from fundmanager.crud.portfolio import holding_crud, portfolio_crud
from fundmanager.models.holding import Holding
from fundmanager.models.portfolio import Portfolio
from fundmanager.schemas.portfolio import PortfolioMetrics
from fundmanager.services.providers import FinancialDataProvider, get_financial_data_provider
from fundmanager.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

WEIGHT_TOTAL = Decimal("100")
WEIGHT_TOLERANCE = Decimal("0.01")


class PortfolioService:
    """Service for portfolio operations."""

    @staticmethod
    def validate_weights(rows: Sequence[Tuple[str, Decimal]]) -> None:
        """
        Holdings must be non-empty, each weight within 0-100, and the weights
        must sum to 100 (within 0.01 tolerance).

        Raises:
            PortfolioValidationError: If any rule is broken
        """
        if not rows:
            raise PortfolioValidationError("Portfolio must contain at least one holding")

        for ticker, weight in rows:
            if weight < 0 or weight > WEIGHT_TOTAL:
                raise PortfolioValidationError(
                    f"Weight for {ticker} must be between 0 and 100, got {weight}"
                )

        total = sum((weight for _, weight in rows), Decimal("0"))
        if abs(total - WEIGHT_TOTAL) > WEIGHT_TOLERANCE:
            raise PortfolioValidationError(f"Weights must sum to 100, got {total}")

    @staticmethod
    async def create_portfolio(
        db: AsyncSession,
        name: str,
        rows: Sequence[Tuple[str, Decimal]],
        owner_id: Optional[str] = None,
    ) -> Tuple[Portfolio, List[Holding]]:
        """
        Validate rows and create the portfolio with its holdings.

        Nothing is persisted when validation fails.
        """
        normalized = [(ticker.strip().upper(), Decimal(weight)) for ticker, weight in rows]
        PortfolioService.validate_weights(normalized)

        portfolio, _ = await portfolio_crud.create_with_holdings(db, name, normalized, owner_id)
        holdings = await holding_crud.list_by_portfolio(db, portfolio.id)

        logger.info(f"Created portfolio {portfolio.id} with {len(holdings)} holdings")
        return portfolio, holdings

    @staticmethod
    async def get_portfolio(db: AsyncSession, portfolio_id: UUID) -> Tuple[Portfolio, List[Holding]]:
        """
        Get a portfolio and its holdings, largest weight first.

        Raises:
            NotFoundError: If the portfolio does not exist
        """
        portfolio = await portfolio_crud.get_by_id(db, portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio not found")
        holdings = await holding_crud.list_by_portfolio(db, portfolio_id)
        return portfolio, holdings

    @staticmethod
    async def get_holding(db: AsyncSession, portfolio_id: UUID, holding_id: UUID) -> Holding:
        """
        Get a holding of a portfolio.

        Raises:
            NotFoundError: If the holding does not exist in that portfolio
        """
        holding = await holding_crud.get_for_portfolio(db, portfolio_id, holding_id)
        if holding is None:
            raise NotFoundError("Holding not found")
        return holding

    @staticmethod
    async def analyse_portfolio(
        db: AsyncSession,
        portfolio_id: UUID,
        provider: Optional[FinancialDataProvider] = None,
    ) -> int:
        """
        Enrich every holding with sector, market cap and CO2 emission.

        Holdings are enriched one at a time; the provider never raises, so an
        upstream outage degrades to zeroed data with sector "Unknown".

        Returns:
            Number of holdings enriched
        """
        _, holdings = await PortfolioService.get_portfolio(db, portfolio_id)
        provider = provider or get_financial_data_provider()
        provider_name = provider.get_provider_name()

        for holding in holdings:
            data = await provider.enrich_holding(holding.ticker)
            holding.sector = data.sector
            holding.market_cap = data.market_cap
            holding.co2_emission = data.co2_emission
            holding.data_sources = {
                "provider": provider_name,
                "updated": utc_now_iso(),
                "sources": [s.model_dump() for s in data.sources],
            }

        await db.commit()
        logger.info(f"Enriched {len(holdings)} holdings of portfolio {portfolio_id} via {provider_name}")
        return len(holdings)

    @staticmethod
    async def get_metrics(db: AsyncSession, portfolio_id: UUID) -> PortfolioMetrics:
        """Carbon summary: counts, total weight and weight-averaged CO2 emission."""
        _, holdings = await PortfolioService.get_portfolio(db, portfolio_id)

        total_weight = sum((Decimal(h.weight_pct) for h in holdings), Decimal("0"))
        analyzed = [h for h in holdings if h.is_analyzed]
        with_co2 = [h for h in analyzed if h.co2_emission is not None]

        weighted_avg = None
        co2_weight = sum((Decimal(h.weight_pct) for h in with_co2), Decimal("0"))
        if co2_weight > 0:
            weighted_avg = (
                sum(Decimal(h.weight_pct) * Decimal(h.co2_emission) for h in with_co2) / co2_weight
            ).quantize(Decimal("0.0001"))

        return PortfolioMetrics(
            portfolio_id=portfolio_id,
            holdings_count=len(holdings),
            analyzed_count=len(analyzed),
            total_weight_pct=total_weight,
            weighted_avg_co2_emission=weighted_avg,
        )

    @staticmethod
    async def delete_portfolio(db: AsyncSession, portfolio_id: UUID) -> None:
        """Delete a portfolio with its holdings and peer recommendations."""
        portfolio = await portfolio_crud.get_by_id(db, portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio not found")
        await portfolio_crud.delete(db, portfolio)
        logger.info(f"Deleted portfolio {portfolio_id}")


portfolio_service = PortfolioService()
