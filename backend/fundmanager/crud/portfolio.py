"""CRUD operations for portfolios, holdings and peer recommendations.

Models reference each other by id only; these lookups are how one entity
reaches another.
"""

from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.models.holding import Holding
from fundmanager.models.peer_recommendation import PeerRecommendation
from fundmanager.models.portfolio import Portfolio


class PortfolioCRUD:
    """CRUD operations for Portfolio model."""

    @staticmethod
    async def get_by_id(db: AsyncSession, portfolio_id: UUID) -> Optional[Portfolio]:
        """Get portfolio by ID."""
        result = await db.execute(select(Portfolio).where(Portfolio.id == portfolio_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def create_with_holdings(
        db: AsyncSession,
        name: str,
        rows: Sequence[tuple[str, Decimal]],
        owner_id: Optional[str] = None,
    ) -> tuple[Portfolio, List[Holding]]:
        """Create a portfolio and its holdings in one commit."""
        portfolio = Portfolio(name=name, owner_id=owner_id)
        db.add(portfolio)
        await db.flush()

        holdings = [
            Holding(portfolio_id=portfolio.id, ticker=ticker, weight_pct=weight)
            for ticker, weight in rows
        ]
        db.add_all(holdings)
        await db.commit()
        await db.refresh(portfolio)
        return portfolio, holdings

    @staticmethod
    async def delete(db: AsyncSession, portfolio: Portfolio) -> None:
        """Delete a portfolio; holdings and recommendations cascade."""
        await db.execute(delete(Portfolio).where(Portfolio.id == portfolio.id))
        await db.commit()


class HoldingCRUD:
    """CRUD operations for Holding model."""

    @staticmethod
    async def get_for_portfolio(
        db: AsyncSession, portfolio_id: UUID, holding_id: UUID
    ) -> Optional[Holding]:
        """Get a holding by ID, scoped to its portfolio."""
        result = await db.execute(
            select(Holding).where(
                Holding.id == holding_id,
                Holding.portfolio_id == portfolio_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_portfolio(db: AsyncSession, portfolio_id: UUID) -> List[Holding]:
        """List a portfolio's holdings, largest weight first."""
        result = await db.execute(
            select(Holding)
            .where(Holding.portfolio_id == portfolio_id)
            .order_by(Holding.weight_pct.desc(), Holding.ticker)
        )
        return list(result.scalars().all())


class PeerRecommendationCRUD:
    """CRUD operations for PeerRecommendation model."""

    @staticmethod
    async def list_by_holding(db: AsyncSession, holding_id: UUID) -> List[PeerRecommendation]:
        """List a holding's shortlist in rank order."""
        result = await db.execute(
            select(PeerRecommendation)
            .where(PeerRecommendation.holding_id == holding_id)
            .order_by(PeerRecommendation.rank)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_by_ticker(
        db: AsyncSession, holding_id: UUID, peer_ticker: str
    ) -> Optional[PeerRecommendation]:
        """Get the recommendation for `peer_ticker` in a holding's shortlist."""
        result = await db.execute(
            select(PeerRecommendation)
            .where(
                PeerRecommendation.holding_id == holding_id,
                PeerRecommendation.peer_ticker == peer_ticker,
            )
            .order_by(PeerRecommendation.rank)
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_for_holding(db: AsyncSession, holding_id: UUID) -> None:
        """Delete a holding's shortlist. Does not commit."""
        await db.execute(
            delete(PeerRecommendation).where(PeerRecommendation.holding_id == holding_id)
        )


portfolio_crud = PortfolioCRUD()
holding_crud = HoldingCRUD()
peer_recommendation_crud = PeerRecommendationCRUD()
