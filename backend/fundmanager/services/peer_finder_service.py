"""Find and store lower-carbon peer recommendations for a holding."""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.crud.portfolio import peer_recommendation_crud
from fundmanager.models.holding import Holding
from fundmanager.models.peer_recommendation import PeerRecommendation
from fundmanager.services.peer_selection import (
    ensure_analyzed,
    filter_candidates,
    rank_candidates,
)
from fundmanager.services.providers import FinancialDataProvider, PeerCandidate
from fundmanager.services.providers import get_financial_data_provider

logger = logging.getLogger(__name__)

PEER_SEARCH_MAX_RESULTS = 100


def _format_market_cap(market_cap: Decimal) -> str:
    """Plain (non-scientific) rendering, without trailing zeros."""
    value = Decimal(market_cap)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")


def build_peer_query(holding: Holding) -> str:
    """Search query for companies comparable to the holding."""
    return (
        f"top 100 public companies in sector {holding.sector} "
        f"with market cap around {_format_market_cap(holding.market_cap)}"
    )


class PeerFinderService:
    """Service for building a holding's peer shortlist."""

    @staticmethod
    def _build_recommendations(
        holding: Holding, ranked: Sequence[PeerCandidate]
    ) -> List[PeerRecommendation]:
        return [
            PeerRecommendation(
                portfolio_id=holding.portfolio_id,
                holding_id=holding.id,
                peer_ticker=candidate.ticker,
                peer_sector=candidate.sector,
                peer_market_cap=candidate.market_cap,
                peer_co2_emission=candidate.co2_emission,
                rank=position + 1,
                sources=[s.model_dump() for s in candidate.sources],
            )
            for position, candidate in enumerate(ranked)
        ]

    @staticmethod
    async def find_peers(
        db: AsyncSession,
        holding: Holding,
        provider: Optional[FinancialDataProvider] = None,
    ) -> List[PeerRecommendation]:
        """
        Search, filter and rank peers for an analyzed holding and store them.

        The holding's previous shortlist is deleted and the new one inserted
        in a single transaction; on failure the previous shortlist is kept.

        Args:
            db: Database session
            holding: Holding to find peers for
            provider: Financial-data provider (defaults to the configured one)

        Returns:
            Stored recommendations ordered by rank (possibly empty)

        Raises:
            PreconditionError: If the holding has not been analyzed
        """
        ensure_analyzed(holding)
        provider = provider or get_financial_data_provider()
        holding_id = holding.id

        query = build_peer_query(holding)
        candidates = await provider.search_companies(query, max_results=PEER_SEARCH_MAX_RESULTS)
        ranked = rank_candidates(filter_candidates(holding, candidates))

        recommendations = PeerFinderService._build_recommendations(holding, ranked)
        try:
            await peer_recommendation_crud.delete_for_holding(db, holding_id)
            db.add_all(recommendations)
            await db.flush()
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error(f"Failed to store peer shortlist for holding {holding_id}", exc_info=True)
            raise

        logger.info(
            f"Stored {len(recommendations)} peer recommendations for {holding.ticker} "
            f"({len(candidates)} candidates searched)"
        )
        return recommendations


peer_finder_service = PeerFinderService()
