"""Swap a holding for one of its recommended peers."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.core.exceptions import NotFoundError
from fundmanager.crud.portfolio import peer_recommendation_crud
from fundmanager.models.holding import Holding

logger = logging.getLogger(__name__)


@dataclass
class ReplacementResult:
    """Outcome of replacing a holding with a peer."""

    original_ticker: str
    new_ticker: str
    weight_pct: Decimal
    co2_reduction: Optional[Decimal]


class HoldingReplacementService:
    """Service for replacing holdings with recommended peers."""

    @staticmethod
    async def replace_holding(
        db: AsyncSession, holding: Holding, peer_ticker: str
    ) -> ReplacementResult:
        """
        Replace a holding's company with a peer from its shortlist.

        The ticker always changes; sector, market cap, CO2 emission and data
        sources are overwritten only where the peer has a value. The weight is
        never changed.

        Raises:
            NotFoundError: If `peer_ticker` is not in the holding's shortlist
        """
        peer_ticker = peer_ticker.strip().upper()
        peer = await peer_recommendation_crud.get_by_ticker(db, holding.id, peer_ticker)
        if peer is None:
            raise NotFoundError("Peer recommendation not found")

        original_ticker = holding.ticker
        old_co2 = holding.co2_emission

        holding.ticker = peer.peer_ticker
        if peer.peer_sector is not None:
            holding.sector = peer.peer_sector
        if peer.peer_market_cap is not None:
            holding.market_cap = peer.peer_market_cap
        if peer.peer_co2_emission is not None:
            holding.co2_emission = peer.peer_co2_emission
        if peer.sources is not None:
            holding.data_sources = peer.sources

        await db.commit()
        await db.refresh(holding)

        co2_reduction = None
        if old_co2 is not None and peer.peer_co2_emission is not None:
            co2_reduction = Decimal(old_co2) - Decimal(peer.peer_co2_emission)

        logger.info(
            f"Replaced holding {original_ticker} with {holding.ticker} "
            f"(co2_reduction={co2_reduction})"
        )
        return ReplacementResult(
            original_ticker=original_ticker,
            new_ticker=holding.ticker,
            weight_pct=holding.weight_pct,
            co2_reduction=co2_reduction,
        )


holding_replacement_service = HoldingReplacementService()
