"""Holding API endpoints: peer recommendations and replacement."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.core.database import get_db
from fundmanager.crud.portfolio import peer_recommendation_crud
from fundmanager.schemas.holding import (
    OriginalHolding,
    PeerRecommendationResponse,
    PeerSearchResponse,
    ReplaceHoldingRequest,
    ReplaceHoldingResponse,
)
from fundmanager.services.holding_replacement_service import holding_replacement_service
from fundmanager.services.peer_finder_service import peer_finder_service
from fundmanager.services.portfolio_service import portfolio_service
from fundmanager.services.providers import get_financial_data_provider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{portfolio_id}/holdings/{holding_id}/peers", response_model=PeerSearchResponse)
async def find_peers(
    portfolio_id: UUID,
    holding_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Search for lower-carbon peers of an analyzed holding.

    Replaces the holding's stored shortlist (up to 10 peers, lowest CO2 first).
    """
    holding = await portfolio_service.get_holding(db, portfolio_id, holding_id)
    original = OriginalHolding(
        ticker=holding.ticker,
        sector=holding.sector,
        market_cap=holding.market_cap,
        co2_emission=holding.co2_emission,
    )

    provider = get_financial_data_provider()
    recommendations = await peer_finder_service.find_peers(db, holding, provider)

    return PeerSearchResponse(
        original_holding=original,
        peer_recommendations=[
            PeerRecommendationResponse.model_validate(r) for r in recommendations
        ],
        count=len(recommendations),
    )


@router.get("/{portfolio_id}/holdings/{holding_id}/peers", response_model=PeerSearchResponse)
async def get_peers(
    portfolio_id: UUID,
    holding_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get the stored shortlist of a holding, ordered by rank."""
    holding = await portfolio_service.get_holding(db, portfolio_id, holding_id)
    recommendations = await peer_recommendation_crud.list_by_holding(db, holding.id)

    return PeerSearchResponse(
        original_holding=OriginalHolding(
            ticker=holding.ticker,
            sector=holding.sector,
            market_cap=holding.market_cap,
            co2_emission=holding.co2_emission,
        ),
        peer_recommendations=[
            PeerRecommendationResponse.model_validate(r) for r in recommendations
        ],
        count=len(recommendations),
    )


@router.post("/{portfolio_id}/holdings/{holding_id}/replace", response_model=ReplaceHoldingResponse)
async def replace_holding(
    portfolio_id: UUID,
    holding_id: UUID,
    request: ReplaceHoldingRequest,
    db: AsyncSession = Depends(get_db),
):
    """Replace a holding with a peer from its shortlist, keeping its weight."""
    holding = await portfolio_service.get_holding(db, portfolio_id, holding_id)
    result = await holding_replacement_service.replace_holding(db, holding, request.peer_ticker)

    return ReplaceHoldingResponse(
        message="Holding replaced successfully",
        original_ticker=result.original_ticker,
        new_ticker=result.new_ticker,
        weight_pct=result.weight_pct,
        co2_reduction=result.co2_reduction,
    )
