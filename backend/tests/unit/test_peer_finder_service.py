"""Tests for the peer finder pipeline."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from fundmanager.core.exceptions import PreconditionError
from fundmanager.models.holding import Holding
from fundmanager.models.peer_recommendation import PeerRecommendation
from fundmanager.services.peer_finder_service import (
    PeerFinderService,
    build_peer_query,
    peer_finder_service,
)
from fundmanager.services.providers import MockFinancialDataProvider, PeerCandidate


async def _stored(db, holding_id):
    result = await db.execute(
        select(PeerRecommendation)
        .where(PeerRecommendation.holding_id == holding_id)
        .order_by(PeerRecommendation.rank)
    )
    return list(result.scalars().all())


class TestBuildPeerQuery:
    """Test suite for the peer search query."""

    def test_query_format(self):
        xom = Holding(ticker="XOM", weight_pct=Decimal("60"), sector="Energy", market_cap=Decimal("100.00"))

        assert build_peer_query(xom) == (
            "top 100 public companies in sector Energy with market cap around 100"
        )

    def test_fractional_market_cap(self):
        xom = Holding(ticker="XOM", weight_pct=Decimal("60"), sector="Energy", market_cap=Decimal("1234.50"))

        assert build_peer_query(xom).endswith("market cap around 1234.5")


class TestPeerFinderService:
    """Test suite for PeerFinderService.find_peers."""

    @pytest.mark.asyncio
    async def test_energy_scenario(self, db, test_portfolio, mock_financial_provider):
        """Should store NEE then CVX, dropping self, other sectors and out-of-band caps."""
        _, holdings = test_portfolio
        xom = holdings[0]

        recs = await peer_finder_service.find_peers(db, xom, mock_financial_provider)

        assert [r.peer_ticker for r in recs] == ["NEE", "CVX"]
        assert [r.rank for r in recs] == [1, 2]
        assert all(r.holding_id == xom.id for r in recs)
        assert all(r.portfolio_id == xom.portfolio_id for r in recs)
        assert recs[0].sources == [
            {"title": "NEE 10-K", "url": "https://example.com/nee", "dataset_name": "valyu"}
        ]

        mock_financial_provider.search_companies.assert_awaited_once_with(
            "top 100 public companies in sector Energy with market cap around 100",
            max_results=100,
        )

        stored = await _stored(db, xom.id)
        assert [r.peer_ticker for r in stored] == ["NEE", "CVX"]

    @pytest.mark.asyncio
    async def test_unanalyzed_holding_raises_before_search(self, db, test_portfolio, mock_financial_provider):
        _, holdings = test_portfolio
        msft = holdings[1]

        with pytest.raises(PreconditionError, match="Holding must be analyzed before finding peers"):
            await peer_finder_service.find_peers(db, msft, mock_financial_provider)

        mock_financial_provider.search_companies.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_is_idempotent(self, db, test_portfolio, mock_financial_provider):
        """Running twice with the same provider data yields the same shortlist."""
        _, holdings = test_portfolio
        xom = holdings[0]

        await peer_finder_service.find_peers(db, xom, mock_financial_provider)
        first = [(r.peer_ticker, r.rank) for r in await _stored(db, xom.id)]

        await peer_finder_service.find_peers(db, xom, mock_financial_provider)
        second = [(r.peer_ticker, r.rank) for r in await _stored(db, xom.id)]

        assert first == second == [("NEE", 1), ("CVX", 2)]

    @pytest.mark.asyncio
    async def test_replaces_previous_shortlist(self, db, test_portfolio, recommendation_factory):
        _, holdings = test_portfolio
        xom = holdings[0]
        for rank, ticker in enumerate(["OLD1", "OLD2", "OLD3"], start=1):
            await recommendation_factory(xom, rank, peer_ticker=ticker, peer_co2_emission=Decimal("1"))

        provider = Mock()
        provider.search_companies = AsyncMock(
            return_value=[
                PeerCandidate(ticker="BP", sector="Energy", market_cap=Decimal("90"), co2_emission=Decimal("70"))
            ]
        )

        await peer_finder_service.find_peers(db, xom, provider)

        stored = await _stored(db, xom.id)
        assert [(r.peer_ticker, r.rank) for r in stored] == [("BP", 1)]

    @pytest.mark.asyncio
    async def test_caps_shortlist_at_ten_with_dense_ranks(self, db, test_portfolio):
        _, holdings = test_portfolio
        xom = holdings[0]
        provider = Mock()
        provider.search_companies = AsyncMock(
            return_value=[
                PeerCandidate(
                    ticker=f"P{i:02d}",
                    sector="Energy",
                    market_cap=Decimal("100"),
                    co2_emission=Decimal(50 + i),
                )
                for i in range(15)
            ]
        )

        recs = await peer_finder_service.find_peers(db, xom, provider)

        assert len(recs) == 10
        assert [r.rank for r in recs] == list(range(1, 11))
        assert recs[0].peer_ticker == "P00"
        co2 = [r.peer_co2_emission for r in recs]
        assert co2 == sorted(co2)

    @pytest.mark.asyncio
    async def test_degraded_provider_clears_shortlist(self, db, test_portfolio, recommendation_factory):
        """The mock provider returns no candidates, which empties the shortlist."""
        _, holdings = test_portfolio
        xom = holdings[0]
        await recommendation_factory(xom, 1, peer_ticker="OLD")

        recs = await peer_finder_service.find_peers(db, xom, MockFinancialDataProvider())

        assert recs == []
        assert await _stored(db, xom.id) == []

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_previous_shortlist(
        self, db, test_portfolio, mock_financial_provider, recommendation_factory
    ):
        """Delete and insert commit together; a failing insert rolls both back."""
        _, holdings = test_portfolio
        xom = holdings[0]
        holding_id = xom.id
        await recommendation_factory(xom, 1, peer_ticker="KEEP1")
        await recommendation_factory(xom, 2, peer_ticker="KEEP2")

        def _duplicate_ranks(holding, ranked):
            return [
                PeerRecommendation(
                    portfolio_id=holding.portfolio_id,
                    holding_id=holding.id,
                    peer_ticker=c.ticker,
                    rank=1,
                )
                for c in ranked
            ]

        with patch.object(PeerFinderService, "_build_recommendations", side_effect=_duplicate_ranks):
            with pytest.raises(IntegrityError):
                await peer_finder_service.find_peers(db, xom, mock_financial_provider)

        stored = await _stored(db, holding_id)
        assert [(r.peer_ticker, r.rank) for r in stored] == [("KEEP1", 1), ("KEEP2", 2)]
