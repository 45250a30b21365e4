"""Tests for holding API endpoints (peers and replacement)."""

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from httpx import AsyncClient

BASE = "/api/v1/portfolios"


def _peers_url(portfolio_id, holding_id) -> str:
    return f"{BASE}/{portfolio_id}/holdings/{holding_id}/peers"


class TestPeerEndpoints:
    """Test suite for peer search and listing."""

    @pytest.mark.asyncio
    async def test_find_peers(self, async_client: AsyncClient, test_portfolio, mock_financial_provider):
        portfolio, (xom, _) = test_portfolio

        with patch(
            "fundmanager.api.v1.holdings.get_financial_data_provider",
            return_value=mock_financial_provider,
        ):
            response = await async_client.post(_peers_url(portfolio.id, xom.id))

        assert response.status_code == 200
        data = response.json()
        assert data["original_holding"]["ticker"] == "XOM"
        assert Decimal(data["original_holding"]["co2_emission"]) == Decimal("120")
        assert data["count"] == 2
        assert [p["peer_ticker"] for p in data["peer_recommendations"]] == ["NEE", "CVX"]
        assert [p["rank"] for p in data["peer_recommendations"]] == [1, 2]
        assert data["peer_recommendations"][0]["sources"][0]["title"] == "NEE 10-K"
        assert data["peer_recommendations"][1]["sources"] == []

        mock_financial_provider.search_companies.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_find_peers_unanalyzed_holding(self, async_client: AsyncClient, test_portfolio):
        portfolio, (_, msft) = test_portfolio

        response = await async_client.post(_peers_url(portfolio.id, msft.id))

        assert response.status_code == 400
        assert "analy" in response.json()["detail"].lower()

    @pytest.mark.asyncio
    async def test_find_peers_unknown_holding(self, async_client: AsyncClient, test_portfolio):
        portfolio, _ = test_portfolio

        response = await async_client.post(_peers_url(portfolio.id, uuid4()))

        assert response.status_code == 404
        assert response.json()["detail"] == "Holding not found"

    @pytest.mark.asyncio
    async def test_holding_from_other_portfolio(
        self, async_client: AsyncClient, test_portfolio, portfolio_factory
    ):
        _, (xom, _) = test_portfolio
        other, _ = await portfolio_factory([{"ticker": "BP", "weight_pct": Decimal("100")}])

        response = await async_client.post(_peers_url(other.id, xom.id))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_find_peers_with_mock_provider(self, async_client: AsyncClient, test_portfolio):
        """Without credentials the search finds nothing and the shortlist is empty."""
        portfolio, (xom, _) = test_portfolio

        response = await async_client.post(_peers_url(portfolio.id, xom.id))

        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert response.json()["peer_recommendations"] == []

    @pytest.mark.asyncio
    async def test_get_stored_peers(self, async_client: AsyncClient, test_portfolio, recommendation_factory):
        portfolio, (xom, _) = test_portfolio
        await recommendation_factory(xom, 2, peer_ticker="CVX", peer_co2_emission=Decimal("90"))
        await recommendation_factory(xom, 1, peer_ticker="NEE", peer_co2_emission=Decimal("40"))

        response = await async_client.get(_peers_url(portfolio.id, xom.id))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [p["peer_ticker"] for p in data["peer_recommendations"]] == ["NEE", "CVX"]

    @pytest.mark.asyncio
    async def test_get_peers_before_search(self, async_client: AsyncClient, test_portfolio):
        portfolio, (xom, _) = test_portfolio

        response = await async_client.get(_peers_url(portfolio.id, xom.id))

        assert response.status_code == 200
        assert response.json()["count"] == 0


class TestReplaceEndpoint:
    """Test suite for POST .../replace."""

    @pytest.mark.asyncio
    async def test_replace_holding(self, async_client: AsyncClient, test_portfolio, recommendation_factory):
        portfolio, (xom, _) = test_portfolio
        await recommendation_factory(
            xom,
            1,
            peer_ticker="NEE",
            peer_sector="Energy",
            peer_market_cap=Decimal("95"),
            peer_co2_emission=Decimal("40"),
        )

        response = await async_client.post(
            f"{BASE}/{portfolio.id}/holdings/{xom.id}/replace",
            json={"peer_ticker": "nee"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Holding replaced successfully"
        assert data["original_ticker"] == "XOM"
        assert data["new_ticker"] == "NEE"
        assert Decimal(data["weight_pct"]) == Decimal("60")
        assert Decimal(data["co2_reduction"]) == Decimal("80")

        holdings = (await async_client.get(f"{BASE}/{portfolio.id}")).json()["holdings"]
        assert holdings[0]["ticker"] == "NEE"
        assert Decimal(holdings[0]["weight_pct"]) == Decimal("60")
        assert Decimal(holdings[0]["co2_emission"]) == Decimal("40")

    @pytest.mark.asyncio
    async def test_replace_with_unknown_peer(self, async_client: AsyncClient, test_portfolio):
        portfolio, (xom, _) = test_portfolio

        response = await async_client.post(
            f"{BASE}/{portfolio.id}/holdings/{xom.id}/replace",
            json={"peer_ticker": "TSLA"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Peer recommendation not found"

    @pytest.mark.asyncio
    async def test_replace_requires_peer_ticker(self, async_client: AsyncClient, test_portfolio):
        portfolio, (xom, _) = test_portfolio

        response = await async_client.post(
            f"{BASE}/{portfolio.id}/holdings/{xom.id}/replace",
            json={},
        )

        assert response.status_code == 422
