"""Tests for the company comparison endpoint."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from httpx import AsyncClient

URL = "/api/v1/comparison/company-comparison"


class TestCompanyComparisonEndpoint:
    """Test suite for GET /comparison/company-comparison."""

    @pytest.mark.asyncio
    async def test_missing_base_company(self, async_client: AsyncClient):
        response = await async_client.get(URL)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing base_company query parameter"

    @pytest.mark.asyncio
    async def test_blank_base_company(self, async_client: AsyncClient):
        response = await async_client.get(URL, params={"base_company": "   "})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_comparison_with_mock_providers(self, async_client: AsyncClient):
        response = await async_client.get(URL, params={"base_company": "Shell"})

        assert response.status_code == 200
        data = response.json()
        assert data["base_company"] == "Shell"
        assert len(data["rows"]) == 6
        assert list(data["rows"][0]) == [
            "Company",
            "Free Cash Flow (2024)",
            "Market Cap (2024)",
            "Sector",
            "Carbon Emissions (2024 MtCO2e)",
            "Sources (Title)",
            "Source URLs",
        ]
        assert data["rows"][0]["Market Cap (2024)"] == "$240B"

    @pytest.mark.asyncio
    async def test_malformed_similar_companies_response(self, async_client: AsyncClient):
        llm = Mock()
        llm.complete = AsyncMock(return_value="I could not find any companies.")

        with patch("fundmanager.api.v1.comparison.get_language_model", return_value=llm):
            response = await async_client.get(URL, params={"base_company": "Shell"})

        assert response.status_code == 200
        rows = response.json()["rows"]
        assert len(rows) == 1
        assert rows[0]["Company"] == "Shell"
        assert rows[0]["Sources (Title)"] == "Error"

    @pytest.mark.asyncio
    async def test_failed_extraction_returns_error_row(self, async_client: AsyncClient):
        llm = Mock()
        llm.complete = AsyncMock(side_effect=['["BP"]', "not json", "also not json"])

        with patch("fundmanager.api.v1.comparison.get_language_model", return_value=llm):
            response = await async_client.get(URL, params={"base_company": "Shell"})

        assert response.status_code == 200
        rows = response.json()["rows"]
        assert [r["Company"] for r in rows] == ["Shell", "BP"]
        assert all(r["Sources (Title)"] == "Error" for r in rows)
