"""Portfolio API endpoints: upload, fetch, analyse, metrics, delete."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundmanager.config import settings
from fundmanager.core.database import get_db
from fundmanager.models.holding import Holding
from fundmanager.models.portfolio import Portfolio
from fundmanager.schemas.holding import HoldingResponse
from fundmanager.schemas.portfolio import (
    AnalysisResponse,
    PortfolioCreate,
    PortfolioMetrics,
    PortfolioResponse,
)
from fundmanager.services.csv_import_service import csv_import_service
from fundmanager.services.portfolio_service import portfolio_service
from fundmanager.services.providers import get_financial_data_provider

logger = logging.getLogger(__name__)

router = APIRouter()


def _portfolio_response(portfolio: Portfolio, holdings: List[Holding]) -> PortfolioResponse:
    return PortfolioResponse(
        id=portfolio.id,
        name=portfolio.name,
        owner_id=portfolio.owner_id,
        created_at=portfolio.created_at,
        holdings=[HoldingResponse.model_validate(h) for h in holdings],
    )


def validate_csv_file(file: UploadFile) -> None:
    """
    Validate the uploaded file name.

    Raises:
        HTTPException: If the file is not a .csv file
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Filename is required")

    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed (.csv extension)")


@router.post("/upload", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
async def upload_portfolio(
    file: UploadFile = File(...),
    name: str = Form(..., min_length=1, max_length=200),
    owner_id: Optional[str] = Form(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a portfolio from a holdings CSV.

    Columns: ticker (or symbol) and weight_pct (or weight). Weights must sum to 100.
    """
    validate_csv_file(file)

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES} bytes",
        )

    try:
        csv_content = content.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Failed to decode CSV upload: %s", e)
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

    rows = csv_import_service.parse_holdings(csv_content)
    portfolio, holdings = await portfolio_service.create_portfolio(db, name, rows, owner_id)
    return _portfolio_response(portfolio, holdings)


@router.post("", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    portfolio_data: PortfolioCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a portfolio from JSON holding rows."""
    rows = [(h.ticker, h.weight_pct) for h in portfolio_data.holdings]
    portfolio, holdings = await portfolio_service.create_portfolio(
        db, portfolio_data.name, rows, portfolio_data.owner_id
    )
    return _portfolio_response(portfolio, holdings)


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
async def get_portfolio(
    portfolio_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a portfolio with holdings ordered by weight, largest first."""
    portfolio, holdings = await portfolio_service.get_portfolio(db, portfolio_id)
    return _portfolio_response(portfolio, holdings)


@router.post("/{portfolio_id}/analyse", response_model=AnalysisResponse)
async def analyse_portfolio(
    portfolio_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Enrich every holding with sector, market cap and CO2 emission data."""
    provider = get_financial_data_provider()
    enriched = await portfolio_service.analyse_portfolio(db, portfolio_id, provider)
    return AnalysisResponse(message="Portfolio analysed", holdings_enriched=enriched)


@router.get("/{portfolio_id}/metrics", response_model=PortfolioMetrics)
async def get_portfolio_metrics(
    portfolio_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Carbon summary of a portfolio."""
    return await portfolio_service.get_metrics(db, portfolio_id)


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(
    portfolio_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a portfolio with its holdings and peer recommendations."""
    await portfolio_service.delete_portfolio(db, portfolio_id)
