"""Portfolio schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from fundmanager.schemas.holding import HoldingCreate, HoldingResponse


class PortfolioCreate(BaseModel):
    """Schema for creating a portfolio from JSON rows."""

    name: str = Field(min_length=1, max_length=200)
    owner_id: Optional[str] = Field(None, max_length=100)
    holdings: List[HoldingCreate]


class PortfolioResponse(BaseModel):
    """Portfolio with its holdings, largest weight first."""

    id: UUID
    name: str
    owner_id: Optional[str] = None
    created_at: datetime
    holdings: List[HoldingResponse] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    message: str
    holdings_enriched: int


class PortfolioMetrics(BaseModel):
    """Carbon summary of a portfolio."""

    portfolio_id: UUID
    holdings_count: int
    analyzed_count: int
    total_weight_pct: Decimal
    # Weighted by weight_pct over analyzed holdings with CO2 data; None if there are none
    weighted_avg_co2_emission: Optional[Decimal] = None
