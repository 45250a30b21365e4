"""Holding and peer recommendation schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class HoldingCreate(BaseModel):
    """Schema for one holding row of a new portfolio."""

    ticker: str = Field(min_length=1, max_length=20)
    weight_pct: Decimal = Field(ge=0, le=100)

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be blank")
        return v


class HoldingResponse(BaseModel):
    """Schema for holding response."""

    id: UUID
    portfolio_id: UUID
    ticker: str
    weight_pct: Decimal
    sector: Optional[str] = None
    market_cap: Optional[Decimal] = None
    co2_emission: Optional[Decimal] = None
    data_sources: Optional[Any] = None
    is_analyzed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SourceCitationResponse(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    dataset_name: Optional[str] = None


class PeerRecommendationResponse(BaseModel):
    """Schema for a stored peer recommendation."""

    id: UUID
    holding_id: UUID
    peer_ticker: str
    peer_sector: Optional[str] = None
    peer_market_cap: Optional[Decimal] = None
    peer_co2_emission: Optional[Decimal] = None
    rank: int
    sources: List[SourceCitationResponse] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("sources", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []


class OriginalHolding(BaseModel):
    """The holding peers were searched for."""

    ticker: str
    sector: Optional[str] = None
    market_cap: Optional[Decimal] = None
    co2_emission: Optional[Decimal] = None


class PeerSearchResponse(BaseModel):
    """Result of a peer search for one holding."""

    original_holding: OriginalHolding
    peer_recommendations: List[PeerRecommendationResponse]
    count: int


class ReplaceHoldingRequest(BaseModel):
    """Schema for replacing a holding with a recommended peer."""

    peer_ticker: str = Field(min_length=1, max_length=20)


class ReplaceHoldingResponse(BaseModel):
    """Summary of a holding replacement."""

    message: str
    original_ticker: str
    new_ticker: str
    weight_pct: Decimal
    co2_reduction: Optional[Decimal] = None  # None when either emission is unknown
