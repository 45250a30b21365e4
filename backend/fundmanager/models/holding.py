"""Holding model for portfolio positions."""

import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Numeric, JSON, Uuid

from fundmanager.core.database import Base
from fundmanager.utils.datetime_utils import utc_now


class Holding(Base):
    """One ticker position within a portfolio."""

    __tablename__ = "holdings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    portfolio_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("portfolios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    ticker = Column(String(20), nullable=False)  # Upper-cased on creation (e.g., "XOM")
    weight_pct = Column(Numeric(5, 2), nullable=False)  # 0-100, never changed by replacement

    # Enrichment (null until the portfolio is analysed)
    sector = Column(Text, nullable=True)
    market_cap = Column(Numeric(24, 2), nullable=True)
    co2_emission = Column(Numeric(20, 4), nullable=True)
    data_sources = Column(JSON, nullable=True)  # Provenance of the enrichment data

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    @property
    def is_analyzed(self) -> bool:
        """A holding can take part in peer finding once sector and market cap are known."""
        return self.sector is not None and self.market_cap is not None
