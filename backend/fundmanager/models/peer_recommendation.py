"""Peer recommendation model: ranked lower-carbon substitutes for a holding."""

import uuid

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Numeric,
    JSON,
    Uuid,
    UniqueConstraint,
)

from fundmanager.core.database import Base
from fundmanager.utils.datetime_utils import utc_now


class PeerRecommendation(Base):
    """
    One entry of a holding's shortlist.

    Ranks are dense per holding (1..N, N <= 10, 1 = lowest CO2). The whole
    shortlist is replaced each time peers are searched for the holding.
    """

    __tablename__ = "peer_recommendations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    portfolio_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("portfolios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    holding_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("holdings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    peer_ticker = Column(String(20), nullable=False)
    peer_sector = Column(Text, nullable=True)
    peer_market_cap = Column(Numeric(24, 2), nullable=True)
    peer_co2_emission = Column(Numeric(20, 4), nullable=True)
    rank = Column(Integer, nullable=False)
    sources = Column(JSON, nullable=True)  # List of {title, url, dataset_name}

    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("holding_id", "rank", name="uq_peer_recommendations_holding_rank"),
    )
