"""Portfolio model."""

import uuid

from sqlalchemy import Column, String, Text, DateTime, Uuid

from fundmanager.core.database import Base
from fundmanager.utils.datetime_utils import utc_now


class Portfolio(Base):
    """
    An uploaded portfolio of equity holdings.

    Holdings and peer recommendations reference the portfolio by id and are
    removed with it through ON DELETE CASCADE foreign keys.
    """

    __tablename__ = "portfolios"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    owner_id = Column(String(100), nullable=True, index=True)  # Single owner field, no auth model

    created_at = Column(DateTime, default=utc_now, nullable=False)
