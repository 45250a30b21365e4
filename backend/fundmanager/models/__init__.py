"""SQLAlchemy models package."""

from fundmanager.models.portfolio import Portfolio
from fundmanager.models.holding import Holding
from fundmanager.models.peer_recommendation import PeerRecommendation

__all__ = [
    "Portfolio",
    "Holding",
    "PeerRecommendation",
]
