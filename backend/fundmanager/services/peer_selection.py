"""Peer candidate filtering and ranking.

A peer is a lower-carbon substitute for a holding: same sector, market cap
within ±20% of the holding's, and known, positive CO2 emission. Qualifying
candidates are ranked by emission (lowest first) and cut to a shortlist.
"""

import logging
from decimal import Decimal
from typing import Iterable, List

from fundmanager.core.exceptions import PreconditionError
from fundmanager.models.holding import Holding
from fundmanager.services.providers.base_provider import PeerCandidate

logger = logging.getLogger(__name__)

MARKET_CAP_BAND = Decimal("0.2")
SHORTLIST_SIZE = 10

NOT_ANALYZED_MESSAGE = "Holding must be analyzed before finding peers"


def ensure_analyzed(holding: Holding) -> None:
    """Raise PreconditionError unless the holding has sector and market cap."""
    if holding.sector is None or holding.market_cap is None:
        raise PreconditionError(NOT_ANALYZED_MESSAGE)


def market_cap_bounds(market_cap: Decimal) -> tuple[Decimal, Decimal]:
    """Inclusive market-cap band around a holding's market cap."""
    market_cap = Decimal(market_cap)
    return market_cap * (1 - MARKET_CAP_BAND), market_cap * (1 + MARKET_CAP_BAND)


def filter_candidates(holding: Holding, candidates: Iterable[PeerCandidate]) -> List[PeerCandidate]:
    """
    Return the candidates that qualify as replacement peers for `holding`.

    Rules (all must pass):
    - different ticker from the holding
    - exactly the holding's sector (case-sensitive)
    - market cap within [0.8x, 1.2x] of the holding's, inclusive; a missing
      market cap counts as 0
    - CO2 emission present and > 0

    Raises:
        PreconditionError: If the holding has no sector or market cap.
    """
    ensure_analyzed(holding)
    lower, upper = market_cap_bounds(holding.market_cap)

    filtered: List[PeerCandidate] = []
    for candidate in candidates:
        if candidate.ticker == holding.ticker:
            continue
        if candidate.sector != holding.sector:
            continue

        market_cap = candidate.market_cap if candidate.market_cap is not None else Decimal("0")
        if market_cap < lower or market_cap > upper:
            continue

        # Carbon is the differentiator; candidates without it cannot be recommended
        if candidate.co2_emission is None or candidate.co2_emission <= 0:
            continue

        filtered.append(
            PeerCandidate(
                ticker=candidate.ticker,
                sector=candidate.sector,
                market_cap=market_cap,
                co2_emission=candidate.co2_emission,
                sources=list(candidate.sources),
            )
        )

    logger.debug(
        "Peer filter for %s: %d candidates qualify (band %s-%s)",
        holding.ticker,
        len(filtered),
        lower,
        upper,
    )
    return filtered


def rank_candidates(candidates: Iterable[PeerCandidate], limit: int = SHORTLIST_SIZE) -> List[PeerCandidate]:
    """
    Order candidates by CO2 emission, lowest first, and keep the first `limit`.

    The sort is stable: candidates with equal emission keep their input order.
    """
    ranked = sorted(candidates, key=lambda c: c.co2_emission)
    return ranked[:limit]
