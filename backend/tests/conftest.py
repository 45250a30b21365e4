"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import AsyncGenerator, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fundmanager.config import settings

# Never reach live services from the test suite
settings.FINANCIAL_DATA_PROVIDER = "mock"
settings.LLM_PROVIDER = "mock"
settings.VALYU_API_KEY = None
settings.GEMINI_API_KEY = None
settings.COMPARISON_PACING_SECONDS = 0

from fundmanager.core.database import Base, get_db  # noqa: E402
from fundmanager.main import app  # noqa: E402
from fundmanager.models import Holding, PeerRecommendation, Portfolio  # noqa: E402
from fundmanager.services.providers import EnrichmentData, PeerCandidate  # noqa: E402
from fundmanager.services.providers.provider_factory import ProviderFactory  # noqa: E402

# Use StaticPool so in-memory SQLite shares one connection
# (NullPool creates a new connection per call, losing all tables each time)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def reset_provider_factory():
    """Drop cached providers so each test sees its own settings."""
    ProviderFactory.reset()
    yield
    ProviderFactory.reset()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign keys for SQLite."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def db(db_session: AsyncSession) -> AsyncSession:
    """Alias for db_session to match test function signatures."""
    return db_session


@pytest.fixture(scope="function")
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest_asyncio.fixture(scope="function")
async def async_client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_portfolio(
    db: AsyncSession,
    holdings: List[dict],
    name: str = "Test Portfolio",
    owner_id: Optional[str] = None,
) -> tuple[Portfolio, List[Holding]]:
    """Insert a portfolio and holdings directly, bypassing weight validation."""
    portfolio = Portfolio(name=name, owner_id=owner_id)
    db.add(portfolio)
    await db.flush()

    created = []
    for data in holdings:
        holding = Holding(portfolio_id=portfolio.id, **data)
        db.add(holding)
        created.append(holding)

    await db.commit()
    for holding in created:
        await db.refresh(holding)
    return portfolio, created


@pytest_asyncio.fixture
async def test_portfolio(db_session: AsyncSession) -> tuple[Portfolio, List[Holding]]:
    """Portfolio with one analyzed energy holding (XOM) and one unanalyzed holding."""
    return await _create_portfolio(
        db_session,
        [
            {
                "ticker": "XOM",
                "weight_pct": Decimal("60"),
                "sector": "Energy",
                "market_cap": Decimal("100"),
                "co2_emission": Decimal("120"),
            },
            {"ticker": "MSFT", "weight_pct": Decimal("40")},
        ],
    )


@pytest.fixture
def energy_candidates() -> List[PeerCandidate]:
    """Peer search results around a 100-cap Energy holding."""
    return [
        PeerCandidate(ticker="XOM", sector="Energy", market_cap=Decimal("100"), co2_emission=Decimal("120")),
        PeerCandidate(
            ticker="NEE",
            sector="Energy",
            market_cap=Decimal("95"),
            co2_emission=Decimal("40"),
            sources=[{"title": "NEE 10-K", "url": "https://example.com/nee", "dataset_name": "valyu"}],
        ),
        PeerCandidate(ticker="AAPL", sector="Tech", market_cap=Decimal("100"), co2_emission=Decimal("10")),
        PeerCandidate(ticker="FSLR", sector="Energy", market_cap=Decimal("300"), co2_emission=Decimal("5")),
        PeerCandidate(ticker="CVX", sector="Energy", market_cap=Decimal("110"), co2_emission=Decimal("90")),
    ]


@pytest.fixture
def mock_financial_provider(energy_candidates):
    """Create mock financial-data provider."""
    provider = Mock()
    provider.search_companies = AsyncMock(return_value=energy_candidates)
    provider.enrich_holding = AsyncMock(
        side_effect=lambda ticker: EnrichmentData(
            ticker=ticker,
            sector="Energy",
            market_cap=Decimal("500000000000"),
            co2_emission=Decimal("110.5"),
            sources=[{"title": f"{ticker} annual report", "url": f"https://example.com/{ticker}"}],
        )
    )
    provider.get_provider_name.return_value = "Valyu"
    return provider


async def _add_recommendation(
    db: AsyncSession, holding: Holding, rank: int, **fields
) -> PeerRecommendation:
    rec = PeerRecommendation(
        portfolio_id=holding.portfolio_id,
        holding_id=holding.id,
        rank=rank,
        **fields,
    )
    db.add(rec)
    await db.commit()
    await db.refresh(rec)
    return rec


@pytest.fixture
def portfolio_factory(db_session: AsyncSession):
    """Create portfolios with arbitrary holdings: await portfolio_factory([{...}, ...])."""

    async def _factory(holdings: List[dict], **kwargs):
        return await _create_portfolio(db_session, holdings, **kwargs)

    return _factory


@pytest.fixture
def recommendation_factory(db_session: AsyncSession):
    """Store a peer recommendation: await recommendation_factory(holding, rank, peer_ticker=...)."""

    async def _factory(holding: Holding, rank: int, **fields):
        return await _add_recommendation(db_session, holding, rank, **fields)

    return _factory
