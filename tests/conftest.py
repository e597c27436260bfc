from datetime import timezone
from typing import AsyncGenerator, Dict

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portfolio_dashboard.api import dependencies
from portfolio_dashboard.api.errors import register_exception_handlers
from portfolio_dashboard.domain.models import Profile
from portfolio_dashboard.domain.services.admin_gate import AdminGate
from portfolio_dashboard.infrastructure.db.database import Base, get_db
from portfolio_dashboard.infrastructure.db import models  # noqa: F401
from portfolio_dashboard.infrastructure.market_data.history_resolver import HistoryResolver
from portfolio_dashboard.main import include_routers
from tests.fakes import ADMIN_PASSWORD, ADMIN_SECRET, FakeFinnhub, FakeYahoo


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

@pytest.fixture()
def admin_gate() -> AdminGate:
    return AdminGate(secret_key=ADMIN_SECRET, password=ADMIN_PASSWORD, tz=timezone.utc)

@pytest.fixture()
def admin_headers(admin_gate) -> Dict[str, str]:
    token = admin_gate.issue(ADMIN_PASSWORD)
    return {dependencies.ADMIN_HEADER: token.value}

@pytest.fixture()
def finnhub() -> FakeFinnhub:
    return FakeFinnhub(
        quotes={
            "AAPL": {"c": 150.0, "d": 2.0, "dp": 1.35, "h": 151.0, "l": 148.0, "o": 149.0, "pc": 148.0, "t": 1700000000},
            "MSFT": {"c": 330.0, "d": -1.0, "dp": -0.3, "h": 331.0, "l": 328.0, "o": 329.0, "pc": 331.0, "t": 1700000000},
        },
        profiles={"AAPL": Profile(name="Apple Inc", ticker="AAPL", exchange="NASDAQ", currency="USD")},
    )

@pytest.fixture()
def yahoo() -> FakeYahoo:
    return FakeYahoo()

@pytest.fixture()
async def app(db_session, admin_gate, finnhub, yahoo) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    include_routers(app)

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.admin_gate_dependency] = lambda: admin_gate
    app.dependency_overrides[dependencies.finnhub_dependency] = lambda: finnhub
    app.dependency_overrides[dependencies.yahoo_dependency] = lambda: yahoo
    app.dependency_overrides[dependencies.history_resolver_dependency] = lambda: HistoryResolver(
        free_source=yahoo,
        keyed_source=finnhub,
        fallback_days=[450, 60],
        clock=lambda: 1700000000,
    )
    return app

@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
