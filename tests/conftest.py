# =============================================================================
# Shared Test Fixtures
# =============================================================================
#
# Store, service and API tests run against a temporary file-backed SQLite
# database (sqlite+aiosqlite). A file (not :memory:) lets several sessions
# hold their own connections, so concurrent conditional UPDATEs really race
# through the database's write lock.
#
# The codec uses the development secrets, so keys issued here are the same
# shape as keys issued by a local service.
# =============================================================================

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

from tokenauth.api.deps import get_token_codec  # noqa: E402
from tokenauth.db.engine import get_async_session, init_db  # noqa: E402
from tokenauth.main import app  # noqa: E402
from tokenauth.services.token_codec import TokenCodec, TokenCodecConfig  # noqa: E402
from tokenauth.services.token_service import TokenService  # noqa: E402
from tokenauth.services.token_store import TokenStore  # noqa: E402

DEV_HMAC_SECRET = "qwer9yuhgf"
DEV_DB_SALT = "$2a$10$IhaXo6LIBhKIWOiGpbtPOu"


@pytest.fixture
def codec_config() -> TokenCodecConfig:
    return TokenCodecConfig(hmac_secret=DEV_HMAC_SECRET, db_salt=DEV_DB_SALT)


@pytest.fixture
def codec(codec_config) -> TokenCodec:
    return TokenCodec(codec_config)


@pytest.fixture
async def engine(tmp_path):
    """Fresh database file per test with the tokens table created."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tokens.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def store(session) -> TokenStore:
    return TokenStore(session)


@pytest.fixture
def service(session, codec) -> TokenService:
    return TokenService(session, codec)


@pytest.fixture
async def client(session_factory, codec) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database and codec."""

    async def _test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_async_session] = _test_session
    app.dependency_overrides[get_token_codec] = lambda: codec

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
