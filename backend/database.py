"""
Database engine and session management for the Tune Tokenize backend.

The listener index (deployments, contract events, tokens, cursor) lives in
SQLite through SQLAlchemy's async engine and aiosqlite. An in-memory URL
keeps a single shared connection so every session sees the same tables.
"""
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for the index tables."""
    pass


# ── Engine ──────────────────────────────────────────────────────────

def to_async_url(url: str) -> str:
    """sqlite:///path -> sqlite+aiosqlite:///path; other URLs unchanged."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for a database URL; in-memory SQLite gets one shared connection."""
    url = to_async_url(url)
    options = {"echo": echo}
    if url.startswith("sqlite") and ":memory:" in url:
        options.update(
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, **options)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_engine_for(settings.database_url, echo=settings.database_echo)
async_session = make_session_factory(engine)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the index tables (startup, or a test engine)."""
    import db_models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Index tables ready ({len(Base.metadata.tables)} tables)")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async session."""
    async with async_session() as session:
        yield session
