"""Database connection and table definitions."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import JSON, Column, DateTime, Float, Index, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from mvebot.config import get_settings

Base = declarative_base()


class PositionTable(Base):
    """Position (trade log) records. One row per opened position."""

    __tablename__ = "positions"

    id = Column(String(36), primary_key=True)
    symbol = Column(String(20), nullable=False)
    status = Column(String(10), nullable=False, default="OPEN")  # OPEN | CLOSED
    position_type = Column(String(10), nullable=False)  # LONG | SHORT
    qty = Column(Float, nullable=False, default=1.0)
    entry_price = Column(Float, nullable=False)
    entry_time = Column(DateTime(timezone=True), nullable=False)
    entry_indicators = Column(JSON, nullable=False, default=dict)
    cluster_info = Column(JSON, nullable=False, default=dict)
    reference_indicator_at_entry = Column(Float, nullable=True)
    exit_price = Column(Float, nullable=True)
    exit_time = Column(DateTime(timezone=True), nullable=True)
    exit_reason = Column(String(50), nullable=True)
    profit_loss = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_positions_status_symbol_created", "status", "symbol", "created_at"),
    )


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        settings = get_settings()
        url = database_url or settings.database_url

        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        engine_kwargs: dict = {"echo": settings.debug, "pool_pre_ping": True}
        if url.startswith("postgresql+asyncpg://"):
            # Two schedulers plus the API: a small pool is plenty
            engine_kwargs.update(
                pool_size=5,
                max_overflow=5,
                pool_recycle=3600,
                pool_timeout=30,
                connect_args={
                    "timeout": 10,
                    "command_timeout": 30,
                },
            )

        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables and indexes."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()


# Global database instance
_db: Database | None = None


def get_database() -> Database:
    """Get the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db


async def init_database() -> Database:
    """Initialize the database and create tables."""
    db = get_database()
    await db.create_tables()
    return db
