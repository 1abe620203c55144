"""SQL-backed position store."""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mvebot.errors import PersistenceFailure
from mvebot.storage.database import Database, PositionTable, get_database
from mvecore.models import ClusterResult, PnlSummary, Position, PositionStatus

logger = logging.getLogger(__name__)


class SqlPositionStore:
    """Durable position store.

    Closing is a single ``UPDATE ... WHERE id = :id AND status = 'OPEN'
    RETURNING *``: the PnL is computed inside the statement, so a close is
    either fully applied or not applied at all, and of two concurrent
    closers exactly one gets a row back.
    """

    def __init__(self, database: Database | None = None):
        self._database = database

    @property
    def database(self) -> Database:
        return self._database or get_database()

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncGenerator[AsyncSession, None]:
        """Session that reports store failures as PersistenceFailure."""
        try:
            async with self.database.session() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceFailure(f"{op} failed: {e}") from e

    async def open_position(self, draft: Position) -> str:
        """Insert a new position and return its generated id."""
        position_id = uuid.uuid4().hex
        async with self._session("open_position") as session:
            session.add(
                PositionTable(
                    id=position_id,
                    symbol=draft.symbol,
                    status=PositionStatus.OPEN.value,
                    position_type=draft.position_type.value,
                    qty=draft.qty,
                    entry_price=draft.entry_price,
                    entry_time=draft.entry_time,
                    entry_indicators={str(k): v for k, v in draft.entry_indicators.items()},
                    cluster_info=draft.cluster_info.model_dump(),
                    reference_indicator_at_entry=draft.reference_indicator_at_entry,
                    created_at=draft.created_at,
                    updated_at=draft.updated_at,
                )
            )
        return position_id

    async def close_position(
        self,
        position_id: str,
        exit_price: float,
        reason: str,
        exit_time: datetime | None = None,
    ) -> Position | None:
        """Close the position if it is still OPEN; None if it already was closed."""
        now = exit_time or datetime.now(timezone.utc)
        pnl = case(
            (
                PositionTable.position_type == "LONG",
                exit_price - PositionTable.entry_price,
            ),
            else_=PositionTable.entry_price - exit_price,
        ) * PositionTable.qty

        stmt = (
            update(PositionTable)
            .where(
                PositionTable.id == position_id,
                PositionTable.status == PositionStatus.OPEN.value,
            )
            .values(
                status=PositionStatus.CLOSED.value,
                exit_price=exit_price,
                exit_time=now,
                exit_reason=reason,
                profit_loss=pnl,
                updated_at=now,
            )
            .returning(PositionTable)
            .execution_options(synchronize_session=False)
        )

        async with self._session("close_position") as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

        if row is None:
            logger.info(f"Position {position_id} already closed, skipping {reason}")
            return None
        return self._row_to_position(row)

    async def restore_latest_open(self, symbol: str) -> Position | None:
        """Get the newest OPEN position for a symbol."""
        async with self._session("restore_latest_open") as session:
            stmt = (
                select(PositionTable)
                .where(
                    PositionTable.symbol == symbol,
                    PositionTable.status == PositionStatus.OPEN.value,
                )
                .order_by(PositionTable.created_at.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

        return self._row_to_position(row) if row is not None else None

    async def get_history(self, symbol: str, limit: int = 100) -> list[Position]:
        """Get recent positions for a symbol, newest first."""
        async with self._session("get_history") as session:
            stmt = (
                select(PositionTable)
                .where(PositionTable.symbol == symbol)
                .order_by(PositionTable.created_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [self._row_to_position(row) for row in rows]

    async def get_open(self, symbol: str) -> list[Position]:
        """Get OPEN positions for a symbol, newest first."""
        async with self._session("get_open") as session:
            stmt = (
                select(PositionTable)
                .where(
                    PositionTable.symbol == symbol,
                    PositionTable.status == PositionStatus.OPEN.value,
                )
                .order_by(PositionTable.created_at.desc())
            )
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [self._row_to_position(row) for row in rows]

    async def get_pnl_total(self, symbol: str) -> PnlSummary:
        """Sum PnL over CLOSED positions."""
        async with self._session("get_pnl_total") as session:
            stmt = select(
                func.coalesce(func.sum(PositionTable.profit_loss), 0.0).label("total"),
                func.count().label("count"),
            ).where(
                PositionTable.symbol == symbol,
                PositionTable.status == PositionStatus.CLOSED.value,
            )
            result = await session.execute(stmt)
            row = result.one()

        return PnlSummary(total_pnl=float(row.total), count=int(row.count))

    @staticmethod
    def _row_to_position(row: PositionTable) -> Position:
        """Convert database row to Position."""
        return Position(
            id=row.id,
            symbol=row.symbol,
            status=PositionStatus(row.status),
            position_type=row.position_type,
            qty=row.qty,
            entry_price=row.entry_price,
            entry_time=row.entry_time,
            entry_indicators=row.entry_indicators or {},
            cluster_info=ClusterResult.model_validate(row.cluster_info or {}),
            reference_indicator_at_entry=row.reference_indicator_at_entry,
            exit_price=row.exit_price,
            exit_time=row.exit_time,
            exit_reason=row.exit_reason,
            profit_loss=row.profit_loss,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
