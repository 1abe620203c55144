"""REST API routes.

Read-mostly: the only side effect any endpoint can have is running one
guarded tick.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from mvebot.errors import PersistenceFailure
from mvebot.services import Bot
from mvecore.models import Position

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class OpenPositionSummary(BaseModel):
    """Compact view of the open position."""

    type: str
    entry_price: float
    entry_time: datetime


class HealthResponse(BaseModel):
    """Bot configuration and cache freshness."""

    ok: bool
    symbol: str
    strategy_interval: str
    stop_loss_interval: str
    reference_interval: str
    sma_periods: list[int]
    cluster_threshold: str
    dry_run: bool
    store: str
    position: Optional[OpenPositionSummary] = None
    cache_age_seconds: Optional[float] = None
    last_strategy_tick: Optional[datetime] = None
    last_stop_loss_tick: Optional[datetime] = None


class PriceResponse(BaseModel):
    """Latest price, indicators and signal state."""

    symbol: str
    price: Optional[float] = None
    indicators: dict[int, float]
    reference_indicator: Optional[float] = None
    clustered: bool
    cluster_gap: Optional[float] = None
    cluster_gap_percent: Optional[float] = None
    signal: str
    position_open: bool
    position_type: Optional[str] = None
    stop_loss_triggered: bool
    last_strategy_tick: Optional[datetime] = None
    last_stop_loss_tick: Optional[datetime] = None


class PnlResponse(BaseModel):
    """Realised PnL over closed positions."""

    total_pnl: float
    count: int


class TickResponse(BaseModel):
    """Result of a manually triggered tick."""

    ok: bool
    outcome: str
    last_tick: Optional[datetime] = None


def get_bot(request: Request) -> Bot:
    """Dependency returning the running bot."""
    bot = getattr(request.app.state, "bot", None)
    if bot is None:
        raise HTTPException(status_code=503, detail="Bot not started")
    return bot


@router.get("/health", response_model=HealthResponse)
async def get_health(bot: Bot = Depends(get_bot)):
    """Get bot configuration and cache freshness."""
    settings = bot.settings
    snapshot = bot.ctx.cache.snapshot
    position = bot.ctx.open_position

    return HealthResponse(
        ok=True,
        symbol=settings.symbol,
        strategy_interval=settings.strategy_interval,
        stop_loss_interval=settings.stop_loss_interval,
        reference_interval=settings.effective_reference_interval,
        sma_periods=settings.sma_periods,
        cluster_threshold=f"{settings.cluster_threshold_percent}%",
        dry_run=settings.dry_run,
        store="memory" if settings.dry_run else "sql",
        position=(
            OpenPositionSummary(
                type=position.position_type.value,
                entry_price=position.entry_price,
                entry_time=position.entry_time,
            )
            if position
            else None
        ),
        cache_age_seconds=bot.ctx.cache.age_seconds(bot.ctx.clock()),
        last_strategy_tick=snapshot.last_strategy_tick,
        last_stop_loss_tick=snapshot.last_stop_loss_tick,
    )


@router.get("/price", response_model=PriceResponse)
async def get_price(bot: Bot = Depends(get_bot)):
    """Get latest price and indicators, refreshing a stale cache first."""
    await bot.refresh_if_stale()

    snapshot = bot.ctx.cache.snapshot
    position = bot.ctx.open_position

    return PriceResponse(
        symbol=bot.settings.symbol,
        price=snapshot.price,
        indicators=snapshot.indicators,
        reference_indicator=snapshot.reference_indicator,
        clustered=snapshot.cluster.clustered,
        cluster_gap=snapshot.cluster.gap,
        cluster_gap_percent=snapshot.cluster.gap_percent,
        signal=snapshot.signal.value,
        position_open=position is not None,
        position_type=position.position_type.value if position else None,
        stop_loss_triggered=snapshot.stop_loss_triggered,
        last_strategy_tick=snapshot.last_strategy_tick,
        last_stop_loss_tick=snapshot.last_stop_loss_tick,
    )


@router.get("/orders/history", response_model=list[Position])
async def get_order_history(
    limit: int = Query(100, ge=1, le=1000, description="Maximum positions to return"),
    bot: Bot = Depends(get_bot),
):
    """Get recent positions, newest first."""
    try:
        return await bot.ctx.store.get_history(bot.settings.symbol, limit=limit)
    except PersistenceFailure as e:
        logger.error(f"History query failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/positions/open", response_model=list[Position])
async def get_open_positions(bot: Bot = Depends(get_bot)):
    """Get open positions."""
    try:
        return await bot.ctx.store.get_open(bot.settings.symbol)
    except PersistenceFailure as e:
        logger.error(f"Open positions query failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/pnl/total", response_model=PnlResponse)
async def get_pnl_total(bot: Bot = Depends(get_bot)):
    """Get realised PnL over closed positions."""
    try:
        summary = await bot.ctx.store.get_pnl_total(bot.settings.symbol)
    except PersistenceFailure as e:
        logger.error(f"PnL query failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return PnlResponse(total_pnl=round(summary.total_pnl, 6), count=summary.count)


@router.api_route("/tick/strategy", methods=["GET", "POST"], response_model=TickResponse)
async def trigger_strategy_tick(bot: Bot = Depends(get_bot)):
    """Run one strategy tick now (skipped if one is already running)."""
    outcome = await bot.strategy.tick()
    return TickResponse(
        ok=True,
        outcome=outcome.value,
        last_tick=bot.ctx.cache.snapshot.last_strategy_tick,
    )


@router.api_route("/tick/stoploss", methods=["GET", "POST"], response_model=TickResponse)
async def trigger_stop_loss_tick(bot: Bot = Depends(get_bot)):
    """Run one stop-loss tick now (skipped if one is already running)."""
    outcome = await bot.stop_loss.tick()
    return TickResponse(
        ok=True,
        outcome=outcome.value,
        last_tick=bot.ctx.cache.snapshot.last_stop_loss_tick,
    )
