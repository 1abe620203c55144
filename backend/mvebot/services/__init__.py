"""Business services."""

from mvebot.services.tick import TickGuard, TickOutcome
from mvebot.services.context import BotContext
from mvebot.services.strategy_scheduler import StrategyScheduler
from mvebot.services.stop_loss_scheduler import StopLossScheduler
from mvebot.services.runner import SchedulerRunner, seconds_until_boundary
from mvebot.services.bot import Bot

__all__ = [
    "TickGuard",
    "TickOutcome",
    "BotContext",
    "StrategyScheduler",
    "StopLossScheduler",
    "SchedulerRunner",
    "seconds_until_boundary",
    "Bot",
]
