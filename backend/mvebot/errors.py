"""Error taxonomy for scheduler ticks.

A tick that raises one of these is aborted without touching the persisted
position or the previous snapshot. Losing the close race to the other
scheduler is not an error: ``PositionStore.close_position`` returns None.
"""


class BotError(Exception):
    """Base class for bot errors."""


class TransientFetchError(BotError):
    """Upstream candle fetch failed (timeout, HTTP error, malformed payload)."""


class InsufficientHistoryError(BotError):
    """Not enough candles or indicator points yet. Expected during warm-up."""


class PersistenceFailure(BotError):
    """Position store unreachable or a store call failed."""
