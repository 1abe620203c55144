"""Exchange API clients."""

from mvebot.clients.binance_rest import BinanceRestClient, RateLimiter, parse_kline_row

__all__ = [
    "BinanceRestClient",
    "RateLimiter",
    "parse_kline_row",
]
