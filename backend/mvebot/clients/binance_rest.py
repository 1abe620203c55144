"""Binance spot REST client used as the strategy's candle source."""

import asyncio
from datetime import datetime, timezone
from typing import Any

import httpx

from mvebot.errors import TransientFetchError
from mvecore.models import Candle


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            wait_time = self.last_call + self.interval - loop.time()
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = loop.time()


def _ms_to_datetime(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def parse_kline_row(row: list[Any]) -> Candle:
    """Convert one ``/api/v3/klines`` row into a Candle.

    Row layout: [openTime, open, high, low, close, volume, closeTime, ...]
    """
    return Candle(
        open_time=_ms_to_datetime(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
        close_time=_ms_to_datetime(row[6]),
    )


class BinanceRestClient:
    """Binance spot REST API client.

    Every request has a bounded timeout and no retry: a failure surfaces as
    ``TransientFetchError`` and the caller's next scheduled tick tries again.
    """

    BASE_URL = "https://api.binance.com"
    MAX_LIMIT = 1000

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.rate_limiter = RateLimiter()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise TransientFetchError(f"{endpoint} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise TransientFetchError(
                f"{endpoint} returned HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TransientFetchError(f"{endpoint} failed: {e}") from e

    async def fetch(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """
        Fetch the most recent candles for a symbol.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Kline interval (e.g., "1m", "1s")
            limit: Number of candles (capped at 1000)

        Returns:
            Candles ordered by open time, oldest first
        """
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, self.MAX_LIMIT),
        }
        data = await self._request("GET", "/api/v3/klines", params)

        try:
            candles = [parse_kline_row(row) for row in data]
        except (TypeError, ValueError, IndexError) as e:
            raise TransientFetchError(
                f"Malformed kline payload for {symbol} {interval}: {e}"
            ) from e

        candles.sort(key=lambda c: c.open_time)
        return candles
