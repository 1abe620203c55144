"""MVE cluster bot service: candle feed, storage, schedulers and read API."""
