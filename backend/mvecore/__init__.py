"""Core logic for the MVE cluster strategy: models, indicators, signal detection.

This package contains pure business logic with no I/O dependencies
(no database, HTTP, or clock access). The schedulers in ``mvebot`` feed it
fetched candles and act on its results.
"""
