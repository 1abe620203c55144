"""Data storage layer."""

from mvebot.storage.database import Database, PositionTable, get_database, init_database
from mvebot.storage.position_repo import SqlPositionStore
from mvebot.storage.memory_store import InMemoryPositionStore
from mvebot.storage.state_cache import StateCache

__all__ = [
    "Database",
    "PositionTable",
    "get_database",
    "init_database",
    "SqlPositionStore",
    "InMemoryPositionStore",
    "StateCache",
]
