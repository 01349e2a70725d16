"""
Studyr Core Library

Student task planning with priority scoring, a focus/break study timer
and due-date alerts, persisted in SQLite or PostgreSQL.
"""

__version__ = "0.1.0"

from studyr.config import StudyrConfig, load_config
from studyr.errors import NotFoundError, StorageError, StudyrError, TimerError, ValidationError
from studyr.store import KeyValueStore, get_store

__all__ = [
    "load_config",
    "StudyrConfig",
    "get_store",
    "KeyValueStore",
    "StudyrError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "TimerError",
]
