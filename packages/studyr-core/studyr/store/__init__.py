"""
Durable key-value store layer supporting SQLite, PostgreSQL and memory.
"""

from studyr.store.factory import close_store, create_store, get_store, init_store, reset_store
from studyr.store.interface import KeyValueStore

__all__ = [
    "KeyValueStore",
    "create_store",
    "get_store",
    "init_store",
    "close_store",
    "reset_store",
]
