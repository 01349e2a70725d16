"""
Store factory.

Creates the appropriate key-value store based on configuration.
"""

import logging

from studyr.store.interface import KeyValueStore

logger = logging.getLogger(__name__)

# Global store instance (singleton pattern)
_store: KeyValueStore | None = None


def create_store(config=None) -> KeyValueStore:
    """
    Build a new store from configuration without caching it.

    Args:
        config: Optional StudyrConfig. If not provided, loads from default location.

    Raises:
        ValueError: If store configuration is invalid
    """
    if config is None:
        from studyr.config import load_config
        config = load_config()

    store_type = config.store.type.lower()

    if store_type in ("postgres", "postgresql"):
        from studyr.store.postgres import PostgresStore

        url = config.store.postgres_url
        if not url:
            raise ValueError(
                "PostgreSQL URL not configured. "
                "Set store.postgres.url in config or STUDYR_DATABASE_URL env var."
            )
        logger.info("Using PostgreSQL store")
        return PostgresStore(url)

    if store_type == "sqlite":
        from studyr.store.sqlite import SQLiteStore

        path = config.store.sqlite_path
        logger.info(f"Using SQLite store: {path}")
        return SQLiteStore(path)

    if store_type == "memory":
        from studyr.store.memory import MemoryStore

        logger.info("Using in-memory store")
        return MemoryStore()

    raise ValueError(
        f"Unknown store type: {store_type}. "
        "Use 'sqlite', 'postgres' or 'memory'."
    )


def get_store(config=None) -> KeyValueStore:
    """
    Get or create the store based on configuration.

    Uses singleton pattern - returns same store instance on subsequent calls.
    """
    global _store

    if _store is None:
        _store = create_store(config)
    return _store


async def init_store(config=None) -> KeyValueStore:
    """Get the store and connect it."""
    store = get_store(config)
    await store.connect()
    return store


async def close_store() -> None:
    """Close the global store connection."""
    global _store

    if _store is not None:
        await _store.close()
        _store = None


def reset_store() -> None:
    """
    Reset the global store instance.

    Useful for testing or when configuration changes.
    """
    global _store
    _store = None
