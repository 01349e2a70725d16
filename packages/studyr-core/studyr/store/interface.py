"""
Abstract key-value store interface.

Every backend stores opaque string values under string keys. Services
persist whole JSON collections ("tasks", "study_sessions", "courses")
through get_json/set_json and serialize writes with the store lock.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

from studyr.errors import StorageReadError, StorageWriteError

T = TypeVar("T")


class KeyValueStore(ABC):
    """
    Abstract base class for durable key-value stores.

    Implementations must support:
    - Lifecycle (connect, close)
    - get/set/remove by key
    - Raising StorageReadError / StorageWriteError on backend failure
    """

    _lock: asyncio.Lock | None = None

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection/pool and create storage if needed."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connection/pool."""
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Read the value stored under key.

        Returns:
            The stored string, or None when the key has never been set

        Raises:
            StorageReadError: The backend could not be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageWriteError: The backend rejected the write
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Delete key. Removing a missing key is not an error.

        Raises:
            StorageWriteError: The backend rejected the delete
        """
        pass

    @property
    @abstractmethod
    def backend(self) -> str:
        """Short backend name: "sqlite", "postgres" or "memory"."""
        pass

    @property
    def lock(self) -> asyncio.Lock:
        """
        Write critical section for read-modify-write cycles.

        All services sharing this store hold it while they read a
        collection, mutate it and write it back.
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def get_json(self, key: str, default: Any = None) -> Any:
        """Read and decode a JSON value; default when the key is absent."""
        raw = await self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise StorageReadError(f"Corrupt record under '{key}': {e}", key=key) from e

    async def get_records(self, key: str, from_dict: Callable[[dict], T]) -> list[T]:
        """
        Read a JSON list of records under key and decode each with from_dict.

        Raises:
            StorageReadError: The value is not a list of objects, or a
                record cannot be decoded
        """
        records = await self.get_json(key, default=[])
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise StorageReadError(f"Corrupt record under '{key}': expected a list of objects", key=key)
        try:
            return [from_dict(record) for record in records]
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            raise StorageReadError(f"Corrupt record under '{key}': {e}", key=key) from e

    async def set_json(self, key: str, value: Any) -> None:
        """Encode value as JSON and store it."""
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Cannot serialize value for '{key}': {e}", key=key) from e
        await self.set(key, raw)
