"""
In-process key-value store.

Nothing survives the process; used for `store.type: memory` and tests.
"""

import logging

from studyr.store.interface import KeyValueStore

logger = logging.getLogger(__name__)


class MemoryStore(KeyValueStore):
    """Key-value store held in a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def connect(self) -> None:
        logger.debug("Memory store ready")

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    @property
    def backend(self) -> str:
        return "memory"
