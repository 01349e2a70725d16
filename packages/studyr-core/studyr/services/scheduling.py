"""
Repeating tick scheduling for the study timer.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker(ABC):
    """Calls a callback at a fixed interval until cancelled."""

    @abstractmethod
    def start(self, callback: Callable[[], None]) -> None:
        """Begin ticking; restarts if already running."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Stop ticking. Safe to call when not running."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        pass


class AsyncioTicker(Ticker):
    """
    Ticker driven by the running asyncio event loop.

    Ticks are scheduled against the loop clock so they do not drift.
    start() must be called from inside the event loop.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._callback: Optional[Callable[[], None]] = None
        self._next_at = 0.0

    def start(self, callback: Callable[[], None]) -> None:
        self.cancel()
        self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._next_at = self._loop.time() + self.interval
        self._handle = self._loop.call_at(self._next_at, self._fire)

    def _fire(self) -> None:
        # Schedule first so a callback that cancels also cancels the next tick
        self._next_at += self.interval
        self._handle = self._loop.call_at(self._next_at, self._fire)
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def active(self) -> bool:
        return self._handle is not None
