"""
Outbound notification port.

The timer announces finished sessions through a Notifier. Hosts with a
real notification channel implement send_immediate; the default just logs.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Sends a notification right away."""

    @abstractmethod
    async def send_immediate(self, title: str, body: str, data: dict[str, Any] | None = None) -> None:
        """
        Deliver a notification.

        Args:
            title: Short headline
            body: Message text
            data: Extra payload for the host (e.g. {"type": "study_complete"})
        """
        pass


class LoggingNotifier(Notifier):
    """Writes notifications to the log."""

    async def send_immediate(self, title: str, body: str, data: dict[str, Any] | None = None) -> None:
        logger.info(f"Notification: {title} - {body} {data or {}}")
