"""
Timestamp helpers shared by models and services.

All timestamps are naive local time. Calendar questions ("due today",
"focus session today") are answered against the local day.
"""

from datetime import datetime
from typing import Callable, Optional

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Default clock."""
    return datetime.now()


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) into naive local time."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)
