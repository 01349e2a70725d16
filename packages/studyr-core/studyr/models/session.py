"""
Study session and timer models for Studyr.

StudySessions are the persisted history of focus/break runs.
TimerState is the snapshot handed to timer subscribers.
StudyStats is the derived summary over session history.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
from uuid import uuid4

from studyr.timeutil import format_datetime, local_now, parse_datetime


# Sentinel task id for sessions not tied to a task
GENERAL_TASK_ID = "general"

# Valid study session types
SESSION_TYPES = ("focus", "break", "review")

# Session types the timer cycles through
TIMER_SESSION_TYPES = ("focus", "break")

# Valid productivity ratings
PRODUCTIVITY_RATINGS = ("low", "medium", "high")


@dataclass
class StudySession:
    """
    One timed run of the study timer.

    Attributes:
        id: Unique identifier (UUID)
        task_id: Owning task, or "general"
        start_time: When the run started
        end_time: When the run completed or was stopped
        duration: Whole minutes
        type: focus, break, review
        productivity: Optional self-rating (low, medium, high)
    """

    task_id: str = GENERAL_TASK_ID
    id: str = field(default_factory=lambda: str(uuid4()))
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: int = 0
    type: str = "focus"
    productivity: Optional[str] = None

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = local_now()

    @property
    def is_general(self) -> bool:
        return self.task_id == GENERAL_TASK_ID

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "startTime": format_datetime(self.start_time),
            "endTime": format_datetime(self.end_time),
            "duration": self.duration,
            "type": self.type,
            "productivity": self.productivity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(
            id=data.get("id") or str(uuid4()),
            task_id=data.get("taskId") or GENERAL_TASK_ID,
            start_time=parse_datetime(data.get("startTime")),
            end_time=parse_datetime(data.get("endTime")),
            duration=int(data.get("duration") or 0),
            type=data.get("type") or "focus",
            productivity=data.get("productivity"),
        )


@dataclass
class TimerState:
    """Snapshot of the study timer."""

    time_left: int
    initial_time: int
    is_active: bool = False
    is_paused: bool = False
    session_type: str = "focus"
    completed_sessions: int = 0
    current_task_id: Optional[str] = None
    current_session: Optional[StudySession] = None

    @property
    def status(self) -> str:
        """idle, running or paused."""
        if not self.is_active:
            return "idle"
        return "paused" if self.is_paused else "running"

    @property
    def elapsed(self) -> int:
        """Seconds run so far in the current session."""
        return self.initial_time - self.time_left

    def snapshot(self) -> "TimerState":
        """Detached copy safe to hand to subscribers."""
        session = replace(self.current_session) if self.current_session else None
        return replace(self, current_session=session)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "is_active": self.is_active,
            "is_paused": self.is_paused,
            "time_left": self.time_left,
            "initial_time": self.initial_time,
            "session_type": self.session_type,
            "completed_sessions": self.completed_sessions,
            "current_task_id": self.current_task_id,
            "current_session": self.current_session.to_dict() if self.current_session else None,
        }


@dataclass
class StudyStats:
    """Summary of study history over a lookback window."""

    total_sessions: int = 0
    total_minutes: int = 0
    average_session_length: float = 0.0
    focus_sessions_today: int = 0
    productivity_streak: int = 0

    def to_dict(self) -> dict:
        return {
            "total_sessions": self.total_sessions,
            "total_minutes": self.total_minutes,
            "average_session_length": self.average_session_length,
            "focus_sessions_today": self.focus_sessions_today,
            "productivity_streak": self.productivity_streak,
        }
