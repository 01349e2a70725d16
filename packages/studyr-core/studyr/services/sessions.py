"""
Study Session Service for Studyr.

Persists completed study sessions under their own store key and derives
study statistics (totals, averages, daily streak) from that history.
"""

import logging
from datetime import datetime, timedelta

from studyr.models.session import StudySession, StudyStats
from studyr.store import get_store
from studyr.timeutil import Clock, local_now, start_of_day

logger = logging.getLogger(__name__)

SESSIONS_KEY = "study_sessions"

# Longest streak walked back from today
MAX_STREAK_DAYS = 365


def productivity_streak(sessions: list[StudySession], today: datetime) -> int:
    """
    Consecutive local days, ending today, with at least one focus session.

    Stops at the first day without one; capped at MAX_STREAK_DAYS.
    """
    days = {s.start_time.date() for s in sessions if s.type == "focus" and s.start_time}
    if not days:
        return 0

    streak = 0
    day = today.date()
    while streak < MAX_STREAK_DAYS and day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


class StudySessionService:
    """
    Service for study-session history.

    The timer writes here; statistics screens read from here.
    """

    def __init__(self, store=None, clock: Clock | None = None):
        """
        Initialize study session service.

        Args:
            store: Optional KeyValueStore. If not provided, uses global store.
            clock: Returns "now"; defaults to local wall time
        """
        self._store = store
        self._clock = clock or local_now

    @property
    def store(self):
        """Get the key-value store."""
        if self._store is None:
            self._store = get_store()
        return self._store

    async def _read_all(self) -> list[StudySession]:
        return await self.store.get_records(SESSIONS_KEY, StudySession.from_dict)

    async def save(self, session: StudySession) -> StudySession:
        """Append a finished session to the history."""
        async with self.store.lock:
            sessions = await self._read_all()
            sessions.append(session)
            await self.store.set_json(SESSIONS_KEY, [s.to_dict() for s in sessions])

        logger.info(
            f"Saved {session.type} session {session.id} "
            f"({session.duration} min, task {session.task_id})"
        )
        return session

    async def list_sessions(
        self,
        task_id: str | None = None,
        since: datetime | None = None,
    ) -> list[StudySession]:
        """List sessions, optionally for one task and/or started at or after `since`."""
        sessions = await self._read_all()
        if task_id:
            sessions = [s for s in sessions if s.task_id == task_id]
        if since:
            sessions = [s for s in sessions if s.start_time >= since]
        return sessions

    async def get_stats(self, days: int = 7) -> StudyStats:
        """
        Summarize study history.

        Args:
            days: Lookback window for the totals

        Returns:
            StudyStats where total_sessions counts focus sessions in the
            window, total_minutes sums every session in the window and
            average_session_length = total_minutes / total_sessions.
        """
        sessions = await self._read_all()
        now = self._clock()
        window_start = now - timedelta(days=days)
        today = start_of_day(now).date()

        recent = [s for s in sessions if s.start_time >= window_start]
        focus = [s for s in recent if s.type == "focus"]
        total_minutes = sum(s.duration for s in recent)

        return StudyStats(
            total_sessions=len(focus),
            total_minutes=total_minutes,
            average_session_length=total_minutes / len(focus) if focus else 0.0,
            focus_sessions_today=sum(
                1 for s in sessions if s.type == "focus" and s.start_time.date() == today
            ),
            productivity_streak=productivity_streak(sessions, now),
        )
