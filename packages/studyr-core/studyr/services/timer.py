"""
Study Timer for Studyr.

A single Pomodoro-style countdown cycling between focus and break runs.

States: idle -> running <-> paused, back to idle on stop or when the
countdown reaches zero. Every transition (each tick included) calls the
subscribers synchronously with a TimerState snapshot.

Finished runs are persisted in the background: a lost study-session
record is logged and never interrupts the timer.
"""

import asyncio
import logging
from typing import Callable, Coroutine, Optional

from studyr.config import TimerConfig
from studyr.errors import TimerError, ValidationError
from studyr.models.session import GENERAL_TASK_ID, TIMER_SESSION_TYPES, StudySession, TimerState
from studyr.services.notifications import LoggingNotifier, Notifier
from studyr.services.scheduling import AsyncioTicker, Ticker
from studyr.timeutil import Clock, local_now

logger = logging.getLogger(__name__)

# Stopped runs shorter than this are discarded
MIN_SAVED_SECONDS = 60

Listener = Callable[[TimerState], None]


def format_time(seconds: int) -> str:
    """Render seconds as MM:SS."""
    minutes, remaining = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{remaining:02d}"


class StudyTimer:
    """
    Focus/break countdown timer.

    Collaborators are injected: the session service persists finished
    runs, the optional task service folds them into the owning task's
    actual_time, the notifier announces finished runs, the ticker drives
    the 1-second tick and the clock supplies timestamps.
    """

    def __init__(
        self,
        sessions=None,
        tasks=None,
        notifier: Optional[Notifier] = None,
        config: Optional[TimerConfig] = None,
        ticker: Optional[Ticker] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the timer in the idle focus state.

        Args:
            sessions: StudySessionService receiving finished runs
            tasks: Optional TaskService; sessions tied to a task are added to it
            notifier: Completion notifications; defaults to LoggingNotifier
            config: Session lengths; defaults to 25/5/15 minutes
            ticker: Tick source; defaults to a 1-second AsyncioTicker
            clock: Returns "now"; defaults to local wall time
        """
        self.sessions = sessions
        self.tasks = tasks
        self.notifier = notifier or LoggingNotifier()
        self.config = config or TimerConfig()
        self._ticker = ticker or AsyncioTicker(1.0)
        self._clock = clock or local_now
        self._listeners: set[Listener] = set()
        self._pending: set[asyncio.Task] = set()

        initial = self.config.focus_minutes * 60
        self._state = TimerState(time_left=initial, initial_time=initial)

    # ── Subscriptions ───────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a state listener.

        Returns:
            An unsubscribe function; calling it more than once is harmless
        """
        self._listeners.add(listener)

        def unsubscribe() -> None:
            self._listeners.discard(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Timer listener {listener!r} failed: {e}")

    def get_state(self) -> TimerState:
        """Current state snapshot."""
        return self._state.snapshot()

    # ── Controls ────────────────────────────────────────────────────────────

    def start(self, task_id: str | None = None) -> None:
        """
        Start or resume the countdown.

        A fresh start (nothing run yet in this session) opens a new
        draft StudySession; resuming from pause keeps the existing one.
        No-op when already running.
        """
        state = self._state
        if state.is_active and not state.is_paused:
            logger.debug("Timer already running")
            return

        # Nothing changes if the ticker cannot be scheduled
        self._ticker.start(self.tick)

        fresh = state.current_session is None or state.time_left == state.initial_time
        if fresh:
            state.current_task_id = task_id
            state.current_session = StudySession(
                task_id=task_id or GENERAL_TASK_ID,
                start_time=self._clock(),
                duration=0,
                type=state.session_type,
            )
        elif task_id is not None:
            state.current_task_id = task_id

        state.is_active = True
        state.is_paused = False

        logger.info(
            f"Timer {'started' if fresh else 'resumed'}: {state.session_type} "
            f"{format_time(state.time_left)} (task {state.current_task_id or GENERAL_TASK_ID})"
        )
        self._notify()

    def pause(self) -> None:
        """Pause a running countdown; no-op otherwise."""
        state = self._state
        if not state.is_active or state.is_paused:
            return

        state.is_paused = True
        self._ticker.cancel()
        logger.info(f"Timer paused at {format_time(state.time_left)}")
        self._notify()

    def stop(self) -> None:
        """
        Abort the current run and reset the countdown.

        Runs of at least one minute are saved with the minutes completed
        so far; shorter runs are discarded.
        """
        state = self._state
        self._ticker.cancel()

        session = state.current_session
        elapsed = state.elapsed
        if session is not None and elapsed >= MIN_SAVED_SECONDS:
            session.end_time = self._clock()
            session.duration = elapsed // 60
            self._spawn(self._persist(session))
        elif session is not None:
            logger.debug(f"Discarding {elapsed}s session {session.id}")

        state.is_active = False
        state.is_paused = False
        state.time_left = state.initial_time
        state.current_session = None
        self._notify()

    def reset(self) -> None:
        """Rewind the countdown without saving anything."""
        if self._state.is_active:
            raise TimerError("Cannot reset a running timer; stop it first")
        self._state.time_left = self._state.initial_time
        self._state.current_session = None
        self._notify()

    def set_duration(self, minutes: int) -> None:
        """
        Set the countdown length.

        Raises:
            TimerError: The timer is running or paused
            ValidationError: minutes is not positive
        """
        if self._state.is_active:
            raise TimerError("Cannot change duration while the timer is active")
        if minutes <= 0:
            raise ValidationError("Duration must be a positive number of minutes")
        self._set_length(minutes)
        self._notify()

    def switch_session_type(self, session_type: str) -> None:
        """
        Switch between focus and break, applying the preset length.

        Raises:
            TimerError: The timer is running or paused
            ValidationError: Unknown session type
        """
        if self._state.is_active:
            raise TimerError("Cannot switch session type while the timer is active")
        if session_type not in TIMER_SESSION_TYPES:
            raise ValidationError(
                f"Invalid session type. Must be one of: {', '.join(TIMER_SESSION_TYPES)}"
            )
        self._switch(session_type)
        self._notify()

    # ── Ticking ─────────────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance the countdown by one second."""
        state = self._state
        if not state.is_active or state.is_paused:
            return

        state.time_left = max(state.time_left - 1, 0)
        if state.current_session is not None:
            state.current_session.duration = state.elapsed // 60

        if state.time_left == 0:
            self._complete()
            return
        self._notify()

    def _complete(self) -> None:
        state = self._state
        self._ticker.cancel()
        state.is_active = False
        state.is_paused = False

        session = state.current_session
        state.current_session = None
        if session is not None:
            session.end_time = self._clock()
            session.duration = state.initial_time // 60

        finished = state.session_type
        if finished == "focus":
            state.completed_sessions += 1
            notification = (
                "🎉 Focus Session Complete!",
                f"Great work! You completed a {state.initial_time // 60}-minute focus session.",
                {"type": "study_complete"},
            )
            self._switch("break")
        else:
            notification = (
                "⏰ Break Time Over!",
                "Ready to get back to work? Start your next focus session.",
                {"type": "break_complete"},
            )
            self._switch("focus")

        logger.info(
            f"{finished.capitalize()} session complete "
            f"({state.completed_sessions} focus sessions so far)"
        )
        self._spawn(self._persist(session, notification))
        self._notify()

    def _switch(self, session_type: str) -> None:
        self._state.session_type = session_type
        if session_type == "focus":
            minutes = self.config.focus_minutes
        elif self._is_long_break_due():
            minutes = self.config.long_break_minutes
        else:
            minutes = self.config.short_break_minutes
        self._set_length(minutes)

    def _is_long_break_due(self) -> bool:
        done = self._state.completed_sessions
        return done > 0 and done % self.config.long_break_every == 0

    def _set_length(self, minutes: int) -> None:
        self._state.initial_time = minutes * 60
        self._state.time_left = minutes * 60

    # ── Background persistence ──────────────────────────────────────────────

    def _spawn(self, coro: Coroutine) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; study session not saved")
            coro.close()
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, session: StudySession | None, notification: tuple | None = None) -> None:
        if session is not None and self.sessions is not None:
            try:
                await self.sessions.save(session)
                if self.tasks is not None and not session.is_general:
                    await self.tasks.add_study_session(session.task_id, session)
            except Exception as e:
                logger.error(f"Failed to save study session {session.id}: {e}")

        if notification is not None:
            try:
                await self.notifier.send_immediate(*notification)
            except Exception as e:
                logger.error(f"Failed to send timer notification: {e}")

    async def drain(self) -> None:
        """Wait for background saves and notifications to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def shutdown(self) -> None:
        """Stop ticking and flush background work."""
        self._ticker.cancel()
        await self.drain()
