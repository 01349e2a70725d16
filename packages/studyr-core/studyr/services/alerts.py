"""
In-app alert policy for Studyr.

Decides which due-date banner to surface for a task list and emits
completion celebrations. Rendering is left to the host, which injects
four presentation callbacks (success, warning, error, info).
"""

import logging
import random
from datetime import date, timedelta
from typing import Callable, Iterable, Optional, Protocol

from studyr.config import AlertConfig
from studyr.models.task import Task
from studyr.timeutil import Clock, local_now, start_of_day

logger = logging.getLogger(__name__)

CELEBRATIONS = (
    "🎉 Awesome! You completed a task!",
    "✨ Great job finishing that task!",
    "🚀 One step closer to your goals!",
    "🌟 You're crushing it today!",
    "💪 Task conquered! Keep going!",
)

MOTIVATIONS = (
    "🌟 Ready to tackle your tasks today?",
    "💪 Let's make today productive!",
    "🚀 Time to achieve your goals!",
    "✨ Every task completed is progress!",
    "🎯 Focus on what matters most today!",
)

# Alert kinds returned by check_and_show_alerts
ALERT_OVERDUE = "overdue"
ALERT_DUE_TODAY = "due-today"
ALERT_DUE_SOON = "due-soon"

# Urgency levels returned by get_task_urgency
URGENCY_LEVELS = (ALERT_OVERDUE, ALERT_DUE_TODAY, ALERT_DUE_SOON, "normal")


class AlertPresenter(Protocol):
    """Presentation callbacks supplied by the host."""

    def show_success(self, title: str, message: str) -> None: ...

    def show_warning(self, title: str, message: str) -> None: ...

    def show_error(self, title: str, message: str) -> None: ...

    def show_info(self, title: str, message: str) -> None: ...


def _plural(count: int) -> str:
    return "s" if count != 1 else ""


class AlertDispatcher:
    """
    Chooses and shows due-date alerts.

    Precedence per check: overdue, then due today (once per day), then
    due soon. The "shown today" flag clears on reset_daily_flags() and,
    when auto_reset_daily is set, whenever the local date changes.
    """

    def __init__(
        self,
        presenter: Optional[AlertPresenter] = None,
        config: Optional[AlertConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self._presenter = presenter
        self.config = config or AlertConfig()
        self._clock = clock or local_now
        self._rng = rng or random.Random()
        self._today_alert_shown_on: Optional[date] = None

    def set_notification_functions(self, presenter: AlertPresenter) -> None:
        """Inject the host's presentation callbacks."""
        self._presenter = presenter

    def _show(self, kind: str, title: str, message: str) -> bool:
        if self._presenter is None:
            logger.debug(f"No presenter set; dropping alert: {title}")
            return False
        show: Callable[[str, str], None] = getattr(self._presenter, f"show_{kind}")
        show(title, message)
        return True

    # ── Daily flag ──────────────────────────────────────────────────────────

    @property
    def has_shown_today_alert(self) -> bool:
        shown_on = self._today_alert_shown_on
        if shown_on is None:
            return False
        if self.config.auto_reset_daily and shown_on != self._clock().date():
            return False
        return True

    def reset_daily_flags(self) -> None:
        """Allow the due-today alert to show again."""
        self._today_alert_shown_on = None

    # ── Classification ──────────────────────────────────────────────────────

    def get_overdue_tasks(self, tasks: Iterable[Task]) -> list[Task]:
        now = self._clock()
        return [t for t in tasks if t.due_date and not t.completed and t.due_date < now]

    def get_due_today_tasks(self, tasks: Iterable[Task]) -> list[Task]:
        today = start_of_day(self._clock())
        tomorrow = today + timedelta(days=1)
        return [
            t for t in tasks
            if t.due_date and not t.completed and today <= t.due_date < tomorrow
        ]

    def get_due_soon_tasks(self, tasks: Iterable[Task]) -> list[Task]:
        """Due more than one and at most two days from now."""
        now = self._clock()
        lower = now + timedelta(days=1)
        upper = now + timedelta(days=2)
        return [
            t for t in tasks
            if t.due_date and not t.completed and lower < t.due_date <= upper
        ]

    def get_task_urgency(self, task: Task) -> str:
        """overdue, due-today, due-soon or normal, for visual indicators."""
        if task.due_date is None or task.completed:
            return "normal"

        now = self._clock()
        today = start_of_day(now)
        tomorrow = today + timedelta(days=1)
        day_after_tomorrow = today + timedelta(days=2)

        if task.due_date < now:
            return ALERT_OVERDUE
        if today <= task.due_date < tomorrow:
            return ALERT_DUE_TODAY
        if tomorrow <= task.due_date <= day_after_tomorrow:
            return ALERT_DUE_SOON
        return "normal"

    # ── Alerts ──────────────────────────────────────────────────────────────

    def check_and_show_alerts(self, tasks: Iterable[Task]) -> str | None:
        """
        Show at most one alert for the task list.

        Returns:
            The alert kind shown (overdue, due-today, due-soon) or None
        """
        tasks = list(tasks)

        overdue = self.get_overdue_tasks(tasks)
        if overdue:
            self._show_overdue_alert(overdue)
            return ALERT_OVERDUE

        due_today = self.get_due_today_tasks(tasks)
        if due_today and not self.has_shown_today_alert:
            self._show_due_today_alert(due_today)
            self._today_alert_shown_on = self._clock().date()
            return ALERT_DUE_TODAY

        due_soon = self.get_due_soon_tasks(tasks)
        if due_soon:
            self._show_due_soon_alert(due_soon)
            return ALERT_DUE_SOON

        return None

    def _task_lines(self, tasks: list[Task], mark_high: bool = False) -> str:
        limit = self.config.max_listed
        lines = []
        for task in tasks[:limit]:
            flame = " 🔥" if mark_high and task.priority == "high" else ""
            lines.append(f"• {task.title}{flame}")
        if len(tasks) > limit:
            lines.append(f"... and {len(tasks) - limit} more")
        return "\n".join(lines)

    def _show_overdue_alert(self, tasks: list[Task]) -> None:
        count = len(tasks)
        message = (
            f"You have {count} overdue task{_plural(count)}:\n\n"
            f"{self._task_lines(tasks)}\n\nTime to catch up!"
        )
        self._show("error", "🚨 Overdue Tasks!", message)

    def _show_due_today_alert(self, tasks: list[Task]) -> None:
        count = len(tasks)
        high = sum(1 for t in tasks if t.priority == "high")
        priority_text = f" ({high} high priority!)" if high else ""
        message = (
            f"You have {count} task{_plural(count)} due today{priority_text}:\n\n"
            f"{self._task_lines(tasks, mark_high=True)}\n\nLet's get them done!"
        )
        self._show("warning", "📅 Tasks Due Today!", message)

    def _show_due_soon_alert(self, tasks: list[Task]) -> None:
        count = len(tasks)
        self._show(
            "info",
            "⏰ Tasks Due Soon",
            f"You have {count} task{_plural(count)} due in the next 2 days. "
            "Plan ahead to stay on track!",
        )

    def show_completion_celebration(self, task: Task) -> None:
        """Cheer a task that just became completed."""
        self._show("success", self._rng.choice(CELEBRATIONS), f'"{task.title}" has been completed!')

    def show_daily_motivation(self) -> None:
        self._show("info", "Good morning, Champion!", self._rng.choice(MOTIVATIONS))
