"""
Smart priority scoring.

Rule-based score combining:
- urgency (0-50): time pressure from the due date,
- importance (0-50): declared priority, task type, grading weight and difficulty,
- smart priority (0-100): their clamped sum.

Pure functions, no I/O. Missing or unknown inputs contribute nothing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from studyr.models.task import Task
from studyr.timeutil import local_now

SECONDS_PER_DAY = 24 * 60 * 60

PRIORITY_POINTS = {"high": 20, "medium": 12, "low": 6}

TYPE_POINTS = {
    "exam": 15,
    "project": 12,
    "assignment": 10,
    "study": 8,
    "reading": 6,
    "other": 5,
}

DIFFICULTY_MULTIPLIERS = {"hard": 1.2, "medium": 1.0, "easy": 0.8}

# Fields whose change invalidates a task's score
SCORE_FIELDS = frozenset({"due_date", "priority", "task_type", "difficulty", "weight"})


@dataclass(frozen=True)
class PriorityScore:
    smart_priority: float
    urgency_score: float
    importance_score: float


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def urgency_score(due_date: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Urgency from days until due; 0 when there is no due date."""
    if due_date is None:
        return 0
    days = (due_date - (now or local_now())).total_seconds() / SECONDS_PER_DAY

    if days < 0:
        return 50
    if days <= 1:
        return 45
    if days <= 3:
        return 35
    if days <= 7:
        return 25
    if days <= 14:
        return 15
    return 5


def importance_score(
    priority: Optional[str],
    task_type: Optional[str],
    weight: Optional[float] = None,
    difficulty: Optional[str] = None,
) -> float:
    """
    Importance built additively, then scaled by difficulty.

    base(priority) + type points + min(weight / 5, 10), times the
    difficulty multiplier, clamped to [0, 50].
    """
    score = PRIORITY_POINTS.get(priority, 0) + TYPE_POINTS.get(task_type, 0)
    if weight is not None and weight > 0:
        score += min(weight / 5, 10)
    score *= DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)
    return clamp(score, 0, 50)


def score_priority(task: Task, now: Optional[datetime] = None) -> PriorityScore:
    """Compute the three scores for a task at time `now`."""
    urgency = urgency_score(task.due_date, now)
    importance = importance_score(task.priority, task.task_type, task.weight, task.difficulty)
    return PriorityScore(
        smart_priority=clamp(urgency + importance, 0, 100),
        urgency_score=urgency,
        importance_score=importance,
    )


def apply_priority(task: Task, now: Optional[datetime] = None) -> Task:
    """Write fresh scores onto the task and return it."""
    score = score_priority(task, now)
    task.smart_priority = score.smart_priority
    task.urgency_score = score.urgency_score
    task.importance_score = score.importance_score
    return task


def rank_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Highest smart priority first; unscored tasks last."""
    return sorted(
        tasks,
        key=lambda t: t.smart_priority if t.smart_priority is not None else -1,
        reverse=True,
    )
