"""
Task Service for Studyr.

CRUD operations over the persisted task collection. The whole collection
lives under one store key; every mutation reads it, changes one record
and writes it back while holding the store lock.
"""

import builtins
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from studyr.errors import NotFoundError, ValidationError
from studyr.models.session import StudySession
from studyr.models.task import (
    RESOURCE_TYPES,
    TASK_DIFFICULTIES,
    TASK_PRIORITIES,
    TASK_STATUSES,
    TASK_TYPES,
    AcademicResource,
    Task,
    status_for,
)
from studyr.services.scoring import SCORE_FIELDS, apply_priority
from studyr.store import get_store
from studyr.timeutil import Clock, local_now, parse_datetime, start_of_day

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"

UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "completed",
    "status",
    "priority",
    "category",
    "due_date",
    "course_id",
    "task_type",
    "estimated_time",
    "difficulty",
    "grade",
    "weight",
})

TASK_FILTERS = ("all", "active", "completed")
TASK_SORTS = ("dueDate", "priority", "created", "smartPriority")

_PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def _require_choice(name: str, value: str, allowed: tuple) -> None:
    if value not in allowed:
        raise ValidationError(f"Invalid {name}. Must be one of: {', '.join(allowed)}")


def _require_title(title: Optional[str]) -> str:
    if title is None or not str(title).strip():
        raise ValidationError("Task title must not be empty")
    return str(title).strip()


def _require_grade(grade: Optional[float]) -> None:
    if grade is not None and not 0 <= grade <= 100:
        raise ValidationError("Grade must be between 0 and 100")


def _parse_due_date(value) -> Optional[datetime]:
    try:
        return parse_datetime(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid due date: {value!r}") from e


class TaskService:
    """
    Service for managing tasks.

    Completion events (a task moving from not completed to completed)
    are passed to the optional on_complete callback, typically
    AlertDispatcher.show_completion_celebration.
    """

    def __init__(
        self,
        store=None,
        on_complete: Optional[Callable[[Task], Any]] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize task service.

        Args:
            store: Optional KeyValueStore. If not provided, uses global store.
            on_complete: Called with the task after it becomes completed
            clock: Returns "now"; defaults to local wall time
        """
        self._store = store
        self._on_complete = on_complete
        self._clock = clock or local_now

    @property
    def store(self):
        """Get the key-value store."""
        if self._store is None:
            self._store = get_store()
        return self._store

    async def _read_all(self) -> builtins.list[Task]:
        return await self.store.get_records(TASKS_KEY, Task.from_dict)

    async def _write_all(self, tasks: builtins.list[Task]) -> None:
        await self.store.set_json(TASKS_KEY, [t.to_dict() for t in tasks])

    @staticmethod
    def _find(tasks: builtins.list[Task], task_id: str) -> Task:
        for task in tasks:
            if task.id == task_id:
                return task
        raise NotFoundError("Task", task_id)

    def _emit_completed(self, task: Task) -> None:
        if self._on_complete is None:
            return
        try:
            self._on_complete(task)
        except Exception as e:
            logger.error(f"Completion callback failed for task {task.id}: {e}")

    async def load(self) -> builtins.list[Task]:
        """
        Load every task, applying defaults to older records.

        Tasks stored without a score get one computed here.

        Returns:
            All tasks in stored order (empty when nothing is stored yet)

        Raises:
            StorageReadError: The store is unreadable or holds a corrupt record
        """
        tasks = await self._read_all()
        now = self._clock()
        for task in tasks:
            if not task.is_scored:
                apply_priority(task, now)
        logger.debug(f"Loaded {len(tasks)} tasks")
        return tasks

    async def get(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        for task in await self.load():
            if task.id == task_id:
                return task
        return None

    async def create(
        self,
        title: str,
        description: str | None = None,
        completed: bool = False,
        status: str | None = None,
        priority: str = "medium",
        category: str | None = None,
        due_date: datetime | str | None = None,
        course_id: str | None = None,
        task_type: str = "other",
        estimated_time: int | None = None,
        difficulty: str = "medium",
        grade: float | None = None,
        weight: float | None = None,
    ) -> Task:
        """
        Create a new task.

        Args:
            title: Task title (required, non-empty)
            description: Task description
            completed: Completion flag, used when status is omitted
            status: Status (to-do, in-progress, completed); wins over completed
            priority: Priority (low, medium, high)
            category: Free-form label
            due_date: Deadline (datetime or ISO string)
            course_id: Related course
            task_type: assignment, exam, project, reading, study, other
            estimated_time: Estimate in minutes
            difficulty: easy, medium, hard
            grade: Grade 0-100
            weight: Percent of final course grade

        Returns:
            Created Task object

        Raises:
            ValidationError: Empty title or unknown enum value
        """
        title = _require_title(title)
        if status is None:
            status = status_for(completed)
        _require_choice("status", status, TASK_STATUSES)
        _require_choice("priority", priority, TASK_PRIORITIES)
        _require_choice("task type", task_type, TASK_TYPES)
        _require_choice("difficulty", difficulty, TASK_DIFFICULTIES)
        _require_grade(grade)

        now = self._clock()
        task = Task(
            title=title,
            description=description,
            status=status,
            priority=priority,
            category=category,
            due_date=_parse_due_date(due_date),
            created_at=now,
            updated_at=now,
            course_id=course_id,
            task_type=task_type,
            estimated_time=estimated_time,
            difficulty=difficulty,
            grade=grade,
            weight=weight,
        )
        task.sync_completion(prefer_status=True)
        apply_priority(task, now)

        async with self.store.lock:
            tasks = await self._read_all()
            tasks.append(task)
            await self._write_all(tasks)

        logger.info(f"Created task: {task.id} - {task.title}")
        return task

    async def update(self, task_id: str, **updates) -> Task:
        """
        Update a task.

        Args:
            task_id: Task ID
            **updates: Any of UPDATABLE_FIELDS. When both status and
                completed are given, status wins.

        Returns:
            Updated Task

        Raises:
            NotFoundError: No task has this ID
            ValidationError: Unknown field or invalid value
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        if "title" in updates:
            updates["title"] = _require_title(updates["title"])
        if updates.get("status") is not None:
            _require_choice("status", updates["status"], TASK_STATUSES)
        if updates.get("priority") is not None:
            _require_choice("priority", updates["priority"], TASK_PRIORITIES)
        if updates.get("task_type") is not None:
            _require_choice("task type", updates["task_type"], TASK_TYPES)
        if updates.get("difficulty") is not None:
            _require_choice("difficulty", updates["difficulty"], TASK_DIFFICULTIES)
        _require_grade(updates.get("grade"))
        if "due_date" in updates:
            updates["due_date"] = _parse_due_date(updates["due_date"])

        async with self.store.lock:
            tasks = await self._read_all()
            task = self._find(tasks, task_id)
            was_completed = task.completed

            for name, value in updates.items():
                if name in ("status", "completed"):
                    continue
                setattr(task, name, value)

            if updates.get("status") is not None:
                task.status = updates["status"]
                task.sync_completion(prefer_status=True)
            elif updates.get("completed") is not None:
                task.completed = bool(updates["completed"])
                task.sync_completion(prefer_status=False)

            now = self._clock()
            if SCORE_FIELDS & updates.keys():
                apply_priority(task, now)
            task.updated_at = now

            await self._write_all(tasks)

        logger.info(f"Updated task: {task.id} ({', '.join(sorted(updates)) or 'no fields'})")

        if task.completed and not was_completed:
            self._emit_completed(task)
        return task

    async def update_status(self, task_id: str, status: str) -> Task:
        """Move a task to another Kanban column."""
        return await self.update(task_id, status=status)

    async def complete(self, task_id: str) -> Task:
        """Mark a task as completed."""
        return await self.update(task_id, status="completed")

    async def delete(self, task_id: str) -> bool:
        """
        Delete a task.

        Returns:
            True if a task was removed, False if none had this ID
        """
        async with self.store.lock:
            tasks = await self._read_all()
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                logger.debug(f"Delete ignored, no task {task_id}")
                return False
            await self._write_all(remaining)

        logger.info(f"Deleted task: {task_id}")
        return True

    async def add_resource(
        self,
        task_id: str,
        type: str,
        title: str,
        url: str | None = None,
        description: str | None = None,
    ) -> Task:
        """Attach a resource to a task."""
        _require_choice("resource type", type, RESOURCE_TYPES)
        if not title or not title.strip():
            raise ValidationError("Resource title must not be empty")

        async with self.store.lock:
            tasks = await self._read_all()
            task = self._find(tasks, task_id)
            now = self._clock()
            task.resources.append(
                AcademicResource(
                    type=type,
                    title=title.strip(),
                    url=url,
                    description=description,
                    attached_at=now,
                )
            )
            task.updated_at = now
            await self._write_all(tasks)

        return task

    async def remove_resource(self, task_id: str, resource_id: str) -> Task:
        """Detach a resource from a task."""
        async with self.store.lock:
            tasks = await self._read_all()
            task = self._find(tasks, task_id)
            remaining = [r for r in task.resources if r.id != resource_id]
            if len(remaining) == len(task.resources):
                raise NotFoundError("Resource", resource_id)
            task.resources = remaining
            task.updated_at = self._clock()
            await self._write_all(tasks)

        return task

    async def add_study_session(self, task_id: str, session: StudySession) -> Task:
        """
        Log a study session against a task and recompute actual_time.

        A session already present (same ID) is replaced, not duplicated.
        """
        async with self.store.lock:
            tasks = await self._read_all()
            task = self._find(tasks, task_id)
            task.study_sessions = [s for s in task.study_sessions if s.id != session.id]
            task.study_sessions.append(session)
            task.actual_time = sum(s.duration for s in task.study_sessions)
            task.updated_at = self._clock()
            await self._write_all(tasks)

        logger.debug(f"Task {task_id} actual time now {task.actual_time} min")
        return task

    async def recalculate_all(self) -> int:
        """
        Re-score every task that is not completed.

        Meant to be called periodically (e.g. daily) so urgency follows
        approaching due dates. Completed tasks keep their last score.

        Returns:
            Number of tasks re-scored
        """
        async with self.store.lock:
            tasks = await self._read_all()
            now = self._clock()
            count = 0
            for task in tasks:
                if task.completed:
                    continue
                apply_priority(task, now)
                count += 1
            await self._write_all(tasks)

        logger.info(f"Recalculated smart priority for {count} tasks")
        return count

    async def list(
        self,
        filter: str = "all",
        query: str | None = None,
        sort_by: str = "dueDate",
        course_id: str | None = None,
    ) -> builtins.list[Task]:
        """
        List tasks with optional filters.

        Args:
            filter: all, active (not completed) or completed
            query: Case-insensitive match on title or description
            sort_by: dueDate (soonest first, undated last), priority,
                created (newest first) or smartPriority (highest first)
            course_id: Only tasks linked to this course

        Returns:
            List of Task objects
        """
        _require_choice("filter", filter, TASK_FILTERS)
        _require_choice("sort", sort_by, TASK_SORTS)

        tasks = await self.load()

        if filter == "active":
            tasks = [t for t in tasks if not t.completed]
        elif filter == "completed":
            tasks = [t for t in tasks if t.completed]

        if course_id:
            tasks = [t for t in tasks if t.course_id == course_id]

        if query:
            needle = query.lower()
            tasks = [
                t for t in tasks
                if needle in t.title.lower() or needle in (t.description or "").lower()
            ]

        if sort_by == "priority":
            tasks.sort(key=lambda t: _PRIORITY_ORDER.get(t.priority, 0), reverse=True)
        elif sort_by == "dueDate":
            tasks.sort(key=lambda t: (t.due_date is None, t.due_date or datetime.min))
        elif sort_by == "smartPriority":
            tasks.sort(key=lambda t: t.smart_priority or 0, reverse=True)
        else:
            tasks.sort(key=lambda t: t.created_at or datetime.min, reverse=True)

        return tasks

    async def board(self) -> dict[str, builtins.list[Task]]:
        """Group tasks into Kanban columns keyed by status."""
        columns = {status: [] for status in TASK_STATUSES}
        for task in await self.load():
            columns.setdefault(task.status, []).append(task)
        return columns

    async def dashboard_stats(self) -> dict[str, int]:
        """Counts shown on the dashboard."""
        tasks = await self.load()
        now = self._clock()
        today = start_of_day(now)
        tomorrow = today + timedelta(days=1)
        due_today = [
            t for t in tasks
            if t.due_date and not t.completed and today <= t.due_date < tomorrow
        ]
        return {
            "total": len(tasks),
            "completed": sum(1 for t in tasks if t.status == "completed"),
            "in_progress": sum(1 for t in tasks if t.status == "in-progress"),
            "to_do": sum(1 for t in tasks if t.status == "to-do"),
            "overdue": sum(1 for t in tasks if t.is_overdue(now)),
            "due_today": len(due_today),
        }
