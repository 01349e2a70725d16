"""
Task model for Studyr.

Tasks are the central work items: homework, exams, readings, projects.
Each task owns its attached resources and its study-session history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from uuid import uuid4

from studyr.models.session import StudySession
from studyr.timeutil import format_datetime, local_now, parse_datetime


# Valid status values (Kanban columns)
TASK_STATUSES = ("to-do", "in-progress", "completed")

# Valid priority values
TASK_PRIORITIES = ("low", "medium", "high")

# Valid academic task types
TASK_TYPES = ("assignment", "exam", "project", "reading", "study", "other")

# Valid difficulty values
TASK_DIFFICULTIES = ("easy", "medium", "hard")

# Valid resource types
RESOURCE_TYPES = ("link", "file", "note", "video", "document")


def status_for(completed: bool) -> str:
    """Status implied by the completed flag."""
    return "completed" if completed else "to-do"


@dataclass
class AcademicResource:
    """
    A link, file, note, video or document attached to a task.

    Resources are owned by exactly one task and never shared.
    """

    type: str
    title: str
    id: str = field(default_factory=lambda: str(uuid4()))
    url: Optional[str] = None
    description: Optional[str] = None
    attached_at: Optional[datetime] = None

    def __post_init__(self):
        if self.attached_at is None:
            self.attached_at = local_now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "attachedAt": format_datetime(self.attached_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AcademicResource":
        return cls(
            id=data.get("id") or str(uuid4()),
            type=data.get("type", "note"),
            title=data.get("title", ""),
            url=data.get("url"),
            description=data.get("description"),
            attached_at=parse_datetime(data.get("attachedAt")),
        )


@dataclass
class Task:
    """
    A task or academic work item.

    Attributes:
        id: Unique identifier (UUID)
        title: Task title (non-empty)
        description: Optional details
        completed: Completion flag, always equal to status == "completed"
        status: Kanban status (to-do, in-progress, completed)
        priority: Declared priority (low, medium, high)
        category: Optional free-form label
        due_date: Optional deadline
        created_at: When the task was created
        updated_at: When last modified
        course_id: Weak reference to a Course (lookup only)
        task_type: assignment, exam, project, reading, study, other
        estimated_time: Estimate in minutes
        actual_time: Tracked minutes, summed from study_sessions
        difficulty: easy, medium, hard
        grade: Obtained grade (0-100)
        weight: Percent of the final course grade
        resources: Attached AcademicResources, in insertion order
        study_sessions: StudySessions logged against this task
        smart_priority: Composite score (0-100)
        urgency_score: Due-date pressure (0-50)
        importance_score: Intrinsic weight (0-50)
    """

    title: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: Optional[str] = None
    completed: bool = False
    status: str = "to-do"
    priority: str = "medium"
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    course_id: Optional[str] = None
    task_type: str = "other"
    estimated_time: Optional[int] = None
    actual_time: Optional[int] = None
    difficulty: str = "medium"
    grade: Optional[float] = None
    weight: Optional[float] = None
    resources: List[AcademicResource] = field(default_factory=list)
    study_sessions: List[StudySession] = field(default_factory=list)
    smart_priority: Optional[float] = None
    urgency_score: Optional[float] = None
    importance_score: Optional[float] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = local_now()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def is_scored(self) -> bool:
        return None not in (self.smart_priority, self.urgency_score, self.importance_score)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Past its due date and not completed."""
        if self.due_date is None or self.completed:
            return False
        return self.due_date < (now or local_now())

    def sync_completion(self, prefer_status: bool = True) -> None:
        """
        Re-establish completed == (status == "completed").

        Args:
            prefer_status: When True the status field is authoritative,
                otherwise status is derived from completed.
        """
        if prefer_status:
            self.completed = self.status == "completed"
        else:
            if self.completed:
                self.status = "completed"
            elif self.status == "completed":
                self.status = "to-do"

    def to_dict(self) -> dict:
        """Convert to the persisted record shape."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "status": self.status,
            "priority": self.priority,
            "category": self.category,
            "dueDate": format_datetime(self.due_date),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
            "courseId": self.course_id,
            "taskType": self.task_type,
            "estimatedTime": self.estimated_time,
            "actualTime": self.actual_time,
            "difficulty": self.difficulty,
            "grade": self.grade,
            "weight": self.weight,
            "resources": [r.to_dict() for r in self.resources],
            "studySessions": [s.to_dict() for s in self.study_sessions],
            "smartPriority": self.smart_priority,
            "urgencyScore": self.urgency_score,
            "importanceScore": self.importance_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """
        Create a Task from a persisted record.

        Older records may lack status, taskType, difficulty, resources or
        studySessions; the defaults are applied here. When status is
        missing it is derived from completed, otherwise status wins.
        """
        completed = bool(data.get("completed", False))
        status = data.get("status") or status_for(completed)

        task = cls(
            id=data.get("id") or str(uuid4()),
            title=data.get("title", ""),
            description=data.get("description"),
            completed=completed,
            status=status,
            priority=data.get("priority") or "medium",
            category=data.get("category"),
            due_date=parse_datetime(data.get("dueDate")),
            created_at=parse_datetime(data.get("createdAt")),
            updated_at=parse_datetime(data.get("updatedAt")),
            course_id=data.get("courseId"),
            task_type=data.get("taskType") or "other",
            estimated_time=data.get("estimatedTime"),
            actual_time=data.get("actualTime"),
            difficulty=data.get("difficulty") or "medium",
            grade=data.get("grade"),
            weight=data.get("weight"),
            resources=[AcademicResource.from_dict(r) for r in data.get("resources") or []],
            study_sessions=[StudySession.from_dict(s) for s in data.get("studySessions") or []],
            smart_priority=data.get("smartPriority"),
            urgency_score=data.get("urgencyScore"),
            importance_score=data.get("importanceScore"),
        )
        task.sync_completion(prefer_status=True)
        return task
