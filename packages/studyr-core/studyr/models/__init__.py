"""
Core data models for Studyr.
"""

from studyr.models.course import Course
from studyr.models.session import StudySession, StudyStats, TimerState
from studyr.models.task import AcademicResource, Task

__all__ = [
    "Task",
    "AcademicResource",
    "StudySession",
    "StudyStats",
    "TimerState",
    "Course",
]
