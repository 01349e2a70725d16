"""
Business logic services for Studyr.
"""

from studyr.services.alerts import AlertDispatcher
from studyr.services.courses import CourseService
from studyr.services.notifications import LoggingNotifier, Notifier
from studyr.services.sessions import StudySessionService
from studyr.services.tasks import TaskService
from studyr.services.timer import StudyTimer

__all__ = [
    "TaskService",
    "StudySessionService",
    "StudyTimer",
    "AlertDispatcher",
    "CourseService",
    "Notifier",
    "LoggingNotifier",
]
