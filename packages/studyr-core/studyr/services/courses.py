"""
Course Service for Studyr.

Course CRUD over the persisted course list. Tasks keep a plain course_id,
so deleting a course never touches tasks.
"""

import builtins
import logging

from studyr.errors import NotFoundError, ValidationError
from studyr.models.course import Course, color_for
from studyr.store import get_store

logger = logging.getLogger(__name__)

COURSES_KEY = "courses"

UPDATABLE_FIELDS = frozenset({
    "code", "name", "color", "professor", "credits", "current_grade", "target_grade",
})

DEFAULT_COURSES = (
    {"code": "CS101", "name": "Introduction to Programming", "credits": 3, "target_grade": 90},
    {"code": "MATH202", "name": "Discrete Mathematics", "credits": 4, "target_grade": 85},
    {"code": "ENG105", "name": "Technical Writing", "credits": 3, "target_grade": 90},
)


class CourseService:
    """Service for managing courses."""

    def __init__(self, store=None):
        """
        Initialize course service.

        Args:
            store: Optional KeyValueStore. If not provided, uses global store.
        """
        self._store = store

    @property
    def store(self):
        """Get the key-value store."""
        if self._store is None:
            self._store = get_store()
        return self._store

    async def _read_all(self) -> builtins.list[Course]:
        return await self.store.get_records(COURSES_KEY, Course.from_dict)

    async def _write_all(self, courses: builtins.list[Course]) -> None:
        await self.store.set_json(COURSES_KEY, [c.to_dict() for c in courses])

    async def list(self) -> builtins.list[Course]:
        return await self._read_all()

    async def get(self, course_id: str) -> Course | None:
        for course in await self._read_all():
            if course.id == course_id:
                return course
        return None

    async def add(
        self,
        code: str,
        name: str,
        professor: str | None = None,
        credits: float | None = None,
        target_grade: float | None = None,
    ) -> Course:
        """
        Add a course; its color is the next one in the palette.

        Raises:
            ValidationError: Empty code or name
        """
        if not code or not code.strip() or not name or not name.strip():
            raise ValidationError("Course code and name must not be empty")

        async with self.store.lock:
            courses = await self._read_all()
            course = Course(
                code=code.strip(),
                name=name.strip(),
                color=color_for(len(courses)),
                professor=professor,
                credits=credits,
                target_grade=target_grade,
            )
            courses.append(course)
            await self._write_all(courses)

        logger.info(f"Added course: {course.code} - {course.name}")
        return course

    async def update(self, course_id: str, **updates) -> Course:
        """
        Update course fields.

        Raises:
            NotFoundError: No course has this ID
            ValidationError: Unknown field
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        async with self.store.lock:
            courses = await self._read_all()
            for course in courses:
                if course.id == course_id:
                    break
            else:
                raise NotFoundError("Course", course_id)
            for name, value in updates.items():
                setattr(course, name, value)
            await self._write_all(courses)

        return course

    async def delete(self, course_id: str) -> bool:
        """Remove a course. Tasks referencing it keep their course_id."""
        async with self.store.lock:
            courses = await self._read_all()
            remaining = [c for c in courses if c.id != course_id]
            if len(remaining) == len(courses):
                return False
            await self._write_all(remaining)

        logger.info(f"Deleted course: {course_id}")
        return True

    async def initialize_defaults(self) -> builtins.list[Course]:
        """Seed a few common courses when none exist."""
        if await self._read_all():
            return await self._read_all()
        for data in DEFAULT_COURSES:
            await self.add(**data)
        return await self._read_all()
