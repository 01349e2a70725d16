"""
Course model for Studyr.

Tasks refer to courses by id only; deleting a course leaves its tasks alone.
"""

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4


# Colors assigned to courses in creation order
COURSE_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FECA57",
    "#FF9FF3", "#54A0FF", "#5F27CD", "#00D2D3", "#FF9F43",
    "#C44569", "#F8B500", "#6C5CE7", "#A29BFE", "#FD79A8",
)


def color_for(index: int) -> str:
    """Palette color for the index-th course created."""
    return COURSE_COLORS[index % len(COURSE_COLORS)]


@dataclass
class Course:
    """
    An enrolled course.

    Attributes:
        id: Unique identifier (UUID)
        code: Short code (CS101, MATH202, ...)
        name: Course name
        color: Display color from the palette
        professor: Optional instructor name
        credits: Optional credit count
        current_grade: Optional running grade
        target_grade: Optional goal grade
    """

    code: str
    name: str
    id: str = field(default_factory=lambda: str(uuid4()))
    color: str = COURSE_COLORS[0]
    professor: Optional[str] = None
    credits: Optional[float] = None
    current_grade: Optional[float] = None
    target_grade: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "color": self.color,
            "professor": self.professor,
            "credits": self.credits,
            "currentGrade": self.current_grade,
            "targetGrade": self.target_grade,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            id=data.get("id") or str(uuid4()),
            code=data.get("code", ""),
            name=data.get("name", ""),
            color=data.get("color") or COURSE_COLORS[0],
            professor=data.get("professor"),
            credits=data.get("credits"),
            current_grade=data.get("currentGrade"),
            target_grade=data.get("targetGrade"),
        )
