"""Content schemas: courses and lessons built on top of a language."""

from pydantic import BaseModel
from typing import Literal, Optional


class Course(BaseModel):
    """A course teaching one language."""
    id: str
    language_id: str
    title: str
    description: Optional[str] = None
    creator_id: Optional[str] = None
    visibility: Literal["private", "public"] = "private"
    created_at: Optional[str] = None


class Lesson(BaseModel):
    """A single lesson belonging to a course."""
    id: str
    course_id: str
    title: str
    order: int = 0
    type: Literal["vocab", "grammar", "pronunciation", "mixed"] = "mixed"
    content: str = ""


class NewCourse(BaseModel):
    """Payload for creating a course."""
    title: str
    description: Optional[str] = None
    visibility: Literal["private", "public"] = "private"
