"""Courses and lessons built on top of a language.

Only listing and creation exist so far; lesson authoring, flashcards and
quizzes are handled elsewhere.
"""

import logging
from typing import Any, Optional

from packages.common.errors import RemoteError, ValidationError
from packages.schemas.content import Course, Lesson, NewCourse
from services.activity.service import ActivityService

log = logging.getLogger(__name__)

COURSES = "courses"
LESSONS = "lessons"


class CourseService:
    """Course listing and creation scoped to a language."""

    def __init__(self, client: Any, activity: Optional[ActivityService] = None) -> None:
        self.client = client
        self.activity = activity or ActivityService(client)

    async def list_courses(self, language_id: str) -> list[Course]:
        """Courses of `language_id`, newest first."""
        res = await self.client.select(COURSES, eq={"language_id": language_id}, order="created_at")
        if res.error is not None:
            raise RemoteError("list_courses", res.error.message, entity_id=language_id, code=res.error.code)
        return [Course.model_validate(r) for r in res.data or []]

    async def create_course(self, language_id: str, course: NewCourse, creator_id: str) -> Course:
        """Insert a course and log a `course_created` activity.

        Args:
            language_id: Language the course teaches.
            course: Title, description and visibility.
            creator_id: Auth id of the author.

        Returns:
            The stored course.
        """
        title = course.title.strip()
        if not title:
            raise ValidationError.single("title", "Course title is required")
        row = {**course.model_dump(), "title": title, "language_id": language_id, "creator_id": creator_id}
        res = await self.client.insert(COURSES, row)
        if res.error is not None:
            raise RemoteError("create_course", res.error.message, entity_id=language_id, code=res.error.code)
        created = Course.model_validate(res.data)
        await self.activity.log_activity(creator_id, "course_created", language_id,
                                         f"Created course {created.title}", {"courseId": created.id})
        return created

    async def list_lessons(self, course_id: str) -> list[Lesson]:
        """Lessons of a course in teaching order."""
        res = await self.client.select(LESSONS, eq={"course_id": course_id}, order="order", ascending=True)
        if res.error is not None:
            raise RemoteError("list_lessons", res.error.message, entity_id=course_id, code=res.error.code)
        return [Lesson.model_validate(r) for r in res.data or []]
