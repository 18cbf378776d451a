# services/content/routes.py
from typing import Any, Optional

from fastapi import APIRouter, Depends, status

from packages.common.auth import User, get_optional_user
from packages.common.deps import get_client
from packages.common.rbac import require_roles
from packages.schemas.content import Course, Lesson, NewCourse
from services.community.routes import get_friendship_service
from services.community.service import FriendshipService
from services.languages.routes import get_language_service, load_language, require_capability
from services.languages.service import LanguageService

from .service import CourseService

router = APIRouter(tags=["content"])


def get_course_service(client: Any = Depends(get_client)) -> CourseService:
    return CourseService(client)


@router.get("/languages/{language_id}/courses", response_model=list[Course])
async def list_courses(
    language_id: str,
    user: Optional[User] = Depends(get_optional_user),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    courses: CourseService = Depends(get_course_service),
) -> list[Course]:
    await load_language(language_id, user, languages, friends)
    return await courses.list_courses(language_id)


@router.post("/languages/{language_id}/courses", response_model=Course, status_code=status.HTTP_201_CREATED)
async def create_course(
    language_id: str,
    body: NewCourse,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    courses: CourseService = Depends(get_course_service),
) -> Course:
    """Course creation is open to owners and editors."""
    _, permission = await load_language(language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    return await courses.create_course(language_id, body, user.sub)


@router.get("/courses/{course_id}/lessons", response_model=list[Lesson])
async def list_lessons(course_id: str, courses: CourseService = Depends(get_course_service)) -> list[Lesson]:
    return await courses.list_lessons(course_id)
