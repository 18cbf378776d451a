"""Activity log schemas (append-only)."""

from pydantic import BaseModel
from typing import Any, Dict, Literal, Optional

ActivityType = Literal[
    "language_created", "language_updated", "specs_changed",
    "word_added", "rule_added", "course_created", "course_completed",
    "collaboration_started",
]
ActivityVisibility = Literal["public", "friends_only", "private"]


class Activity(BaseModel):
    """A single activity entry."""
    id: Optional[str] = None
    user_id: str
    type: str
    language_id: Optional[str] = None
    description: str
    metadata: Dict[str, Any] = {}
    visibility: str = "private"
    timestamp: Optional[str] = None


class HeatmapDay(BaseModel):
    """Activity count for one calendar day."""
    date: str
    count: int
