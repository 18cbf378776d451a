"""User, session and settings schemas."""

from pydantic import BaseModel
from typing import Literal, Optional

Theme = Literal["dark", "light"]
ActivityPermissions = Literal["public", "friends_only", "private"]


class AuthUser(BaseModel):
    """Identity as reported by the auth service."""
    id: str
    email: str = ""
    display_name: Optional[str] = None


class Session(BaseModel):
    """An authenticated session."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    user: AuthUser


class SignUpResult(BaseModel):
    """Outcome of a sign-up; a session is present only when no confirmation is pending."""
    user: Optional[AuthUser] = None
    session: Optional[Session] = None
    pending_confirmation: bool = True


class Credentials(BaseModel):
    """Email/password pair."""
    email: str
    password: str


class SignUpRequest(Credentials):
    """Sign-up form payload."""
    display_name: str


class UserProfile(BaseModel):
    """Profile row backing the settings screen."""
    id: str
    auth_id: Optional[str] = None
    email: str = ""
    display_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    theme: Theme = "dark"
    default_language_depth: Literal["realistic", "simplified"] = "realistic"
    activity_permissions: ActivityPermissions = "private"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SettingsUpdate(BaseModel):
    """Partial settings update."""
    display_name: Optional[str] = None
    theme: Optional[Theme] = None
    default_language_depth: Optional[Literal["realistic", "simplified"]] = None
    activity_permissions: Optional[ActivityPermissions] = None
