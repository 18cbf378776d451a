"""Role resolution and RBAC utilities.

Two layers live here:
- `resolve_role` / `permission_for`: classify a (user, language) pair into a
  collaborator role and derive capability flags. Advisory only: the BaaS
  row-level policies remain the authorization boundary. Fails closed.
- `require_roles(*roles)`: FastAPI dependency factory checking JWT claim roles.
"""

import logging
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, status
from pydantic import BaseModel

from .auth import get_current_user, User

log = logging.getLogger(__name__)

COLLABORATOR_ROLES = ("owner", "editor", "viewer")
EDIT_ROLES = ("owner", "editor")


class RoleLookup(BaseModel):
    """Outcome of the collaborator-row lookup for (language, user).

    `role` is None when no row exists; `error` is set when the lookup failed.
    """
    role: Optional[str] = None
    error: Optional[str] = None


class Permission(BaseModel):
    """Resolved role plus the capabilities it grants in the UI."""
    role: str = "none"
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_manage_visibility: bool = False


def resolve_role(user_id: Optional[str], owner_id: Optional[str], lookup: Optional[RoleLookup] = None) -> str:
    """Return exactly one of owner/editor/viewer/none. Never raises.

    Args:
        user_id: Current user id, or None for anonymous callers.
        owner_id: The language's owner id.
        lookup: Result of the collaborator lookup, if one was made.
    """
    if not user_id:
        return "none"
    if owner_id and user_id == owner_id:
        return "owner"
    if lookup is None or lookup.error is not None:
        return "none"
    if lookup.role in COLLABORATOR_ROLES:
        return lookup.role
    return "none"


def permission_for(role: str, visibility: Optional[str] = None, is_friend: bool = False) -> Permission:
    """Derive capability flags from a role and the language's visibility."""
    if role not in COLLABORATOR_ROLES:
        role = "none"
    can_view = (
        role != "none"
        or visibility == "public"
        or (visibility == "friends" and is_friend)
    )
    return Permission(
        role=role,
        can_view=can_view,
        can_edit=role in EDIT_ROLES,
        can_delete=role == "owner",
        can_manage_visibility=role == "owner",
    )


async def lookup_collaborator_role(client: Any, language_id: str, user_id: str) -> RoleLookup:
    """Fetch the caller's collaborator row; failures become a `RoleLookup` error.

    A missing row is a normal outcome (role None). Network or policy errors are
    logged and reported through `error` so the resolver degrades to `none`.
    """
    try:
        res = await client.select(
            "language_collaborators", "role",
            eq={"language_id": language_id, "user_id": user_id},
            single=True,
        )
    except Exception as e:  # fail closed
        log.warning("collaborator lookup raised: %s", e,
                    extra={"operation": "lookup_collaborator_role", "entity_id": language_id})
        return RoleLookup(error=str(e) or type(e).__name__)
    if res.error is not None:
        if res.error.is_no_rows:
            return RoleLookup()
        log.warning("collaborator lookup failed: %s", res.error.message,
                    extra={"operation": "lookup_collaborator_role", "entity_id": language_id,
                           "code": res.error.code})
        return RoleLookup(error=res.error.message)
    return RoleLookup(role=(res.data or {}).get("role"))


def require_roles(*required: str) -> Callable[[User], User]:
    """Create a dependency that enforces presence of given JWT claim roles.

    Args:
        required: One or more role names the user must have.

    Returns:
        A FastAPI dependency callable that:
          - receives the current `User` (via `Depends(get_current_user)`)
          - raises 403 if the user's roles do not include all `required`
          - otherwise returns the `User`
    """
    def wrapper(user: User = Depends(get_current_user)) -> User:
        """Validate the current user's roles against the required set."""
        if not set(required).issubset(set(user.roles)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return user

    return wrapper
