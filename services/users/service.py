"""User profiles and settings. Profiles are keyed by the auth user id and never hard-deleted."""

import logging
from datetime import datetime, timezone
from typing import Any

from packages.common.errors import NotFoundError, RemoteError, ValidationError
from packages.schemas.user import SettingsUpdate, UserProfile

log = logging.getLogger(__name__)

TABLE = "users"
UNKNOWN_OWNER = "Unknown"


class UserService:
    def __init__(self, client: Any) -> None:
        self.client = client

    async def get_profile(self, user_id: str) -> UserProfile:
        res = await self.client.select(TABLE, eq={"auth_id": user_id}, single=True)
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("User", user_id)
            raise RemoteError("get_profile", res.error.message, entity_id=user_id, code=res.error.code)
        return UserProfile.model_validate(res.data)

    async def update_settings(self, user_id: str, update: SettingsUpdate) -> UserProfile:
        """Write the set settings fields; an empty update returns the profile unchanged."""
        values = update.model_dump(exclude_unset=True, exclude_none=True)
        if "display_name" in values:
            values["display_name"] = values["display_name"].strip()
            if not values["display_name"]:
                raise ValidationError.single("displayName", "Display name cannot be empty")
        if not values:
            return await self.get_profile(user_id)
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        res = await self.client.update(TABLE, values, eq={"auth_id": user_id})
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("User", user_id)
            raise RemoteError("update_settings", res.error.message, entity_id=user_id, code=res.error.code)
        log.info("settings updated", extra={"operation": "update_settings", "entity_id": user_id})
        return UserProfile.model_validate(res.data)

    async def display_name(self, user_id: str) -> str:
        """Owner label for a language page; lookup failures fall back to "Unknown"."""
        res = await self.client.select(TABLE, "display_name,email", eq={"auth_id": user_id}, single=True)
        if res.error is not None:
            log.warning("owner lookup failed: %s", res.error.message,
                        extra={"operation": "display_name", "entity_id": user_id, "code": res.error.code})
            return UNKNOWN_OWNER
        return res.data.get("display_name") or res.data.get("email") or UNKNOWN_OWNER
