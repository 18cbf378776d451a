"""Language lifecycle: create, read, update, delete and list languages.

Every multi-step operation here is a sequence of independent remote calls
with no rollback. The store enforces authorization; what this layer adds is
input validation, error reclassification and the read-after-write fallback.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from packages.common.baas import INSUFFICIENT_PRIVILEGE, UNIQUE_VIOLATION, BaaSError
from packages.common.errors import (
    DuplicateNameError,
    NotFoundError,
    PartialFailure,
    RemoteError,
    ValidationError,
)
from packages.common.rbac import Permission, lookup_collaborator_role, permission_for, resolve_role
from packages.schemas.language import (
    VISIBILITIES,
    BasicInfo,
    Language,
    LanguageListItem,
    LanguageUpdate,
    Phoneme,
    SpecsUpdate,
)
from services.activity.service import ActivityService

from .mapper import specs_dict, to_insert_row, to_update_payload, to_view_model
from .validation import add_phoneme, validate_basic_info, validate_specs, validate_update

log = logging.getLogger(__name__)

LANGUAGES = "languages"
COLLABORATORS = "language_collaborators"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _remote(operation: str, err: BaaSError, entity_id: Optional[str] = None) -> RemoteError:
    exc = RemoteError(operation, err.message, entity_id=entity_id, code=err.code,
                      hint=err.hint, details=err.details)
    log.error("%s failed: %s", operation, err.message, extra=exc.context())
    return exc


def _listing(row: Mapping[str, Any], role: str, kind: str) -> LanguageListItem:
    return LanguageListItem(**to_view_model(row).model_dump(), role=role, type=kind)


class LanguageService:
    """Named language operations over a BaaS client.

    Args:
        client: `BaaSClient` (or a compatible double) acting as the caller.
        activity: Activity logger; defaults to one sharing `client`.
    """

    def __init__(self, client: Any, activity: Optional[ActivityService] = None) -> None:
        self.client = client
        self.activity = activity or ActivityService(client)

    # ---- create ---------------------------------------------------------------

    async def create(
        self,
        owner_id: str,
        basic_info: BasicInfo | Mapping[str, Any],
        specs: SpecsUpdate | Mapping[str, Any] | None = None,
    ) -> Language:
        """Create a language and its owner collaborator link.

        Raises:
            ValidationError: bad name/description/icon or invalid specs.
            DuplicateNameError: the owner already has a language with this name.
            RemoteError: the language row could not be stored.
        """
        info = basic_info if isinstance(basic_info, BasicInfo) else BasicInfo.model_validate(basic_info)
        if specs is not None and not isinstance(specs, SpecsUpdate):
            specs = SpecsUpdate.model_validate(specs)
        errors = validate_basic_info(info)
        row = to_insert_row(owner_id, info, specs)
        if specs is not None:
            errors.update(validate_specs(to_view_model(row).specs))
        if errors:
            raise ValidationError(errors)

        name = row["name"]
        existing = await self.client.select(LANGUAGES, "id", eq={"owner_id": owner_id, "name": name})
        if existing.error is not None:
            raise _remote("create_language:check_name", existing.error)
        if existing.data:
            raise DuplicateNameError(name)

        res = await self.client.insert(LANGUAGES, row)
        if res.error is not None and res.error.code == UNIQUE_VIOLATION:
            raise DuplicateNameError(name)
        if res.error is not None and not res.error.is_no_rows:
            raise _remote("create_language:insert", res.error)
        stored = res.data
        if not stored:
            # inserted, but the policy hid the returned row
            again = await self.client.select(LANGUAGES, eq={"owner_id": owner_id, "name": name}, single=True)
            if again.error is not None or not again.data:
                raise RemoteError("create_language:insert", "Failed to create language - no data returned")
            stored = again.data
        language_id = stored["id"]

        link = await self.client.insert(
            COLLABORATORS,
            {"language_id": language_id, "user_id": owner_id, "role": "owner"},
            single=False,
        )
        if link.error is not None and link.error.code != UNIQUE_VIOLATION:
            partial = PartialFailure("create_language", "insert language", "insert owner link",
                                     language_id, link.error.message)
            log.warning(str(partial), extra={"operation": "create_language", "entity_id": language_id,
                                             "code": link.error.code})

        language = to_view_model(stored)
        await self.activity.log_activity(
            owner_id, "language_created", language_id, f"Created language {language.name}",
            {"name": language.name},
        )
        return language

    # ---- read -----------------------------------------------------------------

    async def get(self, language_id: str) -> Language:
        """Fetch one language.

        Raises:
            NotFoundError: no row with this id is visible to the caller.
            RemoteError: any other store failure.
        """
        res = await self.client.select(LANGUAGES, eq={"id": language_id}, single=True)
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("Language", language_id)
            raise _remote("get_language", res.error, language_id)
        return to_view_model(res.data)

    # ---- update ---------------------------------------------------------------

    async def _confirm_write(self, language_id: str, payload: Mapping[str, Any], err: Optional[BaaSError]) -> dict:
        # one independent read; the write may have landed even though read-back failed
        check = await self.client.select(LANGUAGES, eq={"id": language_id}, single=True)
        if check.error is None and check.data:
            written = {k: v for k, v in payload.items() if k != "updated_at"}
            if all(check.data.get(k) == v for k, v in written.items()):
                log.info("update confirmed by fallback read",
                         extra={"operation": "update_language", "entity_id": language_id})
                return check.data
        if err is None:
            err = BaaSError(code="write_not_confirmed", message="Update could not be confirmed")
        if check.error is not None and check.error.is_no_rows and not err.is_denied:
            raise NotFoundError("Language", language_id)
        raise _remote("update_language", err, language_id)

    async def update(
        self,
        language_id: str,
        partial: LanguageUpdate | Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> Language:
        """Write only the fields set on `partial` and return the refreshed language.

        Raises:
            ValidationError: a set field is invalid or would clear a required setting.
            NotFoundError: the language does not exist.
            RemoteError: the store rejected the write.
        """
        if not isinstance(partial, LanguageUpdate):
            partial = LanguageUpdate.model_validate(partial)
        errors = validate_update(partial)
        if errors:
            raise ValidationError(errors)
        payload = to_update_payload(partial)
        if not payload:
            return await self.get(language_id)
        payload["updated_at"] = _now()
        before = None
        if actor_id and partial.specs is not None:
            before = await self.get(language_id)

        res = await self.client.update(LANGUAGES, payload, eq={"id": language_id})
        if res.error is None and res.data:
            row = res.data
        elif res.error is None or res.error.is_no_rows or res.error.is_denied:
            row = await self._confirm_write(language_id, payload, res.error)
        else:
            raise _remote("update_language", res.error, language_id)

        language = to_view_model(row)
        base_fields = partial.model_fields_set - {"specs"}
        if actor_id and base_fields:
            await self.activity.log_activity(
                actor_id, "language_updated", language_id,
                f"Updated {', '.join(sorted(base_fields))} of {language.name}",
            )
        if before is not None:
            await self.activity.log_specs_change(
                actor_id, language_id, specs_dict(before.specs), specs_dict(language.specs),
            )
        return language

    async def update_specs(
        self,
        language_id: str,
        specs: SpecsUpdate | Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> Language:
        """Update only the specs subset, leaving base fields untouched."""
        if not isinstance(specs, SpecsUpdate):
            specs = SpecsUpdate.model_validate(specs)
        return await self.update(language_id, LanguageUpdate(specs=specs), actor_id)

    async def set_visibility(self, language_id: str, visibility: str, actor_id: Optional[str] = None) -> Language:
        """Move between private/friends/public; any state may go to any other."""
        if visibility not in VISIBILITIES:
            raise ValidationError.single("visibility", "Invalid visibility")
        return await self.update(language_id, LanguageUpdate(visibility=visibility), actor_id)

    async def add_phoneme(self, language_id: str, phoneme: Phoneme, actor_id: Optional[str] = None) -> Language:
        """Append a phoneme after the symbol-uniqueness check."""
        current = await self.get(language_id)
        phonemes = add_phoneme(current.specs.phoneme_set, phoneme)
        return await self.update_specs(language_id, SpecsUpdate(phoneme_set=phonemes), actor_id)

    async def set_phoneme_audio(self, language_id: str, symbol: str, audio_url: str) -> Language:
        """Attach an audio reference to the phoneme with `symbol`."""
        current = await self.get(language_id)
        phonemes = list(current.specs.phoneme_set)
        for i, p in enumerate(phonemes):
            if p.symbol == symbol:
                phonemes[i] = p.model_copy(update={"audio_url": audio_url})
                break
        else:
            raise NotFoundError("Phoneme", symbol)
        return await self.update(language_id, LanguageUpdate(specs=SpecsUpdate(phoneme_set=phonemes)))

    # ---- delete ---------------------------------------------------------------

    async def delete(self, language_id: str) -> None:
        """Remove the language row; dependent rows are cascaded by the store.

        Raises:
            NotFoundError: no such language is visible to the caller.
            RemoteError: the store refused the delete or failed.
        """
        res = await self.client.delete(LANGUAGES, eq={"id": language_id})
        if res.error is not None:
            raise _remote("delete_language", res.error, language_id)
        if not res.data:
            # nothing removed: the row is absent or the policies kept it
            check = await self.client.select(LANGUAGES, "id", eq={"id": language_id}, single=True)
            if check.error is not None and check.error.is_no_rows:
                raise NotFoundError("Language", language_id)
            err = check.error or BaaSError(code=INSUFFICIENT_PRIVILEGE, message="Only the owner can delete a language")
            raise _remote("delete_language", err, language_id)
        log.info("language deleted", extra={"operation": "delete_language", "entity_id": language_id})

    # ---- listings -------------------------------------------------------------

    async def list_for_owner(self, user_id: str) -> list[LanguageListItem]:
        """Languages owned by `user_id`, newest edit first."""
        res = await self.client.select(LANGUAGES, eq={"owner_id": user_id}, order="updated_at")
        if res.error is not None:
            raise _remote("list_owned_languages", res.error, user_id)
        return [_listing(row, "owner", "created") for row in res.data or []]

    async def list_for_collaborator(self, user_id: str) -> list[LanguageListItem]:
        """Languages `user_id` joined as editor or viewer."""
        links = await self.client.select(COLLABORATORS, "language_id,role", eq={"user_id": user_id})
        if links.error is not None:
            raise _remote("list_collaborations", links.error, user_id)
        roles = {link["language_id"]: link["role"] for link in links.data or [] if link.get("role") != "owner"}
        if not roles:
            return []
        res = await self.client.select(LANGUAGES, in_={"id": list(roles)}, order="updated_at")
        if res.error is not None:
            raise _remote("list_collaborated_languages", res.error, user_id)
        return [
            _listing(row, roles[row["id"]], "collaborated")
            for row in res.data or []
            if row.get("owner_id") != user_id
        ]

    async def list_all(self, user_id: str) -> list[LanguageListItem]:
        """Owned and collaborated languages together, newest edit first."""
        items = await self.list_for_owner(user_id) + await self.list_for_collaborator(user_id)
        return sorted(items, key=lambda item: item.updated_at or item.created_at or "", reverse=True)

    # ---- permissions ----------------------------------------------------------

    async def resolve_permission(self, language: Language, user_id: Optional[str], is_friend: bool = False) -> Permission:
        """Role and capabilities of `user_id` on `language`. Never raises."""
        lookup = None
        if user_id and language.id and user_id != language.owner_id:
            lookup = await lookup_collaborator_role(self.client, language.id, user_id)
        role = resolve_role(user_id, language.owner_id, lookup)
        return permission_for(role, language.visibility, is_friend)
