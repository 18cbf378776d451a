# services/languages/routes.py
"""HTTP endpoints for language projects.

Each handler resolves the caller's role first and refuses a mutating call
the role cannot make (403) before any write is attempted; the store still
re-checks every write with its own row policies.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from packages.common.auth import User, get_current_user, get_optional_user
from packages.common.deps import get_client, get_storage
from packages.common.errors import NotFoundError
from packages.common.rbac import Permission, require_roles
from packages.common.storage import ObjectStorage, phoneme_audio_key
from packages.schemas.language import (
    BasicInfo,
    CamelModel,
    Language,
    LanguageListItem,
    LanguageSpecs,
    LanguageUpdate,
    Phoneme,
    SpecsUpdate,
    VisibilityChange,
)
from services.community.routes import get_friendship_service
from services.community.service import FriendshipService
from services.users.service import UserService

from .service import LanguageService
from .validation import specs_advisories, validate_specs

log = logging.getLogger(__name__)

router = APIRouter(tags=["languages"])

AUDIO_TYPES = {"audio/webm": "webm", "audio/mpeg": "mp3", "audio/wav": "wav", "audio/ogg": "ogg"}


class CreateLanguageRequest(CamelModel):
    """New-language wizard submission."""
    basic_info: BasicInfo
    specs: Optional[SpecsUpdate] = None


class LanguageDetail(CamelModel):
    """Language page payload: the language, what the caller may do, and spec notices."""
    language: Language
    permission: Permission
    owner_name: str = "Unknown"
    advisories: dict[str, str] = {}


class SpecsCheck(CamelModel):
    """Result of a dry-run specs validation."""
    errors: dict[str, str]
    advisories: dict[str, str]


class AudioLink(CamelModel):
    """Time-limited download link for a phoneme recording."""
    url: str
    expires_in: int


def get_language_service(client: Any = Depends(get_client)) -> LanguageService:
    return LanguageService(client)


async def load_language(
    language_id: str,
    user: Optional[User],
    service: LanguageService,
    friends: FriendshipService,
) -> tuple[Language, Permission]:
    """Fetch a language and the caller's permission; unviewable reads as not found."""
    language = await service.get(language_id)
    user_id = user.sub if user else None
    permission = await service.resolve_permission(language, user_id)
    if not permission.can_view and language.visibility == "friends":
        is_friend = await friends.are_friends(user_id, language.owner_id)
        permission = await service.resolve_permission(language, user_id, is_friend=is_friend)
    if not permission.can_view:
        raise NotFoundError("Language", language_id)
    return language, permission


def require_capability(permission: Permission, capability: str) -> None:
    if not getattr(permission, capability):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")


@router.post("/languages", response_model=Language, status_code=status.HTTP_201_CREATED)
async def create_language(
    body: CreateLanguageRequest,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
) -> Language:
    """Create a language owned by the caller."""
    return await service.create(user.sub, body.basic_info, body.specs)


@router.get("/languages", response_model=list[LanguageListItem])
async def list_languages(
    kind: Optional[str] = None,
    user: User = Depends(get_current_user),
    service: LanguageService = Depends(get_language_service),
) -> list[LanguageListItem]:
    """Languages the caller created and/or collaborates on (`kind=created|collaborated`)."""
    if kind == "created":
        return await service.list_for_owner(user.sub)
    if kind == "collaborated":
        return await service.list_for_collaborator(user.sub)
    return await service.list_all(user.sub)


@router.post("/languages/specs/validate", response_model=SpecsCheck)
async def check_specs(
    specs: LanguageSpecs,
    language_id: Optional[str] = Query(None, alias="languageId"),
    user: Optional[User] = Depends(get_optional_user),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> SpecsCheck:
    """Dry-run the specs form validation.

    With `languageId` the candidate is also compared to the stored specs, so a
    change that needs confirmation (realistic to simplified depth) is flagged.
    """
    previous = None
    if language_id:
        language, _ = await load_language(language_id, user, service, friends)
        previous = language.specs
    return SpecsCheck(errors=validate_specs(specs), advisories=specs_advisories(specs, previous))


@router.get("/languages/{language_id}", response_model=LanguageDetail)
async def read_language(
    language_id: str,
    user: Optional[User] = Depends(get_optional_user),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    client: Any = Depends(get_client),
) -> LanguageDetail:
    """Language detail page; 404 when absent or not visible to the caller."""
    language, permission = await load_language(language_id, user, service, friends)
    return LanguageDetail(
        language=language,
        permission=permission,
        owner_name=await UserService(client).display_name(language.owner_id),
        advisories=specs_advisories(language.specs),
    )


@router.patch("/languages/{language_id}", response_model=Language)
async def edit_language(
    language_id: str,
    body: LanguageUpdate,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Language:
    """Edit base fields (and optionally specs); visibility needs the owner role."""
    _, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_edit")
    if "visibility" in body.model_fields_set:
        require_capability(permission, "can_manage_visibility")
    return await service.update(language_id, body, actor_id=user.sub)


@router.patch("/languages/{language_id}/specs", response_model=Language)
async def edit_specs(
    language_id: str,
    body: SpecsUpdate,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Language:
    """Edit only the specs subset."""
    _, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_edit")
    return await service.update_specs(language_id, body, actor_id=user.sub)


@router.put("/languages/{language_id}/visibility", response_model=Language)
async def change_visibility(
    language_id: str,
    body: VisibilityChange,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Language:
    """Owner-only move between private, friends and public."""
    _, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_manage_visibility")
    return await service.set_visibility(language_id, body.visibility, actor_id=user.sub)


@router.delete("/languages/{language_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_language(
    language_id: str,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Response:
    """Owner-only delete."""
    _, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_delete")
    await service.delete(language_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/languages/{language_id}/phonemes", response_model=Language)
async def add_phoneme(
    language_id: str,
    body: Phoneme,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Language:
    """Add one phoneme; a repeated symbol is rejected with 422."""
    _, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_edit")
    return await service.add_phoneme(language_id, body, actor_id=user.sub)


@router.post("/languages/{language_id}/phonemes/{symbol}/audio", response_model=Language)
async def upload_phoneme_audio(
    language_id: str,
    symbol: str,
    request: Request,
    user: User = Depends(require_roles("authenticated")),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    storage: ObjectStorage = Depends(get_storage),
) -> Language:
    """Store a phoneme recording (raw request body) and attach its reference."""
    language, permission = await load_language(language_id, user, service, friends)
    require_capability(permission, "can_edit")
    if not any(p.symbol == symbol for p in language.specs.phoneme_set):
        raise NotFoundError("Phoneme", symbol)
    content_type = request.headers.get("content-type", "").split(";")[0].strip()
    if content_type not in AUDIO_TYPES:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Unsupported audio type")
    data = await request.body()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty audio upload")
    key = phoneme_audio_key(language_id, symbol, AUDIO_TYPES[content_type])
    locator = await run_in_threadpool(storage.put, key, data, content_type)
    log.info("phoneme audio stored", extra={"operation": "upload_phoneme_audio", "entity_id": language_id})
    return await service.set_phoneme_audio(language_id, symbol, locator)


@router.get("/languages/{language_id}/phonemes/{symbol}/audio", response_model=AudioLink)
async def phoneme_audio_link(
    language_id: str,
    symbol: str,
    expires_in: int = Query(3600, ge=60, le=86400, alias="expiresIn"),
    user: Optional[User] = Depends(get_optional_user),
    service: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    storage: ObjectStorage = Depends(get_storage),
) -> AudioLink:
    """Pre-signed download link for a phoneme recording, for anyone who can view the language."""
    language, _ = await load_language(language_id, user, service, friends)
    phoneme = next((p for p in language.specs.phoneme_set if p.symbol == symbol), None)
    if phoneme is None or not phoneme.audio_url:
        raise NotFoundError("Phoneme audio", symbol)
    url = storage.presign(storage.key_of(phoneme.audio_url), expires=expires_in)
    return AudioLink(url=url, expires_in=expires_in)
