# services/dictionary/routes.py
"""HTTP endpoints for dictionary entries and grammar rules."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from packages.common.auth import User, get_optional_user
from packages.common.deps import get_client
from packages.common.rbac import require_roles
from packages.schemas.dictionary import DictionaryEntry, NewWord, WordPage, WordUpdate
from packages.schemas.grammar import GrammarRule, NewRule, RuleUpdate
from services.community.routes import get_friendship_service
from services.community.service import FriendshipService
from services.languages.routes import get_language_service, load_language, require_capability
from services.languages.service import LanguageService

from .service import RuleService, WordService

router = APIRouter(tags=["dictionary"])


def get_word_service(client: Any = Depends(get_client)) -> WordService:
    return WordService(client)


def get_rule_service(client: Any = Depends(get_client)) -> RuleService:
    return RuleService(client)


@router.get("/languages/{language_id}/words", response_model=WordPage)
async def list_words(
    language_id: str,
    search: Optional[str] = None,
    part_of_speech: Optional[str] = Query(None, alias="partOfSpeech"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    words: WordService = Depends(get_word_service),
) -> WordPage:
    """Approved words of a language with search, part-of-speech filter and paging."""
    await load_language(language_id, user, languages, friends)
    return await words.get_words(language_id, search, part_of_speech, limit, offset)


@router.post("/languages/{language_id}/words", response_model=DictionaryEntry, status_code=status.HTTP_201_CREATED)
async def add_word(
    language_id: str,
    body: NewWord,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    words: WordService = Depends(get_word_service),
) -> DictionaryEntry:
    _, permission = await load_language(language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    return await words.add_word(language_id, body, user.sub)


@router.get("/languages/{language_id}/parts-of-speech", response_model=list[str])
async def parts_of_speech(
    language_id: str,
    user: Optional[User] = Depends(get_optional_user),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    words: WordService = Depends(get_word_service),
) -> list[str]:
    """Parts of speech in use, for the dictionary filter."""
    await load_language(language_id, user, languages, friends)
    return await words.get_parts_of_speech(language_id)


@router.patch("/words/{word_id}", response_model=DictionaryEntry)
async def edit_word(
    word_id: str,
    body: WordUpdate,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    words: WordService = Depends(get_word_service),
) -> DictionaryEntry:
    entry = await words.get_word(word_id)
    _, permission = await load_language(entry.language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    return await words.update_word(word_id, body)


@router.delete("/words/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_word(
    word_id: str,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    words: WordService = Depends(get_word_service),
) -> Response:
    entry = await words.get_word(word_id)
    _, permission = await load_language(entry.language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    await words.delete_word(word_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/languages/{language_id}/rules", response_model=list[GrammarRule])
async def list_rules(
    language_id: str,
    category: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    rules: RuleService = Depends(get_rule_service),
) -> list[GrammarRule]:
    await load_language(language_id, user, languages, friends)
    return await rules.list_rules(language_id, category)


@router.post("/languages/{language_id}/rules", response_model=GrammarRule, status_code=status.HTTP_201_CREATED)
async def add_rule(
    language_id: str,
    body: NewRule,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    rules: RuleService = Depends(get_rule_service),
) -> GrammarRule:
    _, permission = await load_language(language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    return await rules.add_rule(language_id, body, user.sub)


@router.patch("/rules/{rule_id}", response_model=GrammarRule)
async def edit_rule(
    rule_id: str,
    body: RuleUpdate,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    rules: RuleService = Depends(get_rule_service),
) -> GrammarRule:
    rule = await rules.get_rule(rule_id)
    _, permission = await load_language(rule.language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    return await rules.update_rule(rule_id, body)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    rule_id: str,
    user: User = Depends(require_roles("authenticated")),
    languages: LanguageService = Depends(get_language_service),
    friends: FriendshipService = Depends(get_friendship_service),
    rules: RuleService = Depends(get_rule_service),
) -> Response:
    rule = await rules.get_rule(rule_id)
    _, permission = await load_language(rule.language_id, user, languages, friends)
    require_capability(permission, "can_edit")
    await rules.delete_rule(rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
