"""Dictionary entries and grammar rules scoped to a language."""

import logging
from typing import Any, Optional

from packages.common.baas import INSUFFICIENT_PRIVILEGE, BaaSError, Search
from packages.common.errors import NotFoundError, RemoteError, ValidationError
from packages.schemas.dictionary import PARTS_OF_SPEECH, DictionaryEntry, NewWord, WordPage, WordUpdate
from packages.schemas.grammar import RULE_CATEGORIES, RULE_TYPES, GrammarRule, NewRule, RuleUpdate
from services.activity.service import ActivityService

log = logging.getLogger(__name__)

WORDS = "dictionaries"
RULES = "grammar_rules"


def _remote(operation: str, err: BaaSError, entity_id: Optional[str] = None) -> RemoteError:
    exc = RemoteError(operation, err.message, entity_id=entity_id, code=err.code, hint=err.hint, details=err.details)
    log.error("%s failed: %s", operation, err.message, extra=exc.context())
    return exc


async def _delete(client: Any, table: str, entity: str, row_id: str, operation: str) -> None:
    """Delete one row by id; an empty result is resolved by one read of the same id."""
    res = await client.delete(table, eq={"id": row_id})
    if res.error is not None:
        raise _remote(operation, res.error, row_id)
    if res.data:
        return
    check = await client.select(table, "id", eq={"id": row_id}, single=True)
    if check.error is not None and check.error.is_no_rows:
        raise NotFoundError(entity, row_id)
    raise _remote(operation, check.error or BaaSError(code=INSUFFICIENT_PRIVILEGE, message=f"{entity} delete was refused"), row_id)


def _word_errors(word: NewWord | WordUpdate, partial: bool = False) -> dict[str, str]:
    fields = word.model_fields_set if partial else {"word", "translation", "part_of_speech"}
    errors: dict[str, str] = {}
    if "word" in fields and not (word.word or "").strip():
        errors["word"] = "Word is required"
    if "translation" in fields and not (word.translation or "").strip():
        errors["translation"] = "Translation is required"
    if "part_of_speech" in fields and word.part_of_speech not in PARTS_OF_SPEECH:
        errors["partOfSpeech"] = "Invalid part of speech"
    return errors


def _rule_errors(rule: NewRule | RuleUpdate, partial: bool = False) -> dict[str, str]:
    fields = rule.model_fields_set if partial else {"name", "category", "rule_type"}
    errors: dict[str, str] = {}
    if "name" in fields and not (rule.name or "").strip():
        errors["name"] = "Rule name is required"
    if "category" in fields and rule.category not in RULE_CATEGORIES:
        errors["category"] = "Invalid category"
    if "rule_type" in fields and rule.rule_type not in RULE_TYPES:
        errors["ruleType"] = "Invalid rule type"
    return errors


class WordService:
    """Dictionary operations. Only approved entries are listed."""

    def __init__(self, client: Any, activity: Optional[ActivityService] = None) -> None:
        self.client = client
        self.activity = activity or ActivityService(client)

    async def get_words(
        self,
        language_id: str,
        search: Optional[str] = None,
        part_of_speech: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> WordPage:
        """Approved words, newest first, with optional search, filter and paging."""
        eq = {"language_id": language_id, "approval_status": "approved"}
        if part_of_speech:
            eq["part_of_speech"] = part_of_speech
        res = await self.client.select(
            WORDS,
            eq=eq,
            search=Search(("word", "translation"), search) if search else None,
            order="created_at",
            range_=(offset, offset + limit - 1) if limit else None,
            count=True,
        )
        if res.error is not None:
            raise _remote("get_words", res.error, language_id)
        words = [DictionaryEntry.model_validate(r) for r in res.data or []]
        return WordPage(words=words, total=res.count if res.count is not None else len(words))

    async def get_word(self, word_id: str) -> DictionaryEntry:
        res = await self.client.select(WORDS, eq={"id": word_id}, single=True)
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("Word", word_id)
            raise _remote("get_word", res.error, word_id)
        return DictionaryEntry.model_validate(res.data)

    async def add_word(self, language_id: str, word: NewWord, added_by: str) -> DictionaryEntry:
        """Insert an approved entry and log a `word_added` activity."""
        errors = _word_errors(word)
        if errors:
            raise ValidationError(errors)
        row = {
            "language_id": language_id,
            "word": word.word.strip(),
            "translation": word.translation.strip(),
            "part_of_speech": word.part_of_speech,
            "pronunciation": word.pronunciation or None,
            "etymology_note": word.etymology_note or None,
            "examples": [e.model_dump() for e in word.examples],
            "added_by": added_by,
            "approval_status": "approved",
        }
        res = await self.client.insert(WORDS, row)
        if res.error is not None:
            raise _remote("add_word", res.error, language_id)
        entry = DictionaryEntry.model_validate(res.data)
        await self.activity.log_activity(added_by, "word_added", language_id, f"Added word {entry.word}",
                                         {"wordId": entry.id})
        return entry

    async def update_word(self, word_id: str, update: WordUpdate) -> DictionaryEntry:
        """Write only the fields set on `update`."""
        errors = _word_errors(update, partial=True)
        if errors:
            raise ValidationError(errors)
        values = update.model_dump(exclude_unset=True)
        res = await self.client.update(WORDS, values, eq={"id": word_id})
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("Word", word_id)
            raise _remote("update_word", res.error, word_id)
        return DictionaryEntry.model_validate(res.data)

    async def delete_word(self, word_id: str) -> None:
        await _delete(self.client, WORDS, "Word", word_id, "delete_word")

    async def get_parts_of_speech(self, language_id: str) -> list[str]:
        """Distinct parts of speech used by approved entries, sorted."""
        res = await self.client.select(WORDS, "part_of_speech",
                                       eq={"language_id": language_id, "approval_status": "approved"})
        if res.error is not None:
            raise _remote("get_parts_of_speech", res.error, language_id)
        return sorted({r["part_of_speech"] for r in res.data or [] if r.get("part_of_speech")})


class RuleService:
    """Grammar rule operations."""

    def __init__(self, client: Any, activity: Optional[ActivityService] = None) -> None:
        self.client = client
        self.activity = activity or ActivityService(client)

    async def list_rules(self, language_id: str, category: Optional[str] = None) -> list[GrammarRule]:
        eq = {"language_id": language_id}
        if category:
            eq["category"] = category
        res = await self.client.select(RULES, eq=eq, order="created_at")
        if res.error is not None:
            raise _remote("list_rules", res.error, language_id)
        return [GrammarRule.model_validate(r) for r in res.data or []]

    async def get_rule(self, rule_id: str) -> GrammarRule:
        res = await self.client.select(RULES, eq={"id": rule_id}, single=True)
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("Rule", rule_id)
            raise _remote("get_rule", res.error, rule_id)
        return GrammarRule.model_validate(res.data)

    async def add_rule(self, language_id: str, rule: NewRule, added_by: str) -> GrammarRule:
        errors = _rule_errors(rule)
        if errors:
            raise ValidationError(errors)
        row = {
            "language_id": language_id,
            **rule.model_dump(),
            "name": rule.name.strip(),
            "added_by": added_by,
            "approval_status": "approved",
        }
        res = await self.client.insert(RULES, row)
        if res.error is not None:
            raise _remote("add_rule", res.error, language_id)
        created = GrammarRule.model_validate(res.data)
        await self.activity.log_activity(added_by, "rule_added", language_id, f"Added rule {created.name}",
                                         {"ruleId": created.id, "category": created.category})
        return created

    async def update_rule(self, rule_id: str, update: RuleUpdate) -> GrammarRule:
        errors = _rule_errors(update, partial=True)
        if errors:
            raise ValidationError(errors)
        res = await self.client.update(RULES, update.model_dump(exclude_unset=True), eq={"id": rule_id})
        if res.error is not None:
            if res.error.is_no_rows:
                raise NotFoundError("Rule", rule_id)
            raise _remote("update_rule", res.error, rule_id)
        return GrammarRule.model_validate(res.data)

    async def delete_rule(self, rule_id: str) -> None:
        await _delete(self.client, RULES, "Rule", rule_id, "delete_rule")
