"""Dictionary schemas: entries, usage examples and partial updates."""

from pydantic import BaseModel
from typing import List, Literal, Optional

PartOfSpeech = Literal[
    "noun", "verb", "adjective", "adverb", "pronoun",
    "preposition", "conjunction", "interjection", "particle", "other",
]
PARTS_OF_SPEECH = (
    "noun", "verb", "adjective", "adverb", "pronoun",
    "preposition", "conjunction", "interjection", "particle", "other",
)
ApprovalStatus = Literal["draft", "approved"]


class Example(BaseModel):
    """A usage example of a word."""
    phrase: str
    translation: str
    context: Optional[str] = None


class DictionaryEntry(BaseModel):
    """A dictionary row scoped to one language."""
    id: str
    language_id: str
    word: str
    translation: str
    part_of_speech: str
    pronunciation: Optional[str] = None
    etymology_note: Optional[str] = None
    examples: List[Example] = []
    added_by: Optional[str] = None
    approval_status: ApprovalStatus = "approved"
    created_at: Optional[str] = None


class NewWord(BaseModel):
    """Payload for adding a word."""
    word: str
    translation: str
    part_of_speech: str
    pronunciation: Optional[str] = None
    etymology_note: Optional[str] = None
    examples: List[Example] = []


class WordUpdate(BaseModel):
    """Partial word update; unset fields are left unchanged."""
    word: Optional[str] = None
    translation: Optional[str] = None
    part_of_speech: Optional[str] = None
    pronunciation: Optional[str] = None
    etymology_note: Optional[str] = None
    examples: Optional[List[Example]] = None


class WordPage(BaseModel):
    """One page of dictionary results plus the total match count."""
    words: List[DictionaryEntry]
    total: int
