"""Language schemas: specs, phonemes, the nested view-model and partial updates."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional

Role = Literal["owner", "editor", "viewer", "none"]
CollaboratorRole = Literal["owner", "editor", "viewer"]
Visibility = Literal["private", "friends", "public"]
WritingDirection = Literal["ltr", "rtl", "boustrophedon"]
WordOrder = Literal["SVO", "SOV", "VSO", "VOS", "OSV", "OVS"]
DepthLevel = Literal["realistic", "simplified"]
ListingType = Literal["created", "collaborated"]

VISIBILITIES = ("private", "friends", "public")
WRITING_DIRECTIONS = ("ltr", "rtl", "boustrophedon")
WORD_ORDERS = ("SVO", "SOV", "VSO", "VOS", "OSV", "OVS")
DEPTH_LEVELS = ("realistic", "simplified")

DEFAULT_ICON = "🌍"


class CamelModel(BaseModel):
    """Base for view-models exchanged with forms (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Phoneme(CamelModel):
    """A phoneme: display symbol, IPA notation and optional audio reference."""
    symbol: str
    ipa: str
    audio_url: Optional[str] = None
    type: Optional[Literal["vowel", "consonant"]] = None


class LanguageSpecs(CamelModel):
    """Structured linguistic configuration attached to a language.

    Every field is optional because rows may predate a given column.
    """
    alphabet_script: Optional[str] = None
    writing_direction: Optional[str] = None
    word_order: Optional[str] = None
    depth_level: Optional[str] = None
    case_sensitive: Optional[bool] = None
    phoneme_set: List[Phoneme] = []
    phoneme_count: Optional[int] = None
    vowel_count: Optional[int] = None
    consonant_count: Optional[int] = None
    custom_specs: Dict[str, str] = {}


class Language(CamelModel):
    """Nested language view-model built from a flat row."""
    id: Optional[str] = None
    owner_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    icon: str = DEFAULT_ICON
    cover_image: Optional[str] = None
    visibility: Optional[str] = None
    tags: List[str] = []
    specs: LanguageSpecs = Field(default_factory=LanguageSpecs)
    total_words: int = 0
    total_rules: int = 0
    total_contributors: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LanguageListItem(Language):
    """A language in a listing, tagged with the caller's role and relation."""
    role: Role = "none"
    type: ListingType = "created"


class BasicInfo(CamelModel):
    """Payload of the first step of the new-language wizard."""
    name: str
    description: str
    icon: str = DEFAULT_ICON
    cover_image: Optional[str] = None


class SpecsUpdate(CamelModel):
    """Partial specs: only fields explicitly set are written."""
    alphabet_script: Optional[str] = None
    writing_direction: Optional[str] = None
    word_order: Optional[str] = None
    depth_level: Optional[str] = None
    case_sensitive: Optional[bool] = None
    phoneme_set: Optional[List[Phoneme]] = None
    custom_specs: Optional[Dict[str, str]] = None


class LanguageUpdate(CamelModel):
    """Partial language: base fields and specs are independently optional."""
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    cover_image: Optional[str] = None
    visibility: Optional[str] = None
    tags: Optional[List[str]] = None
    specs: Optional[SpecsUpdate] = None


class VisibilityChange(BaseModel):
    """Body of a visibility change request."""
    visibility: Visibility
