"""Field mapping between flat `languages` rows and the nested view-model.

Rows are flat and snake_case (`alphabet_script`, `icon_url`, ...); the
view-model nests the linguistic settings under `specs` and is serialized in
camelCase. Both directions are pure functions.
"""

from typing import Any, Mapping, Optional

from packages.schemas.language import (
    DEFAULT_ICON,
    BasicInfo,
    Language,
    LanguageSpecs,
    LanguageUpdate,
    Phoneme,
    SpecsUpdate,
)

# view attribute -> column
BASE_COLUMNS = {
    "name": "name",
    "description": "description",
    "icon": "icon_url",
    "cover_image": "cover_image_url",
    "visibility": "visibility",
    "tags": "tags",
}
SPEC_COLUMNS = {
    "alphabet_script": "alphabet_script",
    "writing_direction": "writing_direction",
    "word_order": "word_order",
    "depth_level": "depth_level",
    "case_sensitive": "case_sensitive",
    "phoneme_set": "phoneme_set",
    "custom_specs": "custom_specs",
}

# An empty string for one of these means "leave unchanged", never "clear".
ENUM_LIKE = {"alphabet_script", "writing_direction", "word_order", "depth_level", "visibility", "icon"}

INSERT_DEFAULTS = {
    "visibility": "private",
    "alphabet_script": None,
    "writing_direction": "ltr",
    "word_order": None,
    "depth_level": "realistic",
    "case_sensitive": False,
    "phoneme_set": [],
    "phoneme_count": 0,
    "vowel_count": 0,
    "consonant_count": 0,
    "custom_specs": {},
    "tags": [],
    "total_words": 0,
    "total_rules": 0,
    "total_contributors": 1,
}


def _phoneme(raw: Any) -> Optional[Phoneme]:
    if isinstance(raw, Phoneme):
        return raw
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("type")
    return Phoneme(
        symbol=str(raw.get("symbol") or ""),
        ipa=str(raw.get("ipa") or ""),
        audio_url=raw.get("audio_url") or raw.get("audioUrl"),
        type=kind if kind in ("vowel", "consonant") else None,
    )


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def to_view_model(row: Mapping[str, Any] | None) -> Language:
    """Build the nested `Language` view-model from a flat row.

    Absent fields fall back to None or empty defaults; a missing icon becomes
    the default glyph. Malformed phoneme entries are skipped.
    """
    row = row or {}
    phonemes = [p for p in (_phoneme(raw) for raw in (row.get("phoneme_set") or [])) if p is not None]
    custom = row.get("custom_specs") or {}
    specs = LanguageSpecs(
        alphabet_script=row.get("alphabet_script"),
        writing_direction=row.get("writing_direction"),
        word_order=row.get("word_order"),
        depth_level=row.get("depth_level"),
        case_sensitive=row.get("case_sensitive"),
        phoneme_set=phonemes,
        phoneme_count=row.get("phoneme_count"),
        vowel_count=row.get("vowel_count"),
        consonant_count=row.get("consonant_count"),
        custom_specs={str(k): str(v) for k, v in custom.items()} if isinstance(custom, Mapping) else {},
    )
    return Language(
        id=row.get("id"),
        owner_id=row.get("owner_id"),
        name=row.get("name"),
        description=row.get("description"),
        icon=row.get("icon_url") or row.get("icon") or DEFAULT_ICON,
        cover_image=row.get("cover_image_url"),
        visibility=row.get("visibility"),
        tags=list(row.get("tags") or []),
        specs=specs,
        total_words=_int(row.get("total_words")),
        total_rules=_int(row.get("total_rules")),
        total_contributors=_int(row.get("total_contributors"), 1 if row.get("id") else 0),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _phoneme_columns(phonemes: list[Phoneme]) -> dict[str, Any]:
    return {
        "phoneme_set": [p.model_dump(exclude_none=True) for p in phonemes],
        "phoneme_count": len(phonemes),
        "vowel_count": sum(1 for p in phonemes if p.type == "vowel"),
        "consonant_count": sum(1 for p in phonemes if p.type == "consonant"),
    }


def flatten_specs(specs: SpecsUpdate | Mapping[str, Any] | None) -> dict[str, Any]:
    """Flatten only the explicitly set spec fields to their columns."""
    if specs is None:
        return {}
    if not isinstance(specs, SpecsUpdate):
        specs = SpecsUpdate.model_validate(specs)
    out: dict[str, Any] = {}
    for attr in specs.model_fields_set:
        value = getattr(specs, attr)
        if attr in ENUM_LIKE and value == "":
            continue
        if attr == "phoneme_set":
            out.update(_phoneme_columns(value or []))
        elif attr == "custom_specs":
            out["custom_specs"] = dict(value) if value is not None else {}
        else:
            out[SPEC_COLUMNS[attr]] = value
    return out


def to_update_payload(partial: LanguageUpdate | Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a partial view-model to the columns it changes.

    Fields never set on `partial` are absent from the payload (not null), and
    an empty string for an enum-like field counts as "no change".
    """
    if not isinstance(partial, LanguageUpdate):
        partial = LanguageUpdate.model_validate(partial)
    out: dict[str, Any] = {}
    for attr in partial.model_fields_set:
        value = getattr(partial, attr)
        if attr == "specs":
            out.update(flatten_specs(value))
            continue
        if attr in ENUM_LIKE and value == "":
            continue
        out[BASE_COLUMNS[attr]] = value
    return out


def to_insert_row(owner_id: str, info: BasicInfo, specs: SpecsUpdate | None = None) -> dict[str, Any]:
    """Row for a new language: defaults first, then the caller's specs on top."""
    row = dict(INSERT_DEFAULTS)
    row["phoneme_set"] = []
    row["custom_specs"] = {}
    row["tags"] = []
    row.update({
        "owner_id": owner_id,
        "name": info.name.strip(),
        "description": info.description.strip(),
        "icon_url": info.icon or DEFAULT_ICON,
        "cover_image_url": info.cover_image,
    })
    row.update(flatten_specs(specs))
    return row


def merge_row(row: Mapping[str, Any], payload: Mapping[str, Any]) -> dict[str, Any]:
    """Apply an update payload to a stored row; keys absent from the payload are kept."""
    merged = dict(row)
    merged.update(payload)
    return merged


def specs_dict(specs: LanguageSpecs | SpecsUpdate) -> dict[str, Any]:
    """camelCase dict of the set/known spec fields, used in activity metadata."""
    return specs.model_dump(by_alias=True, exclude_none=True, exclude={"phoneme_set"})
