"""Pre-submission validation for language basics and specs.

Each validator returns a mapping of camelCase field name -> message; an
empty mapping means valid. The store stays the authority and may still
reject input these checks accept.
"""

from typing import Any, Iterable, Mapping

from packages.common.errors import ValidationError
from packages.schemas.language import (
    DEPTH_LEVELS,
    VISIBILITIES,
    WORD_ORDERS,
    WRITING_DIRECTIONS,
    BasicInfo,
    LanguageSpecs,
    LanguageUpdate,
    Phoneme,
    SpecsUpdate,
)

NAME_MIN, NAME_MAX = 2, 50
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 500
RECOMMENDED_PHONEMES = 5
REQUIRED_SPECS = ("alphabet_script", "writing_direction", "word_order", "depth_level")
SIMPLIFIED_WARNING = (
    "Simplified mode streamlines grammar rules for learners and phonology may not follow "
    "natural language patterns. You can switch back to realistic later"
)


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _phoneme_errors(phonemes: list[Phoneme]) -> str | None:
    if not phonemes:
        return "At least one phoneme is required"
    if any(_blank(p.symbol) or _blank(p.ipa) for p in phonemes):
        return "All phonemes must have a symbol and IPA notation"
    symbols = [p.symbol.strip() for p in phonemes]
    dupes = sorted({s for s in symbols if symbols.count(s) > 1})
    if dupes:
        return f"Phoneme symbols must be unique (duplicated: {', '.join(dupes)})"
    return None


def _custom_spec_errors(custom: Mapping[str, str]) -> str | None:
    keys = [str(k).strip() for k in custom]
    if len(set(keys)) != len(keys):
        return "Custom spec names must be unique"
    return None


def _enum_error(label: str, value: Any, allowed: tuple[str, ...]) -> str | None:
    if _blank(value):
        return f"{label} is required"
    if value not in allowed:
        return f"Invalid {label.lower()}"
    return None


def validate_specs(specs: LanguageSpecs | SpecsUpdate | Mapping[str, Any]) -> dict[str, str]:
    """Check a complete candidate specs object before submission."""
    if isinstance(specs, Mapping):
        specs = SpecsUpdate.model_validate(specs)
    errors: dict[str, str] = {}
    if _blank(specs.alphabet_script):
        errors["alphabetScript"] = "Alphabet/Script is required"
    for field, attr, label, allowed in (
        ("writingDirection", "writing_direction", "Writing direction", WRITING_DIRECTIONS),
        ("wordOrder", "word_order", "Word order", WORD_ORDERS),
        ("depthLevel", "depth_level", "Depth level", DEPTH_LEVELS),
    ):
        message = _enum_error(label, getattr(specs, attr), allowed)
        if message:
            errors[field] = message
    message = _phoneme_errors(list(specs.phoneme_set or []))
    if message:
        errors["phonemeSet"] = message
    message = _custom_spec_errors(specs.custom_specs or {})
    if message:
        errors["customSpecs"] = message
    return errors


def specs_advisories(
    specs: LanguageSpecs | SpecsUpdate,
    previous: LanguageSpecs | SpecsUpdate | None = None,
) -> dict[str, str]:
    """Non-blocking notices shown next to an otherwise valid specs form.

    `previous` is the stored specs when editing; moving from realistic to
    simplified depth adds a `depthLevel` warning to confirm.
    """
    notices: dict[str, str] = {}
    if previous is not None and previous.depth_level == "realistic" and specs.depth_level == "simplified":
        notices["depthLevel"] = SIMPLIFIED_WARNING
    count = len(specs.phoneme_set or [])
    if 0 < count < RECOMMENDED_PHONEMES:
        notices["phonemeSet"] = (
            f"At least {RECOMMENDED_PHONEMES} phonemes are recommended for realism (you have {count})"
        )
    return notices


def validate_specs_update(update: SpecsUpdate) -> dict[str, str]:
    """Validate only the spec fields a partial edit actually sets.

    Empty strings mean "no change" and pass; an explicit None on a required
    field would clear it and is rejected.
    """
    errors: dict[str, str] = {}
    fields = update.model_fields_set
    camel = {"alphabet_script": "alphabetScript", "writing_direction": "writingDirection",
             "word_order": "wordOrder", "depth_level": "depthLevel"}
    allowed = {"writing_direction": WRITING_DIRECTIONS, "word_order": WORD_ORDERS, "depth_level": DEPTH_LEVELS}
    for attr in REQUIRED_SPECS:
        if attr not in fields:
            continue
        value = getattr(update, attr)
        if value is None:
            errors[camel[attr]] = "This setting cannot be cleared"
        elif value != "" and attr in allowed and value not in allowed[attr]:
            errors[camel[attr]] = f"Invalid {camel[attr]}"
    if "case_sensitive" in fields and update.case_sensitive is None:
        errors["caseSensitive"] = "This setting cannot be cleared"
    if "phoneme_set" in fields:
        message = _phoneme_errors(list(update.phoneme_set or []))
        if message:
            errors["phonemeSet"] = message
    if "custom_specs" in fields and update.custom_specs:
        message = _custom_spec_errors(update.custom_specs)
        if message:
            errors["customSpecs"] = message
    return errors


def validate_basic_info(info: BasicInfo) -> dict[str, str]:
    """Wizard step one: name 2-50 chars, description 10-500 chars, icon present."""
    errors: dict[str, str] = {}
    name = (info.name or "").strip()
    if not name:
        errors["name"] = "Language name is required"
    elif len(name) < NAME_MIN:
        errors["name"] = f"Language name must be at least {NAME_MIN} characters"
    elif len(name) > NAME_MAX:
        errors["name"] = f"Language name must be at most {NAME_MAX} characters"
    description = (info.description or "").strip()
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < DESCRIPTION_MIN:
        errors["description"] = f"Description must be at least {DESCRIPTION_MIN} characters"
    elif len(description) > DESCRIPTION_MAX:
        errors["description"] = f"Description must be at most {DESCRIPTION_MAX} characters"
    if _blank(info.icon):
        errors["icon"] = "Icon is required"
    return errors


def validate_update(update: LanguageUpdate) -> dict[str, str]:
    """Validate the base fields and specs a partial language edit sets."""
    errors: dict[str, str] = {}
    fields = update.model_fields_set
    if "name" in fields or "description" in fields:
        probe = BasicInfo(
            name=update.name if "name" in fields and update.name is not None else "xx",
            description=(update.description if "description" in fields and update.description is not None
                         else "x" * DESCRIPTION_MIN),
        )
        basic = validate_basic_info(probe)
        if "name" in fields:
            if update.name is None:
                errors["name"] = "Language name is required"
            elif "name" in basic:
                errors["name"] = basic["name"]
        if "description" in fields:
            if update.description is None:
                errors["description"] = "Description is required"
            elif "description" in basic:
                errors["description"] = basic["description"]
    if "icon" in fields and update.icon is None:
        errors["icon"] = "Icon is required"
    if "tags" in fields and update.tags is None:
        errors["tags"] = "Tags cannot be cleared; send an empty list instead"
    if "visibility" in fields and update.visibility != "" and update.visibility not in VISIBILITIES:
        errors["visibility"] = "Invalid visibility"
    if "specs" in fields and update.specs is not None:
        errors.update(validate_specs_update(update.specs))
    return errors


def add_phoneme(phonemes: Iterable[Phoneme], phoneme: Phoneme) -> list[Phoneme]:
    """Append `phoneme`, rejecting blanks and duplicate symbols up front.

    Raises:
        ValidationError: keyed by `phonemeSet`.
    """
    current = list(phonemes)
    if _blank(phoneme.symbol) or _blank(phoneme.ipa):
        raise ValidationError.single("phonemeSet", "A phoneme needs both a symbol and IPA notation")
    symbol = phoneme.symbol.strip()
    if any(p.symbol.strip() == symbol for p in current):
        raise ValidationError.single("phonemeSet", f"Phoneme symbol '{symbol}' already exists")
    current.append(phoneme.model_copy(update={"symbol": symbol, "ipa": phoneme.ipa.strip()}))
    return current


def custom_specs_from_entries(entries: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Build the custom specs map from form rows of {key, value}.

    Rows with a blank key are skipped.

    Raises:
        ValidationError: on a repeated key.
    """
    out: dict[str, str] = {}
    for entry in entries:
        key = str(entry.get("key") or "").strip()
        if not key:
            continue
        if key in out:
            raise ValidationError.single("customSpecs", f"Custom spec '{key}' is defined twice")
        out[key] = str(entry.get("value") or "")
    return out
