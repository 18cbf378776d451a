"""Tests for the flat-row <-> view-model language mapper."""

import pytest

from packages.schemas.language import DEFAULT_ICON, BasicInfo, LanguageUpdate, SpecsUpdate
from services.languages.mapper import (
    INSERT_DEFAULTS,
    merge_row,
    specs_dict,
    to_insert_row,
    to_update_payload,
    to_view_model,
)

ROW = {
    "id": "lang-1",
    "owner_id": "u1",
    "name": "Elvish",
    "description": "A melodic language of the forest folk",
    "icon_url": "🌲",
    "cover_image_url": None,
    "visibility": "private",
    "tags": ["fantasy"],
    "alphabet_script": "Tengwar",
    "writing_direction": "ltr",
    "word_order": "SOV",
    "depth_level": "realistic",
    "case_sensitive": False,
    "phoneme_set": [
        {"symbol": "a", "ipa": "a", "type": "vowel"},
        {"symbol": "th", "ipa": "θ", "type": "consonant", "audio_url": "phoneme-audio/x.webm"},
    ],
    "phoneme_count": 2,
    "vowel_count": 1,
    "consonant_count": 1,
    "custom_specs": {"Tones": "none"},
    "total_words": 3,
    "total_rules": 1,
    "total_contributors": 2,
    "created_at": "2024-01-01T00:00:00+00:00",
    "updated_at": "2024-01-02T00:00:00+00:00",
}


def test_view_model_nests_specs() -> None:
    lang = to_view_model(ROW)
    if lang.icon != "🌲" or lang.specs.alphabet_script != "Tengwar":
        pytest.fail(f"Unexpected mapping: {lang}")
    if [p.symbol for p in lang.specs.phoneme_set] != ["a", "th"]:
        pytest.fail("Phoneme order not preserved")
    if lang.specs.phoneme_set[1].audio_url != "phoneme-audio/x.webm":
        pytest.fail("Audio reference lost")
    dumped = lang.model_dump(by_alias=True)
    if dumped["specs"]["wordOrder"] != "SOV" or "coverImage" not in dumped:
        pytest.fail(f"Expected camelCase keys, got {sorted(dumped)}")


def test_view_model_tolerates_missing_fields() -> None:
    lang = to_view_model({"id": "x", "phoneme_set": [{"symbol": "a"}, "junk"], "custom_specs": None})
    if lang.icon != DEFAULT_ICON:
        pytest.fail("Missing icon should fall back to the default glyph")
    if lang.name is not None or lang.specs.word_order is not None:
        pytest.fail("Absent fields must map to None")
    if len(lang.specs.phoneme_set) != 1 or lang.specs.custom_specs != {}:
        pytest.fail(f"Malformed entries should be dropped: {lang.specs}")
    if to_view_model(None).id is not None:
        pytest.fail("None row should map to an empty view-model")


def test_round_trip_through_update_payload() -> None:
    lang = to_view_model(ROW)
    update = LanguageUpdate(
        name=lang.name,
        description=lang.description,
        icon=lang.icon,
        visibility=lang.visibility,
        tags=lang.tags,
        specs=SpecsUpdate(
            alphabet_script=lang.specs.alphabet_script,
            writing_direction=lang.specs.writing_direction,
            word_order=lang.specs.word_order,
            depth_level=lang.specs.depth_level,
            case_sensitive=lang.specs.case_sensitive,
            phoneme_set=lang.specs.phoneme_set,
            custom_specs=lang.specs.custom_specs,
        ),
    )
    again = to_view_model(merge_row(ROW, to_update_payload(update)))
    if again != lang:
        pytest.fail(f"Round trip changed the language:\n{lang}\n{again}")


def test_partial_payload_contains_only_set_fields() -> None:
    payload = to_update_payload({"specs": {"wordOrder": "SVO"}})
    if payload != {"word_order": "SVO"}:
        pytest.fail(f"Unexpected payload {payload}")
    merged = to_view_model(merge_row(ROW, payload))
    if merged.specs.alphabet_script != "Tengwar" or merged.name != "Elvish":
        pytest.fail("Unset fields must keep their stored values")


def test_empty_enum_string_means_no_change() -> None:
    payload = to_update_payload({"visibility": "", "icon": "", "specs": {"alphabetScript": "", "wordOrder": "VSO"}})
    if payload != {"word_order": "VSO"}:
        pytest.fail(f"Empty enum-like values must be dropped, got {payload}")


def test_phoneme_set_updates_counts() -> None:
    payload = to_update_payload({"specs": {"phonemeSet": [
        {"symbol": "a", "ipa": "a", "type": "vowel"},
        {"symbol": "e", "ipa": "e", "type": "vowel"},
        {"symbol": "k", "ipa": "k", "type": "consonant"},
        {"symbol": "ʔ", "ipa": "ʔ"},
    ]}})
    counts = (payload["phoneme_count"], payload["vowel_count"], payload["consonant_count"])
    if counts != (4, 2, 1):
        pytest.fail(f"Unexpected counts {counts}")


def test_insert_row_applies_defaults_then_specs() -> None:
    row = to_insert_row("u1", BasicInfo(name="  Elvish ", description="A language of elves"),
                        SpecsUpdate(word_order="SOV"))
    if row["name"] != "Elvish" or row["owner_id"] != "u1" or row["icon_url"] != DEFAULT_ICON:
        pytest.fail(f"Bad base columns: {row}")
    if row["word_order"] != "SOV" or row["writing_direction"] != INSERT_DEFAULTS["writing_direction"]:
        pytest.fail("Specs should override defaults only where set")
    if row["visibility"] != "private" or row["total_contributors"] != 1:
        pytest.fail("Insert defaults missing")
    if row["phoneme_set"] is INSERT_DEFAULTS["phoneme_set"]:
        pytest.fail("Default containers must not be shared between rows")


def test_specs_dict_is_camel_case() -> None:
    out = specs_dict(to_view_model(ROW).specs)
    if out.get("wordOrder") != "SOV" or "phonemeSet" in out:
        pytest.fail(f"Unexpected specs dict {out}")
