import pytest

from cvforge.agents.translator import (
    build_translation_prompt,
    translate_profile,
    translation_payload,
    zip_merge,
)
from cvforge.errors import InvalidInput, TranslationFailed
from cvforge.schema import TranslatedEntry


def _untranslated_fields(entries):
    return [(e.id, e.start_date, e.end_date) for e in entries]


def test_payload_holds_only_language_bearing_fields(profile):
    payload = translation_payload(profile)
    assert payload["fullName"] == "Jan Kowalski"
    assert payload["experience"][0] == {
        "position": "Magazynier", "company": "Amazon", "description": "Kompletowanie zamówień."}
    assert len(payload["experience"]) == 3
    assert "photo" not in payload


def test_prompt_names_both_languages(profile):
    prompt = build_translation_prompt(translation_payload(profile), "pl", "en")
    assert "from Polish to English" in prompt
    assert "Kompletowanie zamówień." in prompt  # not ascii-escaped
    assert "2020-01" not in prompt


@pytest.mark.parametrize("m", [0, 1, 2, 3])
def test_zip_merge_short_response(profile, m):
    translated = [TranslatedEntry(position=f"P{i}", company=f"C{i}", description=f"D{i}") for i in range(m)]
    merged = zip_merge(profile.entries, translated)

    assert _untranslated_fields(merged) == _untranslated_fields(profile.entries)
    for i, (new, old) in enumerate(zip(merged, profile.entries)):
        if i < m:
            assert (new.position, new.company, new.description) == (f"P{i}", f"C{i}", f"D{i}")
        else:
            assert (new.position, new.company, new.description) == (old.position, old.company, old.description)


def test_zip_merge_keeps_original_for_missing_or_empty_values(profile):
    merged = zip_merge(profile.entries, [TranslatedEntry(position="Warehouse Worker", company="", description=None)])
    assert merged[0].position == "Warehouse Worker"
    assert merged[0].company == "Amazon"
    assert merged[0].description == "Kompletowanie zamówień."


def test_zip_merge_ignores_surplus_items(profile):
    translated = [TranslatedEntry(position=str(i)) for i in range(5)]
    merged = zip_merge(profile.entries, translated)
    assert [e.id for e in merged] == [1, 2, 3]


@pytest.mark.asyncio
async def test_translation_scenario_pl_to_en(make_engine, profile):
    engine = make_engine({
        "fullName": "Jan Kowalski",
        "experience": [{"position": "Warehouse Worker", "company": "Amazon", "description": "Order picking."}],
    })
    result = await translate_profile(engine, profile, "pl", "en")

    assert len(result.entries) == 3
    assert _untranslated_fields(result.entries) == _untranslated_fields(profile.entries)
    assert result.entries[0].position == "Warehouse Worker"
    assert result.entries[1].position == "Kierowca wózka"
    assert result.photo == profile.photo
    assert engine.calls[0]["output_schema"]["required"] == ["fullName", "experience"]


@pytest.mark.asyncio
async def test_missing_experience_is_a_failure(make_engine, profile):
    engine = make_engine({"fullName": "John Smith"})
    before = profile.model_dump()
    with pytest.raises(TranslationFailed):
        await translate_profile(engine, profile, "pl", "en")
    assert profile.model_dump() == before


@pytest.mark.asyncio
async def test_engine_error_is_a_failure(make_engine, profile):
    engine = make_engine(RuntimeError("connection reset"))
    with pytest.raises(TranslationFailed, match="connection reset"):
        await translate_profile(engine, profile, "en", "pl")


@pytest.mark.asyncio
async def test_same_language_is_rejected(make_engine, profile):
    engine = make_engine()
    with pytest.raises(InvalidInput):
        await translate_profile(engine, profile, "pl", "pl")
    assert engine.calls == []
