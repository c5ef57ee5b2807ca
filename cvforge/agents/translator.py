from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Sequence
from pydantic import ValidationError

from ..errors import InvalidInput, SchemaViolation, TranslationFailed
from ..i18n import language_name, normalize_language
from ..llm_provider import GenerationEngine
from ..schema import TRANSLATION_SCHEMA, TranslatedEntry, TranslatedProfile, to_json_schema
from ..state import Profile, ProfileEntry
from ..utils import extract_json_block

logger = logging.getLogger(__name__)

TRANSLATED_ENTRY_FIELDS = ("position", "company", "description")


def translation_payload(profile: Profile) -> Dict[str, Any]:
    """The language-bearing projection of a profile; dates, photo and ids stay local."""
    return {
        "fullName": profile.full_name,
        "experience": [
            {"position": e.position, "company": e.company, "description": e.description}
            for e in profile.entries
        ],
    }


def build_translation_prompt(payload: Dict[str, Any], source: str, target: str) -> str:
    return (
        f"Translate the text values in the following JSON object from {language_name(source)} "
        f"to {language_name(target)}. Maintain the exact JSON structure in your response, "
        "including the number and order of the experience items. "
        'Only translate the string values for "fullName", "position", "company", and "description".\n\n'
        "JSON data:\n"
        + json.dumps(payload, ensure_ascii=False, indent=2)
    )


def parse_translation_response(text: str) -> TranslatedProfile:
    try:
        data = json.loads(extract_json_block(text))
    except json.JSONDecodeError as e:
        raise SchemaViolation(f"Response is not valid JSON: {e}") from e
    try:
        return TranslatedProfile.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(f"Response does not match the translation schema: {e}") from e


def zip_merge(entries: Sequence[ProfileEntry], translated: Sequence[TranslatedEntry]) -> List[ProfileEntry]:
    """Merge translated fields into ``entries`` by position only.

    Index i of ``translated`` applies to index i of ``entries``. Empty or missing
    values keep the original text, entries past the end of ``translated`` are
    left as they are, and surplus translated items are dropped.
    """
    merged: List[ProfileEntry] = []
    for i, entry in enumerate(entries):
        update: Dict[str, str] = {}
        if i < len(translated):
            for name in TRANSLATED_ENTRY_FIELDS:
                value = getattr(translated[i], name)
                if value:
                    update[name] = value
        merged.append(entry.model_copy(update=update))
    return merged


def merge_translation(profile: Profile, translated: TranslatedProfile) -> Profile:
    merged = profile.model_copy(deep=True)
    if translated.fullName:
        merged.full_name = translated.fullName
    merged.entries = zip_merge(merged.entries, translated.experience)
    return merged


def check_languages(source: str, target: str) -> None:
    if normalize_language(source) == normalize_language(target):
        raise InvalidInput(f"Source and target language are both {source!r}")


async def request_translation(
    engine: GenerationEngine, profile: Profile, source: str, target: str
) -> TranslatedProfile:
    check_languages(source, target)
    source, target = normalize_language(source), normalize_language(target)

    payload = translation_payload(profile)
    logger.info("Translating profile %s -> %s (%d entries)", source, target, len(profile.entries))
    try:
        result = await engine.generate(
            build_translation_prompt(payload, source, target),
            output_schema=to_json_schema(TRANSLATION_SCHEMA),
        )
        translated = parse_translation_response(result.text)
    except Exception as e:
        raise TranslationFailed(f"Translation failed: {e}") from e

    if len(translated.experience) < len(profile.entries):
        logger.warning(
            "Translation returned %d of %d entries; trailing entries keep their original text",
            len(translated.experience), len(profile.entries),
        )
    return translated


async def translate_profile(engine: GenerationEngine, profile: Profile, source: str, target: str) -> Profile:
    translated = await request_translation(engine, profile, source, target)
    return merge_translation(profile, translated)
