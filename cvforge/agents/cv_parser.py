from __future__ import annotations
import json
import logging
from typing import Optional
from pydantic import ValidationError

from ..errors import ExtractionFailed, InvalidInput, SchemaViolation
from ..llm_provider import GenerationEngine
from ..schema import EXTRACTION_SCHEMA, ExtractedProfile, to_json_schema
from ..state import Attachment, Profile, ProfileEntry
from ..utils import extract_json_block

logger = logging.getLogger(__name__)

EXTRACTION_INSTRUCTION = (
    "Analyze the CV below and extract the following information as JSON: "
    "the candidate's full name (fullName), date of birth (birthDate, formatted DD/MM/YYYY), "
    "and the employment history (experience) as an array of objects, each with the position (position), "
    "company (company), start date (startDate, formatted YYYY-MM), end date (endDate, formatted YYYY-MM) "
    "and a short description (description). Keep the entries in the order they appear in the CV. "
    "If a piece of information is missing, leave that field empty."
)


def build_extraction_prompt(raw_text: str = "") -> str:
    if raw_text:
        return f"{EXTRACTION_INSTRUCTION}\n\nCV:\n{raw_text}"
    return EXTRACTION_INSTRUCTION


def parse_extraction_response(text: str) -> ExtractedProfile:
    try:
        data = json.loads(extract_json_block(text))
    except json.JSONDecodeError as e:
        raise SchemaViolation(f"Response is not valid JSON: {e}") from e
    try:
        return ExtractedProfile.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(f"Response does not match the CV schema: {e}") from e


def merge_extraction(current: Profile, extracted: ExtractedProfile) -> Profile:
    """Merge an extraction result into a copy of ``current``.

    Name and birth date are overwritten only by non-empty values. A present
    ``experience`` array, even an empty one, replaces all entries; each new entry
    gets a freshly minted id.
    """
    merged = current.model_copy(deep=True)
    if extracted.fullName:
        merged.full_name = extracted.fullName
    if extracted.birthDate:
        merged.birth_date = extracted.birthDate
    if extracted.experience is not None:
        entries = []
        for item in extracted.experience:
            entries.append(ProfileEntry(
                id=merged.mint_id(),
                position=item.position,
                company=item.company,
                start_date=item.startDate,
                end_date=item.endDate,
                description=item.description,
            ))
        merged.entries = entries
    return merged


def check_extraction_input(raw_text: str, raw_file: Optional[Attachment]) -> None:
    has_text = bool((raw_text or "").strip())
    if not has_text and raw_file is None:
        raise InvalidInput("Paste the CV text or choose a CV file first.")
    if has_text and raw_file is not None:
        raise InvalidInput("Give either the CV text or a CV file, not both.")


async def request_extraction(
    engine: GenerationEngine,
    raw_text: str,
    raw_file: Optional[Attachment],
) -> ExtractedProfile:
    raw_text = raw_text or ""
    check_extraction_input(raw_text, raw_file)

    prompt = build_extraction_prompt("" if raw_file is not None else raw_text)
    logger.info(
        "Extracting profile from %s",
        f"file {raw_file.name} ({raw_file.mime_type})" if raw_file else f"text ({len(raw_text)} chars)",
    )
    try:
        result = await engine.generate(
            prompt,
            attachment=raw_file,
            output_schema=to_json_schema(EXTRACTION_SCHEMA),
        )
        return parse_extraction_response(result.text)
    except Exception as e:
        raise ExtractionFailed(f"CV extraction failed: {e}") from e


async def extract_profile(
    engine: GenerationEngine,
    raw_text: str,
    raw_file: Optional[Attachment],
    current: Profile,
) -> Profile:
    """Turn raw CV text or a CV document into a profile merged over ``current``."""
    extracted = await request_extraction(engine, raw_text, raw_file)
    return merge_extraction(current, extracted)
