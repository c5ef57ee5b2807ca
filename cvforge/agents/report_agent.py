from __future__ import annotations
import logging
from typing import List

from ..errors import InvalidInput, RecommendationFailed
from ..llm_provider import GenerationEngine
from ..state import Profile

logger = logging.getLogger(__name__)

RECOMMENDATION_BRIEF = """\
You are an experienced recruiter specialising in recruiting production and logistics workers for jobs in the Netherlands.
Based on the CV data and the short note about the candidate below, write a short recommendation in English (3-5 sentences) showing why the candidate is a good fit to go abroad for work.

Include:
- the most relevant experience (with the company name and duration, if given),
- practical skills useful in logistics/production,
- the candidate's level of English,
- whether they have a driving licence,
- whether they want to travel alone or with someone, and for how long,
- work preferences, if any.

The style should be professional but relaxed, as if you were recommending the candidate to a colleague from the recruitment team. No unnecessary formalities, factual and to the point."""


def format_profile(profile: Profile) -> str:
    lines: List[str] = [
        f"Full Name: {profile.full_name}",
        f"Birth Date: {profile.birth_date}",
        "Experience:",
    ]
    for e in profile.entries:
        lines.append(f"- {e.position} at {e.company} ({e.start_date} to {e.end_date}): {e.description}")
    return "\n".join(lines)


def build_recommendation_prompt(profile: Profile, notes: str) -> str:
    return "\n\n".join([
        RECOMMENDATION_BRIEF,
        "--- CV DATA ---",
        format_profile(profile),
        "--- SHORT NOTE ABOUT THE CANDIDATE ---",
        notes.strip(),
    ])


def check_recommendation_input(profile: Profile, notes: str) -> None:
    if not (notes or "").strip():
        raise InvalidInput("Add notes about the candidate first.")
    if not profile.full_name:
        raise InvalidInput("The profile has no full name.")


async def recommend(engine: GenerationEngine, profile: Profile, notes: str) -> str:
    """Write a recruiter recommendation from the profile and free-text notes.

    The engine's prose is returned verbatim.
    """
    check_recommendation_input(profile, notes)

    logger.info("Generating recommendation (%d entries, notes %d chars)", len(profile.entries), len(notes))
    try:
        result = await engine.generate(build_recommendation_prompt(profile, notes))
    except Exception as e:
        raise RecommendationFailed(f"Recommendation failed: {e}") from e
    return result.text
