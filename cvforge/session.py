from __future__ import annotations
import logging
from typing import Optional

from .agents.cv_parser import check_extraction_input, merge_extraction, request_extraction
from .agents.report_agent import check_recommendation_input, recommend as write_recommendation
from .agents.translator import merge_translation, request_translation
from .guard import OperationGuard
from .i18n import Language, normalize_language, other_language
from .llm_provider import GenerationEngine
from .state import Attachment, Profile, ProfileEntry, RecommendationResult, sample_profile
from .utils import data_url

logger = logging.getLogger(__name__)


class Session:
    """Everything one recruiter works on: the profile, the notes, the last
    recommendation, the active language, and one guard per pipeline.

    Pipeline results are merged into whatever profile is current when the
    engine answers; each pipeline commits without awaiting in between, so a
    reader never sees half of a merge.
    """

    def __init__(
        self,
        engine: GenerationEngine,
        profile: Optional[Profile] = None,
        language: str = "pl",
    ):
        self.engine = engine
        self.profile = profile if profile is not None else sample_profile()
        self.language: Language = normalize_language(language)
        self.notes = ""
        self.recommendation = RecommendationResult()

        # extraction scratch input, at most one of the two is set
        self.cv_text = ""
        self.cv_file: Optional[Attachment] = None

        self.extraction_guard = OperationGuard("extraction")
        self.translation_guard = OperationGuard("translation")
        self.recommendation_guard = OperationGuard("recommendation")

    # -------- Input --------
    def set_cv_text(self, text: str) -> None:
        self.cv_text = text or ""
        if self.cv_text:
            self.cv_file = None

    def set_cv_file(self, attachment: Optional[Attachment]) -> None:
        self.cv_file = attachment
        if attachment is not None:
            self.cv_text = ""

    def set_notes(self, notes: str) -> None:
        self.notes = notes or ""

    # -------- Direct edits --------
    def update_field(self, entry_id: Optional[int], field_name: str, value: Optional[str]) -> None:
        self.profile.update_field(entry_id, field_name, value)

    def append_entry(self) -> ProfileEntry:
        return self.profile.append_entry()

    def remove_entry(self, entry_id: int) -> None:
        self.profile.remove_entry(entry_id)

    def set_photo(self, attachment: Optional[Attachment]) -> None:
        self.profile.update_field(None, "photo", data_url(attachment) if attachment else None)

    # -------- Read side for rendering/export --------
    def snapshot(self) -> Profile:
        return self.profile.snapshot()

    @property
    def recommendation_text(self) -> Optional[str]:
        return self.recommendation.text

    @property
    def can_recommend(self) -> bool:
        return bool(self.notes.strip()) and bool(self.profile.full_name)

    # -------- Pipelines --------
    async def extract(self) -> bool:
        """Extract the pending CV text or file into the profile.

        Returns whether the run succeeded; a failure is kept on ``extraction_guard``.
        """
        self.extraction_guard.ensure_idle()
        check_extraction_input(self.cv_text, self.cv_file)
        text, file = self.cv_text, self.cv_file

        async def work() -> None:
            try:
                extracted = await request_extraction(self.engine, text, file)
            finally:
                self.cv_text, self.cv_file = "", None
            self.profile = merge_extraction(self.profile, extracted)

        ok, _ = await self.extraction_guard.run(work)
        return ok

    async def translate(self) -> bool:
        self.translation_guard.ensure_idle()
        source = self.language
        target = other_language(source)

        async def work() -> None:
            translated = await request_translation(self.engine, self.profile, source, target)
            self.profile = merge_translation(self.profile, translated)
            self.language = target

        ok, _ = await self.translation_guard.run(work)
        if ok:
            logger.info("Profile language is now %s", self.language)
        return ok

    async def recommend(self) -> bool:
        self.recommendation_guard.ensure_idle()
        check_recommendation_input(self.profile, self.notes)
        profile, notes = self.profile.snapshot(), self.notes

        async def work() -> None:
            self.recommendation = RecommendationResult(text=await write_recommendation(self.engine, profile, notes))

        ok, _ = await self.recommendation_guard.run(work)
        return ok
