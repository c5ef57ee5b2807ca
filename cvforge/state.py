from __future__ import annotations
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel, to_snake

from .errors import InvalidInput, NotFound


class _CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire (engine JSON, exported snapshots)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileEntry(_CamelModel):
    id: int
    position: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""

    @field_validator("position", "company", "start_date", "end_date", "description", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


ENTRY_TEXT_FIELDS = ("position", "company", "start_date", "end_date", "description")
PROFILE_EDITABLE_FIELDS = ("full_name", "birth_date", "photo")


class Profile(_CamelModel):
    full_name: str = ""
    photo: Optional[str] = None
    birth_date: str = ""
    entries: List[ProfileEntry] = Field(default_factory=list, alias="experience")

    # Highest id handed out so far; ids are never reused, even after removal.
    _last_id: int = PrivateAttr(default=0)

    @field_validator("full_name", "birth_date", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def model_post_init(self, __context: Any) -> None:
        self._last_id = max((e.id for e in self.entries), default=0)

    def mint_id(self) -> int:
        self._last_id = max([self._last_id] + [e.id for e in self.entries]) + 1
        return self._last_id

    def entry(self, entry_id: int) -> ProfileEntry:
        for e in self.entries:
            if e.id == entry_id:
                return e
        raise NotFound(f"No experience entry with id {entry_id}")

    def update_field(self, entry_id: Optional[int], field_name: str, value: Optional[str]) -> None:
        """Replace exactly one field on the profile, or on the entry with ``entry_id``.

        Field names are accepted in snake_case or camelCase.
        """
        name = to_snake(field_name)
        if entry_id is None:
            if name not in PROFILE_EDITABLE_FIELDS:
                raise InvalidInput(f"Field {field_name!r} cannot be edited on the profile")
            if name != "photo" and value is None:
                value = ""
            target: BaseModel = self
        else:
            if name not in ENTRY_TEXT_FIELDS:
                raise InvalidInput(f"Field {field_name!r} cannot be edited on an entry")
            target = self.entry(entry_id)
            value = value or ""
        if getattr(target, name) != value:
            setattr(target, name, value)

    def append_entry(self) -> ProfileEntry:
        entry = ProfileEntry(id=self.mint_id())
        self.entries.append(entry)
        return entry

    def remove_entry(self, entry_id: int) -> None:
        self.entries = [e for e in self.entries if e.id != entry_id]

    def snapshot(self) -> "Profile":
        return self.model_copy(deep=True)


class RecommendationResult(BaseModel):
    text: Optional[str] = None


class Attachment(BaseModel):
    """A single uploaded document as handed over by the file/drag-drop layer."""

    name: str
    mime_type: str
    data: bytes


def sample_profile() -> Profile:
    return Profile(
        full_name="Jan Kowalski",
        birth_date="16/10/1985",
        entries=[
            ProfileEntry(
                id=1,
                position="Pracownik magazynu",
                company="Amazon",
                start_date="2020-01",
                end_date="2022-12",
                description="Kompletowanie zamówień, obsługa skanera, dbanie o porządek.",
            )
        ],
    )
