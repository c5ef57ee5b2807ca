from __future__ import annotations
from typing import Literal, cast

from .errors import InvalidInput

Language = Literal["pl", "en"]

SUPPORTED_LANGUAGES: tuple[Language, ...] = ("pl", "en")

LANGUAGE_NAMES = {"pl": "Polish", "en": "English"}


def normalize_language(value: str | None) -> Language:
    tag = (value or "").strip().lower()
    if tag not in SUPPORTED_LANGUAGES:
        raise InvalidInput(f"Unsupported language {value!r}; expected one of {', '.join(SUPPORTED_LANGUAGES)}")
    return cast(Language, tag)


def other_language(tag: str) -> Language:
    return "en" if normalize_language(tag) == "pl" else "pl"


def language_name(tag: str) -> str:
    return LANGUAGE_NAMES[normalize_language(tag)]
