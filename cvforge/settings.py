from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
load_dotenv()  # load .env early


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "").strip() or default)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip().lower()
    return v in {"1", "true", "yes", "on", "y", "t"}


@dataclass
class _Settings:
    # Generation engine
    provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "auto"))
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))
    mistral_model: str = field(default_factory=lambda: os.getenv("MISTRAL_MODEL", "mistral-large-latest"))
    temperature: float = field(default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.2))

    # Profile language the session starts in
    default_language: str = field(default_factory=lambda: os.getenv("DEFAULT_LANGUAGE", "pl").strip().lower())

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", False))


SETTINGS = _Settings()
