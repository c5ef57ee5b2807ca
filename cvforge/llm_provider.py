from __future__ import annotations
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_mistralai import ChatMistralAI

from .errors import EngineError
from .settings import SETTINGS
from .state import Attachment
from .utils import encode_base64

logger = logging.getLogger(__name__)

PROVIDERS = {"auto", "gemini", "mistral"}


@dataclass(frozen=True)
class GenerationResult:
    text: str


class GenerationEngine(Protocol):
    async def generate(
        self,
        prompt: str,
        attachment: Optional[Attachment] = None,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult: ...


def _get_secret(name: str) -> Optional[str]:
    return os.getenv(name) or None


def normalize_provider(p: str | None) -> str:
    if not p:
        return "auto"
    p = p.strip().lower()
    if p in PROVIDERS:
        return p
    return "auto"


def build_gemini(temperature: float = 0.2) -> ChatGoogleGenerativeAI:
    # Prefer GEMINI_API_KEY, fallback to GOOGLE_API_KEY
    key = _get_secret("GEMINI_API_KEY") or _get_secret("GOOGLE_API_KEY")
    if not key:
        raise EngineError("GEMINI_API_KEY (or GOOGLE_API_KEY) is missing. Set it in .env.")
    return ChatGoogleGenerativeAI(model=SETTINGS.gemini_model, temperature=temperature, google_api_key=key)


def build_mistral(temperature: float = 0.2) -> ChatMistralAI:
    key = _get_secret("MISTRAL_API_KEY")
    if not key:
        raise EngineError("MISTRAL_API_KEY is missing. Set it in .env.")
    return ChatMistralAI(model=SETTINGS.mistral_model, temperature=temperature, api_key=key)


def _content_text(content: Any) -> str:
    # Gemini may answer with a list of parts instead of a plain string
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content or "")


def _openapi_subset(schema: Any) -> Any:
    # Gemini's response_schema rejects additionalProperties
    if isinstance(schema, dict):
        return {k: _openapi_subset(v) for k, v in schema.items() if k != "additionalProperties"}
    if isinstance(schema, list):
        return [_openapi_subset(v) for v in schema]
    return schema


class ChatModelEngine:
    """Adapts a LangChain chat model to the generation-engine contract."""

    def __init__(self, llm: Any, provider: str):
        self.llm = llm
        self.provider = provider

    async def _attachment_block(self, attachment: Attachment) -> Dict[str, Any]:
        data = await asyncio.to_thread(encode_base64, attachment.data)
        if self.provider == "mistral":
            if not attachment.mime_type.startswith("image/"):
                raise EngineError(f"Mistral cannot read {attachment.mime_type} attachments")
            return {"type": "image_url", "image_url": {"url": f"data:{attachment.mime_type};base64,{data}"}}
        kind = "image" if attachment.mime_type.startswith("image/") else "file"
        return {"type": kind, "base64": data, "mime_type": attachment.mime_type}

    def _constrained(self, output_schema: Dict[str, Any]) -> Any:
        if self.provider == "mistral":
            return self.llm.bind(response_format={
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": output_schema},
            })
        return self.llm.bind(response_mime_type="application/json", response_schema=_openapi_subset(output_schema))

    async def generate(
        self,
        prompt: str,
        attachment: Optional[Attachment] = None,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        if attachment is not None:
            content.append(await self._attachment_block(attachment))
        model = self._constrained(output_schema) if output_schema else self.llm
        try:
            resp = await model.ainvoke([HumanMessage(content=content)])
        except Exception as e:
            raise EngineError(f"{self.provider} request failed: {e}") from e
        return GenerationResult(text=_content_text(getattr(resp, "content", "")).strip())


class MultiProviderEngine:
    """Try multiple provider engines in order. Build lazily and failover on errors."""

    def __init__(self, builders: List[Callable[[], ChatModelEngine]]):
        self.builders = builders
        self._instances: List[ChatModelEngine | None] = [None] * len(builders)

    async def generate(
        self,
        prompt: str,
        attachment: Optional[Attachment] = None,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        errors: List[str] = []
        last_exc: Optional[Exception] = None
        for i, b in enumerate(self.builders):
            # Build if needed
            if self._instances[i] is None:
                try:
                    self._instances[i] = b()
                except Exception as e:
                    errors.append(f"build[{i}]: {e}")
                    last_exc = e
                    continue
            engine = self._instances[i]
            try:
                return await engine.generate(prompt, attachment, output_schema)
            except Exception as e:
                logger.warning("Provider %s failed, trying next: %s", getattr(engine, "provider", i), e)
                errors.append(f"generate[{i}]: {e}")
                last_exc = e
                continue
        raise EngineError("All providers failed: " + "; ".join(errors)) from last_exc


def get_engine(provider: str | None = None, temperature: float | None = None) -> GenerationEngine:
    p = normalize_provider(provider or SETTINGS.provider)
    t = SETTINGS.temperature if temperature is None else temperature
    if p == "gemini":
        return ChatModelEngine(build_gemini(t), "gemini")
    if p == "mistral":
        return ChatModelEngine(build_mistral(t), "mistral")
    # auto
    return MultiProviderEngine([
        lambda: ChatModelEngine(build_gemini(t), "gemini"),
        lambda: ChatModelEngine(build_mistral(t), "mistral"),
    ])
