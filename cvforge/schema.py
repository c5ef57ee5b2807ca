"""Output-schema contracts for schema-constrained engine calls.

The request side is a small tree of :class:`FieldSpec` nodes rendered to a
JSON-Schema dict for the engine. The response side is a set of pydantic models
mirroring the same shapes; a failed ``model_validate`` is a schema violation.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, field_validator


@dataclass(frozen=True)
class FieldSpec:
    kind: str  # "string" | "array" | "object"
    required: bool = False
    items: Optional["FieldSpec"] = None
    properties: Mapping[str, "FieldSpec"] = field(default_factory=dict)
    description: Optional[str] = None

    def required_names(self) -> List[str]:
        return [name for name, spec in self.properties.items() if spec.required]


def string(description: str | None = None, required: bool = False) -> FieldSpec:
    return FieldSpec("string", required=required, description=description)


def array(items: FieldSpec, required: bool = False) -> FieldSpec:
    return FieldSpec("array", required=required, items=items)


def obj(required: bool = False, **properties: FieldSpec) -> FieldSpec:
    return FieldSpec("object", required=required, properties=properties)


def to_json_schema(spec: FieldSpec, *, strict: bool = True) -> Dict[str, Any]:
    """Render ``spec`` as a JSON-Schema dict.

    ``strict`` adds ``additionalProperties: false`` to every object; leave it off
    for engines that only accept the OpenAPI subset (Gemini).
    """
    out: Dict[str, Any] = {"type": spec.kind}
    if spec.description:
        out["description"] = spec.description
    if spec.kind == "array" and spec.items is not None:
        out["items"] = to_json_schema(spec.items, strict=strict)
    if spec.kind == "object":
        out["properties"] = {name: to_json_schema(p, strict=strict) for name, p in spec.properties.items()}
        required = spec.required_names()
        if required:
            out["required"] = required
        if strict:
            out["additionalProperties"] = False
    return out


EXTRACTION_SCHEMA = obj(
    fullName=string(),
    birthDate=string("DD/MM/YYYY"),
    experience=array(
        obj(
            position=string(),
            company=string(),
            startDate=string("YYYY-MM"),
            endDate=string("YYYY-MM"),
            description=string(),
        )
    ),
)

TRANSLATION_SCHEMA = obj(
    fullName=string(required=True),
    experience=array(
        obj(
            position=string(required=True),
            company=string(required=True),
            description=string(required=True),
        ),
        required=True,
    ),
)


# -------- Response models --------
class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ExtractedEntry(_Response):
    position: str = ""
    company: str = ""
    startDate: str = ""
    endDate: str = ""
    description: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ExtractedProfile(_Response):
    fullName: Optional[str] = None
    birthDate: Optional[str] = None
    experience: Optional[List[ExtractedEntry]] = None


class TranslatedEntry(_Response):
    # Declared required in the request; tolerated as missing here so a sparse
    # item falls back to the original text instead of failing the whole call.
    position: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None


class TranslatedProfile(_Response):
    fullName: Optional[str]
    experience: List[TranslatedEntry]
