"""Pydantic models for case records, categories and search payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FAILED_GENERATION_TEXT = "generation failed"
# Categories written by the first production build carry the Japanese marker.
LEGACY_FAILURE_MARKERS = frozenset({"生成失敗"})


def is_generation_failure(text: str | None, marker: str = FAILED_GENERATION_TEXT) -> bool:
    """Return True when ``text`` is empty or a failed-generation placeholder."""

    if not text or not str(text).strip():
        return True
    stripped = str(text).strip()
    return stripped == marker or stripped in LEGACY_FAILURE_MARKERS


class CaseRecord(BaseModel):
    """One published labor-accident report."""

    id: str
    title: str = ""
    cause: str = ""
    measures: str = ""
    category_id: str | None = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(
        cls,
        doc_id: str,
        data: Mapping[str, Any],
        *,
        title_field: str = "title",
        cause_field: str = "原因",
        measures_field: str = "対策",
    ) -> "CaseRecord":
        known = {title_field, cause_field, measures_field, "categoryId"}
        return cls(
            id=doc_id,
            title=str(data.get(title_field) or "").strip(),
            cause=str(data.get(cause_field) or "").strip(),
            measures=str(data.get(measures_field) or "").strip(),
            category_id=data.get("categoryId"),
            extra={key: value for key, value in data.items() if key not in known},
        )

    @property
    def is_eligible(self) -> bool:
        """bool: True when title, cause and measures are all present."""

        return bool(self.title and self.cause and self.measures)


def _as_text_map(value: Any, base_language: str) -> Dict[str, str]:
    if isinstance(value, Mapping):
        return {str(lang): str(text) for lang, text in value.items() if text is not None}
    if value is None:
        return {}
    return {base_language: str(value)}


def _as_list_map(value: Any, base_language: str) -> Dict[str, List[str]]:
    if isinstance(value, Mapping):
        result: Dict[str, List[str]] = {}
        for lang, items in value.items():
            if isinstance(items, (list, tuple)):
                result[str(lang)] = [str(item) for item in items]
        return result
    if isinstance(value, (list, tuple)):
        return {base_language: [str(item) for item in value]}
    return {}


def _as_vector(value: Any) -> List[float] | None:
    """Return the stored embedding, or None when it is missing or not all numbers."""

    if not isinstance(value, (list, tuple)):
        return None
    try:
        return [float(item) for item in value]
    except (TypeError, ValueError):
        return None


class LocalizedCategory(BaseModel):
    """Category fields resolved for a single language."""

    name: str
    description: str
    measures: List[str]


class Category(BaseModel):
    """A generated accident category with per-language text.

    Freshly built documents store plain ``name``/``description``/``measures``
    in the base language; translated documents store maps keyed by language.
    Both shapes are normalized into maps here, and ``multilingual`` records
    which shape the stored document used.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: Dict[str, str]
    description: Dict[str, str]
    measures: Dict[str, List[str]]
    embedding: List[float] | None = None
    video_urls: Dict[str, str] = Field(default_factory=dict)
    multilingual: bool = False

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any], *, base_language: str) -> "Category":
        raw_name = data.get("name")
        video_urls = data.get("videoUrls") or {}
        return cls(
            id=doc_id,
            name=_as_text_map(raw_name, base_language),
            description=_as_text_map(data.get("description"), base_language),
            measures=_as_list_map(data.get("measures"), base_language),
            embedding=_as_vector(data.get("embedding")),
            video_urls={str(key): str(url) for key, url in video_urls.items() if url} if isinstance(video_urls, Mapping) else {},
            multilingual=isinstance(raw_name, Mapping),
        )

    def base_name(self, base_language: str) -> str:
        return self.name.get(base_language, "")

    def base_description(self, base_language: str) -> str:
        return self.description.get(base_language, "")

    def base_measures(self, base_language: str) -> List[str]:
        return list(self.measures.get(base_language, []))

    def has_valid_embedding(self, dimension: int) -> bool:
        """Return True when an embedding of exactly ``dimension`` values is attached."""

        return self.embedding is not None and len(self.embedding) == dimension

    def is_failed(self, base_language: str, marker: str = FAILED_GENERATION_TEXT) -> bool:
        """Return True when the base description is missing or a failure placeholder."""

        return is_generation_failure(self.base_description(base_language), marker)

    def localized(self, lang: str, base_language: str) -> LocalizedCategory:
        """Resolve each field to ``lang`` with a per-field fallback to the base language."""

        return LocalizedCategory(
            name=self.name.get(lang) or self.name.get(base_language, ""),
            description=self.description.get(lang) or self.description.get(base_language, ""),
            measures=list(self.measures.get(lang) or self.measures.get(base_language, [])),
        )


@dataclass(slots=True)
class CategoryDetails:
    """Base-language content generated for a new category."""

    name: str
    description: str
    measures: List[str] = field(default_factory=list)

    @classmethod
    def failed(cls, name: str, *, marker: str = FAILED_GENERATION_TEXT, measure_count: int = 3) -> "CategoryDetails":
        """Placeholder persisted when generation failed so later stages skip it."""

        return cls(name=name, description=marker, measures=[marker] * measure_count)

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "measures": list(self.measures),
            "embedding": None,
        }


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Suggestion(_CamelModel):
    """One supplementary safety suggestion with its display icon."""

    text: str
    icon: str


class SearchResult(_CamelModel):
    """Localized best-matching category plus generated suggestions."""

    id: str
    name: str
    description: str
    measures: List[str]
    video_urls: Dict[str, str] = Field(default_factory=dict)
    additional_suggestions: List[Suggestion] = Field(default_factory=list)
    score: float = 0.0


class InternalCase(_CamelModel):
    """Accident recorded by the operator's own organization."""

    id: str | None = None
    title: str
    description: str
    cause: str
    measures: str
    occurred_at: Any = None
    created_at: Any = None


__all__ = [
    "FAILED_GENERATION_TEXT",
    "CaseRecord",
    "Category",
    "CategoryDetails",
    "InternalCase",
    "LocalizedCategory",
    "SearchResult",
    "Suggestion",
    "is_generation_failure",
]
