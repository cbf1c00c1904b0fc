"""Translate single-language categories into every target language."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from anzen.errors import DocumentStoreError, LLMError, ResponseParseError
from anzen.llm.gateway import LLMGateway
from anzen.models import Category
from anzen.parsing.llm_output import extract_json_object
from anzen.observability import Observability, get_observability
from anzen.settings import Settings, get_settings
from anzen.store.categories import CategoryRepository

from . import prompts

LOGGER = logging.getLogger(__name__)


class TranslatedFields(BaseModel):
    """One language branch of a translation response."""

    model_config = ConfigDict(strict=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    measures: List[str]


@dataclass(slots=True)
class TranslationReport:
    translated: int = 0
    skipped: int = 0
    failed: int = 0


def validate_translations(
    payload: Mapping[str, Any],
    *,
    targets: List[str],
    measure_count: int,
) -> Dict[str, TranslatedFields]:
    """Check that every target language is present and well formed.

    Raises:
        ResponseParseError: If a language is missing, a field has the wrong
            type, or the measure list length differs from the source.
    """

    validated: Dict[str, TranslatedFields] = {}
    for lang in targets:
        branch = payload.get(lang)
        if not isinstance(branch, Mapping):
            raise ResponseParseError(f"Translation for '{lang}' missing")
        try:
            fields = TranslatedFields.model_validate(dict(branch))
        except ValidationError as exc:
            raise ResponseParseError(f"Translation for '{lang}' invalid: {exc}") from exc
        if len(fields.measures) != measure_count:
            raise ResponseParseError(
                f"Translation for '{lang}' has {len(fields.measures)} measures, expected {measure_count}"
            )
        validated[lang] = fields
    return validated


class TranslationStage:
    """Convert plain base-language category documents into per-language maps.

    Embedding and video fields are never written here, so they survive the
    conversion unchanged.
    """

    def __init__(
        self,
        *,
        categories: CategoryRepository,
        gateway: LLMGateway,
        settings: Settings | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.categories = categories
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.observability = observability or get_observability(component="catalog", settings=self.settings)

    def translate_category(self, category: Category) -> None:
        """Translate and persist one category.

        Raises:
            LLMError: If the generation call fails.
            ResponseParseError: If the response is not a valid translation.
            DocumentStoreError: If the update cannot be written.
        """

        base = self.settings.base_language
        targets = [lang for lang in self.settings.languages.targets if lang != base]
        name = category.base_name(base)
        description = category.base_description(base)
        measures = category.base_measures(base)

        response = self.gateway.generate(
            prompts.translation_prompt(
                name=name,
                description=description,
                measures=measures,
                base_language=base,
                targets=targets,
            )
        )
        translations = validate_translations(
            extract_json_object(response),
            targets=targets,
            measure_count=len(measures),
        )

        names = {base: name}
        descriptions = {base: description}
        measure_map = {base: measures}
        for lang, fields in translations.items():
            names[lang] = fields.name
            descriptions[lang] = fields.description
            measure_map[lang] = list(fields.measures)
        self.categories.set_translations(
            category.id,
            name=names,
            description=descriptions,
            measures=measure_map,
        )

    def run(self) -> TranslationReport:
        report = TranslationReport()
        base = self.settings.base_language
        marker = self.settings.catalog.failed_generation_text

        for category in self.categories.list_all():
            if category.multilingual:
                report.skipped += 1
                continue
            if category.is_failed(base, marker) or not category.base_name(base):
                LOGGER.info("Skipping %s: no generated content to translate", category.id)
                report.skipped += 1
                continue
            try:
                self.translate_category(category)
            except (LLMError, ResponseParseError, DocumentStoreError) as exc:
                LOGGER.error("Translation failed for category %s: %s", category.id, exc)
                report.failed += 1
                continue
            LOGGER.info("Translated category %s", category.id)
            report.translated += 1

        LOGGER.info(
            "Translation pass finished: translated=%d skipped=%d failed=%d",
            report.translated,
            report.skipped,
            report.failed,
        )
        self.observability.stage_finished(
            "translation", updated=report.translated, skipped=report.skipped, failed=report.failed
        )
        return report


__all__ = ["TranslatedFields", "TranslationReport", "TranslationStage", "validate_translations"]
