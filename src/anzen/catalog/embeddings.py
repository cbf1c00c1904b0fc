"""Attach embedding vectors to categories that do not have a usable one yet."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from anzen.errors import DocumentStoreError, LLMError
from anzen.llm.gateway import LLMGateway
from anzen.observability import Observability, get_observability
from anzen.settings import Settings, get_settings
from anzen.store.categories import CategoryRepository

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddingReport:
    updated: int = 0
    skipped: int = 0
    failed: int = 0


class EmbeddingPrecomputer:
    """Embed each category's base description once.

    Categories whose embedding already has the configured dimensionality are
    skipped, so repeated runs over a complete catalog perform no writes.
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

    def run(self) -> EmbeddingReport:
        report = EmbeddingReport()
        base = self.settings.base_language
        dimension = self.settings.embedding_dim
        marker = self.settings.catalog.failed_generation_text

        for category in self.categories.list_all():
            if category.is_failed(base, marker):
                LOGGER.debug("Skipping %s: no usable description", category.id)
                report.skipped += 1
                continue
            if category.has_valid_embedding(dimension):
                report.skipped += 1
                continue
            try:
                vector = self.gateway.embed(category.base_description(base))
                if len(vector) != dimension:
                    raise LLMError(f"expected {dimension} dimensions, got {len(vector)}")
                self.categories.set_embedding(category.id, vector)
            except (LLMError, DocumentStoreError) as exc:
                LOGGER.error("Embedding failed for category %s: %s", category.id, exc)
                report.failed += 1
                continue
            LOGGER.info("Embedded category %s", category.id)
            report.updated += 1

        LOGGER.info(
            "Embedding pass finished: updated=%d skipped=%d failed=%d",
            report.updated,
            report.skipped,
            report.failed,
        )
        self.observability.stage_finished(
            "embeddings", updated=report.updated, skipped=report.skipped, failed=report.failed
        )
        return report


__all__ = ["EmbeddingPrecomputer", "EmbeddingReport"]
