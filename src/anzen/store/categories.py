"""Repository for generated accident categories."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from anzen.models import Category, CategoryDetails
from anzen.settings import Settings, get_settings

from .documents import DocumentStore

LOGGER = logging.getLogger(__name__)


class CategoryRepository:
    """Read and update category documents in the configured collection."""

    def __init__(self, store: DocumentStore, *, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.collection = self.settings.storage.categories_collection
        self.base_language = self.settings.base_language

    def list_all(self) -> List[Category]:
        return [
            Category.from_document(doc.id, doc.data, base_language=self.base_language)
            for doc in self.store.list_all(self.collection)
        ]

    def get(self, category_id: str) -> Category | None:
        doc = self.store.get(self.collection, category_id)
        if doc is None:
            return None
        return Category.from_document(doc.id, doc.data, base_language=self.base_language)

    def create(self, details: CategoryDetails) -> str:
        category_id = self.store.create(self.collection, details.to_document())
        LOGGER.info("Saved category %r as %s", details.name, category_id)
        return category_id

    def set_embedding(self, category_id: str, embedding: Sequence[float]) -> None:
        self.store.merge_update(self.collection, category_id, {"embedding": list(embedding)})

    def set_translations(
        self,
        category_id: str,
        *,
        name: Dict[str, str],
        description: Dict[str, str],
        measures: Dict[str, List[str]],
    ) -> None:
        """Replace the text fields with per-language maps; other fields are untouched."""

        self.store.merge_update(
            self.collection,
            category_id,
            {"name": name, "description": description, "measures": measures},
        )

    def set_video_url(self, category_id: str, video_type: str, url: str) -> None:
        self.store.merge_update(self.collection, category_id, {"videoUrls": {video_type: url}})


__all__ = ["CategoryRepository"]
