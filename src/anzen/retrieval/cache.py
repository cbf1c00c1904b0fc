"""Immutable in-memory snapshot of the categories eligible for search."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from anzen.models import Category
from anzen.settings import Settings, get_settings
from anzen.store.categories import CategoryRepository

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    """Categories with a generated description and a full-size embedding.

    Order follows the store's listing order; ties during matching are broken
    by that order.
    """

    categories: Tuple[Category, ...] = ()

    def __len__(self) -> int:
        return len(self.categories)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.categories)

    def candidates(self) -> Iterator[Tuple[Category, List[float] | None]]:
        for category in self.categories:
            yield category, category.embedding

    @classmethod
    def from_categories(cls, categories: Iterable[Category], *, settings: Settings) -> "CategorySnapshot":
        base = settings.base_language
        marker = settings.catalog.failed_generation_text
        dimension = settings.embedding_dim
        eligible = tuple(
            category
            for category in categories
            if not category.is_failed(base, marker) and category.has_valid_embedding(dimension)
        )
        return cls(categories=eligible)


def load_category_snapshot(
    repository: CategoryRepository,
    *,
    settings: Settings | None = None,
) -> CategorySnapshot:
    """Read every category once and keep the searchable ones."""

    resolved = settings or get_settings()
    categories = repository.list_all()
    snapshot = CategorySnapshot.from_categories(categories, settings=resolved)
    LOGGER.info("Loaded %d of %d categories into the search snapshot", len(snapshot), len(categories))
    return snapshot


__all__ = ["CategorySnapshot", "load_category_snapshot"]
