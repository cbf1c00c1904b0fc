"""Match a free-text work description to its nearest accident category."""

from __future__ import annotations

import logging
import time

from anzen.errors import CategoryNotFoundError, InvalidQueryError, LLMError, UpstreamServiceError
from anzen.llm.gateway import LLMGateway
from anzen.models import SearchResult
from anzen.observability import Observability, get_observability
from anzen.settings import Settings, get_settings

from . import prompts
from .cache import CategorySnapshot
from .media import MediaChecker
from .similarity import best_match
from .suggestions import SuggestionGenerator

LOGGER = logging.getLogger(__name__)


def normalize_language(lang: str | None, *, base: str) -> str:
    """Reduce ``lang`` to a lower-case primary subtag such as ``en``."""

    if not lang or not lang.strip():
        return base
    return lang.strip().replace("_", "-").split("-", 1)[0].lower() or base


class SearchService:
    """Resolve queries against an immutable category snapshot.

    Only the embedding call is essential: translation falls back to the
    original text, media checks drop unreachable links, and suggestion
    failures yield an empty list.
    """

    def __init__(
        self,
        *,
        snapshot: CategorySnapshot,
        gateway: LLMGateway,
        suggestions: SuggestionGenerator,
        media: MediaChecker,
        settings: Settings | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.gateway = gateway
        self.suggestions = suggestions
        self.media = media
        self.settings = settings or get_settings()
        self.observability = observability or get_observability(component="search", settings=self.settings)

    def to_base_language(self, query: str, lang: str) -> str:
        """Translate ``query`` into the base language, returning it unchanged on failure."""

        base = self.settings.base_language
        if lang == base:
            return query
        try:
            translated = self.gateway.generate(prompts.query_translation_prompt(query, target_language=base))
        except LLMError as exc:
            LOGGER.warning("Query translation failed; using original text: %s", exc)
            return query
        translated = translated.strip().strip('"').strip()
        return translated or query

    def search(self, query: str, lang: str | None = None) -> SearchResult:
        """Return the best-matching category localized to ``lang``.

        Raises:
            InvalidQueryError: If ``query`` is empty or whitespace.
            UpstreamServiceError: If the query cannot be embedded.
            CategoryNotFoundError: If no cached category can be compared.
        """

        if not query or not query.strip():
            raise InvalidQueryError("Query text is required.")

        started = time.perf_counter()
        base = self.settings.base_language
        language = normalize_language(lang, base=base)
        text = query.strip()
        base_query = self.to_base_language(text, language)

        try:
            query_vector = self.gateway.embed(base_query)
        except LLMError as exc:
            self.observability.search_failed("embed", lang=language)
            raise UpstreamServiceError("Failed to embed query") from exc

        match = best_match(query_vector, self.snapshot.candidates())
        if match is None:
            self.observability.search_failed("match", lang=language)
            raise CategoryNotFoundError("No matching category found.")

        category = match.item
        localized = category.localized(language, base)
        video_urls = self.media.filter_live(category.video_urls)
        suggestions = self.suggestions.generate(query=text, category_name=localized.name, lang=language)

        self.observability.search_matched(
            category_id=category.id,
            score=match.score,
            lang=language,
            suggestions=len(suggestions),
            videos=len(video_urls),
            elapsed_ms=(time.perf_counter() - started) * 1000,
        )

        return SearchResult(
            id=category.id,
            name=localized.name,
            description=localized.description,
            measures=localized.measures,
            video_urls=video_urls,
            additional_suggestions=suggestions,
            score=match.score,
        )


__all__ = ["SearchService", "normalize_language"]
