"""Ranked supplementary safety suggestions grounded in recent internal cases."""

from __future__ import annotations

import logging
from typing import List

from anzen.errors import LLMError
from anzen.llm.gateway import LLMGateway
from anzen.models import Suggestion
from anzen.parsing.llm_output import parse_suggestions
from anzen.settings import Settings, get_settings
from anzen.store.cases import InternalCaseRepository

from . import prompts

LOGGER = logging.getLogger(__name__)


class SuggestionGenerator:
    """Ask the model for icon-tagged suggestions; degrade to none on failure."""

    def __init__(
        self,
        *,
        gateway: LLMGateway,
        internal_cases: InternalCaseRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.gateway = gateway
        self.internal_cases = internal_cases
        self.settings = settings or get_settings()

    def related_context(self) -> str:
        """Render recent internal cases, or the placeholder when none can be read."""

        if self.internal_cases is None:
            return prompts.NO_RELATED_CASES
        try:
            cases = self.internal_cases.list_recent(self.settings.search.related_case_limit)
        except Exception as exc:  # store outages must not fail the search
            LOGGER.error("Could not load recent internal cases: %s", exc)
            return prompts.NO_RELATED_CASES
        return prompts.related_cases_context(cases)

    def generate(self, *, query: str, category_name: str, lang: str) -> List[Suggestion]:
        search = self.settings.search
        prompt = prompts.suggestions_prompt(
            query=query,
            category_name=category_name,
            related_context=self.related_context(),
            icons=search.icons,
            count=search.suggestion_count,
            lang=lang,
        )
        try:
            response = self.gateway.generate(prompt)
        except LLMError as exc:
            LOGGER.warning("Suggestion generation failed: %s", exc)
            return []
        return parse_suggestions(
            response,
            icons=search.icons,
            default_icon=search.default_icon,
            limit=search.suggestion_count,
        )


__all__ = ["SuggestionGenerator"]
