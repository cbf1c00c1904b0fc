"""Build the category catalog from the crawled case collection.

The build runs in five steps: load eligible cases, ask the model for a list of
category names, classify every case against that list, generate a description
and measures for each populated category, and write ``categoryId`` back onto
every classified case in a single atomic batch.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from anzen.errors import CategoryNameQualityError, DocumentStoreError, LLMError
from anzen.llm.gateway import LLMGateway
from anzen.models import CaseRecord, CategoryDetails
from anzen.observability import Observability, get_observability
from anzen.parsing.llm_output import normalize_label, parse_list_items
from anzen.results import Failed, Ok, Result
from anzen.settings import Settings, get_settings
from anzen.store.cases import CaseRepository
from anzen.store.categories import CategoryRepository

from . import prompts

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogBuildReport:
    """Summary of one catalog build."""

    case_count: int = 0
    category_names: List[str] = field(default_factory=list)
    classifications: Dict[str, str] = field(default_factory=dict)
    category_ids: Dict[str, str] = field(default_factory=dict)
    assignments: Dict[str, str] = field(default_factory=dict)
    failed_categories: List[str] = field(default_factory=list)
    unsaved_categories: List[str] = field(default_factory=list)
    unclassified_cases: List[str] = field(default_factory=list)
    updated_cases: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "cases": self.case_count,
            "category_names": len(self.category_names),
            "categories_created": len(self.category_ids),
            "categories_failed": len(self.failed_categories),
            "categories_unsaved": len(self.unsaved_categories),
            "unclassified": len(self.unclassified_cases),
            "updated_cases": self.updated_cases,
        }


class CatalogBuilder:
    """Derive categories from cases and assign every case to one of them."""

    def __init__(
        self,
        *,
        cases: CaseRepository,
        categories: CategoryRepository,
        gateway: LLMGateway,
        settings: Settings | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.cases = cases
        self.categories = categories
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.catalog = self.settings.catalog
        self.observability = observability or get_observability(component="catalog", settings=self.settings)

    def build_category_names(self, cases: Sequence[CaseRecord]) -> List[str]:
        """Ask for the target number of names and enforce the quality gate.

        Raises:
            CategoryNameQualityError: If fewer than the minimum distinct names parse.
            LLMError: If the generation call itself fails.
        """

        prompt = prompts.category_names_prompt(
            cases,
            count=self.catalog.target_category_count,
            max_chars=self.catalog.max_name_chars,
        )
        response = self.gateway.generate(prompt)

        names: List[str] = []
        seen = set()
        for item in parse_list_items(response):
            label = normalize_label(item)
            if label and label not in seen:
                seen.add(label)
                names.append(label)

        if len(names) < self.catalog.min_category_count:
            raise CategoryNameQualityError(len(names), self.catalog.min_category_count)
        LOGGER.info("Generated %d category names", len(names))
        return names

    def classify_case(self, case: CaseRecord, names: Sequence[str]) -> Result[str]:
        """Pick the category name for ``case``; never raises."""

        try:
            response = self.gateway.generate(prompts.classification_prompt(case, names))
        except LLMError as exc:
            LOGGER.warning("Classification failed for case %s: %s", case.id, exc)
            return Failed(f"backend error: {exc}")

        answer = normalize_label(response)
        if not answer:
            return Failed("empty answer")
        resolved = _resolve_name(answer, names)
        if resolved is None:
            LOGGER.debug("Case %s answer %r matched no category", case.id, answer)
            return Failed(f"unmatched answer: {answer}")
        return Ok(resolved)

    def generate_category_details(self, name: str, cases: Sequence[CaseRecord]) -> Result[CategoryDetails]:
        """Generate the base-language description and measures for one category."""

        count = self.catalog.measures_per_category
        try:
            description = self.gateway.generate(
                prompts.description_prompt(name, cases, target_chars=self.catalog.description_target_chars)
            )
            measures_text = self.gateway.generate(
                prompts.measures_prompt(name, cases, count=count, target_chars=self.catalog.measure_target_chars)
            )
        except LLMError as exc:
            LOGGER.warning("Detail generation failed for %r: %s", name, exc)
            return Failed(f"backend error: {exc}")

        description = description.strip()
        if not description:
            return Failed("empty description")
        measures = parse_list_items(measures_text)
        if len(measures) < count:
            return Failed(f"expected {count} measures, parsed {len(measures)}")
        return Ok(CategoryDetails(name=name, description=description, measures=measures[:count]))

    def run(self) -> CatalogBuildReport:
        """Execute the full build and return what it did."""

        started = time.perf_counter()
        report = CatalogBuildReport()
        cases = self.cases.list_eligible()
        report.case_count = len(cases)
        if not cases:
            LOGGER.warning("No eligible cases found; nothing to build")
            return report

        names = self.build_category_names(cases)
        report.category_names = names

        buckets: Dict[str, List[CaseRecord]] = {name: [] for name in names}
        for case in cases:
            result = self.classify_case(case, names)
            if isinstance(result, Ok):
                buckets[result.value].append(case)
                report.classifications[case.id] = result.value
            else:
                report.unclassified_cases.append(case.id)
                report.classifications[case.id] = self.catalog.unclassified_label
        LOGGER.info(
            "Classified %d cases (%d %s)",
            len(cases),
            len(report.unclassified_cases),
            self.catalog.unclassified_label,
        )

        for name in names:
            members = buckets[name]
            if not members:
                continue
            outcome = self.generate_category_details(name, members)
            if isinstance(outcome, Ok):
                details = outcome.value
            else:
                LOGGER.warning("Storing %r as failed: %s", name, outcome.reason)
                report.failed_categories.append(name)
                details = CategoryDetails.failed(
                    name,
                    marker=self.catalog.failed_generation_text,
                    measure_count=self.catalog.measures_per_category,
                )
            try:
                category_id = self.categories.create(details)
            except DocumentStoreError as exc:
                # Members keep no categoryId rather than pointing at a missing document.
                LOGGER.error("Could not store category %r (%d cases): %s", name, len(members), exc)
                report.unsaved_categories.append(name)
                continue
            report.category_ids[name] = category_id
            for case in members:
                report.assignments[case.id] = category_id

        report.updated_cases = self.cases.assign_categories(report.assignments)

        self.observability.catalog_built(report.as_dict(), elapsed_ms=(time.perf_counter() - started) * 1000)
        return report


def _resolve_name(answer: str, names: Sequence[str]) -> str | None:
    if answer in names:
        return answer
    folded = answer.casefold()
    for name in names:
        if name.casefold() == folded:
            return name
    return None


__all__ = ["CatalogBuilder", "CatalogBuildReport"]
