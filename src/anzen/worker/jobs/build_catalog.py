"""Job entrypoint that rebuilds the category catalog from crawled cases."""

from __future__ import annotations

import logging
import sys

from anzen import factories
from anzen.catalog.builder import CatalogBuilder
from anzen.errors import CategoryNameQualityError, DocumentStoreError, LLMError
from anzen.settings import get_settings

LOGGER = logging.getLogger("anzen.worker.jobs.build_catalog")


def _configure_logging(level_name: str) -> None:
    level_name = level_name.upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main() -> int:
    """Entry point executed by the batch job container."""

    settings = get_settings()
    _configure_logging(settings.log_level)
    store = factories.build_document_store(settings)
    builder = CatalogBuilder(
        cases=factories.build_case_repository(store, settings),
        categories=factories.build_category_repository(store, settings),
        gateway=factories.build_gateway(settings),
        settings=settings,
    )

    LOGGER.info(
        "Starting catalog build: target=%s minimum=%s model=%s",
        settings.catalog.target_category_count,
        settings.catalog.min_category_count,
        settings.llm.chat_model,
    )
    try:
        report = builder.run()
    except CategoryNameQualityError as exc:
        LOGGER.error("Aborting catalog build: %s", exc)
        return 1
    except (LLMError, DocumentStoreError) as exc:
        LOGGER.error("Catalog build failed: %s", exc)
        return 1

    LOGGER.info("Catalog build complete: %s", report.as_dict())
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
