"""Job entrypoint that converts base-language categories to multilingual form."""

from __future__ import annotations

import logging
import sys

from anzen import factories
from anzen.catalog.translation import TranslationStage
from anzen.settings import get_settings

LOGGER = logging.getLogger("anzen.worker.jobs.translate_categories")


def _configure_logging(level_name: str) -> None:
    level_name = level_name.upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main() -> int:
    """Entry point executed by the batch job container."""

    settings = get_settings()
    _configure_logging(settings.log_level)
    store = factories.build_document_store(settings)
    stage = TranslationStage(
        categories=factories.build_category_repository(store, settings),
        gateway=factories.build_gateway(settings),
        settings=settings,
    )

    LOGGER.info("Starting translation pass: targets=%s", ",".join(settings.languages.targets))
    report = stage.run()
    LOGGER.info(
        "Translation batch complete: translated=%s skipped=%s failed=%s",
        report.translated,
        report.skipped,
        report.failed,
    )
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
