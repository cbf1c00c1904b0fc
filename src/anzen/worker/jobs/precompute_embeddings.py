"""Job entrypoint that embeds categories lacking a usable vector."""

from __future__ import annotations

import logging
import sys

from anzen import factories
from anzen.catalog.embeddings import EmbeddingPrecomputer
from anzen.settings import get_settings

LOGGER = logging.getLogger("anzen.worker.jobs.precompute_embeddings")


def _configure_logging(level_name: str) -> None:
    level_name = level_name.upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main() -> int:
    """Entry point executed by the batch job container."""

    settings = get_settings()
    _configure_logging(settings.log_level)
    store = factories.build_document_store(settings)
    precomputer = EmbeddingPrecomputer(
        categories=factories.build_category_repository(store, settings),
        gateway=factories.build_gateway(settings),
        settings=settings,
    )

    LOGGER.info("Starting embedding pass: model=%s dim=%s", settings.llm.embedding_model, settings.embedding_dim)
    report = precomputer.run()
    LOGGER.info(
        "Embedding batch complete: updated=%s skipped=%s failed=%s",
        report.updated,
        report.skipped,
        report.failed,
    )
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
