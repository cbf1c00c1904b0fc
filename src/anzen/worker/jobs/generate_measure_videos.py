"""Job entrypoint that attaches a Veo video for each category's first measure."""

from __future__ import annotations

import logging
import sys

from anzen import factories
from anzen.errors import VideoGenerationError
from anzen.media.videos import MeasureVideoJob
from anzen.settings import get_settings

LOGGER = logging.getLogger("anzen.worker.jobs.generate_measure_videos")


def _configure_logging(level_name: str) -> None:
    level_name = level_name.upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main() -> int:
    """Entry point executed by the batch job container."""

    settings = get_settings()
    _configure_logging(settings.log_level)
    try:
        backend = factories.build_video_backend(settings)
    except VideoGenerationError as exc:
        LOGGER.error("Video generation is not configured: %s", exc)
        return 1

    store = factories.build_document_store(settings)
    job = MeasureVideoJob(
        categories=factories.build_category_repository(store, settings),
        backend=backend,
        settings=settings,
    )

    LOGGER.info("Starting video pass: model=%s bucket=%s", settings.videos.model, settings.videos.bucket)
    try:
        report = job.run()
    finally:
        backend.close()
    LOGGER.info(
        "Video batch complete: attached=%s skipped=%s failed=%s",
        len(report.attached),
        len(report.skipped),
        len(report.failed),
    )
    return 0 if not report.failed else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
