"""Attach a short explanatory video for each category's first measure."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from anzen.errors import VideoGenerationError
from anzen.models import Category, is_generation_failure
from anzen.observability import Observability, get_observability
from anzen.settings import Settings, get_settings
from anzen.store.categories import CategoryRepository

from .polling import Operation, PollState, poll_operation

LOGGER = logging.getLogger(__name__)

MEASURE_VIDEO_TYPE = "measure_1"

VIDEO_PROMPT_TEMPLATE = """A simple, clear pictogram animation explaining a safety instruction.

Action to animate:
"{text}"

Subject: a white pictogram of a worker.
Style: minimalist vector art, flat design, clean lines, no facial features, no text, no voiceover.
Background: simple light blue gradient.
Composition: front view, eye-level shot, full body.
"""


class VideoBackend(Protocol):
    """Starts, refreshes and publishes video generation operations."""

    def start(self, prompt: str) -> Operation: ...

    def refresh(self, operation: Any) -> Operation: ...

    def publish(self, operation: Any, *, category_id: str, video_type: str) -> str: ...


@dataclass(slots=True)
class VideoJobReport:
    attached: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class MeasureVideoJob:
    """Generate one video per category and record its URL under ``videoUrls``."""

    def __init__(
        self,
        *,
        categories: CategoryRepository,
        backend: VideoBackend,
        settings: Settings | None = None,
        observability: Observability | None = None,
        sleep=None,
    ) -> None:
        self.categories = categories
        self.backend = backend
        self.settings = settings or get_settings()
        self.observability = observability or get_observability(component="media", settings=self.settings)
        videos = self.settings.videos
        self._poll_kwargs: Dict[str, Any] = {
            "interval": videos.poll_interval_seconds,
            "backoff": videos.poll_backoff,
            "max_interval": videos.poll_max_interval_seconds,
            "max_attempts": videos.poll_max_attempts,
        }
        if sleep is not None:
            self._poll_kwargs["sleep"] = sleep

    def first_measure(self, category: Category) -> str | None:
        measures = category.base_measures(self.settings.base_language)
        if not measures:
            return None
        text = measures[0].strip()
        if is_generation_failure(text, self.settings.catalog.failed_generation_text):
            return None
        return text

    def process(self, category: Category) -> str | None:
        """Generate and attach the video for one category; return its URL."""

        text = self.first_measure(category)
        if text is None:
            return None
        operation = self.backend.start(VIDEO_PROMPT_TEMPLATE.format(text=text))
        outcome = poll_operation(self.backend.refresh, operation, **self._poll_kwargs)
        if outcome.state is not PollState.SUCCEEDED:
            raise VideoGenerationError(f"video operation {outcome.state.value}: {outcome.error}")
        url = self.backend.publish(outcome.operation, category_id=category.id, video_type=MEASURE_VIDEO_TYPE)
        self.categories.set_video_url(category.id, MEASURE_VIDEO_TYPE, url)
        return url

    def run(self) -> VideoJobReport:
        report = VideoJobReport()
        for category in self.categories.list_all():
            try:
                url = self.process(category)
            except Exception as exc:  # one category must not stop the batch
                LOGGER.error("Video generation failed for category %s: %s", category.id, exc)
                report.failed.append(category.id)
                continue
            if url is None:
                LOGGER.info("Skipping %s: no usable first measure", category.id)
                report.skipped.append(category.id)
            else:
                LOGGER.info("Attached %s video to %s", MEASURE_VIDEO_TYPE, category.id)
                report.attached[category.id] = url
        self.observability.stage_finished(
            "videos", updated=len(report.attached), skipped=len(report.skipped), failed=len(report.failed)
        )
        return report


__all__ = ["MEASURE_VIDEO_TYPE", "MeasureVideoJob", "VideoBackend", "VideoJobReport"]
