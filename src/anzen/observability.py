"""Structured events and StatsD metrics for the search API and the batch stages.

Each event is one log record. With ``observability.structured_logging`` on, the
record is a JSON object carrying ``event``, ``component`` and a UTC timestamp,
ready for Cloud Logging. Counters and timings go to StatsD over UDP when
``observability.statsd_host`` is set, and are dropped otherwise.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
from datetime import datetime, timezone
from typing import Any, Mapping

from anzen.settings import Settings, get_settings

_LOGGER = logging.getLogger("anzen.observability")
_STATSD_LOCK = threading.Lock()
_SHARED_STATSD: "StatsdClient | None" = None


class StatsdClient:
    """Fire-and-forget StatsD sender with DogStatsD-style tags."""

    def __init__(self, host: str, port: int, *, prefix: str = "", sock: socket.socket | None = None) -> None:
        self.address = (host, port)
        self.prefix = prefix
        self._socket = sock or socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(self, metric: str, value: float, metric_type: str, tags: Mapping[str, Any] | None = None) -> None:
        name = f"{self.prefix}.{metric}" if self.prefix else metric
        number = int(value) if float(value).is_integer() else round(value, 3)
        line = f"{name}:{number}|{metric_type}"
        if tags:
            line += "|#" + ",".join(f"{key}:{tags[key]}" for key in sorted(tags) if tags[key] is not None)
        try:
            self._socket.sendto(line.encode("utf-8"), self.address)
        except OSError:
            _LOGGER.debug("StatsD send failed for %s", metric, exc_info=True)


class Observability:
    """Component-scoped emitter used by the search service and the offline stages."""

    def __init__(
        self,
        *,
        settings: Settings,
        component: str,
        statsd: StatsdClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.component = component
        self._structured = bool(settings.observability.structured_logging)
        self._statsd = statsd
        self._logger = logger or _LOGGER

    def emit_event(self, event: str, **fields: Any) -> None:
        payload = {
            "event": event,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        if self._structured:
            self._logger.info(json.dumps(payload, default=str, ensure_ascii=False))
        else:
            self._logger.info("%s | %s", event, payload)

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, Any] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value, "c", tags)

    def record_timing(self, metric: str, value_ms: float, *, tags: Mapping[str, Any] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value_ms, "ms", tags)

    # Search API -----------------------------------------------------------

    def search_matched(
        self,
        *,
        category_id: str,
        score: float,
        lang: str,
        suggestions: int,
        videos: int,
        elapsed_ms: float,
    ) -> None:
        """Record one answered search request."""

        self.increment("search.requests", tags={"lang": lang})
        self.record_timing("search.latency_ms", elapsed_ms)
        self.emit_event(
            "search.matched",
            category_id=category_id,
            score=round(score, 6),
            lang=lang,
            suggestions=suggestions,
            videos=videos,
            elapsed_ms=round(elapsed_ms, 1),
        )

    def search_failed(self, stage: str, *, lang: str) -> None:
        """Record a request that ended without a match (``embed`` or ``match``)."""

        self.increment("search.errors", tags={"stage": stage, "lang": lang})
        self.emit_event("search.failed", stage=stage, lang=lang)

    # Offline stages -------------------------------------------------------

    def catalog_built(self, counts: Mapping[str, int], *, elapsed_ms: float) -> None:
        """Record the outcome of a catalog build (see ``CatalogBuildReport.as_dict``)."""

        self.increment("catalog.categories_created", value=counts.get("categories_created", 0))
        self.increment("catalog.unclassified_cases", value=counts.get("unclassified", 0))
        self.record_timing("catalog.build_ms", elapsed_ms)
        self.emit_event("catalog.build.completed", elapsed_ms=round(elapsed_ms, 1), **counts)

    def stage_finished(self, stage: str, *, updated: int, skipped: int, failed: int) -> None:
        """Record the per-item tally of the embedding or translation pass."""

        for outcome, count in (("updated", updated), ("skipped", skipped), ("failed", failed)):
            if count:
                self.increment(f"{stage}.categories", value=count, tags={"outcome": outcome})
        self.emit_event(f"{stage}.completed", updated=updated, skipped=skipped, failed=failed)


def get_observability(*, component: str, settings: Settings | None = None) -> Observability:
    """Return an emitter for ``component`` sharing one StatsD socket per process."""

    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_statsd(resolved))


def reset_observability_cache() -> None:
    """Forget the shared StatsD client (used in tests)."""

    global _SHARED_STATSD
    with _STATSD_LOCK:
        _SHARED_STATSD = None


def _shared_statsd(settings: Settings) -> StatsdClient | None:
    global _SHARED_STATSD
    host = settings.observability.statsd_host
    if not host:
        return None
    with _STATSD_LOCK:
        if _SHARED_STATSD is None:
            _SHARED_STATSD = StatsdClient(
                host,
                settings.observability.statsd_port,
                prefix=settings.observability.statsd_prefix,
            )
        return _SHARED_STATSD


__all__ = ["Observability", "StatsdClient", "get_observability", "reset_observability_cache"]
