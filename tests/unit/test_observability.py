"""Tests for structured search/catalog events and the StatsD wire format."""

from __future__ import annotations

import json
import logging

from anzen.observability import Observability, StatsdClient, get_observability


class _RecordingSocket:
    def __init__(self) -> None:
        self.sent = []

    def sendto(self, payload, address):
        self.sent.append((payload.decode("utf-8"), address))


class _BrokenSocket:
    def sendto(self, payload, address):
        raise OSError("network unreachable")


def _emitter(settings, component="search"):
    sock = _RecordingSocket()
    statsd = StatsdClient("127.0.0.1", 8125, prefix="anzen", sock=sock)
    logger = logging.getLogger(f"tests.observability.{component}")
    return Observability(settings=settings, component=component, statsd=statsd, logger=logger), sock, logger


def _events(caplog, logger):
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == logger.name]


def test_search_matched_emits_json_event_and_metrics(settings, caplog):
    observability, sock, logger = _emitter(settings)

    with caplog.at_level(logging.INFO, logger=logger.name):
        observability.search_matched(
            category_id="cat-1", score=0.91234567, lang="en", suggestions=3, videos=1, elapsed_ms=12.5
        )

    [event] = _events(caplog, logger)
    assert event["event"] == "search.matched"
    assert event["component"] == "search"
    assert event["category_id"] == "cat-1"
    assert event["score"] == 0.912346
    assert [line for line, _ in sock.sent] == [
        "anzen.search.requests:1|c|#lang:en",
        "anzen.search.latency_ms:12.5|ms",
    ]
    assert sock.sent[0][1] == ("127.0.0.1", 8125)


def test_search_failed_tags_the_stage(settings, caplog):
    observability, sock, logger = _emitter(settings)

    with caplog.at_level(logging.INFO, logger=logger.name):
        observability.search_failed("embed", lang="ja")

    assert sock.sent[0][0] == "anzen.search.errors:1|c|#lang:ja,stage:embed"
    assert _events(caplog, logger)[0]["stage"] == "embed"


def test_catalog_built_reports_counts(settings, caplog):
    observability, sock, logger = _emitter(settings, component="catalog")
    counts = {"cases": 4, "categories_created": 2, "unclassified": 1}

    with caplog.at_level(logging.INFO, logger=logger.name):
        observability.catalog_built(counts, elapsed_ms=1500.0)

    lines = [line for line, _ in sock.sent]
    assert "anzen.catalog.categories_created:2|c" in lines
    assert "anzen.catalog.unclassified_cases:1|c" in lines
    assert "anzen.catalog.build_ms:1500|ms" in lines
    event = _events(caplog, logger)[0]
    assert event["event"] == "catalog.build.completed"
    assert event["cases"] == 4


def test_stage_finished_skips_zero_counters(settings, caplog):
    observability, sock, logger = _emitter(settings, component="catalog")

    with caplog.at_level(logging.INFO, logger=logger.name):
        observability.stage_finished("embeddings", updated=2, skipped=0, failed=1)

    assert [line for line, _ in sock.sent] == [
        "anzen.embeddings.categories:2|c|#outcome:updated",
        "anzen.embeddings.categories:1|c|#outcome:failed",
    ]
    event = _events(caplog, logger)[0]
    assert event["event"] == "embeddings.completed"
    assert (event["updated"], event["skipped"], event["failed"]) == (2, 0, 1)


def test_send_errors_are_not_raised():
    StatsdClient("127.0.0.1", 8125, sock=_BrokenSocket()).send("search.requests", 1, "c")


def test_metrics_are_dropped_without_statsd_host(settings):
    observability = get_observability(component="search", settings=settings)

    observability.increment("search.requests")
    observability.record_timing("search.latency_ms", 5.0)

    assert observability._statsd is None
