"""API-level tests for search, report and internal case endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from anzen.api.app import create_app
from anzen.api.dependencies import get_report_builder, get_search_service
from anzen.errors import DocumentStoreError, UpstreamServiceError

SUGGESTIONS = "- ヘルメットを着用する icon: helmet-safety\n- 合図を決める icon: rocket"


class _NoopMedia:
    def filter_live(self, urls):
        return dict(urls)

    def close(self):
        pass


@pytest.fixture
def seeded_store(store_factory, settings):
    return store_factory(
        {
            settings.storage.categories_collection: {
                "falls": {
                    "name": {"ja": "墜落・転落", "en": "Falls"},
                    "description": {"ja": "高所からの墜落", "en": "Falls from height"},
                    "measures": {"ja": ["【重要】手すり", "安全帯", "教育"], "en": ["Rails", "Harness", "Training"]},
                    "embedding": [1.0, 0.0, 0.0],
                    "videoUrls": {"measure_1": "https://media.test/a.mp4"},
                },
                "unembedded": {"name": "感電", "description": "感電事故", "measures": ["a", "b", "c"], "embedding": None},
            }
        }
    )


@pytest.fixture
def client(seeded_store, gateway_factory, settings):
    gateway = gateway_factory(lambda prompt: SUGGESTIONS, default_vector=[1.0, 0.0, 0.0])
    app = create_app(settings=settings, store=seeded_store, gateway=gateway, media=_NoopMedia())
    with TestClient(app) as test_client:
        yield test_client


def test_healthz_reports_snapshot_size(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "categories": 1}


def test_search_returns_camel_case_payload(client):
    response = client.post("/search", json={"query": "脚立の上での作業", "lang": "ja"})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "falls"
    assert data["name"] == "墜落・転落"
    assert data["videoUrls"] == {"measure_1": "https://media.test/a.mp4"}
    assert data["additionalSuggestions"] == [
        {"text": "ヘルメットを着用する", "icon": "helmet-safety"},
        {"text": "合図を決める", "icon": "triangle-exclamation"},
    ]


def test_search_rejects_empty_query(client):
    response = client.post("/search", json={"query": "  ", "lang": "en"})

    assert response.status_code == 400


def test_search_maps_upstream_failure_to_500(client):
    class _FailingService:
        def search(self, query, lang):
            raise UpstreamServiceError("embedding backend down")

    client.app.dependency_overrides[get_search_service] = lambda: _FailingService()

    response = client.post("/search", json={"query": "脚立", "lang": "ja"})

    assert response.status_code == 500
    assert response.json() == {"detail": "An internal error occurred."}


def test_search_returns_404_without_searchable_categories(store, gateway_factory, settings):
    gateway = gateway_factory(lambda prompt: "", default_vector=[1.0, 0.0, 0.0])
    app = create_app(settings=settings, store=store, gateway=gateway, media=_NoopMedia())

    with TestClient(app) as test_client:
        response = test_client.post("/search", json={"query": "脚立", "lang": "ja"})

    assert response.status_code == 404


def test_internal_case_is_saved(client, seeded_store, settings):
    payload = {
        "title": "倉庫での転倒",
        "description": "床が濡れていた",
        "cause": "清掃直後",
        "measures": "表示を出す",
        "occurredAt": "2025-06-01T09:30:00+09:00",
    }

    response = client.post("/internal-cases", json=payload)

    assert response.status_code == 201
    body = response.json()
    stored = seeded_store.collections[settings.storage.internal_cases_collection][body["id"]]
    assert stored["title"] == "倉庫での転倒"
    assert stored["createdAt"] is not None
    assert stored["occurredAt"].year == 2025


def test_internal_case_requires_all_fields(client):
    response = client.post("/internal-cases", json={"title": "転倒", "description": "", "cause": "x", "measures": "y"})

    assert response.status_code == 400


def test_generate_pdf_writes_local_report(client, settings):
    payload = {
        "categoryId": "falls",
        "userQuery": "脚立の上での作業",
        "additionalSuggestions": [{"text": f"提案{index}", "icon": "tools"} for index in range(6)],
        "lang": "ja",
    }

    response = client.post("/generate-pdf", json=payload)

    assert response.status_code == 200
    pdf_path = Path(response.json()["pdfUrl"])
    assert pdf_path.parent == settings.storage.reports_local_dir
    assert pdf_path.name.startswith("falls_")
    assert pdf_path.read_bytes().startswith(b"%PDF")


def test_generate_pdf_unknown_category_returns_404(client):
    response = client.post("/generate-pdf", json={"categoryId": "missing", "userQuery": "x", "lang": "en"})

    assert response.status_code == 404


def test_generate_pdf_read_failure_returns_generic_500(client):
    class _UnreadableReports:
        def build(self, category_id, **kwargs):
            raise DocumentStoreError("firestore unavailable", operation="read")

    client.app.dependency_overrides[get_report_builder] = lambda: _UnreadableReports()

    response = client.post("/generate-pdf", json={"categoryId": "falls", "userQuery": "x", "lang": "ja"})

    assert response.status_code == 500
    assert response.json() == {"detail": "An internal error occurred."}


def test_internal_case_write_failure_returns_save_error(client, seeded_store):
    def refuse(collection, data):
        raise DocumentStoreError("quota exceeded")

    seeded_store.create = refuse
    payload = {"title": "転倒", "description": "床", "cause": "水", "measures": "表示"}

    response = client.post("/internal-cases", json=payload)

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to save record."}
