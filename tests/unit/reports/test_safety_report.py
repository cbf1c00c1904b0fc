"""Tests for the PDF safety report builder."""

from __future__ import annotations

import pytest

from anzen.errors import CategoryNotFoundError
from anzen.reports.safety_report import SafetyReportBuilder, render_safety_report
from anzen.store.categories import CategoryRepository


class _FakeBlob:
    def __init__(self, bucket: "_FakeBucket", name: str) -> None:
        self.bucket = bucket
        self.name = name

    def upload_from_string(self, data, content_type=None):
        self.bucket.uploads[self.name] = (data, content_type)

    @property
    def public_url(self) -> str:
        return f"https://storage.googleapis.com/{self.bucket.name}/{self.name}"


class _FakeBucket:
    def __init__(self, name: str = "anzen-reports") -> None:
        self.name = name
        self.uploads = {}

    def blob(self, name: str) -> _FakeBlob:
        return _FakeBlob(self, name)


@pytest.fixture
def categories(store_factory, settings):
    store = store_factory(
        {
            settings.storage.categories_collection: {
                "falls": {
                    "name": {"ja": "墜落・転落", "en": "Falls"},
                    "description": {"ja": "高所からの墜落", "en": "Falls from height"},
                    "measures": {"ja": ["手すり", "安全帯", "教育"], "en": ["Rails", "Harness", "Training"]},
                }
            }
        }
    )
    return CategoryRepository(store, settings=settings)


def test_report_is_uploaded_under_reports_prefix(categories, settings):
    bucket = _FakeBucket()
    builder = SafetyReportBuilder(categories=categories, settings=settings, bucket=bucket, clock=lambda: 1700000000.5)

    url = builder.build("falls", user_query="Working on a ladder", suggestions=["Check footing"], lang="en")

    assert url == "https://storage.googleapis.com/anzen-reports/reports/falls_1700000000500.pdf"
    data, content_type = bucket.uploads["reports/falls_1700000000500.pdf"]
    assert content_type == "application/pdf"
    assert data.startswith(b"%PDF")


def test_report_without_bucket_is_written_locally(categories, settings):
    builder = SafetyReportBuilder(categories=categories, settings=settings, clock=lambda: 1.0)

    path = builder.build("falls", user_query="脚立の上での作業", suggestions=[], lang="ja")

    assert path.endswith("falls_1000.pdf")
    assert (settings.storage.reports_local_dir / "falls_1000.pdf").exists()


def test_unknown_category_raises(categories, settings):
    builder = SafetyReportBuilder(categories=categories, settings=settings, bucket=_FakeBucket())

    with pytest.raises(CategoryNotFoundError):
        builder.build("missing", user_query="x")


@pytest.mark.parametrize("lang", ["ja", "en", "zh", "bn"])
def test_render_handles_each_language(lang):
    pdf = render_safety_report(
        title="",
        user_query="作業 <script>",
        category_name="墜落",
        description="説明 & 注意",
        measures=["a", "b", "c"],
        suggestions=[f"提案{index}" for index in range(9)],
        lang=lang,
    )

    assert pdf.startswith(b"%PDF")
