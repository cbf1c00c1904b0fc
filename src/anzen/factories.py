"""Factory helpers that instantiate the configured backends.

Job entrypoints go through these helpers so tests can swap in in-memory
doubles with ``monkeypatch``.
"""

from __future__ import annotations

from anzen.errors import VideoGenerationError
from anzen.llm.gateway import LLMGateway
from anzen.media.veo import VeoVideoBackend
from anzen.settings import Settings, get_settings
from anzen.store.cases import CaseRepository
from anzen.store.categories import CategoryRepository
from anzen.store.documents import DocumentStore, FirestoreDocumentStore


def build_document_store(settings: Settings | None = None) -> DocumentStore:
    """Return the Firestore-backed document store for the configured project."""

    resolved = settings or get_settings()
    return FirestoreDocumentStore(project=resolved.storage.firestore_project)


def build_gateway(settings: Settings | None = None) -> LLMGateway:
    return LLMGateway(settings=settings or get_settings())


def build_video_backend(settings: Settings | None = None) -> VeoVideoBackend:
    """Return the Veo backend writing into the configured video bucket.

    Raises:
        VideoGenerationError: If no bucket or Google Cloud project is configured.
    """

    resolved = settings or get_settings()
    project = resolved.llm.vertex_ai_project or resolved.storage.firestore_project
    if not resolved.videos.bucket or not project:
        raise VideoGenerationError("Video generation needs videos.bucket and a Google Cloud project")
    return VeoVideoBackend(
        project=project,
        location=resolved.llm.vertex_ai_location or "us-central1",
        model=resolved.videos.model,
        bucket=resolved.videos.bucket,
    )


def build_category_repository(store: DocumentStore, settings: Settings | None = None) -> CategoryRepository:
    return CategoryRepository(store, settings=settings or get_settings())


def build_case_repository(store: DocumentStore, settings: Settings | None = None) -> CaseRepository:
    return CaseRepository(store, settings=settings or get_settings())


__all__ = [
    "build_case_repository",
    "build_category_repository",
    "build_document_store",
    "build_gateway",
    "build_video_backend",
]
