"""FastAPI app factory for the anzen search API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from anzen.api.dependencies import get_snapshot
from anzen.api.internal_cases import router as internal_cases_router
from anzen.api.reports import router as reports_router
from anzen.api.search import router as search_router
from anzen.errors import (
    AnzenError,
    CategoryNotFoundError,
    DocumentStoreError,
    InvalidQueryError,
    UpstreamServiceError,
)
from anzen.llm.gateway import LLMGateway
from anzen.reports.safety_report import SafetyReportBuilder
from anzen.retrieval.cache import CategorySnapshot, load_category_snapshot
from anzen.retrieval.media import MediaChecker
from anzen.retrieval.service import SearchService
from anzen.retrieval.suggestions import SuggestionGenerator
from anzen.settings import Settings, get_settings
from anzen.store.cases import InternalCaseRepository
from anzen.store.categories import CategoryRepository
from anzen.store.documents import DocumentStore, FirestoreDocumentStore

LOGGER = logging.getLogger(__name__)


def _initialise_state(
    app: FastAPI,
    *,
    settings: Settings,
    store: DocumentStore | None,
    gateway: LLMGateway | None,
    media: MediaChecker | None,
) -> None:
    store = store or FirestoreDocumentStore(project=settings.storage.firestore_project)
    gateway = gateway or LLMGateway(settings=settings)
    media = media or MediaChecker(
        min_bytes=settings.search.min_media_bytes,
        timeout=settings.search.media_check_timeout_seconds,
    )
    categories = CategoryRepository(store, settings=settings)
    internal_cases = InternalCaseRepository(store, settings=settings)
    snapshot = load_category_snapshot(categories, settings=settings)

    app.state.settings = settings
    app.state.snapshot = snapshot
    app.state.internal_cases = internal_cases
    app.state.media = media
    app.state.search_service = SearchService(
        snapshot=snapshot,
        gateway=gateway,
        suggestions=SuggestionGenerator(gateway=gateway, internal_cases=internal_cases, settings=settings),
        media=media,
        settings=settings,
    )
    app.state.report_builder = SafetyReportBuilder(categories=categories, settings=settings)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidQueryError)
    async def _invalid_query(request: Request, exc: InvalidQueryError):
        return _error_response(400, str(exc))

    @app.exception_handler(CategoryNotFoundError)
    async def _not_found(request: Request, exc: CategoryNotFoundError):
        return _error_response(404, str(exc))

    @app.exception_handler(UpstreamServiceError)
    async def _upstream(request: Request, exc: UpstreamServiceError):
        LOGGER.error("Upstream failure on %s: %s", request.url.path, exc)
        return _error_response(500, "An internal error occurred.")

    @app.exception_handler(DocumentStoreError)
    async def _store(request: Request, exc: DocumentStoreError):
        LOGGER.error("Document store %s failed on %s: %s", exc.operation, request.url.path, exc)
        if exc.operation == "read":
            return _error_response(500, "An internal error occurred.")
        return _error_response(500, "Failed to save record.")

    @app.exception_handler(AnzenError)
    async def _generic(request: Request, exc: AnzenError):
        LOGGER.exception("Unhandled application error on %s", request.url.path)
        return _error_response(500, "An internal error occurred.")


def create_app(
    *,
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    gateway: LLMGateway | None = None,
    media: MediaChecker | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The category snapshot is loaded once when the application starts. Tests
    pass in-memory ``store`` and ``gateway`` doubles.

    Returns:
        Configured FastAPI instance.
    """

    resolved = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _initialise_state(app, settings=resolved, store=store, gateway=gateway, media=media)
        LOGGER.info("Search API ready with %d categories", len(app.state.snapshot))
        try:
            yield
        finally:
            app.state.media.close()

    app = FastAPI(title="anzen Category Search API", version="0.1", lifespan=lifespan)
    app.include_router(search_router)
    app.include_router(reports_router)
    app.include_router(internal_cases_router)
    _register_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz(snapshot: CategorySnapshot = Depends(get_snapshot)):
        return {"status": "ok", "categories": len(snapshot)}

    return app


# For uvicorn, expose `app` at module level
app = create_app()

__all__ = ["app", "create_app"]
