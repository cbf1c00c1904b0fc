"""Search endpoint: nearest category plus generated suggestions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from anzen.api.dependencies import get_search_service
from anzen.models import SearchResult
from anzen.retrieval.service import SearchService

router = APIRouter(tags=["search"])


class SearchRequest(BaseModel):
    query: str = ""
    lang: str = "ja"


@router.post("/search", response_model=SearchResult, response_model_by_alias=True)
def search(payload: SearchRequest, service: SearchService = Depends(get_search_service)) -> SearchResult:
    """Return the best-matching category localized to ``lang``."""

    return service.search(payload.query, payload.lang)
