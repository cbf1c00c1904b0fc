"""PDF safety report endpoint."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from anzen.api.dependencies import get_report_builder
from anzen.models import Suggestion
from anzen.reports.safety_report import SafetyReportBuilder

router = APIRouter(tags=["reports"])


class ReportRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category_id: str = ""
    user_query: str = ""
    additional_suggestions: List[Suggestion] = Field(default_factory=list)
    lang: str = "ja"


class ReportResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    pdf_url: str


@router.post("/generate-pdf", response_model=ReportResponse, response_model_by_alias=True)
def generate_pdf(payload: ReportRequest, builder: SafetyReportBuilder = Depends(get_report_builder)) -> ReportResponse:
    if not payload.category_id.strip():
        raise HTTPException(status_code=400, detail="categoryId is required.")
    url = builder.build(
        payload.category_id,
        user_query=payload.user_query,
        suggestions=[suggestion.text for suggestion in payload.additional_suggestions],
        lang=payload.lang,
    )
    return ReportResponse(pdf_url=url)
