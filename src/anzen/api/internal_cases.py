"""Intake endpoint for accidents logged by the operator's own sites."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from anzen.api.dependencies import get_internal_case_repository
from anzen.models import InternalCase
from anzen.store.cases import InternalCaseRepository

router = APIRouter(tags=["internal-cases"])

REQUIRED_FIELDS = ("title", "description", "cause", "measures")


class InternalCaseSubmission(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    description: str = ""
    cause: str = ""
    measures: str = ""
    occurred_at: Optional[datetime] = None


@router.post("/internal-cases", status_code=201)
def create_internal_case(
    payload: InternalCaseSubmission,
    repository: InternalCaseRepository = Depends(get_internal_case_repository),
):
    missing = [name for name in REQUIRED_FIELDS if not getattr(payload, name).strip()]
    if missing:
        raise HTTPException(status_code=400, detail=f"Required fields are missing: {', '.join(missing)}")
    case_id = repository.add(
        InternalCase(
            title=payload.title.strip(),
            description=payload.description.strip(),
            cause=payload.cause.strip(),
            measures=payload.measures.strip(),
            occurred_at=payload.occurred_at,
        )
    )
    return {"id": case_id, "message": "Case saved successfully."}
