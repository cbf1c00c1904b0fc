"""Repositories for published case reports and internally logged incidents."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Mapping

from anzen.models import CaseRecord, InternalCase
from anzen.settings import Settings, get_settings

from .documents import DocumentStore

LOGGER = logging.getLogger(__name__)


class CaseRepository:
    """Access the crawled case collection."""

    def __init__(self, store: DocumentStore, *, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        storage = self.settings.storage
        self.collection = storage.cases_collection
        self._title_field = storage.case_title_field
        self._cause_field = storage.case_cause_field
        self._measures_field = storage.case_measures_field

    def list_eligible(self) -> List[CaseRecord]:
        """Return cases whose title, cause and measures are all non-empty."""

        documents = self.store.query(
            self.collection,
            filters=[
                (self._title_field, ">", ""),
                (self._cause_field, ">", ""),
                (self._measures_field, ">", ""),
            ],
        )
        records = [
            CaseRecord.from_document(
                doc.id,
                doc.data,
                title_field=self._title_field,
                cause_field=self._cause_field,
                measures_field=self._measures_field,
            )
            for doc in documents
        ]
        return [record for record in records if record.is_eligible]

    def assign_categories(self, assignments: Mapping[str, str]) -> int:
        """Write ``categoryId`` onto every case in one atomic commit."""

        updates = {case_id: {"categoryId": category_id} for case_id, category_id in assignments.items()}
        return self.store.batch_update(self.collection, updates)


class InternalCaseRepository:
    """Incidents logged through the API, used as grounding for suggestions."""

    def __init__(self, store: DocumentStore, *, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.collection = self.settings.storage.internal_cases_collection

    def add(self, case: InternalCase) -> str:
        payload = {
            "title": case.title,
            "description": case.description,
            "cause": case.cause,
            "measures": case.measures,
            "occurredAt": case.occurred_at,
            "createdAt": datetime.now(timezone.utc),
        }
        case_id = self.store.create(self.collection, payload)
        LOGGER.info("Saved internal case %s", case_id)
        return case_id

    def list_recent(self, limit: int) -> List[InternalCase]:
        documents = self.store.query(self.collection, order_by="createdAt", descending=True, limit=limit)
        cases: List[InternalCase] = []
        for doc in documents:
            data = doc.data
            cases.append(
                InternalCase(
                    id=doc.id,
                    title=str(data.get("title") or ""),
                    description=str(data.get("description") or ""),
                    cause=str(data.get("cause") or ""),
                    measures=str(data.get("measures") or ""),
                    occurred_at=data.get("occurredAt"),
                    created_at=data.get("createdAt"),
                )
            )
        return cases


__all__ = ["CaseRepository", "InternalCaseRepository"]
