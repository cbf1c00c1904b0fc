"""Shared in-memory doubles for the document store and the model gateway."""

from __future__ import annotations

import copy
import operator
from typing import Any, Callable, Dict, List, Mapping, Sequence

import pytest

from anzen.errors import DocumentStoreError, LLMError
from anzen.observability import reset_observability_cache
from anzen.settings import reload_settings
from anzen.store.documents import StoredDocument

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def _deep_merge(target: Dict[str, Any], fields: Mapping[str, Any]) -> None:
    for key, value in fields.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class InMemoryDocumentStore:
    """Dict-backed store mirroring the Firestore semantics the code relies on."""

    def __init__(self, seed: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.merge_calls: List[tuple] = []
        self.batches: List[Dict[str, Dict[str, Any]]] = []
        self.fail_batch = False
        self._counter = 0
        for collection, docs in (seed or {}).items():
            for doc_id, data in docs.items():
                self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(data))

    @property
    def write_count(self) -> int:
        return len(self.merge_calls) + sum(len(batch) for batch in self.batches)

    def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        data = self.collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    def list_all(self, collection: str) -> List[StoredDocument]:
        return [
            StoredDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self.collections.get(collection, {}).items()
        ]

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[tuple] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[StoredDocument]:
        docs = self.list_all(collection)
        for field_path, op, value in filters:
            compare = _OPERATORS[op]
            docs = [
                doc
                for doc in docs
                if field_path in doc.data and type(doc.data[field_path]) is type(value) and compare(doc.data[field_path], value)
            ]
        if order_by:
            docs = [doc for doc in docs if doc.data.get(order_by) is not None]
            docs.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        if limit:
            docs = docs[:limit]
        return docs

    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        self._counter += 1
        doc_id = f"{collection}-{self._counter}"
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(data))
        return doc_id

    def merge_update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        self.merge_calls.append((collection, doc_id, copy.deepcopy(dict(fields))))
        target = self.collections.setdefault(collection, {}).setdefault(doc_id, {})
        _deep_merge(target, fields)

    def batch_update(self, collection: str, updates: Mapping[str, Mapping[str, Any]]) -> int:
        if not updates:
            return 0
        existing = self.collections.get(collection, {})
        missing = [doc_id for doc_id in updates if doc_id not in existing]
        if self.fail_batch or missing:
            raise DocumentStoreError(f"Batch update failed for {collection}: missing={missing}")
        for doc_id, fields in updates.items():
            existing[doc_id].update(copy.deepcopy(dict(fields)))
        self.batches.append({doc_id: dict(fields) for doc_id, fields in updates.items()})
        return len(updates)


class ScriptedGateway:
    """Gateway double answering prompts through a caller-supplied function."""

    def __init__(
        self,
        respond: Callable[[str], str] | None = None,
        *,
        vectors: Mapping[str, Sequence[float]] | None = None,
        default_vector: Sequence[float] | None = None,
        fail_embed: bool = False,
    ) -> None:
        self._respond = respond or (lambda prompt: "")
        self._vectors = dict(vectors or {})
        self._default_vector = list(default_vector) if default_vector is not None else None
        self._fail_embed = fail_embed
        self.prompts: List[str] = []
        self.embedded: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._respond(prompt)

    def embed(self, text: str) -> List[float]:
        self.embedded.append(text)
        if self._fail_embed:
            raise LLMError("embedding backend unavailable")
        if text in self._vectors:
            return list(self._vectors[text])
        if self._default_vector is None:
            raise LLMError(f"no vector scripted for {text!r}")
        return list(self._default_vector)

    @property
    def calls(self) -> int:
        return len(self.prompts) + len(self.embedded)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings with the mock provider, a tiny embedding size and local reports."""

    for name in ("ANZEN_LLM__PROVIDER", "ANZEN_LLM_PROVIDER", "LLM__PROVIDER", "LLM_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    reset_observability_cache()
    base = reload_settings()
    return base.model_copy(
        update={
            "llm": base.llm.model_copy(update={"provider": "mock", "embedding_dim": 3, "timeout_seconds": 5.0}),
            "storage": base.storage.model_copy(
                update={"reports_bucket": None, "reports_local_dir": tmp_path / "reports"}
            ),
            "observability": base.observability.model_copy(update={"statsd_host": None}),
        }
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def store_factory():
    return InMemoryDocumentStore


@pytest.fixture
def gateway_factory():
    return ScriptedGateway
