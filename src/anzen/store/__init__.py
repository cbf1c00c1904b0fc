"""Firestore-backed persistence for cases, categories and internal reports."""

from .cases import CaseRepository, InternalCaseRepository
from .categories import CategoryRepository
from .documents import DocumentStore, FirestoreDocumentStore, StoredDocument

__all__ = [
    "CaseRepository",
    "CategoryRepository",
    "DocumentStore",
    "FirestoreDocumentStore",
    "InternalCaseRepository",
    "StoredDocument",
]
