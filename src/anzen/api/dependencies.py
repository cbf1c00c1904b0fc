"""Request-scoped accessors for the objects created at application startup."""

from __future__ import annotations

from fastapi import Request

from anzen.reports.safety_report import SafetyReportBuilder
from anzen.retrieval.cache import CategorySnapshot
from anzen.retrieval.service import SearchService
from anzen.settings import Settings
from anzen.store.cases import InternalCaseRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_snapshot(request: Request) -> CategorySnapshot:
    return request.app.state.snapshot


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def get_report_builder(request: Request) -> SafetyReportBuilder:
    return request.app.state.report_builder


def get_internal_case_repository(request: Request) -> InternalCaseRepository:
    return request.app.state.internal_cases


__all__ = [
    "get_app_settings",
    "get_internal_case_repository",
    "get_report_builder",
    "get_search_service",
    "get_snapshot",
]
