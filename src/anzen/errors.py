"""Exception hierarchy shared by the offline jobs and the search API."""

from __future__ import annotations


class AnzenError(RuntimeError):
    """Base class for every anzen-specific failure."""


class CategoryNameQualityError(AnzenError):
    """Raised when the model proposes too few usable category names."""

    def __init__(self, count: int, minimum: int) -> None:
        super().__init__(f"Only {count} category names generated; at least {minimum} required")
        self.count = count
        self.minimum = minimum


class LLMError(AnzenError):
    """Raised when a generation or embedding call fails."""


class LLMTimeoutError(LLMError):
    """Raised when a generation or embedding call exceeds its time budget."""


class ResponseParseError(AnzenError):
    """Raised when model output does not match the expected structure."""


class VideoGenerationError(AnzenError):
    """Raised when a video operation fails or never completes."""


class DocumentStoreError(AnzenError):
    """Raised when document store reads or writes fail.

    ``operation`` is ``"read"`` or ``"write"`` so the API can tell a failed
    lookup from a failed save.
    """

    def __init__(self, message: str, *, operation: str = "write") -> None:
        super().__init__(message)
        self.operation = operation


class CategoryNotFoundError(AnzenError):
    """Raised when no category matches a query or a category id is unknown."""


class InvalidQueryError(AnzenError):
    """Raised when a search request is rejected before any backend call."""


class UpstreamServiceError(AnzenError):
    """Raised when an essential backend dependency fails during a request."""


__all__ = [
    "AnzenError",
    "CategoryNameQualityError",
    "CategoryNotFoundError",
    "DocumentStoreError",
    "InvalidQueryError",
    "LLMError",
    "LLMTimeoutError",
    "ResponseParseError",
    "UpstreamServiceError",
    "VideoGenerationError",
]
