"""Drop video links whose target is missing or too small to be a real video."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping

import httpx

LOGGER = logging.getLogger(__name__)


class MediaChecker:
    """Check media URLs with ``HEAD`` requests issued concurrently.

    A URL survives only when the check answers 2xx with a ``content-length``
    strictly greater than ``min_bytes``. Any transport error drops the URL.
    """

    def __init__(
        self,
        *,
        min_bytes: int,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
        max_workers: int = 8,
    ) -> None:
        self.min_bytes = min_bytes
        self.max_workers = max(1, max_workers)
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def is_live(self, url: str) -> bool:
        try:
            response = self._client.head(url)
        except httpx.HTTPError as exc:
            LOGGER.warning("Media check failed for %s: %s", url, exc)
            return False
        if not response.is_success:
            LOGGER.info("Media check for %s returned %s", url, response.status_code)
            return False
        try:
            size = int(response.headers.get("content-length", "0"))
        except ValueError:
            return False
        return size > self.min_bytes

    def filter_live(self, urls: Mapping[str, str]) -> Dict[str, str]:
        """Return the subset of ``urls`` whose targets pass the check."""

        entries = [(key, url) for key, url in urls.items() if url]
        if not entries:
            return {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(entries))) as pool:
            futures = [(key, url, pool.submit(self.is_live, url)) for key, url in entries]
            return {key: url for key, url, future in futures if future.result()}

    def close(self) -> None:
        self._client.close()


__all__ = ["MediaChecker"]
