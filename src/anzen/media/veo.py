"""Veo video generation on Vertex AI, published through Cloud Storage.

Generation is a long-running prediction: ``predictLongRunning`` returns an
operation name, ``fetchPredictOperation`` reports its progress, and the
finished clip is written under ``storageUri``. Publishing copies that clip to
``videos/{categoryId}/{type}.mp4`` and returns its public URL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

import google.auth
import httpx
from google.auth.transport.requests import Request as AuthRequest
from google.cloud import storage

from anzen.errors import VideoGenerationError

LOGGER = logging.getLogger(__name__)

_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)


@dataclass(frozen=True, slots=True)
class VeoOperation:
    """Snapshot of one Vertex AI long-running prediction."""

    name: str
    done: bool = False
    error: str | None = None
    video_uris: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "VeoOperation":
        name = payload.get("name")
        if not name:
            raise VideoGenerationError(f"Operation payload without a name: {payload}")
        error = payload.get("error") or None
        if isinstance(error, Mapping):
            error = str(error.get("message") or error)
        response = payload.get("response") or {}
        videos = response.get("videos") or response.get("generatedSamples") or []
        uris = []
        for video in videos:
            uri = video.get("gcsUri") or (video.get("video") or {}).get("uri")
            if uri:
                uris.append(str(uri))
        return cls(name=str(name), done=bool(payload.get("done")), error=error, video_uris=tuple(uris))


def split_gcs_uri(uri: str) -> Tuple[str, str]:
    """Return ``(bucket, object path)`` for a ``gs://`` URI."""

    if not uri.startswith("gs://"):
        raise VideoGenerationError(f"Not a Cloud Storage URI: {uri}")
    bucket, _, path = uri[len("gs://") :].partition("/")
    if not bucket or not path:
        raise VideoGenerationError(f"Incomplete Cloud Storage URI: {uri}")
    return bucket, path


class VeoVideoBackend:
    """Start, refresh and publish Veo operations for :class:`MeasureVideoJob`."""

    def __init__(
        self,
        *,
        project: str,
        location: str,
        model: str,
        bucket: str,
        client: httpx.Client | None = None,
        credentials: Any | None = None,
        storage_client: storage.Client | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.project = project
        self.location = location
        self.model = model
        self.bucket = bucket
        self._client = client or httpx.Client(timeout=timeout)
        self._credentials = credentials
        self._storage = storage_client

    def _endpoint(self, method: str) -> str:
        return (
            f"https://{self.location}-aiplatform.googleapis.com/v1/projects/{self.project}"
            f"/locations/{self.location}/publishers/google/models/{self.model}:{method}"
        )

    def _headers(self) -> Dict[str, str]:
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=list(_SCOPES))
        if not self._credentials.valid:
            self._credentials.refresh(AuthRequest())
        return {"Authorization": f"Bearer {self._credentials.token}"}

    def _post(self, method: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            response = self._client.post(self._endpoint(method), json=dict(body), headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise VideoGenerationError(f"Veo {method} request failed: {exc}") from exc
        return response.json()

    def start(self, prompt: str) -> VeoOperation:
        payload = self._post(
            "predictLongRunning",
            {
                "instances": [{"prompt": prompt}],
                "parameters": {"sampleCount": 1, "storageUri": f"gs://{self.bucket}/videos/generated/"},
            },
        )
        operation = VeoOperation.from_payload(payload)
        LOGGER.info("Started Veo operation %s", operation.name)
        return operation

    def refresh(self, operation: VeoOperation) -> VeoOperation:
        return VeoOperation.from_payload(self._post("fetchPredictOperation", {"operationName": operation.name}))

    def publish(self, operation: VeoOperation, *, category_id: str, video_type: str) -> str:
        if not operation.video_uris:
            raise VideoGenerationError(f"Operation {operation.name} finished without a video")
        source_bucket, source_path = split_gcs_uri(operation.video_uris[0])
        if self._storage is None:
            self._storage = storage.Client(project=self.project)
        source = self._storage.bucket(source_bucket)
        blob = source.copy_blob(
            source.blob(source_path),
            self._storage.bucket(self.bucket),
            new_name=f"videos/{category_id}/{video_type}.mp4",
        )
        return blob.public_url

    def close(self) -> None:
        self._client.close()


__all__ = ["VeoOperation", "VeoVideoBackend", "split_gcs_uri"]
