"""Supabase Storage client for campaign media."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import quote

import httpx
import structlog

from app.core.config import StorageConfig
from app.core.errors import storage_error
from app.core.tracing import get_tracing_headers

logger = structlog.get_logger(__name__)

MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for(path: str) -> str:
    """MIME type derived from the file extension."""
    extension = PurePosixPath(path).suffix.lstrip(".").lower()
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


@dataclass(frozen=True)
class ResolvedMedia:
    url: str
    mime_type: str


class StorageClient:
    """Resolves and downloads objects in one storage bucket."""

    def __init__(self, config: StorageConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        key = self._config.key.get_secret_value()
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            **get_tracing_headers(),
        }

    def _object_path(self, path: str) -> str:
        return f"{self._config.bucket_name}/{quote(path.lstrip('/'))}"

    async def resolve(self, path: str) -> ResolvedMedia:
        """Return a time-limited fetchable URL and MIME type for ``path``."""
        url = f"{self._config.storage_base_url}/object/sign/{self._object_path(path)}"
        try:
            response = await self._get_client().post(
                url,
                json={"expiresIn": self._config.signed_url_ttl_seconds},
                headers=self._headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise storage_error(
                path, f"Failed to create signed URL for {path}: {e}", operation="resolve"
            ) from e

        signed = None
        if isinstance(payload, dict):
            signed = payload.get("signedURL") or payload.get("signedUrl")
        if not signed:
            raise storage_error(path, f"Failed to create signed URL for {path}", operation="resolve")

        full_url = signed if signed.startswith("http") else f"{self._config.storage_base_url}{signed}"
        return ResolvedMedia(url=full_url, mime_type=mime_type_for(path))

    async def download(self, path: str) -> bytes:
        """Download the raw bytes of ``path``."""
        url = f"{self._config.storage_base_url}/object/authenticated/{self._object_path(path)}"
        try:
            response = await self._get_client().get(url, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise storage_error(path, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise storage_error(path, str(e) or type(e).__name__) from e
        return response.content

    async def health_check(self) -> bool:
        try:
            response = await self._get_client().get(
                f"{self._config.storage_base_url}/bucket/{self._config.bucket_name}",
                headers=self._headers(),
            )
            return response.status_code == 200
        except httpx.HTTPError:
            logger.warning("Storage health check failed", exc_info=True)
            return False
