"""SerpAPI client for Google reverse image search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from app.core.config import SerpApiConfig
from app.core.errors import ErrorCode, ForensicsError
from app.core.tracing import get_tracing_headers

logger = structlog.get_logger(__name__)

MAX_IMAGE_RESULTS = 10


@dataclass(frozen=True)
class ImageMatch:
    title: str
    link: str
    source: str


@dataclass
class ReverseImageSearch:
    matches: list[ImageMatch] = field(default_factory=list)
    search_url: str = ""


def _parse_matches(payload: dict[str, Any]) -> list[ImageMatch]:
    results = payload.get("image_results") or []
    matches: list[ImageMatch] = []
    for item in results[:MAX_IMAGE_RESULTS]:
        if not isinstance(item, dict):
            continue
        matches.append(
            ImageMatch(
                title=str(item.get("title") or ""),
                link=str(item.get("link") or ""),
                source=str(item.get("source") or ""),
            )
        )
    return matches


class SerpApiClient:
    """Thin wrapper around the ``google_reverse_image`` engine."""

    def __init__(self, config: SerpApiConfig, http_client: httpx.AsyncClient | None = None) -> None:
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

    async def reverse_image_search(self, image_url: str) -> ReverseImageSearch:
        params = {
            "engine": "google_reverse_image",
            "image_url": image_url,
            "api_key": self._config.api_key.get_secret_value(),
        }
        try:
            response = await self._get_client().get(
                self._config.base_url, params=params, headers=get_tracing_headers()
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ForensicsError(
                ErrorCode.REVERSE_IMAGE_FAILED,
                f"SerpAPI error: HTTP {e.response.status_code}",
                service="serpapi",
                operation="reverse_image_search",
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ForensicsError(
                ErrorCode.REVERSE_IMAGE_FAILED,
                f"SerpAPI request failed: {e}",
                service="serpapi",
                operation="reverse_image_search",
            ) from e

        if not isinstance(payload, dict):
            return ReverseImageSearch()
        metadata = payload.get("search_metadata") or {}
        return ReverseImageSearch(
            matches=_parse_matches(payload),
            search_url=str(metadata.get("google_url") or ""),
        )
