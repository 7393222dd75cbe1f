"""Reverse image search forensics: duplicates and stock photo detection."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from app.clients.serp_client import ImageMatch, SerpApiClient
from app.clients.storage_client import StorageClient
from app.collectors.base import BaseCollector, CollectorResult
from app.core.config import ForensicsConfig
from app.core.errors import ForensicsError
from app.schemas.v1.forensics import ReverseImageForensics, ReverseImageSource

logger = structlog.get_logger(__name__)

STOCK_PHOTO_INDICATORS = (
    "shutterstock",
    "getty",
    "adobe stock",
    "istock",
    "alamy",
    "dreamstime",
    "stock photo",
)


def is_stock_match(match: ImageMatch) -> bool:
    source = match.source.lower()
    title = match.title.lower()
    return any(
        indicator in source or indicator in title for indicator in STOCK_PHOTO_INDICATORS
    )


class ReverseImageCollector(BaseCollector[Sequence[str], ReverseImageForensics]):
    """Searches the first few images; a failing image contributes nothing."""

    def __init__(
        self,
        storage: StorageClient,
        serp: SerpApiClient,
        config: ForensicsConfig,
    ) -> None:
        self._storage = storage
        self._serp = serp
        self._config = config

    @property
    def name(self) -> str:
        return "reverse_image"

    async def collect(self, data: Sequence[str]) -> CollectorResult[ReverseImageForensics]:
        duplicates = 0
        is_stock = False
        sources: list[ReverseImageSource] = []
        last_error: ForensicsError | None = None
        searched = 0

        for path in list(data)[: self._config.max_reverse_images]:
            try:
                resolved = await self._storage.resolve(path)
                result = await self._serp.reverse_image_search(resolved.url)
            except ForensicsError as e:
                logger.warning("Reverse image search skipped", path=path, error=e.message)
                last_error = e
                continue

            searched += 1
            duplicates += len(result.matches)
            if any(is_stock_match(match) for match in result.matches):
                is_stock = True
            sources.extend(
                ReverseImageSource(title=match.title, link=match.link, source=match.source)
                for match in result.matches[: self._config.max_sources_per_image]
            )

        forensics = ReverseImageForensics(
            duplicates_found=duplicates,
            is_stock_photo=is_stock,
            sources=sources[: self._config.max_sources],
        )
        if searched == 0 and last_error is not None:
            return CollectorResult.degraded(forensics, last_error)
        return CollectorResult.success(forensics)
