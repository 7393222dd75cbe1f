"""Forensics aggregation: fan out to the evidence collectors.

Collectors run concurrently and each run is isolated, so one signal source
being down degrades its own field and nothing else. ``aggregate`` always
returns a well-formed ``Forensics`` record.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any, TypeVar

import structlog
from opentelemetry import trace

from app.collectors.base import BaseCollector, CollectorResult
from app.collectors.blockchain import BlockchainCollector, BlockchainInput
from app.collectors.exif import ExifCollector, ImageMetadata
from app.collectors.identity import IdentityCollector
from app.collectors.reverse_image import ReverseImageCollector
from app.core.metrics import forensics_collector_latency_seconds, forensics_collector_runs_total
from app.schemas.v1.assessments import MediaItem
from app.schemas.v1.common import MediaKind
from app.schemas.v1.forensics import (
    CreatorIdentity,
    ExifForensics,
    Forensics,
    ReverseImageForensics,
)
logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")


async def _skip(value: T) -> T:
    return value


class ForensicsAggregator:
    """Runs the four collectors and assembles their results."""

    def __init__(
        self,
        blockchain: BlockchainCollector,
        exif: ExifCollector,
        reverse_image: ReverseImageCollector,
        identity: IdentityCollector,
    ) -> None:
        self._blockchain = blockchain
        self._exif = exif
        self._reverse_image = reverse_image
        self._identity = identity

    async def _run(self, collector: BaseCollector[Any, T], data: Any, default: T) -> T:
        started = time.perf_counter()
        try:
            result: CollectorResult[T] = await collector.collect(data)
        except Exception as exc:
            forensics_collector_runs_total.labels(collector=collector.name, outcome="degraded").inc()
            logger.error(
                "Collector raised; using default",
                collector=collector.name,
                error=str(exc),
                exc_info=True,
            )
            return default
        finally:
            forensics_collector_latency_seconds.labels(collector=collector.name).observe(
                time.perf_counter() - started
            )

        if result.ok:
            forensics_collector_runs_total.labels(collector=collector.name, outcome="ok").inc()
        else:
            forensics_collector_runs_total.labels(collector=collector.name, outcome="degraded").inc()
            logger.warning(
                "Collector degraded",
                collector=collector.name,
                error_code=result.error.code.value,
                error=result.error.message,
            )
        return result.value

    def _skipped(self, name: str, value: T) -> Any:
        forensics_collector_runs_total.labels(collector=name, outcome="skipped").inc()
        return _skip(value)

    async def aggregate(
        self,
        text: str,
        media: Sequence[MediaItem],
        *,
        image_metadata: Sequence[ImageMetadata] = (),
        creator_address: str | None = None,
        donor_addresses: Sequence[str] | None = None,
        creator_identity: CreatorIdentity | None = None,
    ) -> Forensics:
        """Collect every forensic signal available for one campaign.

        ``blockchain`` runs only with a creator address and ``identity`` only
        with a creator identity; otherwise those fields stay ``None``.
        """
        image_paths = [item.path for item in media if item.type == MediaKind.IMAGE]

        with tracer.start_as_current_span("forensics.aggregate") as span:
            span.set_attribute("media_count", len(media))
            span.set_attribute("has_creator_address", bool(creator_address))
            span.set_attribute("has_creator_identity", creator_identity is not None)

            blockchain_task = (
                self._run(
                    self._blockchain,
                    BlockchainInput(creator_address, list(donor_addresses or [])),
                    None,
                )
                if creator_address
                else self._skipped(self._blockchain.name, None)
            )
            identity_task = (
                self._run(self._identity, creator_identity, None)
                if creator_identity is not None
                else self._skipped(self._identity.name, None)
            )

            blockchain, exif, reverse_image, identity = await asyncio.gather(
                blockchain_task,
                self._run(
                    self._exif,
                    list(image_metadata),
                    ExifForensics(warnings=["EXIF analysis failed"]),
                ),
                self._run(self._reverse_image, image_paths, ReverseImageForensics()),
                identity_task,
            )

        logger.info(
            "Forensics aggregated",
            text_chars=len(text),
            media_count=len(media),
            blockchain=blockchain is not None,
            identity=identity is not None,
            duplicates_found=reverse_image.duplicates_found,
        )
        return Forensics(
            blockchain=blockchain,
            exif=exif,
            reverse_image=reverse_image,
            identity=identity,
        )
