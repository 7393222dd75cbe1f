"""Tier 1 campaign assessment.

``AssessmentClient`` drives the two model calls: a search-grounded free-form
analysis, then a schema-constrained extraction of that analysis.
``CampaignAssessmentService`` wires media handling, forensics and the two
calls together for one request.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from google.genai import types
from opentelemetry import trace
from pydantic import ValidationError

from app.clients.storage_client import StorageClient
from app.collectors.exif import ImageMetadata, format_metadata_for_prompt, read_image_metadata
from app.core.config import ForensicsConfig
from app.core.errors import ErrorCode, ai_error
from app.core.metrics import (
    forensics_assessment_latency_seconds,
    forensics_assessment_requests_total,
)
from app.llm.prompts.templates import (
    ASSESSMENT_EXTRACTION_PROMPT,
    ASSESSMENT_PROMPT,
    build_assessment_prompt,
)
from app.llm.provider import GeminiProvider, UploadedFile, file_part
from app.schemas.v1.assessments import AssessmentResult, AssessRequest, AssessResponse
from app.schemas.v1.common import DeepInvestigation, MediaKind
from app.schemas.v1.forensics import Forensics
from app.services.forensics_service import ForensicsAggregator
from app.utils.scratch import LocalMedia, scratch_media

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class MediaReference:
    """A media item the model can fetch: signed URL or uploaded file URI."""

    uri: str
    mime_type: str


class AssessmentClient:
    """Two-phase analyze-then-extract assessment against the model."""

    def __init__(self, provider: GeminiProvider) -> None:
        self._provider = provider

    async def analyze(
        self,
        text: str,
        media: Sequence[MediaReference],
        forensics: Forensics,
        metadata_lines: list[str] | None = None,
    ) -> str:
        prompt = build_assessment_prompt(
            text, forensics.model_dump(mode="json"), metadata_lines
        )
        parts: list[types.Part | str] = [prompt]
        parts.extend(file_part(item.uri, item.mime_type) for item in media)
        return await self._provider.generate(
            parts,
            operation="assessment_analyze",
            system_instruction=ASSESSMENT_PROMPT.system_prompt,
            search=True,
        )

    async def extract(self, analysis: str) -> AssessmentResult:
        raw = await self._provider.generate(
            [ASSESSMENT_EXTRACTION_PROMPT.render(analysis=analysis)],
            operation="assessment_extract",
            system_instruction=ASSESSMENT_EXTRACTION_PROMPT.system_prompt,
            response_schema=AssessmentResult,
        )
        try:
            return AssessmentResult.model_validate_json(raw)
        except ValidationError as e:
            raise ai_error(ErrorCode.AI_PARSE_FAILED, "Assessment extraction", str(e)) from e

    async def assess(
        self,
        text: str,
        media: Sequence[MediaReference],
        forensics: Forensics,
        metadata_lines: list[str] | None = None,
    ) -> AssessmentResult:
        """Phase 1 (grounded analysis) then phase 2 (structured extraction)."""
        analysis = await self.analyze(text, media, forensics, metadata_lines)
        return await self.extract(analysis)


def recommend_deep_investigation(score: int, threshold: int) -> DeepInvestigation:
    return DeepInvestigation.RECOMMENDED if score < threshold else DeepInvestigation.OPTIONAL


class CampaignAssessmentService:
    """Runs one Tier 1 assessment end to end."""

    def __init__(
        self,
        storage: StorageClient,
        provider: GeminiProvider,
        aggregator: ForensicsAggregator,
        config: ForensicsConfig,
    ) -> None:
        self._storage = storage
        self._provider = provider
        self._aggregator = aggregator
        self._client = AssessmentClient(provider)
        self._config = config

    def _describe_media(
        self, request: AssessRequest, image_metadata: dict[str, ImageMetadata]
    ) -> list[str]:
        lines: list[str] = []
        for index, item in enumerate(request.media):
            metadata = image_metadata.get(item.path) if item.type == MediaKind.IMAGE else None
            if metadata is None:
                metadata = ImageMetadata(stripped=True)
            lines.append(format_metadata_for_prompt(metadata, index, item.type.value))
        return lines

    async def _upload_video(self, media: LocalMedia, uploaded: list[UploadedFile]) -> MediaReference:
        file = await self._provider.upload_file(media.local_path, media.mime_type)
        uploaded.append(file)
        active = await self._provider.wait_until_active(
            file,
            interval_seconds=self._config.media_poll_interval_seconds,
            max_attempts=self._config.media_poll_max_attempts,
        )
        return MediaReference(uri=active.uri, mime_type=active.mime_type or media.mime_type)

    async def assess(self, request: AssessRequest) -> AssessResponse:
        started = time.perf_counter()
        images = [item.path for item in request.media if item.type == MediaKind.IMAGE]
        videos = [item.path for item in request.media if item.type == MediaKind.VIDEO]
        uploaded: list[UploadedFile] = []

        try:
            with tracer.start_as_current_span("assessment.run") as span:
                span.set_attribute("media_count", len(request.media))
                async with scratch_media(self._storage) as scratch:
                    local = await scratch.acquire(images[: self._config.max_exif_images] + videos)
                    image_metadata = await read_image_metadata(
                        local, self._config.date_mismatch_days
                    )

                    forensics = await self._aggregator.aggregate(
                        request.text,
                        request.media,
                        image_metadata=list(image_metadata.values()),
                        creator_address=request.creator_address,
                        donor_addresses=request.donor_addresses,
                        creator_identity=request.creator_identity,
                    )

                    references: list[MediaReference] = []
                    for path in images:
                        resolved = await self._storage.resolve(path)
                        references.append(MediaReference(resolved.url, resolved.mime_type))
                    for media in local:
                        if media.mime_type.startswith("video/"):
                            references.append(await self._upload_video(media, uploaded))

                    metadata_lines = self._describe_media(request, image_metadata)
                    result = await self._client.assess(
                        request.text, references, forensics, metadata_lines
                    )
                span.set_attribute("score", result.score)
                span.set_attribute("verdict", result.verdict.value)
        except Exception:
            forensics_assessment_requests_total.labels(status="error").inc()
            raise
        finally:
            for file in uploaded:
                await self._provider.delete_file(file.name)
            forensics_assessment_latency_seconds.observe(time.perf_counter() - started)

        forensics_assessment_requests_total.labels(status="success").inc()
        logger.info(
            "Assessment completed",
            score=result.score,
            verdict=result.verdict.value,
            media_count=len(request.media),
        )
        return AssessResponse(
            data=result,
            forensics=forensics,
            deep_investigation=recommend_deep_investigation(
                result.score, self._config.deep_investigation_threshold
            ),
        )
