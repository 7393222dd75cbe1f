"""Gemini adapter used by the assessment, identity and investigation stages.

All model traffic goes through one ``GeminiProvider`` built from
``GeminiConfig``: content generation (optionally search-grounded or
schema-constrained), the Files API for video media, and the Interactions API
for background deep research.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from app.core.config import GeminiConfig, Settings
from app.core.errors import ErrorCode, ForensicsError, ai_error
from app.core.metrics import forensics_ai_calls_total, forensics_ai_latency_seconds
from app.utils.polling import PollTimeout, poll_until

logger = structlog.get_logger(__name__)

_RATE_LIMITED = 429

FILE_ACTIVE = "ACTIVE"
FILE_FAILED = "FAILED"


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


def file_part(uri: str, mime_type: str) -> types.Part:
    return types.Part(file_data=types.FileData(file_uri=uri, mime_type=mime_type))


def extract_raw_output(outputs: Sequence[Any] | None) -> str:
    """Join every text-bearing interaction output with blank lines."""
    if not outputs:
        return ""
    texts: list[str] = []
    for output in outputs:
        if isinstance(output, str):
            texts.append(output)
            continue
        text = output.get("text") if isinstance(output, dict) else getattr(output, "text", None)
        if isinstance(text, str):
            texts.append(text)
    return "\n\n".join(texts)


@dataclass(frozen=True)
class UploadedFile:
    name: str
    uri: str
    mime_type: str
    state: str


@dataclass
class InteractionSnapshot:
    status: str
    outputs: list[Any] = field(default_factory=list)


def _state_name(state: Any) -> str:
    if state is None:
        return ""
    return str(getattr(state, "name", state)).upper()


def _to_uploaded(file: types.File) -> UploadedFile:
    return UploadedFile(
        name=file.name or "",
        uri=file.uri or "",
        mime_type=file.mime_type or "",
        state=_state_name(file.state),
    )


def _map_api_error(operation: str, error: genai_errors.APIError) -> ForensicsError:
    if error.code == _RATE_LIMITED:
        return ai_error(ErrorCode.AI_RATE_LIMITED, operation, "rate limited by Gemini")
    return ai_error(ErrorCode.AI_NO_RESPONSE, operation, error.message or str(error))


class GeminiProvider:
    """Async wrapper around ``genai.Client`` for one configured model."""

    def __init__(self, config: GeminiConfig, client: genai.Client | None = None) -> None:
        self._config = config
        self._client = client

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self._config.api_key.get_secret_value(),
                http_options=types.HttpOptions(timeout=self._config.timeout_seconds * 1000),
            )
        return self._client

    async def generate(
        self,
        parts: Sequence[types.Part | str],
        *,
        operation: str,
        system_instruction: str | None = None,
        search: bool = False,
        response_schema: type[BaseModel] | None = None,
    ) -> str:
        """Run one ``generate_content`` call and return its text.

        ``search`` enables Google Search grounding; ``response_schema`` forces a
        JSON response shaped like the given model. The two are not combined.
        Empty text raises ``AI_NO_RESPONSE``.
        """
        config = types.GenerateContentConfig(system_instruction=system_instruction)
        if search:
            config.tools = [types.Tool(google_search=types.GoogleSearch())]
        if response_schema is not None:
            config.response_mime_type = "application/json"
            config.response_schema = response_schema

        contents = [text_part(part) if isinstance(part, str) else part for part in parts]
        started = time.perf_counter()
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self._config.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            forensics_ai_calls_total.labels(operation=operation, status="error").inc()
            logger.warning("Gemini call failed", operation=operation, status_code=e.code)
            raise _map_api_error(operation, e) from e
        finally:
            forensics_ai_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - started
            )

        text = (response.text or "").strip()
        if not text:
            forensics_ai_calls_total.labels(operation=operation, status="error").inc()
            raise ai_error(ErrorCode.AI_NO_RESPONSE, operation, "No response from Gemini")

        forensics_ai_calls_total.labels(operation=operation, status="success").inc()
        logger.debug("Gemini call completed", operation=operation, chars=len(text))
        return text

    async def upload_file(self, local_path: Path, mime_type: str) -> UploadedFile:
        try:
            file = await self._get_client().aio.files.upload(
                file=str(local_path),
                config=types.UploadFileConfig(mime_type=mime_type),
            )
        except genai_errors.APIError as e:
            raise ForensicsError(
                ErrorCode.MEDIA_PROCESSING_FAILED,
                f"Failed to upload media: {e.message or e}",
                service="gemini",
                operation="upload_file",
            ) from e
        return _to_uploaded(file)

    async def get_file(self, name: str) -> UploadedFile:
        file = await self._get_client().aio.files.get(name=name)
        return _to_uploaded(file)

    async def wait_until_active(
        self,
        file: UploadedFile,
        *,
        interval_seconds: float,
        max_attempts: int,
    ) -> UploadedFile:
        """Poll an uploaded file until it is usable in a prompt."""
        if file.state == FILE_ACTIVE:
            return file
        try:
            result = await poll_until(
                lambda: self.get_file(file.name),
                lambda current: current.state in (FILE_ACTIVE, FILE_FAILED),
                interval_seconds=interval_seconds,
                max_attempts=max_attempts,
            )
        except PollTimeout as e:
            raise ForensicsError(
                ErrorCode.MEDIA_PROCESSING_TIMEOUT,
                f"Media processing timed out after {e.attempts} checks",
                service="gemini",
                operation="wait_until_active",
                context={"file": file.name},
            ) from e

        if result.value.state == FILE_FAILED:
            raise ForensicsError(
                ErrorCode.MEDIA_PROCESSING_FAILED,
                "Media processing failed",
                service="gemini",
                operation="wait_until_active",
                context={"file": file.name},
            )
        return result.value

    async def delete_file(self, name: str) -> None:
        """Best-effort removal of an uploaded file."""
        try:
            await self._get_client().aio.files.delete(name=name)
        except genai_errors.APIError:
            logger.warning("Failed to delete uploaded media", file=name, exc_info=True)

    async def create_interaction(self, input: str) -> str:
        """Start a background deep-research interaction and return its id."""
        try:
            interaction = await self._get_client().aio.interactions.create(
                agent=self._config.deep_research_agent,
                input=input,
                background=True,
            )
        except genai_errors.APIError as e:
            forensics_ai_calls_total.labels(operation="investigation_start", status="error").inc()
            raise _map_api_error("Investigation start", e) from e

        forensics_ai_calls_total.labels(operation="investigation_start", status="success").inc()
        return interaction.id

    async def get_interaction(self, interaction_id: str) -> InteractionSnapshot:
        try:
            interaction = await self._get_client().aio.interactions.get(interaction_id)
        except genai_errors.APIError as e:
            raise _map_api_error("Investigation status", e) from e
        return InteractionSnapshot(
            status=str(interaction.status or "").lower(),
            outputs=list(interaction.outputs or []),
        )


def get_gemini_provider(settings: Settings) -> GeminiProvider:
    """Return the configured Gemini provider."""
    return GeminiProvider(settings.gemini)
