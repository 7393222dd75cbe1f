"""Creator identity OSINT via grounded search followed by schema extraction."""

from __future__ import annotations

from pydantic import ValidationError

from app.collectors.base import BaseCollector, CollectorResult
from app.core.errors import ErrorCode, ForensicsError, ai_error
from app.llm.prompts.templates import (
    IDENTITY_EXTRACTION_PROMPT,
    IDENTITY_SEARCH_PROMPT,
    format_identity,
)
from app.llm.provider import GeminiProvider
from app.schemas.v1.forensics import CreatorIdentity, IdentityForensics


class IdentityCollector(BaseCollector[CreatorIdentity, IdentityForensics | None]):
    """Returns ``None`` on any failure, never a partial record."""

    def __init__(self, provider: GeminiProvider) -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return "identity"

    async def collect(self, data: CreatorIdentity) -> CollectorResult[IdentityForensics | None]:
        identity = format_identity(data.full_name, data.username, data.email)
        try:
            findings = await self._provider.generate(
                [IDENTITY_SEARCH_PROMPT.render(identity=identity)],
                operation="identity_search",
                system_instruction=IDENTITY_SEARCH_PROMPT.system_prompt,
                search=True,
            )
            extracted = await self._provider.generate(
                [IDENTITY_EXTRACTION_PROMPT.render(findings=findings)],
                operation="identity_extract",
                system_instruction=IDENTITY_EXTRACTION_PROMPT.system_prompt,
                response_schema=IdentityForensics,
            )
            return CollectorResult.success(IdentityForensics.model_validate_json(extracted))
        except ValidationError as e:
            return CollectorResult.degraded(
                None, ai_error(ErrorCode.AI_PARSE_FAILED, "Identity extraction", str(e))
            )
        except ForensicsError as e:
            return CollectorResult.degraded(None, e)
