"""Deep investigation (Tier 2) service.

Starts background deep-research interactions, maps their remote status onto
the local ``Investigation`` state machine and formats completed research into
a structured report. Jobs are tracked in a bounded in-process map; interaction
ids are single-use.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict

import structlog
from opentelemetry import trace
from pydantic import ValidationError

from app.agent.state import Investigation, map_remote_status
from app.core.config import ForensicsConfig
from app.core.errors import ErrorCode, ForensicsError, ai_error
from app.core.metrics import (
    forensics_investigation_polls_total,
    forensics_investigations_started_total,
)
from app.llm.prompts.templates import INVESTIGATION_AGENT_PROMPT, REPORT_FORMAT_PROMPT
from app.llm.provider import GeminiProvider, extract_raw_output
from app.schemas.v1.common import InvestigationStatus
from app.schemas.v1.investigations import InvestigationReport
from app.utils.polling import PollCancelled, PollTimeout, poll_until

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class InvestigationTracker:
    """Bounded insertion-ordered map of known investigations."""

    def __init__(self, max_size: int = 1024) -> None:
        self._max_size = max_size
        self._items: OrderedDict[str, Investigation] = OrderedDict()

    def __contains__(self, interaction_id: str) -> bool:
        return interaction_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, interaction_id: str) -> Investigation | None:
        return self._items.get(interaction_id)

    def add(self, investigation: Investigation) -> None:
        self._items[investigation.interaction_id] = investigation
        while len(self._items) > self._max_size:
            evicted, _ = self._items.popitem(last=False)
            logger.debug("Evicted investigation from tracker", interaction_id=evicted)


class InvestigationService:
    """Investigation state machine over the Interactions API."""

    def __init__(
        self,
        provider: GeminiProvider,
        config: ForensicsConfig,
        tracker: InvestigationTracker | None = None,
    ) -> None:
        self._provider = provider
        self._config = config
        self._tracker = tracker or InvestigationTracker(config.investigation_tracker_size)

    async def start(self, charity_name: str, claim_context: str) -> Investigation:
        """Start a background investigation; the job begins in PROCESSING."""
        prompt = INVESTIGATION_AGENT_PROMPT.render(
            charity_name=charity_name, claim_context=claim_context
        )
        with tracer.start_as_current_span("investigation.start"):
            interaction_id = await self._provider.create_interaction(prompt)

        if interaction_id in self._tracker:
            raise ForensicsError(
                ErrorCode.INVESTIGATION_ID_REUSED,
                f"Interaction id already used: {interaction_id}",
                service="investigation",
                operation="start",
                context={"interaction_id": interaction_id},
            )

        investigation = Investigation(interaction_id=interaction_id, charity_name=charity_name)
        investigation.transition(InvestigationStatus.PROCESSING)
        self._tracker.add(investigation)
        forensics_investigations_started_total.inc()
        logger.info(
            "Investigation started",
            interaction_id=interaction_id,
            charity_name=charity_name,
        )
        return investigation

    async def poll(self, interaction_id: str) -> Investigation:
        """Refresh a job's status. Terminal jobs are returned without a remote call."""
        investigation = self._tracker.get(interaction_id)
        if investigation is None:
            investigation = Investigation(
                interaction_id=interaction_id, status=InvestigationStatus.PROCESSING
            )
            self._tracker.add(investigation)
        if investigation.is_terminal:
            forensics_investigation_polls_total.labels(status=investigation.status.value).inc()
            return investigation

        snapshot = await self._provider.get_interaction(interaction_id)
        status = map_remote_status(snapshot.status)
        raw_output = (
            extract_raw_output(snapshot.outputs)
            if status == InvestigationStatus.COMPLETED
            else None
        )
        investigation.transition(status, raw_output)
        forensics_investigation_polls_total.labels(status=investigation.status.value).inc()

        if investigation.is_terminal:
            logger.info(
                "Investigation finished",
                interaction_id=interaction_id,
                status=investigation.status.value,
                raw_output_chars=len(investigation.raw_output or ""),
            )
        return investigation

    async def format(self, raw_output: str) -> InvestigationReport:
        """Extract a structured report from completed research output."""
        raw = await self._provider.generate(
            [REPORT_FORMAT_PROMPT.render(raw_output=raw_output)],
            operation="report_format",
            system_instruction=REPORT_FORMAT_PROMPT.system_prompt,
            response_schema=InvestigationReport,
        )
        try:
            return InvestigationReport.model_validate_json(raw)
        except ValidationError as e:
            raise ai_error(ErrorCode.AI_PARSE_FAILED, "Report formatting", str(e)) from e

    async def status(self, interaction_id: str) -> Investigation:
        """Poll, and format the report once when the job has completed."""
        investigation = await self.poll(interaction_id)
        if (
            investigation.status == InvestigationStatus.COMPLETED
            and investigation.raw_output
            and investigation.report is None
        ):
            investigation.report = await self.format(investigation.raw_output)
        return investigation

    async def wait_for_completion(
        self,
        interaction_id: str,
        *,
        interval_seconds: float,
        max_attempts: int,
        cancel: asyncio.Event | None = None,
    ) -> Investigation:
        """Poll until the job is final or the attempt budget runs out.

        Giving up raises ``INVESTIGATION_POLL_TIMEOUT`` and leaves the job's
        status as it was.
        """
        try:
            result = await poll_until(
                lambda: self.poll(interaction_id),
                lambda investigation: investigation.is_terminal,
                interval_seconds=interval_seconds,
                max_attempts=max_attempts,
                cancel=cancel,
            )
        except (PollTimeout, PollCancelled) as e:
            raise ForensicsError(
                ErrorCode.INVESTIGATION_POLL_TIMEOUT,
                f"Investigation {interaction_id} did not finish in time",
                service="investigation",
                operation="wait_for_completion",
                context={"interaction_id": interaction_id},
            ) from e
        return result.value
