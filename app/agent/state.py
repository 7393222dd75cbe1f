"""Deep investigation job state.

An investigation moves PENDING -> PROCESSING -> COMPLETED | FAILED. The two
terminal states are final: once reached, later status observations are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.schemas.v1.common import InvestigationStatus
from app.schemas.v1.investigations import InvestigationReport
from app.utils.clock import utc_now

TERMINAL_STATUSES = frozenset({InvestigationStatus.COMPLETED, InvestigationStatus.FAILED})

_REMOTE_STATUS_MAP = {
    "completed": InvestigationStatus.COMPLETED,
    "failed": InvestigationStatus.FAILED,
    "cancelled": InvestigationStatus.FAILED,
}


def map_remote_status(status: str) -> InvestigationStatus:
    """Map a remote job status; anything unknown is still processing."""
    return _REMOTE_STATUS_MAP.get(status.lower(), InvestigationStatus.PROCESSING)


@dataclass
class Investigation:
    """One tracked deep-research job."""

    interaction_id: str
    charity_name: str = ""
    status: InvestigationStatus = InvestigationStatus.PENDING
    raw_output: str | None = None
    report: InvestigationReport | None = None
    started_at: str = field(default_factory=lambda: utc_now().isoformat())
    updated_at: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(self, status: InvestigationStatus, raw_output: str | None = None) -> bool:
        """Apply an observed status. Returns False if the job was already final."""
        if self.is_terminal:
            return False
        self.status = status
        if status == InvestigationStatus.COMPLETED:
            self.raw_output = raw_output or ""
        self.updated_at = utc_now().isoformat()
        return True
