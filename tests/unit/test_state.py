"""Unit tests for investigation state transitions."""

import pytest

from app.agent.state import Investigation, map_remote_status
from app.schemas.v1.common import InvestigationStatus


@pytest.mark.parametrize(
    ("remote", "expected"),
    [
        ("completed", InvestigationStatus.COMPLETED),
        ("COMPLETED", InvestigationStatus.COMPLETED),
        ("failed", InvestigationStatus.FAILED),
        ("cancelled", InvestigationStatus.FAILED),
        ("in_progress", InvestigationStatus.PROCESSING),
        ("", InvestigationStatus.PROCESSING),
    ],
)
def test_map_remote_status(remote, expected):
    assert map_remote_status(remote) == expected


def test_new_investigation_is_pending():
    investigation = Investigation(interaction_id="int-1")

    assert investigation.status == InvestigationStatus.PENDING
    assert not investigation.is_terminal
    assert investigation.updated_at is None


def test_completion_records_raw_output():
    investigation = Investigation(interaction_id="int-1")

    assert investigation.transition(InvestigationStatus.PROCESSING)
    assert investigation.transition(InvestigationStatus.COMPLETED, "report text")

    assert investigation.is_terminal
    assert investigation.raw_output == "report text"
    assert investigation.updated_at is not None


@pytest.mark.parametrize("final", [InvestigationStatus.COMPLETED, InvestigationStatus.FAILED])
def test_terminal_states_are_final(final):
    investigation = Investigation(interaction_id="int-1")
    investigation.transition(final, "first")

    assert investigation.transition(InvestigationStatus.PROCESSING) is False
    assert investigation.transition(InvestigationStatus.COMPLETED, "second") is False
    assert investigation.status == final
