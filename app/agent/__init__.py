"""Deep investigation job state."""

from app.agent.state import TERMINAL_STATUSES, Investigation, map_remote_status

__all__ = [
    "Investigation",
    "TERMINAL_STATUSES",
    "map_remote_status",
]
