"""
Level filtering for metric entries.
"""

from typing import Iterable, List

from .outcomes import MetricEntry

# Accepted values for the {status} path parameter. Upstreams emit "warn",
# which the aggregate counters use; "warning" is what the filter accepts.
VALID_STATUSES = ("info", "warning", "error")

INVALID_STATUS_MESSAGE = f"Invalid status parameter. Must be one of: {', '.join(VALID_STATUSES)}"


def is_valid_status(level: str) -> bool:
    return level in VALID_STATUSES


def filter_by_level(entries: Iterable[MetricEntry], level: str) -> List[MetricEntry]:
    """Entries whose ``level`` equals level, in their original order."""
    return [entry for entry in entries if entry.get("level") == level]
