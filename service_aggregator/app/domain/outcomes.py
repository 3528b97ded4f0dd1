"""
Result types for upstream fetches and aggregate reports.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from pydantic import BaseModel

from ..registry import ServiceTarget

MetricEntry = Dict[str, Any]


@dataclass(frozen=True)
class FetchSuccess:
    """Entries retrieved from one upstream service."""
    target: ServiceTarget
    entries: List[MetricEntry] = field(default_factory=list)

    ok = True


@dataclass(frozen=True)
class FetchFailure:
    """Why entries could not be retrieved from one upstream service."""
    target: ServiceTarget
    message: str

    ok = False


FetchOutcome = Union[FetchSuccess, FetchFailure]


class ServiceStats(BaseModel):
    """Per-level counters for one service."""

    success: int = 0
    warn: int = 0
    error: int = 0


class ServiceSummary(BaseModel):
    """Aggregate report entry for a service that answered."""

    name: str
    stats: ServiceStats


class ServiceErrorReport(BaseModel):
    """Aggregate report entry for a service that could not be queried."""

    name: str
    error: str


AggregateReport = Union[ServiceSummary, ServiceErrorReport]
