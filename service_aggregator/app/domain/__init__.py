"""
Domain logic for the aggregation gateway.

- outcomes: per-service fetch results and aggregate report shapes
- filters: level filtering and the accepted status vocabulary
- aggregation: concurrent fan-out and level counters
- dispatcher: maps requests onto registry, fetcher, filter, and engine
"""

from .outcomes import FetchSuccess, FetchFailure, FetchOutcome, ServiceStats, ServiceSummary, ServiceErrorReport
from .filters import filter_by_level, VALID_STATUSES
from .aggregation import AggregationEngine
from .dispatcher import QueryDispatcher

__all__ = [
    "FetchSuccess",
    "FetchFailure",
    "FetchOutcome",
    "ServiceStats",
    "ServiceSummary",
    "ServiceErrorReport",
    "filter_by_level",
    "VALID_STATUSES",
    "AggregationEngine",
    "QueryDispatcher",
]
