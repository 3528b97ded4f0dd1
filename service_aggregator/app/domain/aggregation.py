"""
Aggregation engine: concurrent fan-out across every registered service.
"""

import asyncio
import time
from typing import TYPE_CHECKING, List, Optional, Sequence

from shared.errors import AggregationFailedError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..registry import ServiceRegistry, ServiceTarget
from .outcomes import (
    AggregateReport,
    FetchFailure,
    FetchOutcome,
    MetricEntry,
    ServiceErrorReport,
    ServiceStats,
    ServiceSummary,
)

if TYPE_CHECKING:
    from ..adapters.metrics_client import MetricsFetcher

# Counter name -> level value counted into it
LEVEL_COUNTERS = {
    "success": "info",
    "warn": "warn",
    "error": "error",
}

FETCH_ERROR_PREFIX = "Error fetching metrics"


def summarize_entries(entries: Sequence[MetricEntry]) -> ServiceStats:
    """Count entries per level into success/warn/error."""
    counts = {counter: 0 for counter in LEVEL_COUNTERS}
    for entry in entries:
        level = entry.get("level")
        for counter, counted_level in LEVEL_COUNTERS.items():
            if level == counted_level:
                counts[counter] += 1
    return ServiceStats(**counts)


class AggregationEngine:
    """Summarizes the metrics of every registered service in one call.

    One fetch per service runs concurrently and the call waits for all of
    them. A failing service becomes an error entry in the report without
    touching its siblings. Reports always come back in registry order.
    """

    def __init__(self, registry: ServiceRegistry, fetcher: "MetricsFetcher",
                 metrics: Optional[MetricsCollector] = None):
        self.registry = registry
        self.fetcher = fetcher
        self.metrics = metrics
        self.logger = get_logger("aggregator.aggregation")

    async def aggregate_all(self) -> List[AggregateReport]:
        """Return one report per registered service, in registry order."""
        targets = self.registry.list()
        start = time.perf_counter()

        try:
            outcomes = await self._collect(targets)
        except Exception as exc:
            self.logger.error(
                "Aggregation across services failed",
                error=str(exc),
                services=len(targets),
                exc_info=True,
            )
            self._record("error", start)
            raise AggregationFailedError(details={"error": str(exc)}) from exc

        reports = [self._report(target, outcome) for target, outcome in zip(targets, outcomes)]
        failed = sum(1 for report in reports if isinstance(report, ServiceErrorReport))

        self._record("ok", start)
        self.logger.info(
            "Aggregation completed",
            services=len(reports),
            failed=failed,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return reports

    async def _collect(self, targets: Sequence[ServiceTarget]) -> List[object]:
        """Fetch every target concurrently; results are positional."""
        tasks = [self.fetcher.fetch(target) for target in targets]
        return await asyncio.gather(*tasks, return_exceptions=True)

    def _report(self, target: ServiceTarget, outcome: object) -> AggregateReport:
        if isinstance(outcome, BaseException):
            # The fetcher returns failures as values; anything raised is unexpected
            self.logger.error(
                "Metrics fetch task raised",
                upstream=target.name,
                error=str(outcome),
                error_type=type(outcome).__name__,
            )
            return ServiceErrorReport(
                name=target.name,
                error=f"{FETCH_ERROR_PREFIX}: {str(outcome) or type(outcome).__name__}",
            )

        fetched: FetchOutcome = outcome  # type: ignore[assignment]
        if isinstance(fetched, FetchFailure):
            return ServiceErrorReport(name=target.name, error=f"{FETCH_ERROR_PREFIX}: {fetched.message}")

        return ServiceSummary(name=target.name, stats=summarize_entries(fetched.entries))

    def _record(self, status: str, start: float) -> None:
        if self.metrics is not None:
            self.metrics.record_aggregation(status, time.perf_counter() - start)
