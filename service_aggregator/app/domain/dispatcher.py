"""
Query dispatcher: maps read requests onto the registry, fetcher, filter,
and aggregation engine.
"""

from typing import TYPE_CHECKING, List, Optional

from shared.errors import InvalidParameterError, ServiceNotFoundError, UpstreamFetchError
from shared.logging import get_logger

from ..registry import ServiceRegistry, ServiceTarget
from .aggregation import AggregationEngine
from .filters import INVALID_STATUS_MESSAGE, VALID_STATUSES, filter_by_level, is_valid_status
from .outcomes import AggregateReport, FetchFailure, MetricEntry

if TYPE_CHECKING:
    from ..adapters.metrics_client import MetricsFetcher


class QueryDispatcher:
    """Stateless request handling over injected collaborators."""

    def __init__(self, registry: ServiceRegistry, fetcher: "MetricsFetcher",
                 engine: AggregationEngine):
        self.registry = registry
        self.fetcher = fetcher
        self.engine = engine
        self.logger = get_logger("aggregator.dispatcher")

    def list_services(self) -> List[ServiceTarget]:
        return self.registry.list()

    async def get_service_metrics(self, name: str, level: Optional[str] = None) -> List[MetricEntry]:
        """Entries of one service, optionally filtered by level.

        Raises:
            ServiceNotFoundError: name is not registered.
            InvalidParameterError: level is outside the accepted vocabulary.
                Checked before any upstream call.
            UpstreamFetchError: the upstream could not be queried.
        """
        target = self.registry.find(name)
        if target is None:
            self.logger.info("Unknown service requested", upstream=name)
            raise ServiceNotFoundError(name)

        if level is not None and not is_valid_status(level):
            raise InvalidParameterError(
                INVALID_STATUS_MESSAGE,
                details={"status": level, "allowed": list(VALID_STATUSES)},
            )

        outcome = await self.fetcher.fetch(target)
        if isinstance(outcome, FetchFailure):
            raise UpstreamFetchError(target.name, outcome.message)

        if level is None:
            return outcome.entries
        return filter_by_level(outcome.entries, level)

    async def get_all_metrics(self) -> List[AggregateReport]:
        """Per-service summaries; raises AggregationFailedError if the fan-out fails."""
        return await self.engine.aggregate_all()
