"""
Upstream metrics client for the aggregation gateway.
"""

import time
from typing import Any, List, Optional

import httpx

from shared.logging import get_logger, upstream_context
from shared.metrics import MetricsCollector

from ..domain.outcomes import FetchFailure, FetchOutcome, FetchSuccess, MetricEntry
from ..registry import ServiceTarget


class MalformedPayloadError(ValueError):
    """Upstream body is not a JSON array of objects."""


class MetricsFetcher:
    """Retrieves the metric entries of one upstream service per call.

    Every call makes exactly one GET to the target URL. Connection errors,
    timeouts, non-2xx statuses, and malformed bodies are returned as a
    ``FetchFailure`` carrying the underlying error text; ``fetch`` itself
    never raises for them.

    One ``httpx.AsyncClient`` is shared by all calls, so its connection pool
    outlives individual fetches; ``close`` releases it on shutdown.
    """

    def __init__(self, default_timeout: Optional[float] = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.default_timeout = default_timeout
        self.metrics = metrics
        self.logger = get_logger("aggregator.metrics_client")
        self._client = httpx.AsyncClient(timeout=default_timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def fetch(self, target: ServiceTarget) -> FetchOutcome:
        """Fetch and parse the metric entries of target."""
        timeout = target.timeout if target.timeout is not None else self.default_timeout
        start = time.perf_counter()

        with upstream_context(target.name, target.url):
            try:
                response = await self._client.get(target.url, timeout=timeout)

                if not response.is_success:
                    raise httpx.HTTPStatusError(
                        f"Request failed with status code {response.status_code}",
                        request=response.request,
                        response=response,
                    )

                entries = self._parse_entries(response)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
                message = self._describe(exc)
                self._record(target, "failure", start)
                self.logger.warning(
                    "Upstream metrics fetch failed",
                    error=message,
                    error_type=type(exc).__name__,
                )
                return FetchFailure(target=target, message=message)

            self._record(target, "success", start)
            self.logger.debug("Upstream metrics retrieved", entries=len(entries))
            return FetchSuccess(target=target, entries=entries)

    @staticmethod
    def _parse_entries(response: httpx.Response) -> List[MetricEntry]:
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise MalformedPayloadError(f"Invalid JSON in metrics response: {exc}") from exc
        except RecursionError as exc:
            raise MalformedPayloadError("Invalid JSON in metrics response: nesting too deep") from exc

        if not isinstance(payload, list):
            raise MalformedPayloadError(
                f"Expected a JSON array of metric entries, got {type(payload).__name__}"
            )
        for position, entry in enumerate(payload):
            if not isinstance(entry, dict):
                raise MalformedPayloadError(
                    f"Metric entry at position {position} is not an object"
                )
        return payload

    @staticmethod
    def _describe(exc: Exception) -> str:
        # Some httpx timeouts carry an empty message
        return str(exc) or type(exc).__name__

    def _record(self, target: ServiceTarget, outcome: str, start: float) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_fetch(target.name, outcome, time.perf_counter() - start)
