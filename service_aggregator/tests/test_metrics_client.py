"""
Unit tests for the upstream metrics client.
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import structlog

from service_aggregator.app.adapters.metrics_client import MetricsFetcher
from service_aggregator.app.domain.outcomes import FetchFailure, FetchSuccess
from service_aggregator.app.registry import ServiceTarget
from shared.metrics import MetricsCollector


def make_transport(handler):
    """Wrap a request handler in an httpx mock transport."""
    return httpx.MockTransport(handler)


class TestMetricsFetcher:
    """Test cases for MetricsFetcher."""

    @pytest.fixture
    def target(self):
        """Upstream target."""
        return ServiceTarget(name="service1", url="http://service1/api/metrics")

    @pytest.fixture
    def mock_entries(self):
        """Mock upstream entries."""
        return [
            {"level": "info", "message": "started"},
            {"level": "warn", "message": "slow query", "duration_ms": 1200},
        ]

    @pytest.mark.asyncio
    async def test_fetch_success(self, target, mock_entries):
        """Test entries are returned untouched on a 200 response."""
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, json=mock_entries)

        fetcher = MetricsFetcher(transport=make_transport(handler))
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchSuccess)
        assert outcome.ok is True
        assert outcome.entries == mock_entries
        assert outcome.target is target
        assert requested == ["http://service1/api/metrics"]

    @pytest.mark.asyncio
    async def test_fetch_empty_array(self, target):
        """Test an empty array is a success with no entries."""
        fetcher = MetricsFetcher(transport=make_transport(lambda request: httpx.Response(200, json=[])))
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchSuccess)
        assert outcome.entries == []

    @pytest.mark.asyncio
    async def test_connection_error_becomes_failure(self, target):
        """Test connection refusal does not raise."""
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        fetcher = MetricsFetcher(transport=make_transport(handler))
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.ok is False
        assert outcome.message == "Connection refused"
        assert outcome.target.name == "service1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 500, 503])
    async def test_non_success_status_becomes_failure(self, target, status_code):
        """Test non-2xx responses are failures."""
        fetcher = MetricsFetcher(
            transport=make_transport(lambda request: httpx.Response(status_code, json={"error": "boom"}))
        )
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.message == f"Request failed with status code {status_code}"

    @pytest.mark.asyncio
    async def test_invalid_json_becomes_failure(self, target):
        """Test a non-JSON body is a failure."""
        fetcher = MetricsFetcher(
            transport=make_transport(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        )
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.message.startswith("Invalid JSON in metrics response")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload, expected", [
        ({"level": "info"}, "Expected a JSON array of metric entries, got dict"),
        ("info", "Expected a JSON array of metric entries, got str"),
        ([{"level": "info"}, "warn"], "Metric entry at position 1 is not an object"),
    ])
    async def test_unexpected_shape_becomes_failure(self, target, payload, expected):
        """Test bodies that are not arrays of objects are failures."""
        fetcher = MetricsFetcher(
            transport=make_transport(lambda request: httpx.Response(200, json=payload))
        )
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.message == expected

    @pytest.mark.asyncio
    async def test_timeout_becomes_failure(self, target):
        """Test a timeout with an empty message still yields a readable reason."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.get = AsyncMock(
                side_effect=httpx.ReadTimeout("")
            )

            outcome = await MetricsFetcher().fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.message == "ReadTimeout"

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self, target):
        """Test failures are not retried."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        fetcher = MetricsFetcher(transport=make_transport(handler))
        await fetcher.fetch(target)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_default_timeout_applied(self, target):
        """Test the gateway default timeout is used when the target has none."""
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.get = AsyncMock(
                return_value=httpx.Response(
                    status_code=200,
                    content=json.dumps([]),
                    request=httpx.Request("GET", target.url)
                )
            )

            await MetricsFetcher(default_timeout=3.0).fetch(target)

            assert mock_client.return_value.get.call_args.kwargs["timeout"] == 3.0

    @pytest.mark.asyncio
    async def test_target_timeout_overrides_default(self):
        """Test a per-target timeout wins over the default."""
        target = ServiceTarget(name="slow", url="http://slow/metrics", timeout=30.0)

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.get = AsyncMock(
                return_value=httpx.Response(
                    status_code=200,
                    content=json.dumps([]),
                    request=httpx.Request("GET", target.url)
                )
            )

            await MetricsFetcher(default_timeout=3.0).fetch(target)

            assert mock_client.return_value.get.call_args.kwargs["timeout"] == 30.0

    @pytest.mark.asyncio
    async def test_fetch_outcomes_recorded(self, target):
        """Test fetch outcomes are counted in Prometheus metrics."""
        collector = MetricsCollector("aggregator")
        responses = iter([httpx.Response(200, json=[]), httpx.Response(500)])
        fetcher = MetricsFetcher(
            transport=make_transport(lambda request: next(responses)),
            metrics=collector,
        )

        await fetcher.fetch(target)
        await fetcher.fetch(target)

        registry = collector.registry
        assert registry.get_sample_value(
            "upstream_fetch_total", {"service": "service1", "outcome": "success"}
        ) == 1.0
        assert registry.get_sample_value(
            "upstream_fetch_total", {"service": "service1", "outcome": "failure"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_deeply_nested_json_becomes_failure(self, target):
        """Test a body nested past the decoder's recursion limit is a failure."""
        body = b"[" * 100000 + b"]" * 100000
        fetcher = MetricsFetcher(
            transport=make_transport(lambda request: httpx.Response(200, content=body))
        )
        outcome = await fetcher.fetch(target)

        assert isinstance(outcome, FetchFailure)
        assert outcome.message.startswith("Invalid JSON in metrics response")


class ClosingTransport(httpx.MockTransport):
    """Mock transport that counts aclose calls."""

    def __init__(self, handler):
        super().__init__(handler)
        self.closed = 0

    async def aclose(self):
        self.closed += 1


class TestMetricsFetcherLifecycle:
    """Test cases for the shared HTTP client."""

    @pytest.mark.asyncio
    async def test_transport_stays_open_across_fetches(self):
        """Test concurrent fetches share one client without closing its transport."""
        transport = ClosingTransport(lambda request: httpx.Response(200, json=[{"level": "info"}]))
        fetcher = MetricsFetcher(transport=transport)
        targets = [ServiceTarget(name=f"service{i}", url=f"http://service{i}/metrics") for i in range(3)]

        outcomes = await asyncio.gather(*[fetcher.fetch(target) for target in targets])

        assert all(isinstance(outcome, FetchSuccess) for outcome in outcomes)
        assert transport.closed == 0

        await fetcher.close()

        assert transport.closed == 1

    @pytest.mark.asyncio
    async def test_upstream_bound_during_fetch(self):
        """Test the upstream name and URL are bound for log events during a fetch only."""
        target = ServiceTarget(name="service1", url="http://service1/api/metrics")
        seen = []

        def handler(request):
            seen.append(dict(structlog.contextvars.get_contextvars()))
            return httpx.Response(200, json=[])

        await MetricsFetcher(transport=make_transport(handler)).fetch(target)

        assert seen[0]["upstream"] == "service1"
        assert seen[0]["upstream_url"] == "http://service1/api/metrics"
        assert "upstream" not in structlog.contextvars.get_contextvars()
