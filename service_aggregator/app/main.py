"""
Metrics aggregation gateway service.
"""

from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters.metrics_client import MetricsFetcher
from .domain.aggregation import AggregationEngine
from .domain.dispatcher import QueryDispatcher
from .registry import ServiceRegistry

ERROR_RESPONSES = {
    400: {"description": "Invalid status parameter"},
    404: {"description": "Service not found"},
    500: {"description": "Upstream service could not be queried"},
}


class AggregatorService(BaseService):
    """Gateway exposing raw, filtered, and summarized upstream metrics."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 registry: Optional[ServiceRegistry] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("aggregator", config)

        self.registry = registry or ServiceRegistry.from_config(self.config.services_list)
        self.fetcher = MetricsFetcher(
            default_timeout=self.config.upstream_timeout,
            transport=transport,
            metrics=self.metrics,
        )
        self.engine = AggregationEngine(self.registry, self.fetcher, metrics=self.metrics)
        self.dispatcher = QueryDispatcher(self.registry, self.fetcher, self.engine)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.fetcher.close()

        self.app.include_router(self._build_router())
        self.app.state.aggregator_service = self

        self.logger.info(
            "Aggregator service initialized",
            services=self.registry.names(),
            api_prefix=self.config.api_prefix,
        )

    def _build_router(self) -> APIRouter:
        """Metrics routes, mounted under the configured prefix."""
        prefix = self.config.api_prefix.rstrip("/")
        router = APIRouter(prefix=prefix, tags=["Metrics"])
        dispatcher = self.dispatcher

        async def get_all_metrics() -> List[Dict[str, Any]]:
            """Per-level counters for each service, in registry order.

            Services that cannot be queried appear with an ``error`` field
            instead of ``stats``.
            """
            reports = await dispatcher.get_all_metrics()
            return [report.model_dump() for report in reports]

        router.add_api_route("/", get_all_metrics, methods=["GET"],
                             summary="Summarized metrics of every service")
        if prefix:
            # Serve the bare prefix as well as the trailing-slash form
            router.add_api_route("", get_all_metrics, methods=["GET"], include_in_schema=False)

        @router.get("/services", summary="List the configured services")
        async def get_services() -> List[Dict[str, str]]:
            return [target.public_view() for target in dispatcher.list_services()]

        @router.get("/{name}", summary="Metrics of one service", responses=ERROR_RESPONSES)
        async def get_service_metrics(name: str) -> List[Dict[str, Any]]:
            return await dispatcher.get_service_metrics(name)

        @router.get(
            "/{name}/{status}",
            summary="Metrics of one service filtered by level",
            responses=ERROR_RESPONSES,
        )
        async def get_service_metrics_with_status(name: str, status: str) -> List[Dict[str, Any]]:
            """Entries whose level equals status (one of info, warning, error)."""
            return await dispatcher.get_service_metrics(name, level=status)

        return router

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report the registry size; upstreams are not probed."""
        return {"registry": "ok", "services": len(self.registry)}


def create_app(config: Optional[ServiceConfig] = None,
               registry: Optional[ServiceRegistry] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create aggregator service application."""
    service = AggregatorService(config=config, registry=registry, transport=transport)
    return service.app


if __name__ == "__main__":
    service = AggregatorService()
    service.run()
