"""
Mock upstream server hosting fake services that expose log-style metrics.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from shared.logging import get_logger


@dataclass
class MockUpstream:
    """One fake upstream service."""
    name: str
    entries: List[Dict[str, Any]] = field(default_factory=list)
    status_code: int = 200
    delay_seconds: float = 0.0


class MockUpstreamServer:
    """Serves every registered fake service at ``/{name}/metrics``."""

    def __init__(self, port: int = 8090, base_url: Optional[str] = None):
        self.port = port
        self.base_url = (base_url or f"http://localhost:{port}").rstrip("/")
        self.logger = get_logger("mock.upstream")
        self.app = FastAPI(title="Mock Upstream", version="1.0.0")

        self.services: Dict[str, MockUpstream] = {}
        self._create_default_services()

        self._setup_routes()

    def _create_default_services(self):
        """Create default services with sample entries."""
        self.add_service(
            "auth",
            [
                {"level": "info", "message": "User logged in", "timestamp": "2024-01-01T10:00:00Z"},
                {"level": "warn", "message": "Token close to expiry", "timestamp": "2024-01-01T10:01:00Z"},
                {"level": "info", "message": "Token refreshed", "timestamp": "2024-01-01T10:02:00Z"},
                {"level": "error", "message": "Invalid credentials", "timestamp": "2024-01-01T10:03:00Z"},
            ],
        )
        self.add_service(
            "orders",
            [
                {"level": "info", "message": "Order created", "timestamp": "2024-01-01T10:00:00Z"},
                {"level": "error", "message": "Payment declined", "timestamp": "2024-01-01T10:05:00Z"},
                {"level": "error", "message": "Stock unavailable", "timestamp": "2024-01-01T10:06:00Z"},
            ],
        )

    def add_service(self, name: str, entries: Optional[List[Dict[str, Any]]] = None,
                    status_code: int = 200, delay_seconds: float = 0.0) -> MockUpstream:
        """Register or replace a fake service."""
        upstream = MockUpstream(
            name=name,
            entries=list(entries or []),
            status_code=status_code,
            delay_seconds=delay_seconds,
        )
        self.services[name] = upstream
        return upstream

    def service_url(self, name: str) -> str:
        return f"{self.base_url}/{name}/metrics"

    def services_list(self) -> List[Dict[str, str]]:
        """Gateway configuration pointing at every fake service."""
        return [{"name": name, "url": self.service_url(name)} for name in self.services]

    def _setup_routes(self):
        """Set up mock routes."""

        @self.app.get("/{name}/metrics")
        async def get_metrics(name: str):
            upstream = self.services.get(name)
            if upstream is None:
                raise HTTPException(status_code=404, detail=f"Unknown service: {name}")

            if upstream.delay_seconds:
                await asyncio.sleep(upstream.delay_seconds)

            self.logger.debug("Serving mock metrics", upstream=name, status_code=upstream.status_code)
            if upstream.status_code >= 400:
                return JSONResponse(status_code=upstream.status_code, content={"error": "mock failure"})
            return upstream.entries

        @self.app.get("/health")
        async def health():
            return {"status": "ok", "services": list(self.services)}


def create_app():
    """Create mock upstream application."""
    return MockUpstreamServer().app


if __name__ == "__main__":
    import uvicorn

    server = MockUpstreamServer()
    uvicorn.run(server.app, host="0.0.0.0", port=server.port)
