"""
Shared utilities for the Metrics Aggregation Gateway.

This package holds the building blocks every service module consumes:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffold

Do not import from service_* packages into shared/.
"""
