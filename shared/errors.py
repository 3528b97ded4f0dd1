"""
Shared error handling for the Metrics Aggregation Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class AggregatorException(Exception):
    """Base exception for gateway errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ServiceNotFoundError(AggregatorException):
    """Requested service name is not registered."""

    status_code = 404

    def __init__(self, name: str, message: str = "Service not found"):
        super().__init__("SERVICE_NOT_FOUND", message, {"service": name})


class InvalidParameterError(AggregatorException):
    """Request parameter outside its accepted vocabulary."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_PARAMETER", message, details)


class UpstreamFetchError(AggregatorException):
    """Metrics could not be retrieved from one upstream service."""

    status_code = 500

    def __init__(self, service: str, reason: str):
        super().__init__(
            "UPSTREAM_FETCH_ERROR",
            f"Could not fetch metrics from {service}, {reason}",
            {"service": service, "reason": reason},
        )


class AggregationFailedError(AggregatorException):
    """The fan-out across all services failed as a whole."""

    status_code = 500

    def __init__(self, message: str = "Failed to fetch metrics from services",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("AGGREGATION_FAILED", message, details)


class ConfigurationError(AggregatorException):
    """Invalid startup configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
