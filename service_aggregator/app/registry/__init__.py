"""Upstream service registry."""

from .services import ServiceTarget, ServiceRegistry

__all__ = ["ServiceTarget", "ServiceRegistry"]
