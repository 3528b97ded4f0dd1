"""
Adapters package for the aggregation gateway.

Contains the HTTP client that retrieves metric entries from upstream
services. Transport and payload errors are turned into values here so
nothing above this layer has to catch them.
"""

from .metrics_client import MetricsFetcher

__all__ = ["MetricsFetcher"]
