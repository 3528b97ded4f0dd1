"""
Metrics Aggregation Gateway service package.

The gateway fronts a fixed list of upstream services and exposes their
log-style metric entries raw, filtered by level, or summarized into
per-level counters across every service at once.

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.registry: Immutable registry of upstream targets.
- app.adapters: HTTP client used to fetch upstream metric entries.
- app.domain: Level filtering, aggregation engine, and query dispatch.
"""
