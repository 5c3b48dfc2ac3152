"""
Shared utilities for the Authority engine.

This package aggregates the ambient building blocks used by the engine:

- config: Engine configuration via pydantic-settings
- logging: Structured logging via structlog
- metrics: Prometheus counters for decisions and cache use
- errors: Canonical error types and responses
- test_helpers: Sample principals and records for tests

Engine logic lives in the ``authority`` package. Do not import from
``authority`` into shared/.
"""
