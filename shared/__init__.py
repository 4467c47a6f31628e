"""
Shared utilities for the Access Shield.

This package aggregates common building blocks consumed by the shield:

- config: Settings via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus decision metrics
- errors: Canonical error types and responses
- test_helpers: Test contexts and a mock request pipeline

Do not import from service_* packages into shared/.
"""
