"""
Shared metrics configuration for the Access Shield.
"""

import time
from contextlib import contextmanager
from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Prometheus metrics for authorization decisions."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up decision metrics."""
        self._metrics["shield_decisions_total"] = Counter(
            "shield_decisions_total",
            "Total authorization decisions",
            ["service", "outcome"],
            registry=self.registry
        )

        self._metrics["shield_fallback_total"] = Counter(
            "shield_fallback_total",
            "Requests governed by the fallback rule",
            ["service"],
            registry=self.registry
        )

        self._metrics["shield_rule_evaluation_seconds"] = Histogram(
            "shield_rule_evaluation_seconds",
            "Rule evaluation duration in seconds",
            ["service"],
            registry=self.registry
        )

    def record_decision(self, outcome: str):
        """Record an outcome: allowed, denied, downstream_denied or handler_error."""
        self._metrics["shield_decisions_total"].labels(
            service=self.service_name, outcome=outcome
        ).inc()

    def record_fallback(self):
        """Record use of the fallback rule."""
        self._metrics["shield_fallback_total"].labels(service=self.service_name).inc()

    @contextmanager
    def time_evaluation(self):
        """Context manager to time a rule evaluation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self._metrics["shield_rule_evaluation_seconds"].labels(
                service=self.service_name
            ).observe(duration)

