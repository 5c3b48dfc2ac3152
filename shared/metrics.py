"""
Shared metrics configuration for the Authority engine.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Prometheus metrics for a single engine instance.

    Each collector owns its registry unless one is passed in, so several
    engines in one process never collide on metric names.
    """

    def __init__(self, namespace: str = "authority", registry: Optional[CollectorRegistry] = None):
        self.namespace = namespace
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up decision and cache metrics."""
        self._metrics["decisions_total"] = Counter(
            f"{self.namespace}_decisions_total",
            "Total authorization decisions",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["relevance_cache_total"] = Counter(
            f"{self.namespace}_relevance_cache_total",
            "Relevance cache lookups",
            ["result"],
            registry=self.registry
        )

        self._metrics["decision_duration_seconds"] = Histogram(
            f"{self.namespace}_decision_duration_seconds",
            "Authorization decision duration in seconds",
            registry=self.registry
        )

        self._metrics["rules_added_total"] = Counter(
            f"{self.namespace}_rules_added_total",
            "Total rules added",
            ["behavior"],
            registry=self.registry
        )

    def record_decision(self, allowed: bool, duration: float):
        """Record an authorization decision."""
        outcome = "allowed" if allowed else "denied"
        self._metrics["decisions_total"].labels(outcome=outcome).inc()
        self._metrics["decision_duration_seconds"].observe(duration)

    def record_cache_lookup(self, hit: bool):
        """Record a relevance cache hit or miss."""
        self._metrics["relevance_cache_total"].labels(result="hit" if hit else "miss").inc()

    def record_rule_added(self, behavior: str):
        """Record a rule insertion."""
        self._metrics["rules_added_total"].labels(behavior=behavior).inc()

    def sample(self, name: str, **labels) -> float:
        """Read the current value of a sample, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels)
        return value or 0.0
