"""
Shared metrics configuration for the request firewall.
"""

from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, REGISTRY, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["firewall_decisions_total"] = Counter(
            "firewall_decisions_total",
            "Total firewall decisions",
            ["firewall", "decision"],
            registry=self.registry
        )

        self._metrics["firewall_check_duration_seconds"] = Histogram(
            "firewall_check_duration_seconds",
            "Firewall map evaluation duration in seconds",
            registry=self.registry
        )

        self._metrics["firewall_config_errors_total"] = Counter(
            "firewall_config_errors_total",
            "Total rejected firewall configurations",
            ["error_type"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_decision(self, firewall: str, decision: str):
        """Record a firewall decision ("granted", "denied" or "no_decision")."""
        self._metrics["firewall_decisions_total"].labels(
            firewall=firewall,
            decision=decision
        ).inc()

    def record_config_error(self, error_type: str):
        """Record a rejected configuration."""
        self._metrics["firewall_config_errors_total"].labels(error_type=error_type).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                metric = self._metrics[operation_name]
                if labels:
                    metric = metric.labels(**labels)
                metric.observe(duration)

    def export(self) -> bytes:
        """Render the collector's registry in Prometheus text format."""
        return generate_latest(self.registry if self.registry is not None else REGISTRY)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
