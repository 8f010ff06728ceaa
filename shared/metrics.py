"""
Shared metrics configuration for the Key Vault key store.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import Counter, CollectorRegistry


class KeyStoreMetrics:
    """Prometheus metrics for cache and vault activity."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up key store metrics."""

        self._metrics["cache_requests_total"] = Counter(
            "keystore_cache_requests_total",
            "Key store cache lookups",
            ["slot", "result"],
            registry=self.registry
        )

        self._metrics["vault_fetches_total"] = Counter(
            "keystore_vault_fetches_total",
            "Vault round-trips performed by the key store",
            ["operation", "outcome"],
            registry=self.registry
        )

    def record_cache_lookup(self, slot: str, hit: bool):
        """Record a cache hit or miss for a slot."""
        with self._lock:
            self._metrics["cache_requests_total"].labels(
                slot=slot,
                result="hit" if hit else "miss"
            ).inc()

    def record_vault_fetch(self, operation: str, outcome: str):
        """Record a vault round-trip and its outcome."""
        with self._lock:
            self._metrics["vault_fetches_total"].labels(
                operation=operation,
                outcome=outcome
            ).inc()


_collectors: Dict[str, KeyStoreMetrics] = {}


def get_metrics_collector(service_name: str) -> KeyStoreMetrics:
    """Get or create the metrics collector for a service."""
    if service_name not in _collectors:
        _collectors[service_name] = KeyStoreMetrics(service_name, registry=CollectorRegistry())
    return _collectors[service_name]
