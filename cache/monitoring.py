"""
Monitoring module for the TzKT cache.

Exposes Prometheus counters for cache hits, misses and background
revalidations, labelled by cache policy, and a small monitor that turns the
store's statistics into a loggable report.
"""
import time
from typing import Any, Dict

import structlog
from prometheus_client import Counter, Gauge

from .core import Cache

logger = structlog.get_logger()

CACHE_HITS = Counter('tzkt_cache_hits_total', 'Total number of cache hits', ['policy'])
CACHE_MISSES = Counter('tzkt_cache_misses_total', 'Total number of cache misses', ['policy'])
CACHE_REVALIDATIONS = Counter(
    'tzkt_cache_revalidations_total',
    'Background revalidations of stale entries',
    ['policy', 'outcome']
)
CACHE_ENTRIES = Gauge('tzkt_cache_entries', 'Current number of in-memory cache entries')


class CacheMonitor:
    """
    Monitor for the TzKT cache.

    This class records per-policy metrics and generates reports from the
    store it watches.
    """

    def __init__(self, cache: Cache):
        self.start_time = time.time()
        self.cache = cache

    def record_hit(self, policy_name: str) -> None:
        CACHE_HITS.labels(policy=policy_name).inc()

    def record_miss(self, policy_name: str) -> None:
        CACHE_MISSES.labels(policy=policy_name).inc()

    def record_revalidation(self, policy_name: str, outcome: str) -> None:
        """
        Record the outcome of a background revalidation.

        Args:
            policy_name: Policy of the revalidated entry
            outcome: Either "success" or "failure"
        """
        CACHE_REVALIDATIONS.labels(policy=policy_name, outcome=outcome).inc()

    def update_size(self) -> None:
        CACHE_ENTRIES.set(len(self.cache))

    def get_metrics_report(self) -> Dict[str, Any]:
        """
        Generate a metrics report.

        Returns:
            Dictionary with cache metrics
        """
        stats = self.cache.get_stats()
        expired = sum(1 for entry in stats.entries if entry["age"] > entry["ttl"])

        return {
            'uptime_seconds': time.time() - self.start_time,
            'cache_size': stats.size,
            'max_cache_size': stats.max_size,
            'expired_entries': expired,
            'total_hits': stats.hits,
            'total_misses': stats.misses,
            'hit_rate': stats.hit_rate,
        }

    def log_metrics(self) -> None:
        """Log current cache metrics."""
        self.update_size()
        report = self.get_metrics_report()
        logger.info("cache_metrics_report", **report)
