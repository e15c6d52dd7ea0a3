import re
from typing import Dict, List

import structlog

from .core import Cache
from .policies import CacheKeys

logger = structlog.get_logger()


class CacheInvalidator:
    """Category and entity scoped invalidation over a cache store."""

    def __init__(self, cache: Cache):
        self.cache = cache
        self.invalidation_keys: Dict[str, List[str]] = {
            'network': [
                CacheKeys.network_stats(),
                CacheKeys.current_cycle(),
                CacheKeys.bakers_stats()
            ],
            'bakers_list': [],
            'bakers_stats': [
                CacheKeys.bakers_stats()
            ]
        }
        self.invalidation_patterns: Dict[str, List[str]] = {
            'network': [],
            'bakers_list': [
                r'^active_bakers_.*',
                r'^top_bakers_.*'
            ],
            'bakers_stats': []
        }

    def baker_keys(self, address: str) -> List[str]:
        return [CacheKeys.baker_details(address)]

    def baker_patterns(self, address: str) -> List[str]:
        # Addresses come from user input and must not be read as regex syntax
        return [rf'^baker_rewards_{re.escape(address)}_.*']

    def invalidate_network(self) -> None:
        """Invalidate cache entries related to network-wide state."""
        self._invalidate('network')
        logger.info("cache_invalidated", type="network")

    def invalidate_baker(self, address: str) -> None:
        """Invalidate cache entries related to one baker address."""
        self._invalidate_all(self.baker_keys(address), self.baker_patterns(address))
        logger.info("cache_invalidated", type="baker", address=address)

    def invalidate_bakers_list(self) -> None:
        """Invalidate every cached baker listing."""
        self._invalidate('bakers_list')
        logger.info("cache_invalidated", type="bakers_list")

    def invalidate_bakers_stats(self) -> None:
        """Invalidate the aggregated bakers statistics."""
        self._invalidate('bakers_stats')
        logger.info("cache_invalidated", type="bakers_stats")

    def _invalidate(self, entity_type: str) -> None:
        self._invalidate_all(
            self.invalidation_keys[entity_type],
            self.invalidation_patterns[entity_type]
        )

    def _invalidate_all(self, keys: List[str], patterns: List[str]) -> None:
        for key in keys:
            self.cache.invalidate(key)
        for pattern in patterns:
            self.cache.invalidate_pattern(pattern)
