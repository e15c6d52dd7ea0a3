"""
Cached TzKT API.

Each public method binds one indexer endpoint, one cache key and one cache
policy, then delegates to the fetch orchestrator. The cache holds the raw
JSON payloads; methods validate them into typed models on the way out.
"""
import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import structlog

from cache.core import CacheStats
from cache.fetcher import CachedFetcher
from cache.invalidation import CacheInvalidator
from cache.policies import CacheKeys, CacheStrategies

from .client import TzktClient, YieldClient
from .models import Baker, BakerRewards, BakersStats, Cycle, NetworkStats, YieldRates

logger = structlog.get_logger()

DEFAULT_STAKING_APY = 5.8
DEFAULT_DELEGATION_APY = 2.9
FALLBACK_YIELDS = YieldRates(staking_apy=DEFAULT_STAKING_APY, delegation_apy=DEFAULT_DELEGATION_APY)

STATS_BAKERS_LIMIT = 500
PRELOAD_BAKERS_LIMIT = 50


class TzktCachedAPI:
    """
    Typed, cached access to the TzKT indexer.

    Args:
        client: Indexer client
        fetcher: Fetch orchestrator wrapping the shared cache store
        yield_client: Optional enrichment source used by get_bakers_stats
    """

    def __init__(
        self,
        client: TzktClient,
        fetcher: CachedFetcher,
        yield_client: Optional[YieldClient] = None
    ):
        self.client = client
        self.fetcher = fetcher
        self.cache = fetcher.cache
        self.yield_client = yield_client
        self.invalidator = CacheInvalidator(self.cache)

    async def get_network_stats(self) -> NetworkStats:
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json("/v1/statistics/current"),
            CacheKeys.network_stats(),
            CacheStrategies.NETWORK_STATS,
        )
        return NetworkStats.model_validate(data)

    async def get_current_cycle(self) -> Cycle:
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json("/v1/cycles/current"),
            CacheKeys.current_cycle(),
            CacheStrategies.NETWORK_STATS,
        )
        return Cycle.model_validate(data)

    async def get_active_bakers(self, limit: int = 50) -> List[Baker]:
        """Active bakers sorted by staking balance, largest first."""
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json("/v1/delegates", self._delegates_query("stakingBalance", limit)),
            CacheKeys.active_bakers(limit),
            CacheStrategies.BAKERS_LIST,
        )
        return [Baker.model_validate(item) for item in data]

    async def get_top_bakers(self, limit: int = 10, sort_by: str = "stakingBalance") -> List[Baker]:
        """Active bakers sorted by any delegate field, largest first."""
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json("/v1/delegates", self._delegates_query(sort_by, limit)),
            CacheKeys.top_bakers(limit, sort_by),
            CacheStrategies.BAKERS_LIST,
        )
        return [Baker.model_validate(item) for item in data]

    async def get_baker_details(self, address: str) -> Baker:
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json(f"/v1/delegates/{quote(address, safe='')}"),
            CacheKeys.baker_details(address),
            CacheStrategies.BAKER_DETAILS,
        )
        return Baker.model_validate(data)

    async def get_baker_rewards(self, address: str, limit: int = 10) -> List[BakerRewards]:
        """Reward history of one baker, one item per cycle."""
        data = await self.fetcher.fetch_with_cache(
            lambda: self.client.get_json(
                f"/v1/rewards/delegates/{quote(address, safe='')}", {"limit": limit}
            ),
            CacheKeys.baker_rewards(address, limit),
            CacheStrategies.BAKER_REWARDS,
        )
        return [BakerRewards.model_validate(item) for item in data]

    async def get_bakers_stats(self) -> BakersStats:
        """
        Aggregated statistics over the active bakers.

        Combines network stats, the current cycle and the top active bakers,
        plus yields from the enrichment source when one is configured. When
        the enrichment source fails the documented fallback yields are used.
        """
        data = await self.fetcher.fetch_with_cache(
            self._compute_bakers_stats,
            CacheKeys.bakers_stats(),
            CacheStrategies.GLOBAL_STATS,
        )
        return BakersStats.model_validate(data)

    async def preload_critical_data(self) -> Dict[str, Any]:
        """
        Warm the cache with network stats, the current cycle and top bakers.

        Individual failures are logged and returned, never raised.
        """
        return await self.fetcher.preload_many([
            (
                CacheKeys.network_stats(),
                lambda: self.client.get_json("/v1/statistics/current"),
                CacheStrategies.NETWORK_STATS,
            ),
            (
                CacheKeys.current_cycle(),
                lambda: self.client.get_json("/v1/cycles/current"),
                CacheStrategies.NETWORK_STATS,
            ),
            (
                CacheKeys.active_bakers(PRELOAD_BAKERS_LIMIT),
                lambda: self.client.get_json(
                    "/v1/delegates", self._delegates_query("stakingBalance", PRELOAD_BAKERS_LIMIT)
                ),
                CacheStrategies.BAKERS_LIST,
            ),
        ])

    def invalidate_baker_cache(self, address: str) -> None:
        self.invalidator.invalidate_baker(address)

    def invalidate_network_cache(self) -> None:
        self.invalidator.invalidate_network()

    def invalidate_bakers_list(self) -> None:
        self.invalidator.invalidate_bakers_list()

    def invalidate_bakers_stats(self) -> None:
        self.invalidator.invalidate_bakers_stats()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("cache_cleared")

    async def close(self) -> None:
        await self.fetcher.drain()
        await self.client.close()
        if self.yield_client is not None:
            await self.yield_client.close()

    @staticmethod
    def _delegates_query(sort_by: str, limit: int) -> Dict[str, Any]:
        return {"active": "true", "sort.desc": sort_by, "limit": limit}

    async def _compute_bakers_stats(self) -> Dict[str, Any]:
        stats, cycle = await asyncio.gather(self.get_network_stats(), self.get_current_cycle())
        bakers = await self.get_active_bakers(STATS_BAKERS_LIMIT)

        active = [b for b in bakers if b.active]
        total_staking = sum(b.staking_balance for b in bakers)
        average_apy = sum(b.estimated_apy for b in bakers) / len(bakers) if bakers else 0.0

        yields = await self._get_yields()
        result = BakersStats(
            cycle=stats.cycle,
            total_bakers=cycle.total_bakers,
            active_bakers=len(active),
            total_staking=total_staking,
            average_apy=average_apy,
            staking_apy=yields.staking_apy,
            delegation_apy=yields.delegation_apy,
            yield_source="enrichment" if yields is not FALLBACK_YIELDS else "fallback",
        )
        return result.model_dump(by_alias=True)

    async def _get_yields(self) -> YieldRates:
        if self.yield_client is None:
            return FALLBACK_YIELDS
        try:
            return await self.yield_client.get_yields()
        except Exception as e:
            logger.warning("yield_enrichment_failed", error=str(e))
            return FALLBACK_YIELDS
