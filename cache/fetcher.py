"""
Fetch-and-cache orchestration.

Wraps remote calls with a cache-first lookup. Hits return immediately; stale
hits under a stale-while-revalidate policy additionally schedule a single
fire-and-forget refresh. Misses await the remote call and store its result.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, Tuple

import structlog

from .core import Cache
from .monitoring import CacheMonitor
from .policies import CachePolicy

logger = structlog.get_logger()

RemoteCall = Callable[[], Awaitable[Any]]


class CachedFetcher:
    """Cache-first access to remote data over one shared cache store."""

    def __init__(self, cache: Cache, monitor: Optional[CacheMonitor] = None):
        self.cache = cache
        self.monitor = monitor
        self._background: Set[asyncio.Task] = set()

    @property
    def pending_revalidations(self) -> int:
        return len(self._background)

    async def fetch_with_cache(self, remote_call: RemoteCall, key: str, policy: CachePolicy) -> Any:
        """
        Return cached data for ``key`` or fetch it with ``remote_call``.

        Args:
            remote_call: Zero-argument callable returning an awaitable
            key: Cache key
            policy: Policy the key is cached under

        Returns:
            Cached (possibly stale) or freshly fetched data

        Raises:
            Whatever ``remote_call`` raises, on a genuine miss only
        """
        hit = self.cache.get_with_meta(key, policy)

        if hit is not None:
            self.cache.record_hit()
            if self.monitor:
                self.monitor.record_hit(policy.name)

            if policy.stale_while_revalidate and hit.is_expired(self.cache.now()):
                self._schedule_revalidation(remote_call, key, policy)

            logger.debug("cache_hit", key=key, policy=policy.name)
            return hit.data

        self.cache.record_miss()
        if self.monitor:
            self.monitor.record_miss(policy.name)
        logger.debug("cache_miss", key=key, policy=policy.name)

        return await self._fetch_and_cache(remote_call, key, policy)

    async def preload(self, key: str, remote_call: RemoteCall, policy: CachePolicy) -> Any:
        """Warm ``key``: return cached data if present, otherwise fetch it."""
        cached = self.cache.get(key, policy)
        if cached is not None:
            return cached
        return await self._fetch_and_cache(remote_call, key, policy)

    async def preload_many(
        self,
        jobs: Iterable[Tuple[str, RemoteCall, CachePolicy]]
    ) -> Dict[str, Any]:
        """
        Preload several keys concurrently, settling every job.

        Returns:
            Mapping of key to fetched data, or to the exception it failed with
        """
        jobs = list(jobs)
        results = await asyncio.gather(
            *(self.preload(key, remote_call, policy) for key, remote_call, policy in jobs),
            return_exceptions=True
        )
        outcome = {}
        for (key, _, _), result in zip(jobs, results):
            if isinstance(result, Exception):
                logger.warning("cache_preload_failed", key=key, error=str(result))
            outcome[key] = result
        return outcome

    async def drain(self) -> None:
        """Wait for every scheduled background revalidation to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _fetch_and_cache(self, remote_call: RemoteCall, key: str, policy: CachePolicy) -> Any:
        data = await remote_call()
        self.cache.set(key, data, policy)
        if self.monitor:
            self.monitor.update_size()
        return data

    def _schedule_revalidation(self, remote_call: RemoteCall, key: str, policy: CachePolicy) -> None:
        task = asyncio.ensure_future(self._revalidate(remote_call, key, policy))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        logger.debug("cache_revalidation_scheduled", key=key, policy=policy.name)

    async def _revalidate(self, remote_call: RemoteCall, key: str, policy: CachePolicy) -> None:
        try:
            await self._fetch_and_cache(remote_call, key, policy)
        except Exception as e:
            # Single best-effort attempt, the stale entry stays in place
            logger.debug("cache_revalidation_failed", key=key, policy=policy.name, error=str(e))
            if self.monitor:
                self.monitor.record_revalidation(policy.name, "failure")
            return
        if self.monitor:
            self.monitor.record_revalidation(policy.name, "success")
