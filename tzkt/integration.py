"""
Composition root for the cached TzKT API.

Builds the cache store, its durable tier, the fetch orchestrator and the
HTTP clients from settings, and wires them into one TzktCachedAPI. Nothing
here is a module-level singleton: each call builds an independent graph.
"""
from pathlib import Path
from typing import Optional

import structlog

from cache.core import Cache
from cache.fetcher import CachedFetcher
from cache.monitoring import CacheMonitor
from cache.redis_manager import RedisStorage
from cache.storage import FileStorage, KeyValueStorage, MemoryStorage
from config.settings import CacheSettings, StorageBackend

from .api import TzktCachedAPI
from .client import TzktClient, YieldClient

logger = structlog.get_logger()


def create_storage(settings: CacheSettings) -> Optional[KeyValueStorage]:
    """
    Create the durable storage backend named in the settings.

    A backend that cannot be set up disables persistence instead of failing.
    """
    backend = StorageBackend(settings.storage_backend)
    if backend == StorageBackend.NONE:
        return None
    if backend == StorageBackend.MEMORY:
        return MemoryStorage()
    if backend == StorageBackend.FILE:
        try:
            return FileStorage(Path(settings.storage_path))
        except OSError as e:
            logger.warning("cache_storage_unavailable", backend=backend.value, error=str(e))
            return None
    if not settings.redis_url:
        logger.warning("cache_storage_unavailable", backend=backend.value, error="redis_url is not set")
        return None
    return RedisStorage(settings.redis_url)


def create_cache(settings: Optional[CacheSettings] = None) -> Cache:
    settings = settings or CacheSettings()
    return Cache(
        max_size=settings.max_size,
        storage=create_storage(settings),
        prefix=settings.storage_prefix,
    )


def create_api(
    settings: Optional[CacheSettings] = None,
    cache: Optional[Cache] = None
) -> TzktCachedAPI:
    """
    Build a fully wired cached API.

    Args:
        settings: Settings to build from, read from the environment if None
        cache: Existing cache store to share, built from settings if None
    """
    settings = settings or CacheSettings()
    if cache is None:
        cache = create_cache(settings)
    fetcher = CachedFetcher(cache, monitor=CacheMonitor(cache))
    client = TzktClient(settings.api_base_url, timeout=settings.request_timeout)
    yield_client = (
        YieldClient(settings.yield_url, timeout=settings.request_timeout)
        if settings.yield_url
        else None
    )

    logger.info("tzkt_api_created",
                base_url=settings.api_base_url,
                storage=StorageBackend(settings.storage_backend).value,
                max_size=settings.max_size,
                yield_enrichment=yield_client is not None)
    return TzktCachedAPI(client, fetcher, yield_client)
