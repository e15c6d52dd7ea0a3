import asyncio

import pytest

from cache.core import Cache
from cache.fetcher import CachedFetcher
from cache.policies import CacheKeys, CacheStrategies, MINUTE
from cache.storage import MemoryStorage
from tzkt.api import DEFAULT_DELEGATION_APY, DEFAULT_STAKING_APY, TzktCachedAPI
from tzkt.errors import IndexerAPIError
from tzkt.models import Baker, BakerRewards, BakersStats, Cycle, NetworkStats
from tests.mock_tzkt import (
    BAKER_A,
    BAKER_B,
    ManualClock,
    MockTzktClient,
    MockYieldClient,
    default_routes,
)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def client():
    return MockTzktClient(default_routes())


def build_api(client, storage, clock, yield_client=None):
    cache = Cache(storage=storage, clock=clock)
    return TzktCachedAPI(client, CachedFetcher(cache), yield_client)


@pytest.fixture
def api(client, storage, clock):
    return build_api(client, storage, clock)


def test_get_network_stats(api, client):
    stats = asyncio.run(api.get_network_stats())

    assert isinstance(stats, NetworkStats)
    assert stats.cycle == 750
    assert stats.total_bootstrapped == 763306930000000
    assert client.calls == [("/v1/statistics/current", None)]


def test_get_current_cycle(api):
    cycle = asyncio.run(api.get_current_cycle())

    assert isinstance(cycle, Cycle)
    assert cycle.index == 750
    assert cycle.total_bakers == 312


def test_get_active_bakers_query(api, client):
    bakers = asyncio.run(api.get_active_bakers(25))

    assert [b.address for b in bakers] == [BAKER_A, BAKER_B]
    assert client.calls == [
        ("/v1/delegates", {"active": "true", "sort.desc": "stakingBalance", "limit": 25})
    ]
    assert CacheKeys.active_bakers(25) in api.cache


def test_get_top_bakers_query(api, client):
    asyncio.run(api.get_top_bakers(5, "numDelegators"))

    assert client.calls == [
        ("/v1/delegates", {"active": "true", "sort.desc": "numDelegators", "limit": 5})
    ]
    assert CacheKeys.top_bakers(5, "numDelegators") in api.cache


def test_baker_details_cached_within_ttl(api, client, clock):
    """Two requests within the two minute TTL hit the indexer once."""

    async def run():
        first = await api.get_baker_details(BAKER_A)
        clock.advance(90 * 1000)
        second = await api.get_baker_details(BAKER_A)
        return first, second

    first, second = asyncio.run(run())

    assert isinstance(first, Baker)
    assert first == second
    assert client.count(f"/v1/delegates/{BAKER_A}") == 1
    stats = api.get_cache_stats()
    assert stats.hits == 1
    assert stats.misses == 1


def test_baker_details_revalidated_after_ttl(api, client, clock):
    async def run():
        await api.get_baker_details(BAKER_A)
        client.set_route(f"/v1/delegates/{BAKER_A}", {"address": BAKER_A, "numDelegators": 43})
        clock.advance(3 * MINUTE)
        stale = await api.get_baker_details(BAKER_A)
        await api.fetcher.drain()
        fresh = await api.get_baker_details(BAKER_A)
        return stale, fresh

    stale, fresh = asyncio.run(run())

    assert stale.num_delegators == 42
    assert fresh.num_delegators == 43
    assert client.count(f"/v1/delegates/{BAKER_A}") == 2


def test_get_baker_rewards(api, client):
    rewards = asyncio.run(api.get_baker_rewards(BAKER_A, 3))

    assert all(isinstance(r, BakerRewards) for r in rewards)
    assert [r.cycle for r in rewards] == [749, 748, 747]
    assert client.calls == [(f"/v1/rewards/delegates/{BAKER_A}", {"limit": 3})]


def test_rewards_not_revalidated_when_stale(api, client, clock):
    async def run():
        await api.get_baker_rewards(BAKER_A)
        clock.advance(31 * MINUTE)
        await api.get_baker_rewards(BAKER_A)

    asyncio.run(run())
    # Expired history is a plain miss: fetched again in the foreground
    assert client.count(f"/v1/rewards/delegates/{BAKER_A}") == 2
    assert api.fetcher.pending_revalidations == 0


def test_rewards_survive_restart(client, storage, clock):
    asyncio.run(build_api(client, storage, clock).get_baker_rewards(BAKER_A))

    restarted = build_api(client, storage, clock)
    rewards = asyncio.run(restarted.get_baker_rewards(BAKER_A))

    assert len(rewards) == 3
    assert client.count(f"/v1/rewards/delegates/{BAKER_A}") == 1


def test_baker_details_are_not_persisted(client, storage, clock):
    asyncio.run(build_api(client, storage, clock).get_baker_details(BAKER_A))

    restarted = build_api(client, storage, clock)
    asyncio.run(restarted.get_baker_details(BAKER_A))

    assert client.count(f"/v1/delegates/{BAKER_A}") == 2


def test_miss_failure_surfaces_status(api, client):
    client.set_route("/v1/cycles/current", IndexerAPIError(503, "Service Unavailable", "/v1/cycles/current"))

    with pytest.raises(IndexerAPIError) as exc_info:
        asyncio.run(api.get_current_cycle())

    assert exc_info.value.status == 503
    assert "503 Service Unavailable" in str(exc_info.value)


def test_hit_never_surfaces_remote_failure(api, client, clock):
    async def run():
        await api.get_network_stats()
        client.set_route("/v1/statistics/current", IndexerAPIError(500, "Internal Server Error", ""))
        clock.advance(10 * MINUTE)
        stats = await api.get_network_stats()
        await api.fetcher.drain()
        return stats

    assert asyncio.run(run()).cycle == 750


def test_bakers_stats_with_enrichment(client, storage, clock):
    yields = MockYieldClient(staking_apy=9.1, delegation_apy=3.4)
    api = build_api(client, storage, clock, yields)

    stats = asyncio.run(api.get_bakers_stats())

    assert isinstance(stats, BakersStats)
    assert stats.cycle == 750
    assert stats.total_bakers == 312
    assert stats.active_bakers == 2
    assert stats.total_staking == 2_000_000_000_000
    assert stats.average_apy == 6.0
    assert stats.staking_apy == 9.1
    assert stats.delegation_apy == 3.4
    assert stats.yield_source == "enrichment"
    assert ("/v1/delegates", {"active": "true", "sort.desc": "stakingBalance", "limit": 500}) in client.calls


def test_bakers_stats_falls_back_when_enrichment_unreachable(client, storage, clock):
    yields = MockYieldClient(fail=True)
    api = build_api(client, storage, clock, yields)

    stats = asyncio.run(api.get_bakers_stats())

    assert yields.calls == 1
    assert stats.staking_apy == DEFAULT_STAKING_APY
    assert stats.delegation_apy == DEFAULT_DELEGATION_APY
    assert stats.yield_source == "fallback"
    assert stats.total_bakers == 312


def test_bakers_stats_without_enrichment_source(api):
    stats = asyncio.run(api.get_bakers_stats())
    assert stats.staking_apy == DEFAULT_STAKING_APY
    assert stats.yield_source == "fallback"


def test_bakers_stats_with_no_bakers(api, client):
    client.set_route("/v1/delegates", [])
    stats = asyncio.run(api.get_bakers_stats())

    assert stats.active_bakers == 0
    assert stats.total_staking == 0
    assert stats.average_apy == 0.0


def test_bakers_stats_cached_under_own_key(api, client):
    async def run():
        first = await api.get_bakers_stats()
        second = await api.get_bakers_stats()
        return first, second

    first, second = asyncio.run(run())

    assert first == second
    assert client.count("/v1/delegates") == 1
    assert CacheKeys.bakers_stats() in api.cache
    assert api.cache.get(CacheKeys.bakers_stats(), CacheStrategies.GLOBAL_STATS)["totalBakers"] == 312


def test_preload_critical_data(api, client):
    client.set_route("/v1/cycles/current", IndexerAPIError(502, "Bad Gateway", "/v1/cycles/current"))

    outcome = asyncio.run(api.preload_critical_data())

    assert outcome[CacheKeys.network_stats()]["cycle"] == 750
    assert isinstance(outcome[CacheKeys.current_cycle()], IndexerAPIError)
    assert len(outcome[CacheKeys.active_bakers(50)]) == 2
    assert CacheKeys.network_stats() in api.cache
    assert CacheKeys.active_bakers(50) in api.cache
    assert CacheKeys.current_cycle() not in api.cache


def test_invalidate_baker_cache_forces_refetch(api, client):
    async def run():
        await api.get_baker_details(BAKER_A)
        await api.get_baker_rewards(BAKER_A)
        api.invalidate_baker_cache(BAKER_A)
        await api.get_baker_details(BAKER_A)
        await api.get_baker_rewards(BAKER_A)

    asyncio.run(run())

    assert client.count(f"/v1/delegates/{BAKER_A}") == 2
    assert client.count(f"/v1/rewards/delegates/{BAKER_A}") == 2


def test_invalidate_network_cache(api):
    asyncio.run(api.get_bakers_stats())
    api.invalidate_network_cache()

    assert CacheKeys.network_stats() not in api.cache
    assert CacheKeys.current_cycle() not in api.cache
    assert CacheKeys.bakers_stats() not in api.cache
    assert CacheKeys.active_bakers(500) in api.cache


def test_clear_cache(api, storage):
    asyncio.run(api.get_network_stats())
    assert len(storage) == 1

    api.clear_cache()

    assert api.get_cache_stats().size == 0
    assert len(storage) == 0


def test_close(client, storage, clock):
    api = build_api(client, storage, clock)
    asyncio.run(api.close())
    assert client.closed
