"""
Cache policies and key builders for TzKT data.

Each category of indexer data is bound to one named policy. Policies are
plain configuration values: they parametrize cache calls and hold no state.
"""
from dataclasses import dataclass

SECOND = 1000
MINUTE = 60 * SECOND


@dataclass(frozen=True)
class CachePolicy:
    """
    Caching rules for one category of data.

    Attributes:
        name: Category name, used as a metrics label
        ttl: Time-to-live in milliseconds
        persist: Mirror entries to the durable storage
        stale_while_revalidate: Serve expired data while refreshing it
    """

    name: str
    ttl: int
    persist: bool = False
    stale_while_revalidate: bool = False


class CacheStrategies:
    """Named policies, one per data category."""

    # Network-wide data changes slowly
    NETWORK_STATS = CachePolicy("network_stats", ttl=5 * MINUTE, persist=True, stale_while_revalidate=True)

    BAKERS_LIST = CachePolicy("bakers_list", ttl=10 * MINUTE, persist=True, stale_while_revalidate=True)

    BAKER_DETAILS = CachePolicy("baker_details", ttl=2 * MINUTE, persist=False, stale_while_revalidate=True)

    # Settled cycles never change, refreshing stale history is pointless
    BAKER_REWARDS = CachePolicy("baker_rewards", ttl=30 * MINUTE, persist=True, stale_while_revalidate=False)

    GLOBAL_STATS = CachePolicy("global_stats", ttl=1 * MINUTE, persist=False, stale_while_revalidate=True)

    @classmethod
    def all(cls):
        return [
            cls.NETWORK_STATS,
            cls.BAKERS_LIST,
            cls.BAKER_DETAILS,
            cls.BAKER_REWARDS,
            cls.GLOBAL_STATS,
        ]


class CacheKeys:
    """Cache key builders. Keys are pure functions of their arguments."""

    @staticmethod
    def network_stats() -> str:
        return "network_stats"

    @staticmethod
    def current_cycle() -> str:
        return "current_cycle"

    @staticmethod
    def active_bakers(limit: int) -> str:
        return f"active_bakers_{limit}"

    @staticmethod
    def baker_details(address: str) -> str:
        return f"baker_details_{address}"

    @staticmethod
    def baker_rewards(address: str, limit: int) -> str:
        return f"baker_rewards_{address}_{limit}"

    @staticmethod
    def bakers_stats() -> str:
        return "bakers_stats"

    @staticmethod
    def top_bakers(limit: int, sort_by: str) -> str:
        return f"top_bakers_{limit}_{sort_by}"
