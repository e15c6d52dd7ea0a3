"""
Cached TzKT API

Typed access to Tezos baking data from the TzKT indexer, served through the
cache layer in the ``cache`` package.
"""

from .api import DEFAULT_DELEGATION_APY, DEFAULT_STAKING_APY, TzktCachedAPI
from .client import TZKT_API_BASE, TzktClient, YieldClient
from .errors import (
    EnrichmentError,
    IndexerAPIError,
    IndexerResponseError,
    IndexerUnavailableError,
    TzktError,
)
from .formatting import calculate_estimated_apy, format_address, format_percentage, format_xtz
from .integration import create_api, create_cache, create_storage
from .models import Baker, BakerRewards, BakersStats, Cycle, NetworkStats, YieldRates
from .tracker import BakerDetailsState, BakerDetailsTracker

__all__ = [
    'TzktCachedAPI',
    'DEFAULT_STAKING_APY',
    'DEFAULT_DELEGATION_APY',
    'TZKT_API_BASE',
    'TzktClient',
    'YieldClient',
    'TzktError',
    'IndexerAPIError',
    'IndexerUnavailableError',
    'IndexerResponseError',
    'EnrichmentError',
    'calculate_estimated_apy',
    'format_address',
    'format_percentage',
    'format_xtz',
    'create_api',
    'create_cache',
    'create_storage',
    'Baker',
    'BakerRewards',
    'BakersStats',
    'Cycle',
    'NetworkStats',
    'YieldRates',
    'BakerDetailsState',
    'BakerDetailsTracker'
]
