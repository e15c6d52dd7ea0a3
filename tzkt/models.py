"""
TzKT API payload models.

Field names follow Python conventions; the camelCase names used on the wire
are accepted through aliases. Unknown fields returned by the indexer are
kept so that nothing is lost when a payload is dumped back.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TzktModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class Quote(TzktModel):
    usd: Optional[float] = None
    eur: Optional[float] = None
    btc: Optional[float] = None


class NetworkStats(TzktModel):
    """Network-wide statistics at the current head."""

    cycle: int
    level: int
    timestamp: str
    total_bootstrapped: int = 0
    total_commitments: int = 0
    total_activated: int = 0
    total_created: int = 0
    total_burned: int = 0
    total_banished: int = 0
    total_frozen: int = 0
    total_rollup_bonds: int = 0
    total_smart_rollup_bonds: int = 0
    quote: Optional[Quote] = None


class Cycle(TzktModel):
    """A cycle is a period of blocks (about 2.8 days on mainnet)."""

    index: int
    first_level: int
    start_time: str
    last_level: int
    end_time: str
    snapshot_index: Optional[int] = None
    snapshot_level: Optional[int] = None
    random_seed: Optional[str] = None
    total_bakers: int = 0
    total_staking: int = 0
    total_delegated: int = 0
    total_delegators: int = 0
    quote: Optional[Quote] = None


class Software(TzktModel):
    version: Optional[str] = None
    date: Optional[str] = None


class Baker(TzktModel):
    """A delegate. Balances are in mutez."""

    address: str
    alias: Optional[str] = None
    type: str = "delegate"
    active: bool = False
    balance: int = 0
    frozen_deposits: int = 0
    frozen_rewards: int = 0
    frozen_fees: int = 0
    staking_balance: int = 0
    delegated_balance: int = 0
    num_delegators: int = 0
    staking_capacity: int = 0
    staking_efficiency: float = 0.0
    fee: float = 0.0
    estimated_apy: float = 0.0
    num_blocks: int = 0
    num_endorsements: int = 0
    num_ballots: int = 0
    num_proposals: int = 0
    num_activations: int = 0
    num_double_baking: int = 0
    num_double_endorsing: int = 0
    num_nonce_revelations: int = 0
    num_revelation_penalties: int = 0
    num_endorsing_rewards: int = 0
    software: Optional[Software] = None


class BakerRewards(TzktModel):
    """Rewards, penalties and performance of one baker over one cycle."""

    cycle: int
    baker: Optional[str] = None
    staking_balance: int = 0
    expected_blocks: float = 0
    expected_endorsements: float = 0
    future_blocks: int = 0
    future_block_rewards: int = 0
    blocks: int = 0
    block_rewards: int = 0
    missed_blocks: int = 0
    missed_block_rewards: int = 0
    future_endorsements: int = 0
    future_endorsement_rewards: int = 0
    endorsements: int = 0
    endorsement_rewards: int = 0
    missed_endorsements: int = 0
    missed_endorsement_rewards: int = 0
    block_fees: int = 0
    missed_block_fees: int = 0
    double_baking_rewards: int = 0
    double_baking_lost_deposits: int = 0
    double_baking_lost_rewards: int = 0
    double_baking_lost_fees: int = 0
    double_endorsing_rewards: int = 0
    double_endorsing_lost_deposits: int = 0
    double_endorsing_lost_rewards: int = 0
    double_endorsing_lost_fees: int = 0
    revelation_rewards: int = 0
    revelation_lost_rewards: int = 0
    revelation_lost_fees: int = 0
    quote: Optional[Quote] = None


class YieldRates(TzktModel):
    """Network yield percentages from the enrichment source."""

    staking_apy: float = Field(ge=0)
    delegation_apy: float = Field(ge=0)


class BakersStats(TzktModel):
    """Aggregated statistics over the active bakers."""

    cycle: int
    total_bakers: int
    active_bakers: int
    total_staking: int
    average_apy: float
    staking_apy: float
    delegation_apy: float
    yield_source: str = "enrichment"
