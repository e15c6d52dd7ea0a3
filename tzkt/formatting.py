"""Display helpers for TzKT amounts, percentages and addresses."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from .models import Baker, BakerRewards

MUTEZ_PER_TEZ = 1_000_000
CYCLES_PER_YEAR = 365


def format_xtz(amount: int) -> str:
    """Format an amount in mutez as whole XTZ with thousand separators."""
    tez = (Decimal(amount) / MUTEZ_PER_TEZ).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return f"{tez:,}"


def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def format_address(address: str) -> str:
    """Shorten an address to ``tz1abcd...wxyz``."""
    return f"{address[:7]}...{address[-4:]}"


def calculate_estimated_apy(baker: Baker, recent_rewards: Sequence[BakerRewards]) -> float:
    """
    Estimate a baker's annual yield from its recent reward cycles.

    Averages block rewards, endorsement rewards and block fees over the
    given cycles and extrapolates to one year of cycles.

    Returns:
        Yield as a percentage of the baker's staking balance, 0 when there
        are no rewards or no staking balance
    """
    if not recent_rewards or baker.staking_balance == 0:
        return 0.0

    total = sum(r.block_rewards + r.endorsement_rewards + r.block_fees for r in recent_rewards)
    avg_rewards = total / len(recent_rewards)
    return avg_rewards * CYCLES_PER_YEAR / baker.staking_balance * 100
