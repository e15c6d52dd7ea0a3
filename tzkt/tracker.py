"""
Latest-selection loader for baker details.

When the selected baker address changes before the previous load finishes,
the previous load is cancelled and its outcome ignored, so a late response
for an old address can never overwrite the state of the new one.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from config.logging import log_error

from .api import TzktCachedAPI
from .models import Baker, BakerRewards

logger = structlog.get_logger()

DEFAULT_REWARDS_LIMIT = 10


@dataclass(frozen=True)
class BakerDetailsState:
    address: Optional[str] = None
    baker: Optional[Baker] = None
    rewards: List[BakerRewards] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None


class BakerDetailsTracker:
    """
    Loads details and rewards for the currently selected baker.

    Each selection bumps a generation counter; only the load belonging to
    the current generation may publish to ``state``.
    """

    def __init__(self, api: TzktCachedAPI, rewards_limit: int = DEFAULT_REWARDS_LIMIT):
        self.api = api
        self.rewards_limit = rewards_limit
        self.state = BakerDetailsState()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    async def select(self, address: Optional[str], force: bool = False) -> BakerDetailsState:
        """
        Select ``address`` and load its data, superseding any earlier load.

        Args:
            address: Baker address, or None/empty to clear the selection
            force: Invalidate the baker's cached entries before loading

        Returns:
            The tracker state after this load, or the current state if the
            load was superseded
        """
        self.cancel()
        self._generation += 1
        generation = self._generation

        if not address:
            self.state = BakerDetailsState()
            return self.state

        if force:
            self.api.invalidate_baker_cache(address)

        self.state = BakerDetailsState(
            address=address,
            baker=self.state.baker if self.state.address == address else None,
            rewards=self.state.rewards if self.state.address == address else [],
            loading=True,
            last_updated=self.state.last_updated if self.state.address == address else None,
        )

        task = asyncio.ensure_future(self._load(address))
        self._task = task
        try:
            baker, rewards = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("baker_load_superseded", address=address)
                return self.state
            raise
        except Exception as e:
            if generation == self._generation:
                self.state = BakerDetailsState(address=address, error=str(e))
            log_error(logger, "baker_load_failed", e, address=address)
            return self.state

        if generation == self._generation:
            self.state = BakerDetailsState(
                address=address,
                baker=baker,
                rewards=rewards,
                last_updated=datetime.now(timezone.utc),
            )
        return self.state

    async def refresh(self) -> BakerDetailsState:
        """Reload the current selection, bypassing the cache."""
        return await self.select(self.state.address, force=True)

    def cancel(self) -> None:
        """Cancel the in-flight load, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _load(self, address: str):
        baker, rewards = await asyncio.gather(
            self.api.get_baker_details(address),
            self.api.get_baker_rewards(address, self.rewards_limit),
        )
        return baker, rewards
