"""
HTTP clients for the TzKT indexer and the yield enrichment source.
"""
import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from .errors import EnrichmentError, IndexerAPIError, IndexerResponseError, IndexerUnavailableError
from .models import YieldRates

logger = structlog.get_logger()

TZKT_API_BASE = "https://api.tzkt.io"


class TzktClient:
    """
    Read-only JSON client for the TzKT API.

    One ``aiohttp.ClientSession`` is opened lazily and reused for every
    request. Use as an async context manager, or call :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = TZKT_API_BASE,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "TzktClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET ``endpoint`` relative to the base URL and decode the JSON body.

        Raises:
            IndexerAPIError: the indexer answered with a non-2xx status
            IndexerUnavailableError: the request could not be completed
            IndexerResponseError: a 2xx answer did not carry valid JSON
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with self._get_session().get(url, params=params) as response:
                if not 200 <= response.status < 300:
                    logger.warning("tzkt_request_failed",
                                   endpoint=endpoint,
                                   status=response.status,
                                   reason=response.reason)
                    raise IndexerAPIError(response.status, response.reason, endpoint)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    logger.warning("tzkt_invalid_response", endpoint=endpoint, error=str(e))
                    raise IndexerResponseError(endpoint, e) from e
        except aiohttp.ClientError as e:
            logger.warning("tzkt_request_failed", endpoint=endpoint, error=str(e))
            raise IndexerUnavailableError(endpoint, e) from e
        except asyncio.TimeoutError as e:
            logger.warning("tzkt_request_timeout", endpoint=endpoint)
            raise IndexerUnavailableError(endpoint, e) from e


class YieldClient:
    """Client for an endpoint publishing current staking and delegation yields."""

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[aiohttp.ClientSession] = None):
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def get_yields(self) -> YieldRates:
        """
        Fetch the current yields.

        Raises:
            EnrichmentError: on any transport, status or payload problem
        """
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        try:
            async with self.session.get(self.url) as response:
                if not 200 <= response.status < 300:
                    raise EnrichmentError(f"Yield source error: {response.status} {response.reason}")
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EnrichmentError(f"Yield source unreachable: {e}") from e
        except ValueError as e:
            raise EnrichmentError(f"Invalid yield payload: {e}") from e

        try:
            return YieldRates.model_validate(payload)
        except ValueError as e:
            raise EnrichmentError(f"Invalid yield payload: {e}") from e
