"""
Snapshot Fetcher

Fetches the raw collection JSON from its HTTP source.

PRINCIPLES:
===========
1. The payload is returned exactly as decoded - no normalization here
2. Failed fetches are first-class results, never exceptions
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import json
import logging

import httpx

logger = logging.getLogger(__name__)


class FetchStatus(Enum):
    """Status of a fetch attempt."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch. payload is set only on SUCCESS."""
    url: str
    status: FetchStatus
    attempted_at: datetime
    payload: Any = None
    http_status: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is FetchStatus.SUCCESS

    @property
    def entity_count(self) -> int:
        if isinstance(self.payload, (list, dict)):
            return len(self.payload)
        return 0


class SnapshotFetcher:
    """
    Fetches the collection snapshot.

    transport may be supplied to route requests elsewhere (tests use
    httpx.MockTransport).
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        user_agent: str = "NFTActivityTracker/0.1",
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._async_transport = async_transport

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> FetchResult:
        attempted_at = datetime.now(timezone.utc)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._async_transport
            ) as client:
                response = await client.get(
                    self._url,
                    headers={'User-Agent': self._user_agent},
                    follow_redirects=True
                )
        except httpx.TimeoutException:
            return self._failure(attempted_at, FetchStatus.TIMEOUT, "Request timed out")
        except httpx.HTTPError as e:
            return self._failure(attempted_at, FetchStatus.NETWORK_ERROR, str(e))

        return self._decode(attempted_at, response)

    def fetch_sync(self) -> FetchResult:
        """Synchronous version of fetch."""
        attempted_at = datetime.now(timezone.utc)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(
                    self._url,
                    headers={'User-Agent': self._user_agent},
                    follow_redirects=True
                )
        except httpx.TimeoutException:
            return self._failure(attempted_at, FetchStatus.TIMEOUT, "Request timed out")
        except httpx.HTTPError as e:
            return self._failure(attempted_at, FetchStatus.NETWORK_ERROR, str(e))

        return self._decode(attempted_at, response)

    def _decode(self, attempted_at: datetime, response: httpx.Response) -> FetchResult:
        if response.status_code != 200:
            return self._failure(
                attempted_at, FetchStatus.HTTP_ERROR,
                f"HTTP {response.status_code}", http_status=response.status_code
            )
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._failure(
                attempted_at, FetchStatus.PARSE_ERROR, str(e),
                http_status=response.status_code
            )

        return FetchResult(
            url=self._url,
            status=FetchStatus.SUCCESS,
            attempted_at=attempted_at,
            payload=payload,
            http_status=response.status_code,
        )

    def _failure(
        self,
        attempted_at: datetime,
        status: FetchStatus,
        message: str,
        http_status: Optional[int] = None
    ) -> FetchResult:
        logger.warning("Fetch of %s failed (%s): %s", self._url, status.value, message)
        return FetchResult(
            url=self._url,
            status=status,
            attempted_at=attempted_at,
            http_status=http_status,
            error_message=message,
        )
