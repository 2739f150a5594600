"""
Async HTTP transfer client for the speed test endpoints.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from aiohttp.client_exceptions import ClientPayloadError, ClientResponseError

from nexus_speedtest.common.byte_counter import TransferProgress
from nexus_speedtest.common.cancellation import CancellationCoordinator
from nexus_speedtest.common.exceptions import TransferCancelled, TransferError
from nexus_speedtest.configuration import (
    DOWNLOAD_CHUNK_SIZE,
    MAX_THREADS,
    MS_PER_SECOND,
    PING_TIMEOUT_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    UPLOAD_CONTENT_TYPE,
    USER_AGENTS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerEndpoint:
    """Static description of a test server."""

    hostname: str
    download_url: str
    upload_url: str
    latency_url: str


def choose_user_agent() -> str:
    """Pick the User-Agent for one phase run."""
    return random.choice(USER_AGENTS)


class TransferClient:
    """Async HTTP client bound to one endpoint and one User-Agent.

    Use as an async context manager; every transfer method accepts the
    phase's coordinator so the request is aborted when the phase stops.
    """

    def __init__(
        self,
        endpoint: ServerEndpoint,
        user_agent: str = None,
        request_timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_connections: int = MAX_THREADS,
    ):
        self.endpoint = endpoint
        self.user_agent = user_agent or choose_user_agent()
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self.session: Optional[aiohttp.ClientSession] = None

        self._metrics = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "cancelled_requests": 0,
            "total_bytes": 0,
        }

        logger.debug(f"Initialized transfer client for {endpoint.hostname} (UA: {self.user_agent})")

    async def __aenter__(self):
        """Async context manager entry."""
        connector = aiohttp.TCPConnector(limit=self.max_connections, force_close=False)
        self.session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self.user_agent},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("Transfer client not initialized. Use async context manager.")
        return self.session

    def _timeout(self, seconds: float) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=seconds)

    async def probe(self, timeout: float = PING_TIMEOUT_SECONDS) -> float:
        """Fetch the latency URL once and return the round trip in milliseconds.

        Raises:
            TransferError: if the request fails or times out
        """
        session = self._require_session()
        start_time = time.perf_counter()
        try:
            async with session.get(self.endpoint.latency_url, timeout=self._timeout(timeout)) as response:
                response.raise_for_status()
                await response.read()
        except Exception as e:
            raise self._wrap_error(e, "probe") from e
        return (time.perf_counter() - start_time) * MS_PER_SECOND

    async def download(self, progress: TransferProgress, coordinator: CancellationCoordinator) -> int:
        """Stream the download payload once, crediting bytes as they arrive.

        Returns:
            Bytes received by this attempt

        Raises:
            TransferCancelled: if the phase stopped mid-transfer
            TransferError: if the request fails or times out
        """
        self._require_session()
        return await self._tracked(
            coordinator.run_cancellable(self._download(progress, coordinator)), "download"
        )

    async def _download(self, progress: TransferProgress, coordinator: CancellationCoordinator) -> int:
        session = self._require_session()
        loaded = 0
        async with session.get(
            self.endpoint.download_url, timeout=self._timeout(self.request_timeout)
        ) as response:
            response.raise_for_status()
            async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                if not coordinator.is_running:
                    raise TransferCancelled("Download aborted: phase stopped")
                loaded += len(chunk)
                progress.update(loaded)
        return loaded

    async def upload(self, payload: bytes, coordinator: CancellationCoordinator) -> int:
        """POST the payload once.

        Returns:
            Payload size, only when the server accepted the whole body

        Raises:
            TransferCancelled: if the phase stopped mid-transfer
            TransferError: if the request fails or times out
        """
        self._require_session()
        return await self._tracked(
            coordinator.run_cancellable(self._upload(payload)), "upload"
        )

    async def _upload(self, payload: bytes) -> int:
        session = self._require_session()
        async with session.post(
            self.endpoint.upload_url,
            data=payload,
            headers={"Content-Type": UPLOAD_CONTENT_TYPE},
            timeout=self._timeout(self.request_timeout),
        ) as response:
            response.raise_for_status()
            await response.read()
        return len(payload)

    async def _tracked(self, aw, operation: str) -> int:
        """Await a transfer, translating and counting its failures."""
        self._metrics["total_requests"] += 1
        try:
            nbytes = await aw
        except TransferCancelled:
            self._metrics["cancelled_requests"] += 1
            raise
        except TransferError:
            self._metrics["failed_requests"] += 1
            raise
        except Exception as e:
            self._metrics["failed_requests"] += 1
            raise self._wrap_error(e, operation) from e

        self._metrics["successful_requests"] += 1
        self._metrics["total_bytes"] += nbytes
        return nbytes

    def _wrap_error(self, error: Exception, operation: str) -> TransferError:
        """Map aiohttp and socket failures onto TransferError."""
        if isinstance(error, ClientResponseError):
            if error.status in (429, 503):
                logger.warning(f"Server throttling {operation}: HTTP {error.status}")
            return TransferError(f"HTTP {error.status} during {operation}", status=error.status)
        if isinstance(error, asyncio.TimeoutError):
            return TransferError(f"Timeout during {operation}")
        if isinstance(error, ClientPayloadError):
            return TransferError(f"Incomplete payload during {operation}: {error}")
        if isinstance(error, (aiohttp.ClientError, OSError)):
            return TransferError(f"{type(error).__name__} during {operation}: {error}")
        logger.error(f"Unexpected error during {operation}: {error}", exc_info=True)
        return TransferError(f"Unexpected {type(error).__name__} during {operation}: {error}")

    def get_metrics(self) -> Dict[str, Any]:
        """Get request counters for this client."""
        metrics = self._metrics.copy()
        if metrics["total_requests"] > 0:
            metrics["success_rate"] = metrics["successful_requests"] / metrics["total_requests"]
        else:
            metrics["success_rate"] = 0
        return metrics
