"""
Sequential HTTP latency sampling against the test server.
"""

import asyncio
import logging
from typing import List, Optional

from nexus_speedtest.common.exceptions import TransferError
from nexus_speedtest.common.metrics_utils import calculate_latency_stats
from nexus_speedtest.common.models import LatencyResult
from nexus_speedtest.configuration import PING_INTERVAL_SECONDS, PING_TIMEOUT_SECONDS
from nexus_speedtest.visualization.progress import ProgressReporter, ping_progress

logger = logging.getLogger(__name__)


class LatencyTest:
    """Measures round-trip time with P sequential probes."""

    def __init__(
        self,
        client,
        ping_count: int,
        interval_seconds: float = PING_INTERVAL_SECONDS,
        timeout_seconds: float = PING_TIMEOUT_SECONDS,
        reporter: ProgressReporter = None,
    ):
        self.client = client
        self.ping_count = ping_count
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.reporter = reporter or ping_progress()
        self.samples: List[Optional[float]] = []

        logger.info(f"Initialized latency test: {ping_count} pings")

    async def execute(self) -> Optional[LatencyResult]:
        """Run every probe and summarise the successful ones.

        Returns:
            LatencyResult, or None when every probe failed
        """
        self.samples = []
        self.reporter.start(self.ping_count, latency="N/A")

        try:
            for attempt in range(1, self.ping_count + 1):
                try:
                    latency_ms = await self.client.probe(timeout=self.timeout_seconds)
                except TransferError as e:
                    self.samples.append(None)
                    self.reporter.update(attempt, latency="Failed")
                    logger.error(f"Ping error on attempt {attempt}: {e}")
                else:
                    self.samples.append(latency_ms)
                    self.reporter.update(attempt, latency=f"{latency_ms:.2f}")

                if attempt < self.ping_count:
                    await asyncio.sleep(self.interval_seconds)
        finally:
            self.reporter.stop()

        stats = calculate_latency_stats(self.samples)
        if stats is None:
            logger.error("All ping attempts failed")
            return None

        result = LatencyResult(
            min_ms=stats["min"],
            avg_ms=stats["avg"],
            max_ms=stats["max"],
            attempts=len(self.samples),
            successful=stats["count"],
        )
        logger.info(
            f"Latency test completed: avg {result.avg_ms:.2f} ms "
            f"({result.successful}/{result.attempts} pings)"
        )
        return result
