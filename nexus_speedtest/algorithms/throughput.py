"""
Time-windowed multi-worker throughput measurement.
"""

import asyncio
import logging
import math
import time
from typing import Optional

from nexus_speedtest.common.byte_counter import ByteCounter, TransferProgress
from nexus_speedtest.common.cancellation import CancellationCoordinator
from nexus_speedtest.common.metrics_utils import calculate_throughput_mbps, format_rate
from nexus_speedtest.common.models import Direction, ThroughputResult
from nexus_speedtest.common.worker_pool import TransferWorkerPool
from nexus_speedtest.configuration import ERROR_RETRY_DELAY, PROGRESS_INTERVAL_SECONDS
from nexus_speedtest.visualization.progress import ProgressReporter, throughput_progress

logger = logging.getLogger(__name__)


class ThroughputTest:
    """Runs N workers against one endpoint for a fixed wall-clock duration.

    Every run owns its byte counter, its cancellation coordinator and its
    progress reporter. The final rate always divides by the configured
    duration, not by the measured elapsed time.
    """

    def __init__(
        self,
        client,
        direction: Direction,
        threads: int,
        duration: float,
        payload: Optional[bytes] = None,
        reporter: Optional[ProgressReporter] = None,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
        retry_delay: float = ERROR_RETRY_DELAY,
    ):
        if not math.isfinite(duration) or duration <= 0:
            raise ValueError(f"Duration must be a positive finite number, got {duration}")
        if threads < 1:
            raise ValueError(f"At least one worker is required, got {threads}")
        if direction is Direction.UPLOAD and not payload:
            raise ValueError("Upload test requires a non-empty payload")

        self.client = client
        self.direction = direction
        self.threads = threads
        self.duration = duration
        self.payload = payload
        self.reporter = reporter or throughput_progress(direction.value.capitalize())
        self.progress_interval = progress_interval
        self.retry_delay = retry_delay

        self.counter = ByteCounter()
        self.coordinator = CancellationCoordinator(direction.value)

        logger.info(f"Initialized {direction.value} test: {threads} workers for {duration}s")

    async def _download_attempt(self, worker_id: int) -> int:
        progress = TransferProgress(self.counter)
        return await self.client.download(progress, self.coordinator)

    async def _upload_attempt(self, worker_id: int) -> int:
        sent = await self.client.upload(self.payload, self.coordinator)
        # Full credit only for a body accepted before the cutoff
        if self.coordinator.is_running:
            self.counter.add(sent)
        return sent

    async def _timer(self, start_time: float) -> None:
        """Tick the display until the duration elapses, then trigger the stop."""
        while True:
            elapsed = time.perf_counter() - start_time
            if elapsed >= self.duration:
                self.coordinator.request_stop()
                final_mbps = calculate_throughput_mbps(self.counter.total, self.duration)
                self.reporter.update(self.duration, speed=format_rate(final_mbps))
                return

            current_mbps = calculate_throughput_mbps(self.counter.total, elapsed)
            self.reporter.update(int(elapsed), speed=format_rate(current_mbps))
            await asyncio.sleep(min(self.progress_interval, self.duration - elapsed))

    async def execute(self) -> ThroughputResult:
        """Execute the phase and return its throughput."""
        logger.info(f"Starting {self.direction.value} test with {self.threads} workers...")

        if self.direction is Direction.DOWNLOAD:
            attempt = self._download_attempt
        else:
            attempt = self._upload_attempt

        pool = TransferWorkerPool(attempt, self.coordinator, self.threads, self.retry_delay)

        self.reporter.start(self.duration, speed=format_rate(0.0))
        start_time = time.perf_counter()
        timer = asyncio.create_task(self._timer(start_time), name=f"{self.direction.value}-timer")
        try:
            pool.start()
            await timer
            await pool.wait_settled()
        finally:
            # Unwind everything if the phase itself is interrupted
            if not timer.done():
                timer.cancel()
                await asyncio.gather(timer, return_exceptions=True)
            await pool.cleanup()
            self.coordinator.mark_stopped()
            self.reporter.stop()

        total_bytes = self.counter.total
        stats = pool.get_stats()
        result = ThroughputResult(
            direction=self.direction,
            mbps=calculate_throughput_mbps(total_bytes, self.duration),
            total_bytes=total_bytes,
            duration=self.duration,
            attempts=stats["total_requests"],
            failed_attempts=stats["error_requests"],
        )

        logger.info(
            f"{self.direction.value.capitalize()} test completed: {format_rate(result.mbps)} Mbps, "
            f"{stats['successful_requests']}/{stats['total_requests']} attempts, "
            f"{time.perf_counter() - start_time:.2f}s wall clock"
        )
        if total_bytes == 0:
            logger.warning(f"No data transferred during the {self.direction.value} test")
        return result
