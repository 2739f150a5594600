"""
Async worker pool that keeps N transfer attempts going until its phase stops.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List

from nexus_speedtest.common.cancellation import CancellationCoordinator
from nexus_speedtest.common.exceptions import TransferCancelled, TransferError
from nexus_speedtest.configuration import ERROR_RETRY_DELAY

logger = logging.getLogger(__name__)

# One transfer attempt for the given worker id
AttemptFn = Callable[[int], Awaitable[Any]]


class TransferWorkerPool:
    """Runs independent workers that repeat an attempt while the phase is running."""

    def __init__(
        self,
        attempt: AttemptFn,
        coordinator: CancellationCoordinator,
        workers: int,
        retry_delay: float = None,
    ):
        """Initialize the worker pool.

        Args:
            attempt: Coroutine function performing one transfer attempt
            coordinator: Cancellation coordinator of the owning phase
            workers: Number of concurrent workers to run
            retry_delay: Backoff after a failed attempt (default: from configuration)
        """
        self.attempt = attempt
        self.coordinator = coordinator
        self.workers = workers
        self.retry_delay = ERROR_RETRY_DELAY if retry_delay is None else retry_delay

        self.worker_tasks: List[asyncio.Task] = []
        self.worker_states: Dict[int, Dict[str, int]] = {}

    def start(self) -> None:
        """Start one task per worker."""
        if self.worker_tasks:
            raise RuntimeError("Worker pool already started")

        for i in range(self.workers):
            self.worker_states[i] = {
                "requests_completed": 0,
                "total_errors": 0,
                "cancelled": 0,
            }
            task = asyncio.create_task(self._worker_task(i), name=f"{self.coordinator.phase_id}-worker-{i}")
            self.worker_tasks.append(task)

        logger.info(f"Started {self.workers} {self.coordinator.phase_id} workers")

    async def _worker_task(self, worker_id: int) -> None:
        """Repeat attempts until the run leaves RUNNING."""
        worker_state = self.worker_states[worker_id]

        while self.coordinator.is_running:
            try:
                await self.attempt(worker_id)
                worker_state["requests_completed"] += 1
            except TransferCancelled:
                worker_state["cancelled"] += 1
                break
            except TransferError as e:
                if not self.coordinator.is_running:
                    break
                worker_state["total_errors"] += 1
                logger.debug(f"Worker {worker_id} attempt failed, retrying: {e}")
                await self.coordinator.wait(self.retry_delay)

        logger.debug(
            f"Worker {worker_id} exiting after {worker_state['requests_completed']} attempts, "
            f"{worker_state['total_errors']} errors"
        )

    async def wait_settled(self) -> None:
        """Wait until every worker has observed the stop signal and exited."""
        if not self.worker_tasks:
            return

        results = await asyncio.gather(*self.worker_tasks, return_exceptions=True)
        for worker_id, result in enumerate(results):
            if isinstance(result, asyncio.CancelledError):
                logger.debug(f"Worker {worker_id} was cancelled")
            elif isinstance(result, BaseException):
                logger.error(f"Worker {worker_id} fatal error: {result}")

    async def cleanup(self) -> None:
        """Stop the phase and wait for every worker to unwind."""
        self.coordinator.request_stop()
        await self.wait_settled()

    def get_stats(self) -> Dict[str, Any]:
        """Aggregate attempt counters across workers."""
        completed = sum(s["requests_completed"] for s in self.worker_states.values())
        errors = sum(s["total_errors"] for s in self.worker_states.values())
        return {
            "workers": self.workers,
            "successful_requests": completed,
            "error_requests": errors,
            "total_requests": completed + errors,
            "error_rate": errors / (completed + errors) if completed + errors else 0.0,
        }
