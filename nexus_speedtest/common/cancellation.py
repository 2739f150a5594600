"""
Run state and cancellation coordination for one throughput phase.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Dict, Optional

from nexus_speedtest.common.exceptions import TransferCancelled

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifetime of a throughput phase."""

    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class CancellationCoordinator:
    """Owns the run state of one phase and fans out its stop signal.

    Workers observe the signal in two places: at the top of their loop
    (``is_running``) and inside every transfer (``run_cancellable``).
    """

    def __init__(self, phase_id: str):
        """Initialize the coordinator.

        Args:
            phase_id: Identifier of the owning phase (e.g., "download", "upload")
        """
        self.phase_id = phase_id
        self.state = RunState.RUNNING
        self.stop_event = asyncio.Event()
        self.phase_start_ts: float = time.time()
        self.stop_requested_ts: Optional[float] = None
        self.stopped_ts: Optional[float] = None

        logger.debug(f"Initialized coordinator for phase: {phase_id}")

    @property
    def is_running(self) -> bool:
        return self.state is RunState.RUNNING

    def request_stop(self) -> bool:
        """Move RUNNING -> STOPPING and signal every in-flight transfer.

        Safe to call more than once; only the first call has an effect.

        Returns:
            True if this call performed the transition
        """
        if self.state is not RunState.RUNNING:
            return False

        self.state = RunState.STOPPING
        self.stop_requested_ts = time.time()
        self.stop_event.set()

        logger.info(f"Phase {self.phase_id} stopping")
        return True

    def mark_stopped(self) -> None:
        """Move to STOPPED once every worker has settled."""
        if self.state is RunState.STOPPED:
            return
        if self.state is RunState.RUNNING:
            self.request_stop()

        self.state = RunState.STOPPED
        self.stopped_ts = time.time()

        logger.info(f"Phase {self.phase_id} stopped")

    async def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless the stop signal fires first.

        Returns:
            True if the run stopped during the wait
        """
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def run_cancellable(self, aw: Awaitable) -> Any:
        """Await a transfer, aborting it as soon as the stop signal fires.

        Raises:
            TransferCancelled: if the run stopped before the transfer finished
        """
        if not self.is_running:
            # Close the coroutine so it is not reported as never awaited
            if asyncio.iscoroutine(aw):
                aw.close()
            raise TransferCancelled(f"Phase {self.phase_id} is no longer running")

        transfer = asyncio.ensure_future(aw)
        stopper = asyncio.ensure_future(self.stop_event.wait())
        try:
            await asyncio.wait(
                {transfer, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stopper.cancel()
            if not transfer.done():
                transfer.cancel()
                await asyncio.gather(transfer, return_exceptions=True)

        if transfer.cancelled():
            raise TransferCancelled(f"Transfer aborted: phase {self.phase_id} stopped")
        return transfer.result()

    def get_phase_info(self) -> Dict[str, Any]:
        """Get the current phase information."""
        return {
            "phase_id": self.phase_id,
            "state": self.state.value,
            "phase_start_ts": self.phase_start_ts,
            "stop_requested_ts": self.stop_requested_ts,
            "stopped_ts": self.stopped_ts,
        }

    def __repr__(self) -> str:
        return f"CancellationCoordinator(phase_id='{self.phase_id}', state={self.state.value})"
