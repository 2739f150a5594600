"""
Tests for run state transitions and cooperative cancellation.
"""

import asyncio
import time
import unittest

from nexus_speedtest.common.cancellation import CancellationCoordinator, RunState
from nexus_speedtest.common.exceptions import TransferCancelled


class TestCancellationCoordinator(unittest.IsolatedAsyncioTestCase):
    """Test the coordinator state machine and stop fan-out."""

    async def test_initial_state_is_running(self):
        coordinator = CancellationCoordinator("download")
        self.assertIs(coordinator.state, RunState.RUNNING)
        self.assertTrue(coordinator.is_running)
        self.assertFalse(coordinator.stop_event.is_set())

    async def test_request_stop_is_idempotent(self):
        coordinator = CancellationCoordinator("download")

        self.assertTrue(coordinator.request_stop())
        first_ts = coordinator.stop_requested_ts
        self.assertFalse(coordinator.request_stop())

        self.assertIs(coordinator.state, RunState.STOPPING)
        self.assertTrue(coordinator.stop_event.is_set())
        self.assertEqual(coordinator.stop_requested_ts, first_ts)

    async def test_mark_stopped(self):
        coordinator = CancellationCoordinator("upload")
        coordinator.request_stop()
        coordinator.mark_stopped()
        coordinator.mark_stopped()

        self.assertIs(coordinator.state, RunState.STOPPED)
        self.assertFalse(coordinator.is_running)
        self.assertEqual(coordinator.get_phase_info()["state"], "stopped")

    async def test_mark_stopped_from_running_signals_stop(self):
        coordinator = CancellationCoordinator("upload")
        coordinator.mark_stopped()
        self.assertTrue(coordinator.stop_event.is_set())
        self.assertIs(coordinator.state, RunState.STOPPED)

    async def test_wait_times_out_while_running(self):
        coordinator = CancellationCoordinator("download")
        self.assertFalse(await coordinator.wait(0.01))

    async def test_wait_is_interrupted_by_stop(self):
        coordinator = CancellationCoordinator("download")
        asyncio.get_running_loop().call_later(0.05, coordinator.request_stop)

        started = time.perf_counter()
        self.assertTrue(await coordinator.wait(5))
        self.assertLess(time.perf_counter() - started, 1.0)

    async def test_run_cancellable_returns_result(self):
        coordinator = CancellationCoordinator("download")

        async def transfer():
            await asyncio.sleep(0)
            return 42

        self.assertEqual(await coordinator.run_cancellable(transfer()), 42)

    async def test_run_cancellable_propagates_errors(self):
        coordinator = CancellationCoordinator("download")

        async def transfer():
            raise ValueError("boom")

        with self.assertRaises(ValueError):
            await coordinator.run_cancellable(transfer())

    async def test_run_cancellable_aborts_in_flight_transfer(self):
        coordinator = CancellationCoordinator("download")
        transfer_cancelled = asyncio.Event()

        async def transfer():
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                transfer_cancelled.set()
                raise

        asyncio.get_running_loop().call_later(0.05, coordinator.request_stop)

        started = time.perf_counter()
        with self.assertRaises(TransferCancelled):
            await coordinator.run_cancellable(transfer())
        self.assertLess(time.perf_counter() - started, 1.0)
        self.assertTrue(transfer_cancelled.is_set())

    async def test_run_cancellable_refuses_after_stop(self):
        coordinator = CancellationCoordinator("download")
        coordinator.request_stop()
        started = []

        async def transfer():
            started.append(True)

        with self.assertRaises(TransferCancelled):
            await coordinator.run_cancellable(transfer())
        self.assertEqual(started, [])


if __name__ == "__main__":
    unittest.main()
