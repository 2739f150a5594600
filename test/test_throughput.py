"""
Tests for the time-windowed throughput engine.
"""

import asyncio
import time
import unittest

from nexus_speedtest.algorithms.throughput import ThroughputTest
from nexus_speedtest.common.cancellation import RunState
from nexus_speedtest.common.exceptions import TransferCancelled, TransferError
from nexus_speedtest.common.metrics_utils import format_rate
from nexus_speedtest.common.models import Direction
from nexus_speedtest.visualization.progress import throughput_progress


def quiet_reporter(label="Download"):
    return throughput_progress(label, enabled=False)


class FixedBytesClient:
    """First download attempt credits a fixed byte count, later ones idle until cancelled."""

    def __init__(self, fixed_bytes):
        self.fixed_bytes = fixed_bytes
        self.credited = False

    async def download(self, progress, coordinator):
        async def transfer():
            if not self.credited:
                self.credited = True
                progress.update(self.fixed_bytes)
                return self.fixed_bytes
            await asyncio.sleep(30)

        return await coordinator.run_cancellable(transfer())


class StreamingClient:
    """Streams fixed-size chunks at a fixed pace until the phase stops."""

    def __init__(self, chunk_size=1024, delay=0.01):
        self.chunk_size = chunk_size
        self.delay = delay
        self.attempt_starts = []

    async def download(self, progress, coordinator):
        self.attempt_starts.append((time.perf_counter(), coordinator.is_running))

        async def transfer():
            loaded = 0
            while True:
                await asyncio.sleep(self.delay)
                if not coordinator.is_running:
                    raise TransferCancelled("stopped")
                loaded += self.chunk_size
                progress.update(loaded)

        return await coordinator.run_cancellable(transfer())


class FailingClient:
    """Every attempt fails."""

    def __init__(self):
        self.attempts = 0

    async def download(self, progress, coordinator):
        self.attempts += 1
        raise TransferError("connection refused")

    async def upload(self, payload, coordinator):
        self.attempts += 1
        raise TransferError("connection refused")


class UploadClient:
    """Accepts the whole payload after a short delay."""

    def __init__(self, delay=0.05):
        self.delay = delay
        self.accepted = 0

    async def upload(self, payload, coordinator):
        async def transfer():
            await asyncio.sleep(self.delay)
            self.accepted += 1
            return len(payload)

        return await coordinator.run_cancellable(transfer())


class SlowUploadClient:
    """Never finishes an upload inside the window."""

    async def upload(self, payload, coordinator):
        return await coordinator.run_cancellable(asyncio.sleep(30, result=len(payload)))


class TestThroughputTest(unittest.IsolatedAsyncioTestCase):
    """Test rate calculation, termination and attribution rules."""

    async def test_rate_uses_configured_duration(self):
        fixed_bytes = 3 * 1024 * 1024 + 517
        duration = 0.3
        test = ThroughputTest(FixedBytesClient(fixed_bytes), Direction.DOWNLOAD, threads=4,
                              duration=duration, reporter=quiet_reporter())

        result = await test.execute()

        self.assertEqual(result.total_bytes, fixed_bytes)
        self.assertEqual(result.mbps, fixed_bytes * 8 / (1024 * 1024) / duration)
        self.assertEqual(result.duration, duration)

    async def test_final_display_update_uses_duration(self):
        reporter = quiet_reporter()
        test = ThroughputTest(FixedBytesClient(1024 * 1024), Direction.DOWNLOAD, threads=1,
                              duration=0.25, reporter=reporter)

        result = await test.execute()

        snapshot = reporter.snapshot()
        self.assertEqual(snapshot["value"], 0.25)
        self.assertEqual(snapshot["total"], 0.25)
        self.assertEqual(snapshot["speed"], format_rate(result.mbps))
        self.assertTrue(reporter.finished)
        self.assertGreater(reporter.updates, 1)

    async def test_all_attempts_failing_yields_zero(self):
        client = FailingClient()
        test = ThroughputTest(client, Direction.DOWNLOAD, threads=2, duration=0.3,
                              reporter=quiet_reporter(), retry_delay=0.02)

        result = await test.execute()

        self.assertEqual(result.mbps, 0.0)
        self.assertEqual(result.total_bytes, 0)
        self.assertGreater(client.attempts, 2)
        self.assertEqual(result.failed_attempts, result.attempts)

    async def test_terminates_close_to_duration(self):
        duration = 0.3
        test = ThroughputTest(StreamingClient(delay=0.05), Direction.DOWNLOAD, threads=16,
                              duration=duration, reporter=quiet_reporter())

        started = time.perf_counter()
        await test.execute()
        elapsed = time.perf_counter() - started

        self.assertGreaterEqual(elapsed, duration)
        self.assertLess(elapsed, duration + 1.0)
        self.assertIs(test.coordinator.state, RunState.STOPPED)

    async def test_streaming_bytes_are_credited(self):
        client = StreamingClient(chunk_size=1000, delay=0.01)
        test = ThroughputTest(client, Direction.DOWNLOAD, threads=2, duration=0.3,
                              reporter=quiet_reporter())

        result = await test.execute()

        self.assertGreater(result.total_bytes, 0)
        self.assertEqual(result.total_bytes % 1000, 0)

    async def test_no_attempt_starts_after_stop(self):
        client = StreamingClient(delay=0.01)
        test = ThroughputTest(client, Direction.DOWNLOAD, threads=8, duration=0.2,
                              reporter=quiet_reporter())

        await test.execute()

        self.assertTrue(all(running for _, running in client.attempt_starts))

    async def test_upload_credits_whole_payloads(self):
        payload = b"x" * 1000
        client = UploadClient(delay=0.02)
        test = ThroughputTest(client, Direction.UPLOAD, threads=3, duration=0.3,
                              payload=payload, reporter=quiet_reporter("Upload"))

        result = await test.execute()

        self.assertGreater(result.total_bytes, 0)
        self.assertEqual(result.total_bytes % len(payload), 0)
        self.assertLessEqual(result.total_bytes, client.accepted * len(payload))

    async def test_upload_gets_no_partial_credit(self):
        test = ThroughputTest(SlowUploadClient(), Direction.UPLOAD, threads=2, duration=0.2,
                              payload=b"x" * 4096, reporter=quiet_reporter("Upload"))

        result = await test.execute()

        self.assertEqual(result.total_bytes, 0)
        self.assertEqual(result.mbps, 0.0)

    async def test_upload_failures_yield_zero(self):
        test = ThroughputTest(FailingClient(), Direction.UPLOAD, threads=1, duration=0.2,
                              payload=b"x", reporter=quiet_reporter("Upload"), retry_delay=0.02)

        result = await test.execute()

        self.assertEqual(result.mbps, 0.0)


class TestThroughputTestValidation(unittest.TestCase):
    """Test constructor checks."""

    def test_duration_must_be_positive(self):
        with self.assertRaises(ValueError):
            ThroughputTest(FailingClient(), Direction.DOWNLOAD, threads=1, duration=0,
                           reporter=quiet_reporter())

    def test_duration_must_be_finite(self):
        for duration in (float("nan"), float("inf")):
            with self.subTest(duration=duration):
                with self.assertRaises(ValueError):
                    ThroughputTest(FailingClient(), Direction.DOWNLOAD, threads=1, duration=duration,
                                   reporter=quiet_reporter())

    def test_threads_must_be_positive(self):
        with self.assertRaises(ValueError):
            ThroughputTest(FailingClient(), Direction.DOWNLOAD, threads=0, duration=1,
                           reporter=quiet_reporter())

    def test_upload_requires_payload(self):
        with self.assertRaises(ValueError):
            ThroughputTest(FailingClient(), Direction.UPLOAD, threads=1, duration=1,
                           reporter=quiet_reporter("Upload"))


if __name__ == "__main__":
    unittest.main()
