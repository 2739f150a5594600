"""
Full speed test run: environment lookups, then latency, download and upload phases.
"""

import asyncio
import logging
import time
from contextlib import ExitStack
from typing import Callable, Optional

from rich.console import Console

from nexus_speedtest.algorithms.latency import LatencyTest
from nexus_speedtest.algorithms.throughput import ThroughputTest
from nexus_speedtest.common.exceptions import ConfigurationError
from nexus_speedtest.common.models import (
    Direction,
    LatencyResult,
    SpeedTestSummary,
    TestConfiguration,
    ThroughputResult,
)
from nexus_speedtest.common.payload import random_payload_file, read_payload
from nexus_speedtest.observability.geoip import lookup_ip_info
from nexus_speedtest.observability.server import get_server_details
from nexus_speedtest.systems.base import ServerEndpoint, TransferClient, choose_user_agent
from nexus_speedtest.systems.metricell import METRICELL_ENDPOINT
from nexus_speedtest.visualization.console import ConsoleRenderer
from nexus_speedtest.visualization.progress import ping_progress, throughput_progress

logger = logging.getLogger(__name__)


class SpeedTestRunner:
    """Runs the phases strictly one after another and renders the summary."""

    def __init__(
        self,
        configuration: TestConfiguration,
        endpoint: ServerEndpoint = METRICELL_ENDPOINT,
        console: Console = None,
        show_progress: bool = True,
        client_factory: Callable[..., TransferClient] = TransferClient,
    ):
        self.configuration = configuration
        self.endpoint = endpoint
        self.console = console or Console()
        self.show_progress = show_progress
        self.client_factory = client_factory
        self.renderer = ConsoleRenderer(self.console)

        logger.info(
            f"Initialized speed test runner: {configuration.threads} threads, "
            f"{configuration.duration}s, {configuration.ping_count} pings, "
            f"{configuration.file_size_mb} MB upload payload"
        )

    def _create_client(self) -> TransferClient:
        """New client per phase with its own randomly chosen User-Agent."""
        return self.client_factory(
            self.endpoint,
            user_agent=choose_user_agent(),
            max_connections=self.configuration.threads,
        )

    async def run_latency(self) -> Optional[LatencyResult]:
        """Run the ping phase."""
        self.renderer.phase_header("PING TEST")

        async with self._create_client() as client:
            test = LatencyTest(
                client,
                self.configuration.ping_count,
                reporter=ping_progress(self.console, enabled=self.show_progress),
            )
            result = await test.execute()

        self.renderer.latency_result(result)
        return result

    async def run_download(self) -> ThroughputResult:
        """Run the download phase."""
        self.renderer.phase_header("DOWNLOAD TEST")

        async with self._create_client() as client:
            test = ThroughputTest(
                client,
                Direction.DOWNLOAD,
                self.configuration.threads,
                self.configuration.duration,
                reporter=throughput_progress("Download", self.console, enabled=self.show_progress),
            )
            result = await test.execute()

        self.renderer.throughput_result(result)
        return result

    async def run_upload(self) -> Optional[ThroughputResult]:
        """Run the upload phase; returns None if the payload cannot be generated."""
        self.renderer.phase_header("UPLOAD TEST")

        with ExitStack() as stack:
            try:
                path = stack.enter_context(random_payload_file(self.configuration.file_size_mb))
                payload = read_payload(path)
            except (ConfigurationError, OSError) as e:
                logger.error(f"Error generating test file: {e}")
                self.renderer.error(f"Error generating test file: {e}")
                return None

            async with self._create_client() as client:
                test = ThroughputTest(
                    client,
                    Direction.UPLOAD,
                    self.configuration.threads,
                    self.configuration.duration,
                    payload=payload,
                    reporter=throughput_progress("Upload", self.console, enabled=self.show_progress),
                )
                result = await test.execute()

        self.renderer.throughput_result(result)
        return result

    async def run_speedtest(self) -> SpeedTestSummary:
        """Execute the complete speed test."""
        logger.info("Starting speed test")
        self.renderer.banner()

        loop = asyncio.get_running_loop()
        ip_info = await loop.run_in_executor(None, lookup_ip_info)
        self.renderer.client_info(ip_info, self.configuration)

        self.console.print("[yellow]Connecting to server...[/]")
        server_details = await get_server_details(self.endpoint.hostname)
        self.renderer.server_details(server_details)

        summary = SpeedTestSummary(configuration=self.configuration, ip_info=ip_info)
        summary.ping = await self.run_latency()
        summary.download = await self.run_download()
        summary.upload = await self.run_upload()

        summary.timestamp = time.time()
        self.renderer.summary(summary)
        self.renderer.disclaimer()

        logger.info("Speed test completed")
        return summary
