"""
Data structures for the speed test phases and their results.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nexus_speedtest.configuration import BYTES_PER_MB


class Direction(Enum):
    """Direction of a throughput phase."""

    DOWNLOAD = "download"
    UPLOAD = "upload"


@dataclass(frozen=True)
class TestConfiguration:
    """Inputs of a full test run, fixed at process start."""

    threads: int
    duration: float
    ping_count: int
    file_size_mb: float

    # Keep pytest from collecting this as a test class
    __test__ = False


@dataclass(frozen=True)
class LatencyResult:
    """Min/avg/max over the successful probes of one latency run."""

    min_ms: float
    avg_ms: float
    max_ms: float
    attempts: int
    successful: int

    @property
    def failed(self) -> int:
        return self.attempts - self.successful


@dataclass(frozen=True)
class ThroughputResult:
    """Outcome of one throughput phase."""

    direction: Direction
    mbps: float
    total_bytes: int
    duration: float
    attempts: int = 0
    failed_attempts: int = 0

    @property
    def total_mb(self) -> float:
        return self.total_bytes / BYTES_PER_MB

    @property
    def successful_attempts(self) -> int:
        return self.attempts - self.failed_attempts


@dataclass(frozen=True)
class IPInfo:
    """Caller address annotated by the geolocation API."""

    ip: str
    isp: str
    location: str


@dataclass(frozen=True)
class ServerDetails:
    """Resolved address and geolocation of the test server."""

    hostname: str
    ip: str
    isp: str
    location: str


@dataclass
class SpeedTestSummary:
    """Final scalar results of a full run."""

    configuration: TestConfiguration
    ip_info: IPInfo
    ping: Optional[LatencyResult] = None
    download: Optional[ThroughputResult] = None
    upload: Optional[ThroughputResult] = None
    timestamp: float = field(default_factory=time.time)
