"""
Configuration constants for the Nexus speed test.

This module contains all configuration parameters including:
- Test server endpoints and request headers
- CLI defaults and bounds (threads, duration, ping count, payload size)
- Timeouts, tick intervals and retry delays
- File size constants and conversion factors
"""

import os
from typing import List

# =============================================================================
# TEST SERVER CONFIGURATION
# =============================================================================

SERVER_HOSTNAME: str = "mcmc-my.metricelltestcloud.com"
DOWNLOAD_URL: str = f"https://{SERVER_HOSTNAME}/SpeedTest/100mb.jpg"
UPLOAD_URL: str = f"https://{SERVER_HOSTNAME}/UploadSpeedTest"
LATENCY_URL: str = f"https://{SERVER_HOSTNAME}/speedtest/latency.txt"

# One is picked at random per phase run and reused by all of its workers
USER_AGENTS: List[str] = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_7_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.1.2 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 11; SM-G998B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.120 Mobile Safari/537.36",
]

UPLOAD_CONTENT_TYPE: str = "application/octet-stream"

# =============================================================================
# GEOLOCATION CONFIGURATION
# =============================================================================

GEOIP_API_URL: str = os.getenv("GEOIP_API_URL", "https://api.ip.sb/geoip")
GEOIP_TIMEOUT_SECONDS: float = 5.0

UNKNOWN: str = "Unknown"
UNKNOWN_ISP: str = "Unknown ISP"
UNKNOWN_LOCATION: str = "Unknown location"
UNKNOWN_SERVER_LOCATION: str = "Unknown / Anycast"

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_THREADS: int = 8
MIN_THREADS: int = 1
MAX_THREADS: int = 64

DEFAULT_TEST_DURATION: float = 15  # seconds

DEFAULT_PING_COUNT: int = 4
MIN_PING_COUNT: int = 1
MAX_PING_COUNT: int = 10

DEFAULT_FILE_SIZE_MB: float = 2

PROJECT_URL: str = "https://github.com/samleong123/mcmc-nexus-cli"

# =============================================================================
# TIMEOUTS AND INTERVALS
# =============================================================================

PING_TIMEOUT_SECONDS: float = 5.0
PING_INTERVAL_SECONDS: float = 1.0  # Delay between probes, skipped after the last one

REQUEST_TIMEOUT_SECONDS: float = 10.0  # Per transfer attempt
ERROR_RETRY_DELAY: float = 0.25  # Backoff after a failed transfer attempt

PROGRESS_INTERVAL_SECONDS: float = 0.2  # Throughput timer tick

# =============================================================================
# FILE SIZE CONSTANTS
# =============================================================================

BYTES_PER_MB: int = 1024 * 1024
BITS_PER_BYTE: int = 8
BITS_PER_MEGABIT: int = 1024 * 1024
MS_PER_SECOND: int = 1000

PAYLOAD_CHUNK_SIZE: int = BYTES_PER_MB  # Random payload is written 1 MiB at a time
DOWNLOAD_CHUNK_SIZE: int = 64 * 1024  # Granularity of download progress notifications
