"""
Shared utilities for speed test metrics calculations: throughput rates, latency statistics and display formatting.
"""

import logging
from typing import Iterable, Optional

import pandas as pd

from nexus_speedtest.configuration import (
    BITS_PER_BYTE,
    BITS_PER_MEGABIT,
    BYTES_PER_MB,
)

logger = logging.getLogger(__name__)


def calculate_throughput_mbps(total_bytes: float, duration_seconds: float) -> float:
    """
    Calculate throughput in megabits per second (Mbps) from bytes and duration.

    A megabit here is 1024 * 1024 bits, so one MiB per second reads as 8 Mbps.

    Args:
        total_bytes: Total bytes transferred
        duration_seconds: Duration in seconds

    Returns:
        Throughput in megabits per second (Mbps), 0.0 for a non-positive duration
    """
    if duration_seconds <= 0:
        return 0.0
    return (total_bytes * BITS_PER_BYTE) / BITS_PER_MEGABIT / duration_seconds


def calculate_latency_stats(samples: Iterable[Optional[float]]) -> Optional[dict]:
    """
    Calculate min, average and max latency over the successful probes.

    Failed probes are represented by ``None`` and are ignored.

    Args:
        samples: Round-trip times in milliseconds, ``None`` for a failed probe

    Returns:
        Dictionary with min, avg, max and count, or None when no probe succeeded
    """
    latencies = pd.Series(list(samples), dtype="float64").dropna()

    if latencies.empty:
        return None

    return {
        "min": float(latencies.min()),
        "avg": float(latencies.mean()),
        "max": float(latencies.max()),
        "count": int(latencies.count()),
    }


def bytes_to_mb(total_bytes: float) -> float:
    """Convert bytes to megabytes (MB, 1024 * 1024 bytes)."""
    return total_bytes / BYTES_PER_MB


def format_rate(mbps: float) -> str:
    """Format a rate the way the progress bars and summary show it."""
    return f"{mbps:.2f}"
