"""
Random upload payload generation backed by a scoped temporary file.
"""

import logging
import math
import os
import secrets
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from nexus_speedtest.common.exceptions import ConfigurationError
from nexus_speedtest.configuration import BYTES_PER_MB, PAYLOAD_CHUNK_SIZE

logger = logging.getLogger(__name__)


def payload_size_bytes(size_mb: float) -> int:
    """Convert a payload size in MB to bytes, rejecting empty payloads."""
    if not math.isfinite(size_mb):
        raise ConfigurationError(f"File size must be a finite number of MB, got {size_mb}")
    size_bytes = int(size_mb * BYTES_PER_MB)
    if size_bytes <= 0:
        raise ConfigurationError("File size must be greater than 0 MB")
    return size_bytes


def generate_random_data(size_mb: float, chunk_size: int = PAYLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    """Generate cryptographically random data in chunks to bound memory use."""
    total_size = payload_size_bytes(size_mb)

    for offset in range(0, total_size, chunk_size):
        yield secrets.token_bytes(min(chunk_size, total_size - offset))


@contextmanager
def random_payload_file(size_mb: float, directory: Optional[str] = None,
                        chunk_size: int = PAYLOAD_CHUNK_SIZE) -> Iterator[str]:
    """Write a random payload of ``size_mb`` MB to a temporary file.

    The file is removed when the block exits, on success and on error alike.
    A failed removal is logged and never raised.

    Args:
        size_mb: Payload size in megabytes (must be > 0)
        directory: Directory for the temporary file (default: system temp dir)
        chunk_size: Bytes generated and written per step

    Yields:
        Path of the generated file

    Raises:
        ConfigurationError: if the size is not positive; raised before any I/O
    """
    size_bytes = payload_size_bytes(size_mb)

    fd, path = tempfile.mkstemp(prefix="speedtest_upload_", suffix=".bin", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            for chunk in generate_random_data(size_mb, chunk_size):
                handle.write(chunk)

        logger.info(f"Generated {size_bytes / BYTES_PER_MB:.2f} MB upload payload at {path}")
        yield path
    finally:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not delete temporary file {path}: {e}")


def read_payload(path: str) -> bytes:
    """Load a generated payload into memory for repeated uploads."""
    with open(path, "rb") as handle:
        return handle.read()
