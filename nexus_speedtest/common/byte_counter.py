"""
Byte accounting shared by the workers of one throughput run.
"""

import threading


class ByteCounter:
    """Monotonic byte counter owned by one engine run.

    Workers add to it, the progress timer only reads it.
    """

    def __init__(self):
        self._total = 0
        self._lock = threading.Lock()

    def add(self, nbytes: int) -> int:
        """Attribute transferred bytes and return the new total."""
        if nbytes < 0:
            raise ValueError(f"Cannot attribute a negative byte count: {nbytes}")
        with self._lock:
            self._total += nbytes
            return self._total

    @property
    def total(self) -> int:
        return self._total

    def __repr__(self) -> str:
        return f"ByteCounter(total={self._total})"


class TransferProgress:
    """Converts cumulative progress notifications of one attempt into deltas.

    The transfer layer calls ``update`` with the bytes received so far; only
    the increase since the previous call is credited to the counter, so an
    attempt aborted mid-stream is never counted twice.
    """

    def __init__(self, counter: ByteCounter):
        self.counter = counter
        self.loaded = 0

    def update(self, loaded: int) -> int:
        delta = loaded - self.loaded
        if delta <= 0:
            return 0
        self.loaded = loaded
        self.counter.add(delta)
        return delta
