"""
Common utilities for the Nexus speed test.
"""

from .byte_counter import ByteCounter, TransferProgress
from .cancellation import CancellationCoordinator, RunState
from .worker_pool import TransferWorkerPool

__all__ = ['ByteCounter', 'TransferProgress', 'CancellationCoordinator', 'RunState', 'TransferWorkerPool']
