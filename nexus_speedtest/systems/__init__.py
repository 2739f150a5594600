"""
HTTP transfer clients for speed test servers.
"""

from .base import ServerEndpoint, TransferClient, choose_user_agent
from .metricell import METRICELL_ENDPOINT

__all__ = ['ServerEndpoint', 'TransferClient', 'choose_user_agent', 'METRICELL_ENDPOINT']
