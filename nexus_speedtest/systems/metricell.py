"""
MCMC Nexus (Metricell test cloud) speed test server.
"""

from nexus_speedtest.configuration import (
    DOWNLOAD_URL,
    LATENCY_URL,
    SERVER_HOSTNAME,
    UPLOAD_URL,
)
from nexus_speedtest.systems.base import ServerEndpoint

METRICELL_ENDPOINT = ServerEndpoint(
    hostname=SERVER_HOSTNAME,
    download_url=DOWNLOAD_URL,
    upload_url=UPLOAD_URL,
    latency_url=LATENCY_URL,
)
