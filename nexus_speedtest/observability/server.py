"""
Test server details for display: resolved address, ISP and location.
"""

import asyncio
import logging
import socket

import requests

from nexus_speedtest.common.models import ServerDetails
from nexus_speedtest.configuration import UNKNOWN, UNKNOWN_SERVER_LOCATION
from nexus_speedtest.observability.geoip import fetch_geoip, parse_ip_info

logger = logging.getLogger(__name__)


async def resolve_hostname(hostname: str) -> str:
    """Resolve ``hostname`` to its first address, or Unknown on failure."""
    loop = asyncio.get_running_loop()
    try:
        addresses = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    except (OSError, UnicodeError) as e:
        logger.warning(f"DNS lookup failed for {hostname}: {e}")
        return UNKNOWN

    if not addresses:
        return UNKNOWN
    return addresses[0][4][0]


async def get_server_details(hostname: str) -> ServerDetails:
    """Look up the test server for display; never raises for lookup failures."""
    server_ip = await resolve_hostname(hostname)
    if server_ip == UNKNOWN:
        return ServerDetails(hostname=hostname, ip=UNKNOWN, isp=UNKNOWN, location=UNKNOWN)

    loop = asyncio.get_running_loop()
    try:
        data = await loop.run_in_executor(None, fetch_geoip, server_ip)
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Could not look up details for server {server_ip}: {e}")
        return ServerDetails(hostname=hostname, ip=server_ip, isp=UNKNOWN, location=UNKNOWN)

    info = parse_ip_info(data, unknown_isp=UNKNOWN, unknown_location=UNKNOWN_SERVER_LOCATION)
    return ServerDetails(hostname=hostname, ip=server_ip, isp=info.isp, location=info.location)
