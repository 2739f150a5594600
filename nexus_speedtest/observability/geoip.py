"""
Geolocation lookups for the caller and the test server.
"""

import logging
from typing import Any, Dict, Optional

import requests

from nexus_speedtest.common.models import IPInfo
from nexus_speedtest.configuration import (
    GEOIP_API_URL,
    GEOIP_TIMEOUT_SECONDS,
    UNKNOWN,
    UNKNOWN_ISP,
    UNKNOWN_LOCATION,
)

logger = logging.getLogger(__name__)


def format_location(data: Dict[str, Any], fallback: str = UNKNOWN_LOCATION) -> str:
    """Join city, region and country, skipping empty parts."""
    parts = [data.get("city"), data.get("region"), data.get("country")]
    return ", ".join(part for part in parts if part) or fallback


def parse_ip_info(data: Dict[str, Any], unknown_isp: str = UNKNOWN_ISP,
                  unknown_location: str = UNKNOWN_LOCATION) -> IPInfo:
    """Build IPInfo from a geolocation API response body."""
    return IPInfo(
        ip=data.get("ip") or UNKNOWN,
        isp=data.get("organization") or data.get("isp") or unknown_isp,
        location=format_location(data, unknown_location),
    )


def fetch_geoip(ip: Optional[str] = None, timeout: float = GEOIP_TIMEOUT_SECONDS) -> Dict[str, Any]:
    """Query the geolocation API for ``ip``, or for the caller when None.

    Raises:
        requests.RequestException: on connection errors and non-2xx responses
        ValueError: if the body is not a JSON object
    """
    url = f"{GEOIP_API_URL}/{ip}" if ip else GEOIP_API_URL
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected geolocation response: {data!r}")
    return data


def lookup_ip_info(timeout: float = GEOIP_TIMEOUT_SECONDS) -> IPInfo:
    """Get the caller's IP address with ISP and location.

    Any failure degrades to Unknown fields.
    """
    try:
        return parse_ip_info(fetch_geoip(timeout=timeout))
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Error fetching IP address: {e}")
        return IPInfo(ip=UNKNOWN, isp=UNKNOWN, location=UNKNOWN)
