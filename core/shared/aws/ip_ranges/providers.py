"""
core/shared/aws/ip_ranges/providers.py - AWS published IP range data

Loads https://ip-ranges.amazonaws.com/ip-ranges.json with a 24 hour cache
(timestamp sidecar) and exposes prefix iteration.

Features:
- 24h cache under ``ip_ranges/aws.json``
- Stale cache fallback when the download fails
- IPv4 and IPv6 prefixes
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import requests

from core.exceptions import IPRangesUnavailableError
from core.tools.cache.ttl import get_or_fetch

logger = logging.getLogger(__name__)

AWS_IP_RANGES_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
CACHE_CATEGORY = "ip_ranges"
CACHE_FILENAME = "aws.json"
REQUEST_TIMEOUT = 15

# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class AWSPrefix:
    """A single entry of the AWS IP range document"""

    network: ipaddress.IPv4Network | ipaddress.IPv6Network
    service: str
    region: str
    network_border_group: str = ""


# =============================================================================
# Loaders
# =============================================================================


def fetch_aws_ip_ranges(url: str = AWS_IP_RANGES_URL) -> dict[str, Any]:
    """Download the AWS IP range document (no cache)

    Raises:
        IPRangesUnavailableError: network error, non-200 status or invalid JSON
    """
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
    except (requests.RequestException, ValueError) as e:
        raise IPRangesUnavailableError(url, cause=e) from e

    if "prefixes" not in data:
        raise IPRangesUnavailableError(url, cause=ValueError("missing 'prefixes' key"))

    logger.debug(
        "Fetched AWS IP ranges: %d IPv4, %d IPv6 prefixes (syncToken=%s)",
        len(data.get("prefixes", [])),
        len(data.get("ipv6_prefixes", [])),
        data.get("syncToken", ""),
    )
    return data


def get_aws_ip_ranges(url: str = AWS_IP_RANGES_URL) -> dict[str, Any]:
    """Get AWS IP ranges (cache first, 24h TTL, stale cache on download failure)"""
    data: dict[str, Any] = get_or_fetch(CACHE_CATEGORY, CACHE_FILENAME, lambda: fetch_aws_ip_ranges(url))
    return data


def iter_aws_prefixes(data: dict[str, Any]) -> Iterator[AWSPrefix]:
    """Yield every valid IPv4 and IPv6 prefix of the document"""
    for key, prefix_key in (("prefixes", "ip_prefix"), ("ipv6_prefixes", "ipv6_prefix")):
        for prefix in data.get(key, []):
            try:
                network = ipaddress.ip_network(prefix[prefix_key], strict=False)
            except (ValueError, KeyError):
                continue
            yield AWSPrefix(
                network=network,
                service=prefix.get("service", ""),
                region=prefix.get("region", ""),
                network_border_group=prefix.get("network_border_group", ""),
            )
