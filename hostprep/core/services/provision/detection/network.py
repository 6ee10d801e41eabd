"""
L3 Detection — Network probes.

Free-port selection for new listeners, public IP lookup for the client
share line, and country-based GitHub mirror selection.  The lookups
are best-effort: failures return ``None`` / ``""`` and are logged.
"""

from __future__ import annotations

import logging
import random
import socket
import urllib.request
from collections.abc import Callable

from hostprep.core.errors import PortExhaustedError
from hostprep.core.services.provision.data.constants import (
    CN_GITHUB_PROXY,
    IPINFO_COUNTRY_URL,
    IPINFO_IP_URL,
    PORT_RANGE,
    USER_AGENT,
)

logger = logging.getLogger(__name__)

# Upper bound on random draws before giving up on finding a free port.
_MAX_PORT_ATTEMPTS = 200


def _can_bind(family: int, kind: int, port: int) -> bool:
    host = "::" if family == socket.AF_INET6 else "0.0.0.0"
    try:
        with socket.socket(family, kind) as s:
            if family == socket.AF_INET6:
                s.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
            s.bind((host, port))
    except OSError:
        return False
    return True


def _ipv6_available() -> bool:
    if not socket.has_ipv6:
        return False
    return _can_bind(socket.AF_INET6, socket.SOCK_STREAM, 0)


def is_port_free(port: int) -> bool:
    """True if no TCP or UDP listener holds ``port`` on IPv4 or IPv6."""
    families = [socket.AF_INET]
    if _ipv6_available():
        families.append(socket.AF_INET6)

    for family in families:
        for kind in (socket.SOCK_STREAM, socket.SOCK_DGRAM):
            if not _can_bind(family, kind, port):
                return False
    return True


def find_free_port(
    low: int = PORT_RANGE[0],
    high: int = PORT_RANGE[1],
    *,
    rng: random.Random | None = None,
    probe: Callable[[int], bool] = is_port_free,
) -> int:
    """Draw random ports in ``[low, high]`` until one is free.

    Raises:
        PortExhaustedError: If no free port turns up within the attempt budget.
    """
    draw = rng or random.SystemRandom()
    for _ in range(_MAX_PORT_ATTEMPTS):
        port = draw.randint(low, high)
        if probe(port):
            logger.debug("Picked free port %d", port)
            return port
    raise PortExhaustedError(f"No free port found in {low}-{high}")


def _get_text(url: str, timeout: int) -> str | None:
    try:
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read().decode("utf-8", errors="replace").strip()
    except OSError as exc:
        logger.info("Lookup %s failed: %s", url, exc)
        return None


def public_ip(timeout: int = 5) -> str | None:
    """This host's public IP as seen by ipinfo.io."""
    return _get_text(IPINFO_IP_URL, timeout) or None


def detect_github_proxy(timeout: int = 5) -> str:
    """GitHub mirror prefix for hosts in mainland China, else ``""``."""
    country = _get_text(IPINFO_COUNTRY_URL, timeout)
    if country and country.upper() == "CN":
        logger.warning("Detected China IP, using GitHub mirror %s", CN_GITHUB_PROXY)
        return CN_GITHUB_PROXY
    return ""
