"""
L1 Domain — client share line for a shadowsocks inbound.

Surge-style proxy declaration that can be pasted into a client:

    host=ss,203.0.113.7,24571,encrypt-method=...,password=...,udp-relay=true
"""

from __future__ import annotations

from hostprep.core.models.singbox import Inbound


def format_share_line(hostname: str, ip: str | None, inbound: Inbound) -> str:
    """Build the share line; an unknown IP is rendered as ``<server-ip>``."""
    parts = [
        f"{hostname}=ss",
        ip or "<server-ip>",
        str(inbound.listen_port),
        f"encrypt-method={inbound.method}",
        f"password={inbound.password}",
        "udp-relay=true",
    ]
    return ",".join(parts)
