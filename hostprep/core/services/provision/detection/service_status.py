"""
L3 Detection — Service status.

Read-only probes: ``systemctl is-active`` and ``is-enabled``.
Probes never raise; a missing ``systemctl`` reads as
"not active / not enabled".
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def _systemctl_quiet(verb: str, service: str) -> bool:
    try:
        r = subprocess.run(
            ["systemctl", verb, "--quiet", service],
            capture_output=True, text=True, timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("systemctl %s %s unavailable: %s", verb, service, exc)
        return False
    return r.returncode == 0


def is_active(service: str) -> bool:
    return _systemctl_quiet("is-active", service)


def is_enabled(service: str) -> bool:
    return _systemctl_quiet("is-enabled", service)
