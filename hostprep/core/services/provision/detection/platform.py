"""
L3 Detection — Host platform probes.

Read-only probes: ``uname -m`` (via ``platform.machine``),
``/etc/os-release``, effective UID, hostname.  Called once at startup;
the resulting ``HostPlatform`` is passed down explicitly.
"""

from __future__ import annotations

import logging
import os
import platform
import pwd
import socket
import sys
from pathlib import Path

from hostprep.core.errors import PrivilegeError
from hostprep.core.models.platform import HostPlatform, OsFamily

logger = logging.getLogger(__name__)


def read_os_release(path: Path) -> dict[str, str]:
    """Parse an os-release file into a ``KEY -> value`` mapping.

    Missing or unreadable files yield an empty mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}

    info: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        info[key.strip()] = value.strip().strip('"').strip("'")
    return info


def detect_os_family(os_release_path: Path) -> tuple[OsFamily, str]:
    """Return ``(family, os_id)`` for the running host."""
    if sys.platform == "darwin":
        return OsFamily.MACOS, "macos"

    info = read_os_release(os_release_path)
    os_id = info.get("ID", "")
    if not os_id:
        logger.warning("Cannot detect the operating system (%s unreadable)", os_release_path)
        return OsFamily.UNKNOWN, ""
    return OsFamily.from_os_release_id(os_id, info.get("ID_LIKE", "")), os_id


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def probe_platform(os_release_path: Path, *, machine: str | None = None) -> HostPlatform:
    """Probe everything the provisioning flows branch on.

    The architecture is recorded raw; see ``HostPlatform.arch``.
    """
    family, os_id = detect_os_family(os_release_path)
    host = HostPlatform(
        machine=machine if machine is not None else platform.machine(),
        os_family=family,
        os_id=os_id,
        is_root=is_root(),
        hostname=socket.gethostname() or "localhost",
    )
    logger.info(
        "Platform: machine=%s os=%s (%s) root=%s",
        host.machine, host.os_family, host.os_id or "?", host.is_root,
    )
    return host


def require_root(host: HostPlatform) -> None:
    """Raise ``PrivilegeError`` unless running as root."""
    if not host.is_root:
        raise PrivilegeError("Root privileges are required (run with sudo)")


def login_shell() -> str:
    """Login shell of the current user from the passwd database."""
    try:
        return pwd.getpwuid(os.getuid()).pw_shell
    except KeyError:
        return ""
