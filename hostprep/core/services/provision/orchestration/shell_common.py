"""
L5 Orchestration — Steps shared by the Zsh and Fish provisioners.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hostprep.core.errors import ProvisionError
from hostprep.core.services.provision.domain.rcfile import RcFile
from hostprep.core.services.provision.execution.subprocess_runner import Runner

logger = logging.getLogger(__name__)

FALLBACK_SHELLS = (Path("/bin/bash"), Path("/usr/bin/bash"))


def ensure_hosts_entry(
    hosts_file: Path,
    hostname: str,
    *,
    sudo_runner: Runner | None = None,
) -> bool:
    """Map ``hostname`` to 127.0.0.1 unless some loopback line already does.

    Avoids ``sudo: unable to resolve host`` on freshly provisioned VMs.
    With ``sudo_runner`` the line is appended through ``sudo tee -a``.

    Raises:
        ProvisionError: If the privileged append fails.
    """
    rc = RcFile.load(hosts_file)
    for line in rc.lines:
        fields = line.split("#", 1)[0].split()
        if fields and fields[0] == "127.0.0.1" and hostname in fields[1:]:
            return False

    entry = f"127.0.0.1 {hostname}"
    if sudo_runner is None:
        rc.ensure_line(entry)
        return rc.save()

    r = sudo_runner(
        ["sudo", "tee", "-a", str(hosts_file)], input_text=f"{entry}\n", timeout=60,
    )
    if not r.ok:
        raise ProvisionError(f"Cannot update {hosts_file}: {r.error}")
    logger.info("Added %s to %s", entry, hosts_file)
    return True


def change_login_shell(
    shell: str,
    *,
    current: str,
    runner: Runner,
) -> str | None:
    """``chsh -s shell`` when it differs from ``current``.

    Returns:
        A warning message on failure, else None.
    """
    if current == shell:
        logger.info("Login shell is already %s", shell)
        return None
    r = runner(["chsh", "-s", shell], timeout=60)
    if not r.ok:
        msg = f"Could not change login shell to {shell}: {r.error}"
        logger.warning(msg)
        return msg
    logger.info("Login shell changed to %s (re-login required)", shell)
    return None


def fallback_shell(exists: Callable[[Path], bool] = Path.exists) -> str:
    """First bash found on the host, ``/bin/bash`` otherwise."""
    for candidate in FALLBACK_SHELLS:
        if exists(candidate):
            return str(candidate)
    return str(FALLBACK_SHELLS[0])
