"""
L5 Orchestration — Single-binary tools from GitHub releases.

Starship, zoxide and fish ship as one executable inside a release
archive.  Installing one means: resolve, compare with the installed
version, deploy when they differ.

Without root the target directory is usually not writable, so a
``sudo_runner`` places and removes the executable through
``sudo install`` / ``sudo rm`` instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

from hostprep.core.errors import ProvisionError
from hostprep.core.services.provision.detection.tool_version import get_binary_version
from hostprep.core.services.provision.execution.download import BINARY_MODE, BinaryDeployer
from hostprep.core.services.provision.execution.subprocess_runner import Runner
from hostprep.core.services.provision.resolver.release_resolver import ReleaseResolver

logger = logging.getLogger(__name__)


class ToolOutcome(NamedTuple):
    name: str
    version: str
    changed: bool


def install_release_binary(
    name: str,
    repo: str,
    target: Path,
    token: str,
    *,
    resolver: ReleaseResolver,
    deployer: BinaryDeployer,
    version_probe: Callable[[Path, str], str | None] = get_binary_version,
    sudo_runner: Runner | None = None,
) -> ToolOutcome:
    """Install or update ``name`` at ``target`` from ``repo``'s latest release.

    Args:
        name: Executable name inside the archive.
        repo: ``owner/name`` on GitHub.
        target: Destination path of the executable.
        token: Asset selector (Rust triple, ``linux-x86_64`` ...).
        sudo_runner: When given, the executable is copied into place
            with ``sudo install`` through this runner.

    Returns:
        ToolOutcome; ``changed`` is False when already up to date.

    Raises:
        ProvisionError: If the privileged copy fails.
    """
    release = resolver.resolve(repo, token)

    current = version_probe(target, name) if target.is_file() else None
    if current == release.version:
        logger.info("%s %s is already up to date", name, current)
        return ToolOutcome(name, release.version, False)

    if current:
        logger.info("Updating %s from %s to %s", name, current, release.version)
    else:
        logger.info("Installing %s %s", name, release.version)

    if sudo_runner is None:
        deployer.deploy(release, name, [target])
        return ToolOutcome(name, release.version, True)

    with deployer.fetch(release, name) as binary:
        r = sudo_runner(
            ["sudo", "install", "-m", f"{BINARY_MODE:o}", str(binary), str(target)],
            timeout=60,
        )
    if not r.ok:
        raise ProvisionError(f"Cannot install {name} to {target}: {r.error}")
    logger.info("Installed %s", target)
    return ToolOutcome(name, release.version, True)


def remove_release_binary(target: Path, *, sudo_runner: Runner | None = None) -> bool:
    """Delete an installed tool.  False if it was not there.

    Raises:
        ProvisionError: If the privileged removal fails.
    """
    if not target.exists():
        return False
    if sudo_runner is None:
        target.unlink()
    else:
        r = sudo_runner(["sudo", "rm", "-f", str(target)], timeout=60)
        if not r.ok:
            raise ProvisionError(f"Cannot remove {target}: {r.error}")
    logger.info("Removed %s", target)
    return True
