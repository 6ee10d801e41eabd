"""
L4 Execution — System package installation.

Best-effort: a failed package install is logged as a
``DependencyWarning`` and returned to the caller, never raised.  The
flows that need these packages (chrony, curl, git, xz) keep going and
fail later with a precise error if a tool is truly required.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable, Mapping

from hostprep.core.errors import DependencyWarning
from hostprep.core.models.platform import OsFamily
from hostprep.core.services.provision.data.constants import (
    PACKAGE_INSTALL_ARGV,
    PACKAGE_REFRESH_ARGV,
)
from hostprep.core.services.provision.execution.subprocess_runner import Runner, run_command

logger = logging.getLogger(__name__)

# install(packages) -> warnings
DependencyInstaller = Callable[[Iterable[str]], list[DependencyWarning]]


def missing_commands(tools: Mapping[str, str]) -> list[str]:
    """Package names whose command (the mapping key) is not on PATH."""
    return [pkg for cmd, pkg in tools.items() if shutil.which(cmd) is None]


def _install_argv(os_family: OsFamily) -> list[str]:
    argv = list(PACKAGE_INSTALL_ARGV[os_family])
    if os_family == OsFamily.RHEL and argv and shutil.which(argv[0]) is None:
        # Older RHEL/CentOS ship yum only.
        argv[0] = "yum"
    return argv


def install_packages(
    packages: Iterable[str],
    os_family: OsFamily,
    *,
    runner: Runner = run_command,
    sudo: bool = False,
) -> list[DependencyWarning]:
    """Install ``packages`` with the host's package manager.

    Args:
        packages: Distribution package names.
        os_family: Selects apt-get / dnf (yum) / pacman / brew.
        runner: Command runner (``run_command`` or a test double).
        sudo: Prefix package manager commands with ``sudo``.  Ignored
            for Homebrew, which refuses to run as root.

    Returns:
        Warnings for every step that failed; empty on success.
    """
    pkgs = list(dict.fromkeys(packages))
    if not pkgs:
        return []

    install = _install_argv(os_family)
    if not install:
        w = DependencyWarning(
            f"No supported package manager; install manually: {' '.join(pkgs)}"
        )
        logger.warning("%s", w)
        return [w]

    prefix = ["sudo"] if sudo and os_family != OsFamily.MACOS else []
    warnings: list[DependencyWarning] = []

    refresh = PACKAGE_REFRESH_ARGV[os_family]
    if refresh:
        r = runner([*prefix, *refresh], timeout=300)
        if not r.ok:
            w = DependencyWarning(f"Package index refresh failed: {r.error}")
            logger.warning("%s", w)
            warnings.append(w)

    logger.info("Installing packages: %s", ", ".join(pkgs))
    r = runner([*prefix, *install, *pkgs], timeout=600)
    if not r.ok:
        w = DependencyWarning(f"Package install failed ({', '.join(pkgs)}): {r.error}")
        logger.warning("%s", w)
        warnings.append(w)

    return warnings


class PackageInstaller:
    """Binds ``install_packages`` to one host's OS family."""

    def __init__(
        self, os_family: OsFamily, *, runner: Runner = run_command, sudo: bool = False,
    ) -> None:
        self.os_family = os_family
        self.runner = runner
        self.sudo = sudo

    def __call__(self, packages: Iterable[str]) -> list[DependencyWarning]:
        return install_packages(packages, self.os_family, runner=self.runner, sudo=self.sudo)
