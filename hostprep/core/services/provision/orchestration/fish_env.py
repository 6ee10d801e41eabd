"""
L5 Orchestration — Fish environment provisioning.

Fish from the upstream static release tarball, Starship prompt,
``/etc/shells`` registration and ``config.fish``.  Root only.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from hostprep.core.models.lifecycle import ShellAction, ShellResult
from hostprep.core.models.platform import HostPlatform, OsFamily
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.services.provision.data.constants import (
    FISH_REPO,
    FISH_TOOL_PACKAGES,
    STARSHIP_REPO,
)
from hostprep.core.services.provision.data.templates import (
    FISH_INTERACTIVE_BLOCK,
    FISH_NO_GREETING,
    FISH_STARSHIP_INIT,
)
from hostprep.core.services.provision.detection.platform import login_shell, require_root
from hostprep.core.services.provision.domain.rcfile import RcFile
from hostprep.core.services.provision.execution.download import BinaryDeployer
from hostprep.core.services.provision.execution.subprocess_runner import Runner, run_command
from hostprep.core.services.provision.execution.system_deps import (
    DependencyInstaller,
    missing_commands,
)
from hostprep.core.services.provision.orchestration.release_tools import (
    install_release_binary,
    remove_release_binary,
)
from hostprep.core.services.provision.orchestration.shell_common import (
    change_login_shell,
    fallback_shell,
)
from hostprep.core.services.provision.resolver.release_resolver import ReleaseResolver

logger = logging.getLogger(__name__)


class FishProvisioner:
    """Installs or removes Fish + Starship for the root user."""

    def __init__(
        self,
        settings: InstallerSettings,
        host: HostPlatform,
        *,
        resolver: ReleaseResolver,
        deployer: BinaryDeployer,
        dependency_installer: DependencyInstaller,
        runner: Runner = run_command,
        current_shell: Callable[[], str] = login_shell,
    ) -> None:
        self.settings = settings
        self.host = host
        self.resolver = resolver
        self.deployer = deployer
        self.install_dependencies = dependency_installer
        self.runner = runner
        self.current_shell = current_shell

    @property
    def starship_path(self) -> Path:
        return self.settings.bin_dir / "starship"

    def _configure_fish(self) -> RcFile:
        rc = RcFile.load(self.settings.fish_config_file)
        if not rc.contains(FISH_INTERACTIVE_BLOCK[0]):
            for line in FISH_INTERACTIVE_BLOCK:
                rc.lines.append(line)
            rc.dirty = True
        rc.ensure_line(FISH_STARSHIP_INIT)
        rc.ensure_line(FISH_NO_GREETING)
        return rc

    def install(self) -> ShellResult:
        require_root(self.host)
        fish_token, rust_target = self.host.fish_token, self.host.rust_target
        result = ShellResult(shell="fish", action=ShellAction.INSTALL)

        if self.host.os_family == OsFamily.DEBIAN:
            packages = missing_commands(FISH_TOOL_PACKAGES)
            result.warnings += [str(w) for w in self.install_dependencies(packages)]
        elif shutil.which("xz") is None:
            logger.warning("xz not found; extracting the fish tarball may fail")

        fish = install_release_binary(
            "fish", FISH_REPO, self.settings.fish_binary, fish_token,
            resolver=self.resolver, deployer=self.deployer,
        )
        result.tools["fish"] = fish.version

        starship = install_release_binary(
            "starship", STARSHIP_REPO, self.starship_path, rust_target,
            resolver=self.resolver, deployer=self.deployer,
        )
        result.tools["starship"] = starship.version

        fish_path = str(self.settings.fish_binary)
        shells = RcFile.load(self.settings.shells_file)
        shells.ensure_line(fish_path)
        if shells.save():
            result.changed_files.append(shells.path)

        warning = change_login_shell(fish_path, current=self.current_shell(), runner=self.runner)
        if warning:
            result.warnings.append(warning)

        rc = self._configure_fish()
        if rc.save():
            result.changed_files.append(rc.path)

        result.message = "Fish environment ready (re-login to use it)"
        return result

    def uninstall(self) -> ShellResult:
        require_root(self.host)
        result = ShellResult(shell="fish", action=ShellAction.UNINSTALL)

        fish_path = str(self.settings.fish_binary)
        if self.current_shell() == fish_path:
            warning = change_login_shell(
                fallback_shell(), current=fish_path, runner=self.runner,
            )
            if warning:
                result.warnings.append(warning)

        shells = RcFile.load(self.settings.shells_file)
        shells.remove_line(fish_path)
        if shells.save():
            result.changed_files.append(shells.path)

        for path in (self.settings.fish_binary, self.starship_path):
            if remove_release_binary(path):
                result.removed.append(path)

        config_dir = self.settings.fish_config_dir
        if config_dir.is_dir():
            shutil.rmtree(config_dir)
            logger.info("Removed %s", config_dir)
            result.removed.append(config_dir)

        result.message = "Fish environment removed"
        return result

    def run(self, action: ShellAction | str) -> ShellResult:
        if ShellAction(action) == ShellAction.UNINSTALL:
            return self.uninstall()
        return self.install()
