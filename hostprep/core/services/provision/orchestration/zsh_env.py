"""
L5 Orchestration — Zsh environment provisioning.

Zsh + Oh-My-Zsh + zsh-autosuggestions, Starship prompt and zoxide,
with ``~/.zshrc`` edited through ``RcFile``.  Package and plugin
failures are warnings; a failed Oh-My-Zsh install or a missing zsh
after the package step is fatal.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from hostprep.core.errors import ProvisionError
from hostprep.core.models.lifecycle import ShellAction, ShellResult
from hostprep.core.models.platform import HostPlatform, OsFamily
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.services.provision.data.constants import (
    OH_MY_ZSH_INSTALLER,
    STARSHIP_REPO,
    ZOXIDE_REPO,
    ZSH_AUTOSUGGESTIONS_REPO,
    ZSH_TOOL_PACKAGES,
)
from hostprep.core.services.provision.data.templates import (
    DEFAULT_ZSHRC,
    OH_MY_ZSH_SOURCE_LINE,
    ZSH_CD_ALIAS,
    ZSH_NAV_ALIASES,
    ZSH_PERFORMANCE_BLOCK,
    ZSH_PLUGINS,
    ZSH_STARSHIP_INIT,
    ZSH_ZOXIDE_INIT,
)
from hostprep.core.services.provision.detection.platform import login_shell
from hostprep.core.services.provision.domain.rcfile import RcFile
from hostprep.core.services.provision.execution.download import BinaryDeployer, scoped_workdir
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
    ensure_hosts_entry,
    fallback_shell,
)
from hostprep.core.services.provision.resolver.release_resolver import ReleaseResolver

logger = logging.getLogger(__name__)


class ZshProvisioner:
    """Installs or removes the Zsh environment for ``settings.home``.

    Runs as the invoking user.  Without root, the hosts entry, system
    packages and the tools in ``settings.bin_dir`` go through ``sudo``;
    everything under the home directory is written directly.
    """

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
    def plugin_dir(self) -> Path:
        return self.settings.oh_my_zsh_dir / "custom" / "plugins" / "zsh-autosuggestions"

    def _tool_path(self, name: str) -> Path:
        return self.settings.bin_dir / name

    @property
    def _sudo_runner(self) -> Runner | None:
        """Runner for writes outside the home directory; None when root."""
        return None if self.host.is_root else self.runner

    # ── Install steps ───────────────────────────────────────────

    def _install_oh_my_zsh(self) -> None:
        omz = self.settings.oh_my_zsh_dir
        if omz.is_dir():
            logger.info("Updating Oh-My-Zsh")
            r = self.runner(["git", "-C", str(omz), "pull", "origin", "master"], timeout=300)
            if not r.ok:
                logger.warning("Oh-My-Zsh update failed: %s", r.error)
            return

        logger.info("Installing Oh-My-Zsh")
        with scoped_workdir() as work:
            script = work / "install.sh"
            self.deployer.download(f"{self.resolver.proxy}{OH_MY_ZSH_INSTALLER}", script)
            r = self.runner(
                ["sh", str(script), "--unattended"],
                timeout=600,
                env_overrides={
                    "HOME": str(self.settings.home),
                    "ZSH": str(omz),
                    "RUNZSH": "no",
                    "CHSH": "no",
                    "KEEP_ZSHRC": "yes",
                },
            )
        if not r.ok:
            raise ProvisionError(f"Oh-My-Zsh installation failed: {r.error}")

    def _install_autosuggestions(self) -> str | None:
        if self.plugin_dir.is_dir():
            argv = ["git", "-C", str(self.plugin_dir), "pull", "origin", "master"]
        else:
            argv = [
                "git", "clone", "--depth", "1",
                f"{self.resolver.proxy}{ZSH_AUTOSUGGESTIONS_REPO}", str(self.plugin_dir),
            ]
        r = self.runner(argv, timeout=300)
        if not r.ok:
            msg = f"zsh-autosuggestions: {r.error}"
            logger.warning(msg)
            return msg
        return None

    def _configure_zshrc(self) -> RcFile:
        rc = RcFile.load(self.settings.zshrc)
        if not rc.existed:
            logger.info("Creating %s", rc.path)
            rc.lines = DEFAULT_ZSHRC.splitlines()
            rc.dirty = True

        rc.set_assignment("ZSH_THEME", '""', append_missing=True)
        rc.ensure_line(ZSH_STARSHIP_INIT, blank_before=True)

        rc.ensure_line(ZSH_ZOXIDE_INIT, blank_before=True)
        rc.ensure_line(ZSH_CD_ALIAS)

        rc.set_assignment("plugins", ZSH_PLUGINS, append_missing=True)
        rc.insert_before(
            OH_MY_ZSH_SOURCE_LINE, ZSH_PERFORMANCE_BLOCK, marker=ZSH_PERFORMANCE_BLOCK[0],
        )

        for alias in ZSH_NAV_ALIASES:
            rc.ensure_line(alias)
        return rc

    # ── Actions ─────────────────────────────────────────────────

    def install(self) -> ShellResult:
        rust_target = self.host.rust_target
        result = ShellResult(shell="zsh", action=ShellAction.INSTALL)

        if self.host.os_family != OsFamily.MACOS:
            if ensure_hosts_entry(
                self.settings.hosts_file, self.host.hostname, sudo_runner=self._sudo_runner,
            ):
                result.changed_files.append(self.settings.hosts_file)

        packages = missing_commands(ZSH_TOOL_PACKAGES)
        if shutil.which("zsh") is None:
            packages.append("zsh")
        result.warnings += [str(w) for w in self.install_dependencies(packages)]

        zsh_path = shutil.which("zsh")
        if zsh_path is None:
            raise ProvisionError("zsh is not installed and could not be installed automatically")

        self._install_oh_my_zsh()

        for name, repo in (("starship", STARSHIP_REPO), ("zoxide", ZOXIDE_REPO)):
            outcome = install_release_binary(
                name, repo, self._tool_path(name), rust_target,
                resolver=self.resolver, deployer=self.deployer, sudo_runner=self._sudo_runner,
            )
            result.tools[name] = outcome.version

        warning = self._install_autosuggestions()
        if warning:
            result.warnings.append(warning)

        rc = self._configure_zshrc()
        if rc.save():
            result.changed_files.append(rc.path)

        warning = change_login_shell(zsh_path, current=self.current_shell(), runner=self.runner)
        if warning:
            result.warnings.append(warning)

        result.message = "Zsh environment ready (re-login to use it)"
        return result

    def uninstall(self) -> ShellResult:
        result = ShellResult(shell="zsh", action=ShellAction.UNINSTALL)

        current = self.current_shell()
        if Path(current).name == "zsh":
            warning = change_login_shell(fallback_shell(), current=current, runner=self.runner)
            if warning:
                result.warnings.append(warning)

        for name in ("starship", "zoxide"):
            if remove_release_binary(self._tool_path(name), sudo_runner=self._sudo_runner):
                result.removed.append(self._tool_path(name))

        omz = self.settings.oh_my_zsh_dir
        if omz.is_dir():
            shutil.rmtree(omz)
            logger.info("Removed %s", omz)
            result.removed.append(omz)

        for path in (self.settings.zshrc, self.settings.home / ".zsh_history"):
            if path.exists():
                path.unlink()
                logger.info("Removed %s", path)
                result.removed.append(path)

        result.message = "Zsh environment removed"
        return result

    def run(self, action: ShellAction | str) -> ShellResult:
        if ShellAction(action) == ShellAction.UNINSTALL:
            return self.uninstall()
        return self.install()
