"""
L5 Orchestration — sing-box install / update / uninstall lifecycle.

State is never stored; it is inspected from the filesystem (canonical
binary, discovered copies) and the service supervisor every time:

    absent ──install──▶ installed ──enable──▶ running
       ▲                                        │
       └──────────────── uninstall ◀────────────┘
                  running ──update──▶ running

Collaborators are injected so the controller can run against fakes.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from hostprep.core.errors import ConfigError
from hostprep.core.models.lifecycle import (
    InstallState,
    LifecycleAction,
    LifecycleResult,
    StatusReport,
)
from hostprep.core.models.platform import HostPlatform
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.services.provision.data.constants import SINGBOX_DEPENDENCIES
from hostprep.core.services.provision.detection.discovery import find_binaries
from hostprep.core.services.provision.detection.network import find_free_port, public_ip
from hostprep.core.services.provision.detection.platform import require_root
from hostprep.core.services.provision.detection.tool_version import get_binary_version
from hostprep.core.services.provision.domain.share_link import format_share_line
from hostprep.core.services.provision.domain.singbox_config import ensure_config, load_config
from hostprep.core.services.provision.domain.unit_file import render_unit
from hostprep.core.services.provision.execution.download import BinaryDeployer
from hostprep.core.services.provision.execution.service_supervisor import ServiceSupervisor
from hostprep.core.services.provision.execution.system_deps import DependencyInstaller
from hostprep.core.services.provision.resolver.release_resolver import ReleaseResolver

logger = logging.getLogger(__name__)


class SingBoxLifecycle:
    """Drives the sing-box binary, its config and its systemd unit.

    Args:
        settings: Paths and policy.
        host: Probed platform; its arch selects the release asset and is
            only normalized by install and update.
        resolver: Latest-release lookup.
        deployer: Download + extract + copy.
        supervisor: systemd wrapper for the sing-box unit.
        dependency_installer: Best-effort package installer.
        port_factory: Returns a free listen port for a new config.
        public_ip_lookup: Returns this host's public IP or None.
        finder: Copy discovery, ``find_binaries`` signature.
        version_probe: Installed-version probe.
    """

    def __init__(
        self,
        settings: InstallerSettings,
        host: HostPlatform,
        *,
        resolver: ReleaseResolver,
        deployer: BinaryDeployer,
        supervisor: ServiceSupervisor,
        dependency_installer: DependencyInstaller,
        port_factory: Callable[[], int] = find_free_port,
        public_ip_lookup: Callable[[], str | None] = public_ip,
        finder: Callable[..., list[Path]] = find_binaries,
        version_probe: Callable[[Path], str | None] = get_binary_version,
    ) -> None:
        self.settings = settings
        self.host = host
        self.resolver = resolver
        self.deployer = deployer
        self.supervisor = supervisor
        self.install_dependencies = dependency_installer
        self.port_factory = port_factory
        self.public_ip_lookup = public_ip_lookup
        self.finder = finder
        self.version_probe = version_probe

    # ── Inspection ──────────────────────────────────────────────

    @property
    def canonical(self) -> Path:
        return self.settings.canonical_binary

    def discover(self) -> list[Path]:
        """Every installed copy, canonical path included when present."""
        copies: set[Path] = set()
        if self.settings.discover_copies:
            copies.update(
                self.finder(
                    self.settings.binary_name,
                    self.settings.discovery_roots,
                    self.settings.discovery_exclude,
                )
            )
        if self.canonical.is_file():
            copies.add(self.canonical)
        return sorted(copies)

    def state(self, copies: list[Path] | None = None) -> InstallState:
        if copies is None:
            copies = self.discover()
        if not copies:
            return InstallState.ABSENT
        if self.supervisor.is_active():
            return InstallState.RUNNING
        return InstallState.INSTALLED

    def status(self) -> StatusReport:
        """Read-only snapshot; never changes the host."""
        copies = self.discover()
        present = self.canonical.is_file()
        probe_target = self.canonical if present else (copies[0] if copies else None)

        listen_port = None
        config_file = self.settings.config_path
        if config_file.is_file():
            try:
                listen_port = load_config(config_file).primary_inbound.listen_port
            except ConfigError as exc:
                logger.warning("%s", exc)
        else:
            config_file = None

        return StatusReport(
            state=self.state(copies),
            canonical_binary=self.canonical,
            canonical_present=present,
            discovered_copies=copies,
            version=self.version_probe(probe_target) if probe_target else None,
            service_active=self.supervisor.is_active(),
            service_enabled=self.supervisor.is_enabled(),
            service_file_present=self.supervisor.unit_exists(),
            config_file=config_file,
            listen_port=listen_port,
        )

    # ── Actions ─────────────────────────────────────────────────

    def _check_privileges(self) -> None:
        if self.settings.require_root:
            require_root(self.host)

    def install(self) -> LifecycleResult:
        """Fresh install: deps, binary, config (if missing), unit, start.

        A present canonical binary makes this a no-op with a warning.
        """
        self._check_privileges()

        if self.canonical.is_file():
            msg = f"{self.settings.binary_name} is already installed, use 'update' to upgrade it"
            logger.warning(msg)
            return LifecycleResult(
                action=LifecycleAction.INSTALL,
                message=msg,
                already_installed=True,
                version=self.version_probe(self.canonical),
            )

        # unsupported CPUs fail here, before anything is installed
        token = self.host.arch.release_token
        warnings = self.install_dependencies(SINGBOX_DEPENDENCIES)

        release = self.resolver.resolve(self.settings.release_repo, token)
        self.deployer.deploy(release, self.settings.binary_name, [self.canonical])

        config, created = ensure_config(self.settings.config_path, port_factory=self.port_factory)
        if not created:
            logger.info("Reusing credentials from %s", self.settings.config_path)

        self.supervisor.write_unit(render_unit(self.settings))
        self.supervisor.enable(now=True)

        share_line = format_share_line(
            self.host.hostname, self.public_ip_lookup(), config.primary_inbound,
        )
        return LifecycleResult(
            action=LifecycleAction.INSTALL,
            message=f"Installed {self.settings.binary_name} v{release.version}",
            version=release.version,
            replaced=[self.canonical],
            share_line=share_line,
            warnings=[str(w) for w in warnings],
        )

    def update(self) -> LifecycleResult:
        """Replace every installed copy with the latest release.

        Nothing installed means a full install.  The release is resolved
        and downloaded before the service is stopped, so a resolution or
        download failure leaves the running installation untouched.
        """
        self._check_privileges()
        return self._update(self.discover())

    def _update(self, copies: list[Path]) -> LifecycleResult:
        if not copies:
            logger.info("No installed %s found, installing", self.settings.binary_name)
            result = self.install()
            return result.model_copy(update={"action": LifecycleAction.UPDATE})

        release = self.resolver.resolve(self.settings.release_repo, self.host.arch.release_token)

        with self.deployer.fetch(release, self.settings.binary_name) as binary:
            if self.supervisor.is_active():
                self.supervisor.stop()
            replaced = [self.deployer.place(binary, copy) for copy in copies]

        if self.supervisor.unit_exists():
            self.supervisor.start()
        else:
            logger.warning("No unit file at %s, not starting", self.supervisor.service_file)

        return LifecycleResult(
            action=LifecycleAction.UPDATE,
            message=f"Updated {len(replaced)} cop{'y' if len(replaced) == 1 else 'ies'} "
                    f"of {self.settings.binary_name} to v{release.version}",
            version=release.version,
            replaced=replaced,
        )

    def uninstall(self) -> LifecycleResult:
        """Stop, disable and remove the unit, main dir and every copy."""
        self._check_privileges()

        if self.supervisor.is_active():
            self.supervisor.stop()
        if self.supervisor.is_enabled():
            self.supervisor.disable(now=False)

        removed: list[Path] = []
        if self.supervisor.remove_unit():
            removed.append(self.supervisor.service_file)

        copies = self.discover()

        main_dir = self.settings.main_dir
        if main_dir.exists():
            shutil.rmtree(main_dir)
            logger.info("Removed %s", main_dir)
            removed.append(main_dir)

        for copy in copies:
            if copy.exists():
                copy.unlink()
                logger.info("Removed %s", copy)
                removed.append(copy)

        msg = f"Uninstalled {self.settings.binary_name}" if removed else "Nothing to uninstall"
        return LifecycleResult(action=LifecycleAction.UNINSTALL, message=msg, removed=removed)

    def auto(self) -> LifecycleResult:
        """Install when absent, update otherwise."""
        self._check_privileges()
        copies = self.discover()
        if copies:
            result = self._update(copies)
        else:
            result = self.install()
        return result.model_copy(update={"action": LifecycleAction.AUTO})

    def run(self, action: LifecycleAction | str) -> LifecycleResult:
        handlers = {
            LifecycleAction.INSTALL: self.install,
            LifecycleAction.UPDATE: self.update,
            LifecycleAction.UNINSTALL: self.uninstall,
            LifecycleAction.AUTO: self.auto,
        }
        return handlers[LifecycleAction(action)]()
