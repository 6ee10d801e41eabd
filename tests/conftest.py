"""
Shared test fixtures.

Every filesystem path lives under ``tmp_path``; systemd, the network
and GitHub are replaced by the doubles in ``fakes.py``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fakes import FakeDownloader, FakeResolver, FakeRunner, FakeSupervisor, RecordingInstaller
from hostprep.core.models.platform import HostPlatform, OsFamily
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.services.provision.execution.download import BinaryDeployer


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """A fake filesystem root for one test."""
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def settings(host_root: Path) -> InstallerSettings:
    return InstallerSettings(
        main_dir=host_root / "opt" / "sing-box",
        service_file=host_root / "etc" / "systemd" / "system" / "sing-box.service",
        discovery_roots=[host_root],
        discovery_exclude=[host_root / "proc", host_root / "tmp"],
        bin_dir=host_root / "usr" / "local" / "bin",
        home=host_root / "root",
        fish_binary=host_root / "usr" / "bin" / "fish",
        shells_file=host_root / "etc" / "shells",
        hosts_file=host_root / "etc" / "hosts",
        os_release_path=host_root / "etc" / "os-release",
    )


@pytest.fixture
def host() -> HostPlatform:
    return HostPlatform(
        machine="x86_64",
        os_family=OsFamily.DEBIAN,
        os_id="debian",
        is_root=True,
        hostname="testhost",
    )


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def deployer(downloader: FakeDownloader) -> BinaryDeployer:
    return BinaryDeployer(downloader=downloader)


@pytest.fixture
def supervisor(settings: InstallerSettings) -> FakeSupervisor:
    return FakeSupervisor(settings.service_file)


@pytest.fixture
def installer() -> RecordingInstaller:
    return RecordingInstaller()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
