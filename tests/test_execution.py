"""
Tests for the L4 execution layer — subprocess runner, package installs
and the systemd supervisor.

All commands go through ``FakeRunner``; nothing touches the host.
"""

from __future__ import annotations

import stat
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from fakes import FakeRunner
from hostprep.core.errors import DependencyWarning, ServiceError
from hostprep.core.models.platform import OsFamily
from hostprep.core.services.provision.execution.service_supervisor import ServiceSupervisor
from hostprep.core.services.provision.execution.subprocess_runner import CmdResult, run_command
from hostprep.core.services.provision.execution.system_deps import (
    PackageInstaller,
    install_packages,
    missing_commands,
)

_RUNNER = "hostprep.core.services.provision.execution.subprocess_runner"
_DEPS = "hostprep.core.services.provision.execution.system_deps"


def _fail(argv0: str, stderr: str = "boom") -> dict[str, CmdResult]:
    return {argv0: CmdResult(argv=[argv0], returncode=1, stderr=stderr)}


# ═══════════════════════════════════════════════════════════════════
#  run_command
# ═══════════════════════════════════════════════════════════════════


class TestRunCommand:

    def test_success(self):
        done = subprocess.CompletedProcess(args=["true"], returncode=0, stdout="ok\n", stderr="")
        with patch(f"{_RUNNER}.subprocess.run", return_value=done) as run:
            r = run_command(["git", "pull"], env_overrides={"RUNZSH": "no"})

        assert r.ok and r.stdout == "ok\n"
        assert run.call_args.kwargs["env"]["RUNZSH"] == "no"

    def test_missing_executable(self):
        with patch(f"{_RUNNER}.subprocess.run", side_effect=FileNotFoundError("chsh")):
            r = run_command(["chsh", "-s", "/bin/zsh"])
        assert r.returncode == 127 and not r.ok

    def test_timeout(self):
        exc = subprocess.TimeoutExpired(cmd=["apt-get"], timeout=5)
        with patch(f"{_RUNNER}.subprocess.run", side_effect=exc):
            r = run_command(["apt-get", "update"], timeout=5)
        assert r.returncode == 124
        assert "timed out" in r.stderr

    def test_error_text(self):
        r = CmdResult(argv=["systemctl", "start", "x"], returncode=5, stderr="warn\nUnit x not found.\n")
        assert r.error == "systemctl start x exited 5: Unit x not found."
        assert CmdResult(argv=["true"], returncode=0).error == ""


# ═══════════════════════════════════════════════════════════════════
#  Package installs
# ═══════════════════════════════════════════════════════════════════


class TestInstallPackages:

    def test_debian_refreshes_then_installs(self):
        runner = FakeRunner()
        warnings = install_packages(["chrony", "curl", "curl"], OsFamily.DEBIAN, runner=runner)

        assert warnings == []
        assert runner.commands() == [
            "apt-get update -qq",
            "apt-get install -y chrony curl",
        ]

    def test_nothing_to_install(self):
        runner = FakeRunner()
        assert install_packages([], OsFamily.DEBIAN, runner=runner) == []
        assert runner.calls == []

    def test_unknown_family_warns(self):
        runner = FakeRunner()
        warnings = install_packages(["chrony"], OsFamily.UNKNOWN, runner=runner)

        assert len(warnings) == 1
        assert isinstance(warnings[0], DependencyWarning)
        assert "install manually: chrony" in str(warnings[0])
        assert runner.calls == []

    def test_failures_are_warnings(self):
        runner = FakeRunner(_fail("apt-get", "E: Unable to locate package chrony"))
        warnings = install_packages(["chrony"], OsFamily.DEBIAN, runner=runner)

        assert len(warnings) == 2
        assert "refresh failed" in str(warnings[0])
        assert "Package install failed (chrony)" in str(warnings[1])

    def test_rhel_falls_back_to_yum(self):
        runner = FakeRunner()
        with patch(f"{_DEPS}.shutil.which", return_value=None):
            install_packages(["chrony"], OsFamily.RHEL, runner=runner)
        assert runner.commands() == ["yum install -y chrony"]

    def test_rhel_prefers_dnf(self):
        runner = FakeRunner()
        with patch(f"{_DEPS}.shutil.which", return_value="/usr/bin/dnf"):
            install_packages(["chrony"], OsFamily.RHEL, runner=runner)
        assert runner.commands() == ["dnf install -y chrony"]

    def test_package_installer_binds_family(self):
        runner = FakeRunner()
        PackageInstaller(OsFamily.ARCH, runner=runner)(["git"])
        assert runner.commands() == ["pacman -S --noconfirm git"]

    def test_sudo_prefixes_package_manager(self):
        runner = FakeRunner()
        PackageInstaller(OsFamily.DEBIAN, runner=runner, sudo=True)(["zsh"])
        assert runner.commands() == [
            "sudo apt-get update -qq",
            "sudo apt-get install -y zsh",
        ]

    def test_brew_never_runs_under_sudo(self):
        runner = FakeRunner()
        install_packages(["zsh"], OsFamily.MACOS, runner=runner, sudo=True)
        assert all(not c.startswith("sudo") for c in runner.commands())

    def test_missing_commands(self):
        present = {"curl": "/usr/bin/curl"}
        with patch(f"{_DEPS}.shutil.which", side_effect=present.get):
            assert missing_commands({"curl": "curl", "xz": "xz-utils"}) == ["xz-utils"]


# ═══════════════════════════════════════════════════════════════════
#  ServiceSupervisor
# ═══════════════════════════════════════════════════════════════════


class TestServiceSupervisor:

    def _supervisor(self, tmp_path: Path, runner: FakeRunner) -> ServiceSupervisor:
        return ServiceSupervisor("sing-box", tmp_path / "sing-box.service", runner=runner)

    def test_verbs(self, tmp_path: Path):
        runner = FakeRunner()
        sup = self._supervisor(tmp_path, runner)

        sup.enable()
        sup.stop()
        sup.start()
        sup.disable(now=False)

        assert runner.commands() == [
            "systemctl enable --now sing-box",
            "systemctl stop sing-box",
            "systemctl start sing-box",
            "systemctl disable sing-box",
        ]

    def test_failure_raises(self, tmp_path: Path):
        sup = self._supervisor(tmp_path, FakeRunner(_fail("systemctl", "Unit sing-box.service not found.")))
        with pytest.raises(ServiceError, match="systemctl start sing-box failed"):
            sup.start()

    def test_write_unit_is_idempotent(self, tmp_path: Path):
        runner = FakeRunner()
        sup = self._supervisor(tmp_path, runner)

        assert sup.write_unit("[Unit]\n") is True
        assert sup.write_unit("[Unit]\n") is False

        assert sup.service_file.read_text() == "[Unit]\n"
        assert stat.S_IMODE(sup.service_file.stat().st_mode) == 0o644
        assert runner.commands() == ["systemctl daemon-reload"]

    def test_remove_unit(self, tmp_path: Path):
        runner = FakeRunner()
        sup = self._supervisor(tmp_path, runner)

        assert sup.remove_unit() is False
        sup.service_file.write_text("[Unit]\n")
        assert sup.remove_unit() is True
        assert not sup.unit_exists()
        assert runner.commands() == ["systemctl daemon-reload"]
