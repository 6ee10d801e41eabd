"""
Tests for the Zsh and Fish environment provisioners.

Packages, git, chsh and the Oh-My-Zsh installer run through
``FakeRunner``; release tarballs are built locally by ``FakeDownloader``.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from unittest.mock import patch

import pytest

from fakes import FakeRunner, RecordingInstaller
from hostprep.core.errors import DependencyWarning, PrivilegeError, ProvisionError
from hostprep.core.models.lifecycle import ShellAction
from hostprep.core.models.platform import OsFamily
from hostprep.core.services.provision.data.templates import (
    OH_MY_ZSH_SOURCE_LINE,
    ZSH_PERFORMANCE_BLOCK,
)
from hostprep.core.services.provision.execution.subprocess_runner import CmdResult
from hostprep.core.services.provision.orchestration.fish_env import FishProvisioner
from hostprep.core.services.provision.orchestration.shell_common import (
    ensure_hosts_entry,
    fallback_shell,
)
from hostprep.core.services.provision.orchestration.zsh_env import ZshProvisioner

# shutil is one module object; patching it here covers every caller.
_WHICH = "hostprep.core.services.provision.orchestration.zsh_env.shutil.which"


def _zsh(settings, host, resolver, deployer, installer, runner, shell="/bin/bash") -> ZshProvisioner:
    return ZshProvisioner(
        settings, host,
        resolver=resolver, deployer=deployer, dependency_installer=installer,
        runner=runner, current_shell=lambda: shell,
    )


def _fish(settings, host, resolver, deployer, installer, runner, shell="/bin/bash") -> FishProvisioner:
    return FishProvisioner(
        settings, host,
        resolver=resolver, deployer=deployer, dependency_installer=installer,
        runner=runner, current_shell=lambda: shell,
    )


# ═══════════════════════════════════════════════════════════════════
#  Shared steps
# ═══════════════════════════════════════════════════════════════════


class TestSharedSteps:

    def test_hosts_entry_added_once(self, tmp_path: Path):
        hosts = tmp_path / "hosts"
        hosts.write_text("127.0.0.1 localhost\n")

        assert ensure_hosts_entry(hosts, "vm-1") is True
        assert ensure_hosts_entry(hosts, "vm-1") is False
        assert hosts.read_text() == "127.0.0.1 localhost\n127.0.0.1 vm-1\n"

    def test_hosts_entry_existing_alias(self, tmp_path: Path):
        hosts = tmp_path / "hosts"
        hosts.write_text("127.0.0.1 localhost vm-1  # set by cloud-init\n")
        assert ensure_hosts_entry(hosts, "vm-1") is False

    def test_fallback_shell(self):
        assert fallback_shell(lambda p: str(p) == "/usr/bin/bash") == "/usr/bin/bash"
        assert fallback_shell(lambda p: False) == "/bin/bash"


# ═══════════════════════════════════════════════════════════════════
#  Zsh
# ═══════════════════════════════════════════════════════════════════


class TestZshInstall:

    def test_full_install(self, settings, host, resolver, deployer, installer, runner):
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            result = _zsh(settings, host, resolver, deployer, installer, runner).install()

        assert result.ok and result.action == ShellAction.INSTALL
        assert result.tools == {"starship": "1.10.0", "zoxide": "1.10.0"}
        assert (settings.bin_dir / "starship").is_file()
        assert (settings.bin_dir / "zoxide").is_file()
        assert ("starship/starship", "x86_64-unknown-linux-musl") in resolver.calls

        cmds = runner.commands()
        assert any(c.startswith("sh ") and c.endswith("install.sh --unattended") for c in cmds)
        assert any(c.startswith("git clone --depth 1 https://github.com/zsh-users/zsh-autosuggestions") for c in cmds)
        assert cmds[-1] == "chsh -s /usr/bin/zsh"

        env = runner.envs[[c[0] for c in runner.calls].index("sh")]
        assert env["RUNZSH"] == "no" and env["CHSH"] == "no" and env["KEEP_ZSHRC"] == "yes"
        assert env["ZSH"] == str(settings.oh_my_zsh_dir)

    def test_zshrc_contents(self, settings, host, resolver, deployer, installer, runner):
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            _zsh(settings, host, resolver, deployer, installer, runner).install()

        lines = settings.zshrc.read_text().splitlines()
        assert 'ZSH_THEME=""' in lines
        assert "plugins=(zsh-autosuggestions)" in lines
        assert 'eval "$(starship init zsh)"' in lines
        assert 'eval "$(zoxide init zsh)"' in lines
        assert 'alias cd="z"' in lines
        assert 'alias ...="cd ../.."' in lines
        assert lines.index(ZSH_PERFORMANCE_BLOCK[0]) < lines.index(OH_MY_ZSH_SOURCE_LINE)

    def test_rerun_is_idempotent(self, settings, host, resolver, deployer, installer, runner):
        settings.hosts_file.parent.mkdir(parents=True)
        settings.hosts_file.write_text("127.0.0.1 localhost\n")
        prov = _zsh(settings, host, resolver, deployer, installer, runner, shell="/usr/bin/zsh")

        with patch(_WHICH, return_value="/usr/bin/zsh"):
            first = prov.install()
            zshrc = settings.zshrc.read_text()
            hosts = settings.hosts_file.read_text()
            second = prov.install()

        assert settings.hosts_file in first.changed_files
        assert second.changed_files == []
        assert settings.zshrc.read_text() == zshrc
        assert settings.hosts_file.read_text() == hosts
        assert hosts.count("testhost") == 1
        assert not any(c.startswith("chsh") for c in runner.commands())

    def test_existing_zshrc_is_edited_in_place(self, settings, host, resolver, deployer, installer, runner):
        settings.zshrc.parent.mkdir(parents=True)
        settings.zshrc.write_text(
            'export ZSH="$HOME/.oh-my-zsh"\nZSH_THEME="robbyrussell"\n'
            "plugins=(git)\nsource $ZSH/oh-my-zsh.sh\nexport EDITOR=vim\n"
        )
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            _zsh(settings, host, resolver, deployer, installer, runner).install()

        text = settings.zshrc.read_text()
        assert "export EDITOR=vim" in text
        assert 'ZSH_THEME="robbyrussell"' not in text
        assert "plugins=(git)" not in text

    def test_existing_oh_my_zsh_is_pulled(self, settings, host, resolver, deployer, installer, runner):
        settings.oh_my_zsh_dir.mkdir(parents=True)
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            _zsh(settings, host, resolver, deployer, installer, runner).install()

        cmds = runner.commands()
        assert f"git -C {settings.oh_my_zsh_dir} pull origin master" in cmds
        assert not any(c.startswith("sh ") for c in cmds)

    def test_up_to_date_tool_is_not_downloaded(self, settings, host, resolver, deployer, downloader,
                                               installer, runner):
        starship = settings.bin_dir / "starship"
        starship.parent.mkdir(parents=True)
        starship.write_text("#!/bin/sh\necho 'starship 1.10.0'\n")
        starship.chmod(0o755)

        with patch(_WHICH, return_value="/usr/bin/zsh"):
            _zsh(settings, host, resolver, deployer, installer, runner).install()

        assert starship.read_text() == "#!/bin/sh\necho 'starship 1.10.0'\n"
        assert not any("/starship/" in url for url in downloader.urls)

    def test_installer_failure_is_fatal(self, settings, host, resolver, deployer, installer):
        runner = FakeRunner({"sh": CmdResult(argv=["sh"], returncode=1, stderr="curl: not found")})
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            with pytest.raises(ProvisionError, match="Oh-My-Zsh installation failed"):
                _zsh(settings, host, resolver, deployer, installer, runner).install()

    def test_plugin_and_chsh_failures_are_warnings(self, settings, host, resolver, deployer, installer):
        runner = FakeRunner({
            "git": CmdResult(argv=["git"], returncode=128, stderr="fatal: unable to access"),
            "chsh": CmdResult(argv=["chsh"], returncode=1, stderr="PAM: Authentication failure"),
        })
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            result = _zsh(settings, host, resolver, deployer, installer, runner).install()

        assert result.ok
        assert any("zsh-autosuggestions" in w for w in result.warnings)
        assert any("Could not change login shell" in w for w in result.warnings)

    def test_missing_zsh_is_installed(self, settings, host, resolver, deployer, runner):
        installer = RecordingInstaller([DependencyWarning("apt-get exited 100")])
        with patch(_WHICH, return_value=None):
            with pytest.raises(ProvisionError, match="zsh is not installed"):
                _zsh(settings, host, resolver, deployer, installer, runner).install()

        assert installer.requested == [["curl", "git", "tar", "zsh"]]

    def test_non_root_escalates_system_writes(self, settings, host, resolver, deployer, installer, runner):
        user = dataclasses.replace(host, is_root=False)
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            result = _zsh(settings, user, resolver, deployer, installer, runner).install()

        assert result.ok
        commands = runner.commands()
        tee = f"sudo tee -a {settings.hosts_file}"
        assert runner.inputs[commands.index(tee)] == "127.0.0.1 testhost\n"
        assert not settings.hosts_file.exists()

        for name in ("starship", "zoxide"):
            target = settings.bin_dir / name
            assert any(
                c.startswith("sudo install -m 755 ") and c.endswith(f" {target}") for c in commands
            )
            assert not target.exists()

        assert settings.zshrc.is_file()
        assert "chsh -s /usr/bin/zsh" in commands

    def test_non_root_hosts_failure_is_fatal(self, settings, host, resolver, deployer, installer):
        runner = FakeRunner({"sudo": CmdResult(argv=["sudo"], returncode=1, stderr="a password is required")})
        user = dataclasses.replace(host, is_root=False)
        with pytest.raises(ProvisionError, match="Cannot update"):
            _zsh(settings, user, resolver, deployer, installer, runner).install()

    def test_macos_uses_darwin_builds(self, settings, host, resolver, deployer, installer, runner):
        mac = dataclasses.replace(host, machine="arm64", os_family=OsFamily.MACOS)
        with patch(_WHICH, return_value="/bin/zsh"):
            _zsh(settings, mac, resolver, deployer, installer, runner).install()

        assert ("starship/starship", "aarch64-apple-darwin") in resolver.calls
        assert ("ajeetdsouza/zoxide", "aarch64-apple-darwin") in resolver.calls
        assert all("linux" not in token for _, token in resolver.calls)

    def test_macos_skips_hosts_file(self, settings, host, resolver, deployer, installer, runner):
        mac = dataclasses.replace(host, os_family=OsFamily.MACOS)
        with patch(_WHICH, return_value="/usr/bin/zsh"):
            _zsh(settings, mac, resolver, deployer, installer, runner).install()
        assert not settings.hosts_file.exists()


class TestZshUninstall:

    def test_removes_everything(self, settings, host, resolver, deployer, installer, runner):
        settings.oh_my_zsh_dir.mkdir(parents=True)
        settings.zshrc.write_text("x\n")
        (settings.home / ".zsh_history").write_text(": 1:0;ls\n")
        settings.bin_dir.mkdir(parents=True)
        for name in ("starship", "zoxide"):
            (settings.bin_dir / name).write_text("bin")

        result = _zsh(settings, host, resolver, deployer, installer, runner, shell="/usr/bin/zsh").run("uninstall")

        assert result.action == ShellAction.UNINSTALL
        assert not settings.oh_my_zsh_dir.exists()
        assert not settings.zshrc.exists()
        assert not (settings.home / ".zsh_history").exists()
        assert not (settings.bin_dir / "starship").exists()
        assert len(result.removed) == 5

        chsh = [c for c in runner.commands() if c.startswith("chsh")]
        assert len(chsh) == 1 and chsh[0].endswith("bash")

    def test_non_root_removes_tools_with_sudo(self, settings, host, resolver, deployer, installer, runner):
        settings.bin_dir.mkdir(parents=True)
        (settings.bin_dir / "zoxide").write_text("bin")
        settings.zshrc.parent.mkdir(parents=True, exist_ok=True)
        settings.zshrc.write_text("x\n")
        user = dataclasses.replace(host, is_root=False)

        result = _zsh(settings, user, resolver, deployer, installer, runner).uninstall()

        assert runner.commands() == [f"sudo rm -f {settings.bin_dir / 'zoxide'}"]
        assert not settings.zshrc.exists()
        assert settings.bin_dir / "zoxide" in result.removed

    def test_nothing_installed(self, settings, host, resolver, deployer, installer, runner):
        result = _zsh(settings, host, resolver, deployer, installer, runner).uninstall()
        assert result.removed == []
        assert runner.calls == []


# ═══════════════════════════════════════════════════════════════════
#  Fish
# ═══════════════════════════════════════════════════════════════════


class TestFish:

    def test_install(self, settings, host, resolver, deployer, installer, runner):
        settings.shells_file.parent.mkdir(parents=True)
        settings.shells_file.write_text("/bin/sh\n/bin/bash\n")

        with patch(_WHICH, return_value="/usr/bin/found"):
            result = _fish(settings, host, resolver, deployer, installer, runner).install()

        fish = str(settings.fish_binary)
        assert result.tools == {"fish": "1.10.0", "starship": "1.10.0"}
        assert ("fish-shell/fish-shell", "linux-x86_64") in resolver.calls
        assert settings.fish_binary.is_file()
        assert settings.shells_file.read_text().splitlines()[-1] == fish
        assert runner.commands() == [f"chsh -s {fish}"]

        config = settings.fish_config_file.read_text().splitlines()
        assert config[:2] == ["if status is-interactive", "end"]
        assert "starship init fish | source" in config
        assert "set fish_greeting" in config

    def test_debian_installs_missing_tools(self, settings, host, resolver, deployer, installer, runner):
        with patch(_WHICH, return_value=None):
            _fish(settings, host, resolver, deployer, installer, runner).install()
        assert installer.requested == [["curl", "xz-utils", "tar"]]

    def test_other_families_skip_packages(self, settings, host, resolver, deployer, installer, runner):
        rhel = dataclasses.replace(host, os_family=OsFamily.RHEL)
        with patch(_WHICH, return_value=None):
            _fish(settings, rhel, resolver, deployer, installer, runner).install()
        assert installer.requested == []

    def test_rerun_keeps_config(self, settings, host, resolver, deployer, installer, runner):
        fish = str(settings.fish_binary)
        prov = _fish(settings, host, resolver, deployer, installer, runner, shell=fish)
        with patch(_WHICH, return_value="/usr/bin/found"):
            prov.install()
            config = settings.fish_config_file.read_text()
            second = prov.install()

        assert settings.fish_config_file.read_text() == config
        assert settings.shells_file.read_text().count(fish) == 1
        assert second.changed_files == []

    def test_always_requires_root(self, settings, host, resolver, deployer, installer, runner):
        relaxed = settings.model_copy(update={"require_root": False})
        user = dataclasses.replace(host, is_root=False)
        with pytest.raises(PrivilegeError):
            _fish(relaxed, user, resolver, deployer, installer, runner).install()

    def test_uninstall(self, settings, host, resolver, deployer, installer, runner):
        fish = str(settings.fish_binary)
        prov = _fish(settings, host, resolver, deployer, installer, runner, shell=fish)
        with patch(_WHICH, return_value="/usr/bin/found"):
            prov.install()

        result = prov.run(ShellAction.UNINSTALL)

        assert not settings.fish_binary.exists()
        assert not (settings.bin_dir / "starship").exists()
        assert not settings.fish_config_dir.exists()
        assert fish not in settings.shells_file.read_text()
        assert runner.commands()[-1].startswith("chsh -s ")
        assert runner.commands()[-1].endswith("bash")
        assert settings.shells_file in result.changed_files
