"""
InstallerSettings — the explicit configuration struct.

Populated once at startup by ``hostprep.core.config.loader`` and passed
to every component.  Nothing below the CLI reads environment variables
or well-known paths on its own; it asks the settings object.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


def _default_home() -> Path:
    return Path.home()


class InstallerSettings(BaseModel):
    """Paths, release sources and policy knobs for all provisioning flows."""

    # ── sing-box layout ──────────────────────────────────────────
    main_dir: Path = Path("/opt/sing-box")
    core_dir: Path | None = None
    config_file: Path | None = None
    binary_name: str = "sing-box"

    # ── Service supervisor ───────────────────────────────────────
    service_name: str = "sing-box"
    service_file: Path = Path("/etc/systemd/system/sing-box.service")

    # ── Release sources ──────────────────────────────────────────
    release_repo: str = "SagerNet/sing-box"
    api_base: str = "https://api.github.com"
    github_proxy: str = ""  # "", a mirror prefix, or "auto"
    http_timeout: int = 30

    # ── Copy discovery ───────────────────────────────────────────
    discover_copies: bool = True
    discovery_roots: list[Path] = Field(default_factory=lambda: [Path("/")])
    discovery_exclude: list[Path] = Field(
        default_factory=lambda: [Path("/proc"), Path("/sys"), Path("/dev"), Path("/tmp")]
    )

    # ── Shell environments ───────────────────────────────────────
    bin_dir: Path = Path("/usr/local/bin")
    home: Path = Field(default_factory=_default_home)
    fish_binary: Path = Path("/usr/bin/fish")
    shells_file: Path = Path("/etc/shells")
    hosts_file: Path = Path("/etc/hosts")

    # ── Host probes ──────────────────────────────────────────────
    os_release_path: Path = Path("/etc/os-release")
    require_root: bool = True

    @model_validator(mode="after")
    def _derive_paths(self) -> InstallerSettings:
        if self.core_dir is None:
            self.core_dir = self.main_dir / "src" / "bin"
        if self.config_file is None:
            self.config_file = self.main_dir / "config.json"
        return self

    @property
    def canonical_binary(self) -> Path:
        """The single well-known sing-box location this tool manages."""
        assert self.core_dir is not None  # set by _derive_paths
        return self.core_dir / self.binary_name

    @property
    def config_path(self) -> Path:
        assert self.config_file is not None  # set by _derive_paths
        return self.config_file

    @property
    def zshrc(self) -> Path:
        return self.home / ".zshrc"

    @property
    def oh_my_zsh_dir(self) -> Path:
        return self.home / ".oh-my-zsh"

    @property
    def fish_config_dir(self) -> Path:
        return self.home / ".config" / "fish"

    @property
    def fish_config_file(self) -> Path:
        return self.fish_config_dir / "config.fish"
