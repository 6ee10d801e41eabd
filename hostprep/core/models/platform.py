"""
Platform model — closed enums for CPU architecture and OS family.

Every mapping table in this module is keyed by enum member and covers
all members, so adding a member without extending the tables fails at
import time instead of silently falling through at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from hostprep.core.errors import UnsupportedPlatformError


class Arch(StrEnum):
    """Supported CPU architectures (Go-style names)."""

    AMD64 = "amd64"
    ARM64 = "arm64"
    ARMV7 = "armv7"

    @classmethod
    def from_machine(cls, machine: str) -> Arch:
        """Normalize ``uname -m`` output to an ``Arch``.

        Raises:
            UnsupportedPlatformError: If the machine string is unknown.
        """
        arch = _MACHINE_ALIASES.get(machine.strip().lower())
        if arch is None:
            raise UnsupportedPlatformError(f"Unsupported architecture: {machine}")
        return arch

    @property
    def release_token(self) -> str:
        """Asset token used by Go-built releases (``linux-amd64``)."""
        return f"linux-{self.value}"

    @property
    def rust_target(self) -> str:
        """Rust target triple for statically linked Linux builds."""
        return _RUST_TARGETS[self]

    @property
    def fish_token(self) -> str:
        """Asset token used by fish-shell release tarballs."""
        return _FISH_TOKENS[self]


_MACHINE_ALIASES: dict[str, Arch] = {
    "x86_64": Arch.AMD64,
    "x86-64": Arch.AMD64,
    "x64": Arch.AMD64,
    "amd64": Arch.AMD64,
    "aarch64": Arch.ARM64,
    "arm64": Arch.ARM64,
    "armv7l": Arch.ARMV7,
    "armv8l": Arch.ARMV7,
}

_RUST_TARGETS: dict[Arch, str] = {
    Arch.AMD64: "x86_64-unknown-linux-musl",
    Arch.ARM64: "aarch64-unknown-linux-musl",
    Arch.ARMV7: "armv7-unknown-linux-musleabihf",
}

_FISH_TOKENS: dict[Arch, str] = {
    Arch.AMD64: "linux-x86_64",
    Arch.ARM64: "linux-aarch64",
    Arch.ARMV7: "linux-armv7",
}

assert set(_RUST_TARGETS) == set(Arch) and set(_FISH_TOKENS) == set(Arch)


class OsFamily(StrEnum):
    """Operating system families, one per native package manager."""

    DEBIAN = "debian"
    RHEL = "rhel"
    ARCH = "arch"
    MACOS = "macos"
    UNKNOWN = "unknown"

    @classmethod
    def from_os_release_id(cls, os_id: str, id_like: str = "") -> OsFamily:
        """Map ``/etc/os-release`` ``ID`` (then ``ID_LIKE``) to a family."""
        for candidate in [os_id, *id_like.split()]:
            family = _OS_IDS.get(candidate.strip().lower())
            if family is not None:
                return family
        return cls.UNKNOWN


_OS_IDS: dict[str, OsFamily] = {
    "ubuntu": OsFamily.DEBIAN,
    "debian": OsFamily.DEBIAN,
    "raspbian": OsFamily.DEBIAN,
    "centos": OsFamily.RHEL,
    "rhel": OsFamily.RHEL,
    "fedora": OsFamily.RHEL,
    "rocky": OsFamily.RHEL,
    "almalinux": OsFamily.RHEL,
    "arch": OsFamily.ARCH,
    "manjaro": OsFamily.ARCH,
    "macos": OsFamily.MACOS,
}


_DARWIN_TARGETS: dict[Arch, str] = {
    Arch.AMD64: "x86_64-apple-darwin",
    Arch.ARM64: "aarch64-apple-darwin",
}


@dataclass(frozen=True)
class HostPlatform:
    """Platform facts probed once at startup.

    ``machine`` is kept as reported by ``uname -m``; it is only
    normalized to an ``Arch`` when a flow needs a release asset, so
    removal and status work on hosts no release is built for.
    """

    machine: str
    os_family: OsFamily
    os_id: str = ""
    is_root: bool = False
    hostname: str = "localhost"

    @property
    def arch(self) -> Arch:
        """Normalized architecture.

        Raises:
            UnsupportedPlatformError: If no release is built for ``machine``.
        """
        return Arch.from_machine(self.machine)

    @property
    def rust_target(self) -> str:
        """Rust target triple of native builds for this OS and CPU."""
        arch = self.arch
        if self.os_family is not OsFamily.MACOS:
            return arch.rust_target
        triple = _DARWIN_TARGETS.get(arch)
        if triple is None:
            raise UnsupportedPlatformError(f"Unsupported architecture on macOS: {self.machine}")
        return triple

    @property
    def fish_token(self) -> str:
        """Asset token of the static fish build; Linux only."""
        if self.os_family is OsFamily.MACOS:
            raise UnsupportedPlatformError("fish release builds are Linux only; install fish with brew")
        return self.arch.fish_token
