"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib and the platform enums.
"""

from __future__ import annotations

from hostprep.core.models.platform import OsFamily

USER_AGENT = "hostprep/0.1"

# Mirror prefix used when the caller appears to be inside mainland China.
CN_GITHUB_PROXY = "https://ac.yuumi.moe/"

IPINFO_IP_URL = "https://ipinfo.io/ip"
IPINFO_COUNTRY_URL = "https://ipinfo.io/country"

# Release asset suffixes that are signatures/checksums, never binaries.
NON_BINARY_SUFFIXES: tuple[str, ...] = (".sha256", ".sha256sum", ".sig", ".asc", ".pem", ".sbom")

# ── Release repositories ─────────────────────────────────────────

STARSHIP_REPO = "starship/starship"
ZOXIDE_REPO = "ajeetdsouza/zoxide"
FISH_REPO = "fish-shell/fish-shell"

OH_MY_ZSH_INSTALLER = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
ZSH_AUTOSUGGESTIONS_REPO = "https://github.com/zsh-users/zsh-autosuggestions"

# ── Package managers ─────────────────────────────────────────────
# argv prefix for a non-interactive install, per OS family.
# RHEL-likes prefer dnf and fall back to yum (resolved at run time).

PACKAGE_INSTALL_ARGV: dict[OsFamily, list[str]] = {
    OsFamily.DEBIAN: ["apt-get", "install", "-y"],
    OsFamily.RHEL: ["dnf", "install", "-y"],
    OsFamily.ARCH: ["pacman", "-S", "--noconfirm"],
    OsFamily.MACOS: ["brew", "install"],
    OsFamily.UNKNOWN: [],
}

PACKAGE_REFRESH_ARGV: dict[OsFamily, list[str]] = {
    OsFamily.DEBIAN: ["apt-get", "update", "-qq"],
    OsFamily.RHEL: [],
    OsFamily.ARCH: [],
    OsFamily.MACOS: [],
    OsFamily.UNKNOWN: [],
}

assert set(PACKAGE_INSTALL_ARGV) == set(OsFamily) == set(PACKAGE_REFRESH_ARGV)

# Packages the sing-box host needs (time sync + downloader).
SINGBOX_DEPENDENCIES: list[str] = ["chrony", "curl"]

# Tools the Zsh flow shells out to: command name → package name.
ZSH_TOOL_PACKAGES: dict[str, str] = {"curl": "curl", "git": "git", "tar": "tar"}

# Tools the Fish flow needs on Debian hosts.
FISH_TOOL_PACKAGES: dict[str, str] = {"curl": "curl", "xz": "xz-utils", "tar": "tar"}

# ── systemd ──────────────────────────────────────────────────────

SINGBOX_DOCS_URL = "https://sing-box.sagernet.org"

SINGBOX_CAPABILITIES = (
    "CAP_NET_ADMIN",
    "CAP_NET_BIND_SERVICE",
    "CAP_SYS_PTRACE",
    "CAP_DAC_READ_SEARCH",
)

# ── Credentials ──────────────────────────────────────────────────

PORT_RANGE: tuple[int, int] = (10000, 65535)
PASSWORD_BYTES = 16
