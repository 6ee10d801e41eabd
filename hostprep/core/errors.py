"""
Error taxonomy — every fatal condition the provisioning flows can raise.

The CLI catches ``HostprepError`` (and stray ``OSError``), prints its message and exits with
status 1.  ``DependencyWarning`` is never raised: best-effort package
installs record it and carry on.
"""

from __future__ import annotations


class HostprepError(Exception):
    """Base class for fatal provisioning errors."""


class PrivilegeError(HostprepError):
    """The operation needs root and the process is not running as root."""


class UnsupportedPlatformError(HostprepError):
    """CPU architecture or operating system is not supported."""


class ResolutionError(HostprepError):
    """Release metadata or a release asset could not be obtained."""


class ArchiveError(HostprepError):
    """A downloaded archive is unreadable or lacks the expected binary."""


class ServiceError(HostprepError):
    """A service supervisor state change failed."""


class ConfigError(HostprepError):
    """Settings or a generated configuration file is missing or invalid."""


class DependencyWarning(UserWarning):
    """A best-effort dependency installation step failed."""


class ProvisionError(HostprepError):
    """A required provisioning command (installer, git, chsh) failed."""


class PortExhaustedError(HostprepError):
    """No free listen port could be found for a new configuration."""
