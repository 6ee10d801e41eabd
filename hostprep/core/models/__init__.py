"""
Domain models — enums and Pydantic types for hostprep.

All models are re-exported here for convenient access:

    from hostprep.core.models import InstallerSettings, SingBoxConfig, Arch
"""

from hostprep.core.models.lifecycle import (
    InstallState,
    LifecycleAction,
    LifecycleResult,
    Release,
    ShellAction,
    ShellResult,
    StatusReport,
)
from hostprep.core.models.platform import Arch, HostPlatform, OsFamily
from hostprep.core.models.settings import InstallerSettings
from hostprep.core.models.singbox import (
    DEFAULT_METHOD,
    DnsBlock,
    DnsServer,
    Inbound,
    RouteBlock,
    RouteRule,
    SingBoxConfig,
)

__all__ = [
    # platform.py
    "Arch",
    "HostPlatform",
    "OsFamily",
    # settings.py
    "InstallerSettings",
    # lifecycle.py
    "InstallState",
    "LifecycleAction",
    "LifecycleResult",
    "Release",
    "ShellAction",
    "ShellResult",
    "StatusReport",
    # singbox.py
    "DEFAULT_METHOD",
    "DnsBlock",
    "DnsServer",
    "Inbound",
    "RouteBlock",
    "RouteRule",
    "SingBoxConfig",
]
