"""
L3 Detection — read-only host probes.
"""

from hostprep.core.services.provision.detection.discovery import find_binaries  # noqa: F401
from hostprep.core.services.provision.detection.network import (  # noqa: F401
    detect_github_proxy,
    find_free_port,
    is_port_free,
    public_ip,
)
from hostprep.core.services.provision.detection.platform import (  # noqa: F401
    detect_os_family,
    is_root,
    login_shell,
    probe_platform,
    read_os_release,
    require_root,
)
from hostprep.core.services.provision.detection.service_status import (  # noqa: F401
    is_active,
    is_enabled,
)
from hostprep.core.services.provision.detection.tool_version import get_binary_version  # noqa: F401
