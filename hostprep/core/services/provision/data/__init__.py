"""
L0 Data — constants and templates.

Pure data consumed by every higher layer.
"""

from hostprep.core.services.provision.data.constants import (  # noqa: F401
    CN_GITHUB_PROXY,
    NON_BINARY_SUFFIXES,
    PACKAGE_INSTALL_ARGV,
    PACKAGE_REFRESH_ARGV,
    PASSWORD_BYTES,
    PORT_RANGE,
    SINGBOX_DEPENDENCIES,
    USER_AGENT,
)
