"""
L1 Domain — pure provisioning logic.

No subprocess, no network: config models, unit rendering, rc-file
editing and the client share line.
"""

from hostprep.core.services.provision.domain.rcfile import RcFile  # noqa: F401
from hostprep.core.services.provision.domain.share_link import format_share_line  # noqa: F401
from hostprep.core.services.provision.domain.singbox_config import (  # noqa: F401
    build_config,
    ensure_config,
    generate_password,
    load_config,
    save_config,
)
from hostprep.core.services.provision.domain.unit_file import render_unit  # noqa: F401
