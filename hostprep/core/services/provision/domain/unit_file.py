"""
L1 Domain — systemd unit descriptor rendering.
"""

from __future__ import annotations

import shlex

from hostprep.core.models.settings import InstallerSettings
from hostprep.core.services.provision.data.constants import (
    SINGBOX_CAPABILITIES,
    SINGBOX_DOCS_URL,
)
from hostprep.core.services.provision.data.templates import SYSTEMD_UNIT_TEMPLATE

RESTART_SEC = "5s"
LIMIT_NPROC = 10000
LIMIT_NOFILE = 1000000


def exec_start(settings: InstallerSettings) -> str:
    """The ``ExecStart=`` command line: binary, working dir, config."""
    argv = [
        str(settings.canonical_binary),
        "run",
        "-D",
        str(settings.main_dir),
        "-c",
        str(settings.config_path),
    ]
    return shlex.join(argv)


def render_unit(settings: InstallerSettings) -> str:
    """Render the sing-box unit file for ``settings``."""
    return SYSTEMD_UNIT_TEMPLATE.format(
        description=f"{settings.service_name} service",
        documentation=SINGBOX_DOCS_URL,
        capabilities=" ".join(SINGBOX_CAPABILITIES),
        exec_start=exec_start(settings),
        restart_sec=RESTART_SEC,
        limit_nproc=LIMIT_NPROC,
        limit_nofile=LIMIT_NOFILE,
    )
