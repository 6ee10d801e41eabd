"""
L5 Orchestration — top-level provisioning flows.
"""

from hostprep.core.services.provision.orchestration.fish_env import FishProvisioner  # noqa: F401
from hostprep.core.services.provision.orchestration.release_tools import (  # noqa: F401
    install_release_binary,
    remove_release_binary,
)
from hostprep.core.services.provision.orchestration.singbox_lifecycle import SingBoxLifecycle  # noqa: F401
from hostprep.core.services.provision.orchestration.zsh_env import ZshProvisioner  # noqa: F401
