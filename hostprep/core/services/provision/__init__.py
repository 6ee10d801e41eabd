"""
Provisioning service — onion-layered:

    data → domain → resolver → detection → execution → orchestration

Each layer imports only from the layers to its left.  The CLI talks to
orchestration only.
"""

from hostprep.core.services.provision.orchestration import (  # noqa: F401
    FishProvisioner,
    SingBoxLifecycle,
    ZshProvisioner,
)
