"""
L2 Resolver — release metadata resolution.
"""

from hostprep.core.services.provision.resolver.release_resolver import (  # noqa: F401
    ReleaseResolver,
    select_asset,
)
