"""
L4 Execution — subprocess, downloads, packages and services.
"""

from hostprep.core.services.provision.execution.download import (  # noqa: F401
    BinaryDeployer,
    download_file,
    extract_archive,
    locate_binary,
    place_binary,
    scoped_workdir,
)
from hostprep.core.services.provision.execution.service_supervisor import ServiceSupervisor  # noqa: F401
from hostprep.core.services.provision.execution.subprocess_runner import (  # noqa: F401
    CmdResult,
    Runner,
    run_command,
)
from hostprep.core.services.provision.execution.system_deps import (  # noqa: F401
    DependencyInstaller,
    PackageInstaller,
    install_packages,
    missing_commands,
)
