"""
L4 Execution — systemd unit management.

Wraps the ``systemctl`` verbs the lifecycle needs.  Probes delegate to
L3 detection and never raise; state changes raise ``ServiceError``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hostprep.core.errors import ServiceError
from hostprep.core.services.provision.detection import service_status
from hostprep.core.services.provision.execution.subprocess_runner import Runner, run_command

logger = logging.getLogger(__name__)

UNIT_MODE = 0o644


class ServiceSupervisor:
    """One systemd service and its unit file.

    Args:
        service_name: Unit name without ``.service``.
        service_file: Path of the unit file.
        runner: Command runner (``run_command`` or a test double).
    """

    def __init__(self, service_name: str, service_file: Path, *, runner: Runner = run_command) -> None:
        self.service_name = service_name
        self.service_file = Path(service_file)
        self.runner = runner

    # ── Probes ──────────────────────────────────────────────────

    def is_active(self) -> bool:
        return service_status.is_active(self.service_name)

    def is_enabled(self) -> bool:
        return service_status.is_enabled(self.service_name)

    def unit_exists(self) -> bool:
        return self.service_file.is_file()

    # ── State changes ───────────────────────────────────────────

    def _systemctl(self, *args: str) -> None:
        r = self.runner(["systemctl", *args], timeout=60)
        if not r.ok:
            raise ServiceError(f"systemctl {' '.join(args)} failed: {r.error}")

    def daemon_reload(self) -> None:
        self._systemctl("daemon-reload")

    def start(self) -> None:
        logger.info("Starting %s", self.service_name)
        self._systemctl("start", self.service_name)

    def stop(self) -> None:
        logger.info("Stopping %s", self.service_name)
        self._systemctl("stop", self.service_name)

    def enable(self, *, now: bool = True) -> None:
        args = ["enable", "--now", self.service_name] if now else ["enable", self.service_name]
        self._systemctl(*args)

    def disable(self, *, now: bool = True) -> None:
        args = ["disable", "--now", self.service_name] if now else ["disable", self.service_name]
        self._systemctl(*args)

    # ── Unit file ───────────────────────────────────────────────

    def write_unit(self, content: str) -> bool:
        """Write the unit file and reload systemd.

        Returns:
            False when the file already holds ``content`` (nothing done).
        """
        if self.unit_exists() and self.service_file.read_text(encoding="utf-8") == content:
            logger.debug("Unit %s unchanged", self.service_file)
            return False

        self.service_file.parent.mkdir(parents=True, exist_ok=True)
        self.service_file.write_text(content, encoding="utf-8")
        self.service_file.chmod(UNIT_MODE)
        logger.info("Wrote unit %s", self.service_file)
        self.daemon_reload()
        return True

    def remove_unit(self) -> bool:
        """Delete the unit file and reload systemd.  False if it was absent."""
        if not self.unit_exists():
            return False
        self.service_file.unlink()
        logger.info("Removed unit %s", self.service_file)
        self.daemon_reload()
        return True
