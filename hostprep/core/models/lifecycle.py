"""
Lifecycle models — installer states, actions and their outcomes.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import BaseModel, Field


class InstallState(StrEnum):
    """Observed state of a managed binary + service pair."""

    ABSENT = "absent"
    INSTALLED = "installed"
    RUNNING = "running"


class LifecycleAction(StrEnum):
    """Actions accepted by the sing-box lifecycle controller."""

    INSTALL = "install"
    UPDATE = "update"
    UNINSTALL = "uninstall"
    AUTO = "auto"


class Release(NamedTuple):
    """A resolved release asset."""

    version: str
    url: str
    asset_name: str = ""


class LifecycleResult(BaseModel):
    """What an action did.  Returned to the CLI for rendering."""

    action: LifecycleAction
    ok: bool = True
    message: str = ""
    version: str | None = None
    already_installed: bool = False
    replaced: list[Path] = Field(default_factory=list)
    removed: list[Path] = Field(default_factory=list)
    share_line: str | None = None
    warnings: list[str] = Field(default_factory=list)


class StatusReport(BaseModel):
    """Read-only snapshot for ``hostprep singbox status``."""

    state: InstallState
    canonical_binary: Path
    canonical_present: bool = False
    discovered_copies: list[Path] = Field(default_factory=list)
    version: str | None = None
    service_active: bool = False
    service_enabled: bool = False
    service_file_present: bool = False
    config_file: Path | None = None
    listen_port: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ShellAction(StrEnum):
    """Actions accepted by the shell environment provisioners."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


class ShellResult(BaseModel):
    """Outcome of a Zsh or Fish provisioning run."""

    shell: str
    action: ShellAction
    ok: bool = True
    message: str = ""
    tools: dict[str, str] = Field(default_factory=dict)
    changed_files: list[Path] = Field(default_factory=list)
    removed: list[Path] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
