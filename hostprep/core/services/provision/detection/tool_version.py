"""
L3 Detection — Installed tool versions.

Runs the tool's version command and extracts ``X.Y.Z``.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_COMMANDS: dict[str, tuple[list[str], str]] = {
    "sing-box": (["version"],   r"sing-box version\s+v?(\d+\.\d+\.\d+\S*)"),
    "starship": (["--version"], r"starship\s+v?(\d+\.\d+\.\d+)"),
    "zoxide":   (["--version"], r"zoxide\s+v?(\d+\.\d+\.\d+)"),
    "fish":     (["--version"], r"fish, version\s+(\d+\.\d+\.\d+\S*)"),
}


def get_binary_version(binary: Path, tool: str | None = None) -> str | None:
    """Version of the executable at ``binary``, or None if unknown.

    Args:
        binary: Path of the executable.
        tool: Key into ``VERSION_COMMANDS``; defaults to the file name.
    """
    key = tool or binary.name
    args, pattern = VERSION_COMMANDS.get(key, (["--version"], r"(\d+\.\d+\.\d+)"))

    if not binary.is_file():
        return None

    try:
        r = subprocess.run(
            [str(binary), *args],
            capture_output=True, text=True, timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Version probe of %s failed: %s", binary, exc)
        return None

    m = re.search(pattern, r.stdout + r.stderr)
    return m.group(1) if m else None
