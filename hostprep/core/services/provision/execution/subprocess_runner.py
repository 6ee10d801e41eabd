"""
L4 Execution — Core subprocess runner.

The single place where ``subprocess.run`` is called for state-changing
commands (package managers, systemctl, chsh, git).  Every command is
logged; failures come back as a ``CmdResult`` with ``ok == False`` and
the caller decides whether that is fatal.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 2000


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> str:
        """Short human-readable failure description."""
        if self.ok:
            return ""
        detail = (self.stderr or self.stdout).strip().splitlines()
        tail = f": {detail[-1]}" if detail else ""
        return f"{fmt_argv(self.argv)} exited {self.returncode}{tail}"


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    *,
    timeout: int = 300,
    input_text: str | None = None,
    cwd: str | None = None,
    env_overrides: Mapping[str, str] | None = None,
) -> CmdResult:
    """Run a command, capturing output.

    Args:
        argv: Command list for ``subprocess.run()``.
        timeout: Seconds before the command is killed.
        input_text: Optional stdin.
        cwd: Working directory.
        env_overrides: Extra environment variables.

    Returns:
        CmdResult.  A missing executable yields returncode 127 and a
        timeout returncode 124, mirroring the shell conventions.
    """
    argv_list = [str(a) for a in argv]
    logger.info("CMD %s", fmt_argv(argv_list))

    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    start = time.monotonic()
    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError as exc:
        return CmdResult(argv=argv_list, returncode=127, stderr=str(exc))
    except subprocess.TimeoutExpired:
        return CmdResult(argv=argv_list, returncode=124, stderr=f"timed out after {timeout}s")

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = p.stdout[-_OUTPUT_TAIL:] if p.stdout else ""
    stderr = p.stderr[-_OUTPUT_TAIL:] if p.stderr else ""

    if stdout:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr:
        logger.debug("STDERR %s", stderr.strip())

    return CmdResult(
        argv=argv_list,
        returncode=p.returncode,
        stdout=stdout,
        stderr=stderr,
        elapsed_ms=elapsed_ms,
    )


# Signature shared by run_command and test doubles.
Runner = Callable[..., CmdResult]
