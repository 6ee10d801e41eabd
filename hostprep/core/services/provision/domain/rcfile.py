"""
L1 Domain — structured shell rc-file editing.

Shell rc files (``~/.zshrc``, ``config.fish``, ``/etc/shells``,
``/etc/hosts``) are loaded into a list of lines, edited with
idempotent operations and written back only when something changed.
Matching is on whole (stripped) lines, never on substrings, so
``alias cd="z"`` does not match ``# alias cd="z"``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class RcFile:
    """An rc file held as lines."""

    path: Path
    lines: list[str] = field(default_factory=list)
    existed: bool = False
    dirty: bool = False

    @classmethod
    def load(cls, path: Path) -> RcFile:
        """Read ``path``; a missing file loads as empty."""
        if not path.is_file():
            return cls(path=path)
        text = path.read_text(encoding="utf-8")
        return cls(path=path, lines=text.splitlines(), existed=True)

    # ── Queries ──────────────────────────────────────────────────

    def contains(self, line: str) -> bool:
        target = line.strip()
        return any(existing.strip() == target for existing in self.lines)

    def find_assignment(self, name: str) -> int | None:
        """Index of the first ``name=...`` line, or None."""
        prefix = f"{name}="
        for i, existing in enumerate(self.lines):
            if existing.lstrip().startswith(prefix):
                return i
        return None

    # ── Edits (each returns True when the file changed) ─────────

    def ensure_line(self, line: str, *, blank_before: bool = False) -> bool:
        """Append ``line`` unless an identical line is present."""
        if self.contains(line):
            return False
        if blank_before and self.lines and self.lines[-1].strip():
            self.lines.append("")
        self.lines.append(line)
        self.dirty = True
        return True

    def set_assignment(self, name: str, value: str, *, append_missing: bool = False) -> bool:
        """Rewrite every ``name=...`` line to ``name=value``."""
        wanted = f"{name}={value}"
        changed = False
        found = False
        prefix = f"{name}="
        for i, existing in enumerate(self.lines):
            if existing.lstrip().startswith(prefix):
                found = True
                if existing != wanted:
                    self.lines[i] = wanted
                    changed = True
        if not found and append_missing:
            self.lines.append(wanted)
            changed = True
        self.dirty = self.dirty or changed
        return changed

    def insert_before(self, anchor: str, block: list[str], *, marker: str) -> bool:
        """Insert ``block`` before the first ``anchor`` line.

        Skipped when ``marker`` is already present as a line or when
        the anchor is missing.
        """
        if self.contains(marker):
            return False
        target = anchor.strip()
        for i, existing in enumerate(self.lines):
            if existing.strip() == target:
                self.lines[i:i] = list(block)
                self.dirty = True
                return True
        logger.debug("Anchor %r not found in %s", anchor, self.path)
        return False

    def remove_line(self, line: str) -> bool:
        """Drop every line identical to ``line``."""
        target = line.strip()
        kept = [existing for existing in self.lines if existing.strip() != target]
        if len(kept) == len(self.lines):
            return False
        self.lines = kept
        self.dirty = True
        return True

    # ── Persistence ──────────────────────────────────────────────

    def render(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""

    def save(self) -> bool:
        """Write back if edited.  Returns True when the file was written."""
        if not self.dirty:
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.render(), encoding="utf-8")
        self.existed = True
        self.dirty = False
        logger.info("Updated %s", self.path)
        return True
