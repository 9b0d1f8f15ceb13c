"""
Note Store — file access to the markdown vault.

All paths handed to the store are vault-relative ("Journal/2026-10-18.md").
Anything that resolves outside the vault root is rejected.
"""

from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union


class NoteStoreError(Exception):
    """A note path could not be resolved or used."""


def normalize_note_path(path: str) -> str:
    """Canonical vault-relative form: forward slashes, no leading "./" or "/"."""
    p = str(path).replace("\\", "/").strip()
    parts = [part for part in PurePosixPath(p).parts if part not in ("", ".", "/")]
    return "/".join(parts)


class NoteStore:

    def __init__(self, vault_dir: Path):
        self.vault_dir = Path(vault_dir)

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def resolve(self, note_path: str) -> Path:
        rel = normalize_note_path(note_path)
        if not rel:
            raise NoteStoreError("empty note path")
        root = self.vault_dir.resolve()
        full = (root / rel).resolve()
        if full != root and root not in full.parents:
            raise NoteStoreError(f"note path escapes the vault: {note_path!r}")
        return full

    def relative(self, full_path: Path) -> str:
        return Path(full_path).resolve().relative_to(self.vault_dir.resolve()).as_posix()

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def exists(self, note_path: str) -> bool:
        try:
            return self.resolve(note_path).is_file()
        except NoteStoreError:
            return False

    def read(self, note_path: str) -> str:
        full = self.resolve(note_path)
        if not full.is_file():
            raise NoteStoreError(f"note not found: {note_path!r}")
        return full.read_text(encoding="utf-8")

    def create(self, note_path: str, content: str = "") -> Path:
        """Create the note (and parent folders) unless it already exists."""
        full = self.resolve(note_path)
        if full.is_dir():
            raise NoteStoreError(f"a folder is in the way of note {note_path!r}")
        full.parent.mkdir(parents=True, exist_ok=True)
        if not full.exists():
            full.write_text(content, encoding="utf-8")
        return full

    def append(self, note_path: str, line: str) -> Path:
        """
        Append *line* as its own newline-terminated line, creating the note if
        absent. A previous line missing its trailing newline is closed first so
        entries never merge.
        """
        full = self.create(note_path)
        prefix = ""
        if full.stat().st_size > 0:
            with full.open("rb") as fh:
                fh.seek(-1, os.SEEK_END)
                if fh.read(1) != b"\n":
                    prefix = "\n"
        with full.open("a", encoding="utf-8") as fh:
            fh.write(prefix + line.rstrip("\n") + "\n")
        return full

    def list_notes(self) -> List[str]:
        """All markdown notes in the vault, vault-relative."""
        if not self.vault_dir.is_dir():
            return []
        return sorted(self.relative(p) for p in self.vault_dir.rglob("*.md") if p.is_file())

    # ------------------------------------------------------------------
    # Daily notes
    # ------------------------------------------------------------------

    def daily_note_path(
        self,
        day: Optional[Union[date, datetime]] = None,
        folder: str = "",
        fmt: str = "%Y-%m-%d",
    ) -> str:
        day = day or date.today()
        name = day.strftime(fmt).strip()
        if not name:
            raise NoteStoreError("daily note format produced an empty name")
        folder = normalize_note_path(folder)
        return f"{folder}/{name}.md" if folder else f"{name}.md"

    def get_or_create_daily_note(
        self,
        day: Optional[Union[date, datetime]] = None,
        folder: str = "",
        fmt: str = "%Y-%m-%d",
    ) -> str:
        """Daily note path for *day*, created empty when missing."""
        note = self.daily_note_path(day, folder, fmt)
        self.create(note)
        return note
