"""The memory storage contract, shared by every backend.

A ``MemoryStore`` validates the path, resolves it through the directory
model, applies text edits, and only then touches its substrate. Which
physical medium it uses is decided by the substrate it is built with:

    MemoryStore(VolatileSubstrate())
    MemoryStore(PersistedSubstrate(state, "my-workspace"))
    MemoryStore(EncryptedSubstrate(secrets, "my-workspace"))
    MemoryStore(DiskSubstrate(workspace / ".memory"))

Callers are expected to run one operation at a time per store.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from datetime import datetime

from memfiles.errors import InvalidPath, NotFound
from memfiles.paths import MEMORIES_DIR, resolve
from memfiles.pins import PinTracker
from memfiles.substrates.base import Kind, Substrate
from memfiles.text import insert_at_line, render_view, unique_replace
from memfiles.tree import DirectoryModel

logger = logging.getLogger(__name__)


@dataclass
class MemoryEntry:
    """One file or directory as reported by ``list_all``."""

    path: str
    name: str
    is_directory: bool
    size: int
    modified_at: datetime
    accessed_at: datetime
    pinned: bool = False
    summary: str | None = None


class MemoryStore:
    """View, edit and reorganize memory files on one substrate."""

    def __init__(
        self,
        substrate: Substrate,
        workspace_id: str = "default",
        pins: PinTracker | None = None,
    ) -> None:
        self.substrate = substrate
        self.tree = DirectoryModel(substrate)
        self.workspace_id = workspace_id
        self.pins = pins

    # ── Reads ────────────────────────────────────────────────

    async def view(self, path: str, view_range: tuple[int, int] | list[int] | None = None) -> str:
        """Directory listing, or the file with line numbers."""
        full = resolve(path)
        kind = self.tree.resolve_kind(full)
        if kind is Kind.DIRECTORY:
            return self.tree.render_listing(full)

        if kind is Kind.MISSING:
            blocker = self.tree.file_ancestor(full)
            if blocker is None:
                raise NotFound(
                    f"The file '{full}' does not exist yet. Use the 'create' command to create "
                    f"it first, or use 'view' on the parent directory '{MEMORIES_DIR}' to see "
                    "available files."
                )
            raise NotFound(
                f"The path '{full}' does not exist because '{blocker}' is a file, not a "
                f"directory. Use 'view' on '{blocker}' to read it, or 'view' on "
                f"'{MEMORIES_DIR}' to see available files."
            )

        content = self.substrate.read(full)
        if content is None:
            raise NotFound(
                f"The file '{full}' is listed but its content could not be found. Use "
                "'create' to write it again, or 'delete' to remove the entry."
            )
        self.substrate.touch(full)
        logger.debug("view %s range=%s", full, view_range)
        return render_view(content, view_range)

    async def read_raw(self, path: str) -> str:
        """File content exactly as stored, without line numbers."""
        full = resolve(path)
        content = self.substrate.read(full) if self.tree.resolve_kind(full) is Kind.FILE else None
        if content is None:
            raise NotFound(f"The file '{full}' does not exist.")
        self.substrate.touch(full)
        return content

    async def list_all(self) -> list[MemoryEntry]:
        """Every entry except the root, sorted by path."""
        entries = []
        for path, kind in self.substrate.entries():
            if path == MEMORIES_DIR:
                continue
            meta = self.substrate.meta(path)
            is_directory = kind is Kind.DIRECTORY
            entries.append(
                MemoryEntry(
                    path=path,
                    name=posixpath.basename(path),
                    is_directory=is_directory,
                    size=meta.size,
                    modified_at=meta.modified_at,
                    accessed_at=meta.accessed_at,
                    pinned=self.pins.is_pinned(path) if self.pins else False,
                    summary=None if is_directory else self.substrate.get_summary(path),
                )
            )
        return sorted(entries, key=lambda e: e.path)

    # ── Writes ───────────────────────────────────────────────

    async def create(self, path: str, content: str) -> None:
        """Create or overwrite a file, materializing parent directories."""
        full = resolve(path)
        if self.tree.resolve_kind(full) is Kind.DIRECTORY:
            raise InvalidPath(
                f"Cannot create '{full}' because it is a directory. "
                "Choose a file path inside it instead."
            )
        self.tree.ensure_ancestors(full)
        self.substrate.write(full, content)
        logger.info("Created %s (%d chars)", full, len(content))

    async def str_replace(self, path: str, old_str: str, new_str: str) -> None:
        """Replace the unique occurrence of *old_str* in a file."""
        full = resolve(path)
        text = self._require_file(
            full,
            f"Cannot modify '{full}' because it does not exist. Use 'create' to create the "
            f"file first, or 'view' to check available files in '{MEMORIES_DIR}'.",
        )
        self.substrate.write(full, unique_replace(text, old_str, new_str, full))
        logger.info("Replaced text in %s", full)

    async def insert(self, path: str, insert_line: int, insert_text: str) -> None:
        """Insert a line at 0-based *insert_line*."""
        full = resolve(path)
        text = self._require_file(
            full,
            f"Cannot insert text into '{full}' because the file does not exist. Use 'create' "
            f"to create the file first, or 'view' to check available files in '{MEMORIES_DIR}'.",
        )
        self.substrate.write(full, insert_at_line(text, insert_line, insert_text))
        logger.info("Inserted text at line %d in %s", insert_line, full)

    async def delete(self, path: str) -> str:
        """Delete a file or a whole directory; the root is only emptied."""
        full = resolve(path)
        kind = self.tree.resolve_kind(full)
        if kind is Kind.MISSING:
            raise NotFound(
                f"Cannot delete '{full}' because it does not exist. Use 'view' on "
                f"'{MEMORIES_DIR}' to see what files are available to delete."
            )

        removed = self.tree.delete_subtree(full)
        for file_path in removed:
            self._discard_summary(file_path)
            if self.pins:
                self.pins.on_remove(file_path)

        if kind is Kind.DIRECTORY:
            logger.info("Deleted directory %s (%d files)", full, len(removed))
            return f"Directory deleted: {full}"
        logger.info("Deleted %s", full)
        return f"File deleted: {full}"

    async def rename(self, old_path: str, new_path: str) -> None:
        """Move a file or directory, keeping metadata, pins and summaries."""
        old_full = resolve(old_path)
        new_full = resolve(new_path)
        moved = self.tree.rename_subtree(old_full, new_full)
        if self.pins:
            for old, new in moved:
                self.pins.on_rename(old, new)
        logger.info("Renamed %s -> %s (%d files)", old_full, new_full, len(moved))

    # ── Summaries (computed elsewhere, stored here) ──────────

    async def get_summary(self, path: str) -> str | None:
        return self.substrate.get_summary(resolve(path))

    async def set_summary(self, path: str, summary: str) -> None:
        full = resolve(path)
        if self.tree.resolve_kind(full) is not Kind.FILE:
            raise NotFound(f"The file '{full}' does not exist.")
        self.substrate.set_summary(full, summary)

    async def clear_summary(self, path: str) -> None:
        self.substrate.clear_summary(resolve(path))

    # ── Helpers ──────────────────────────────────────────────

    def _require_file(self, full: str, message: str) -> str:
        content = self.substrate.read(full) if self.tree.resolve_kind(full) is Kind.FILE else None
        if content is None:
            raise NotFound(message)
        return content

    def _discard_summary(self, path: str) -> None:
        try:
            self.substrate.clear_summary(path)
        except Exception as e:
            logger.warning("Could not remove summary for %s: %s", path, e)
