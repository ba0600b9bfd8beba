"""Mirror every memory file into one section of a workspace document.

Keeps a file such as ``AGENTS.md`` carrying a ``<memories>`` block with the
current content of each memory file. The mirror only reads the store through
``list_all`` and ``read_raw``. A failed sync is logged and never reaches the
memory operation that triggered it.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memfiles.store import MemoryEntry, MemoryStore

logger = logging.getLogger(__name__)

SECTION_OPEN = '<memories hint="Manage via memory tool">'
SECTION_CLOSE = "</memories>"
INSTRUCTIONS_HEADER = "---\napplyTo: **\n---\n\n"

_SECTION_RE = re.compile(r'<memories\s+hint="Manage via memory tool">[\s\S]*?</memories>')
_LEGACY_SECTION_RE = re.compile(r'<memory\s+hint="Manage via memory tool">[\s\S]*?</memory>')


class MirrorSync:
    """Write the memory section into *target*."""

    def __init__(self, target: Path) -> None:
        self.target = target

    @property
    def is_instructions_file(self) -> bool:
        return self.target.name.endswith(".instructions.md")

    async def sync(self, store: MemoryStore) -> bool:
        """Refresh the section. Returns False (after logging) on any failure."""
        try:
            entries = [e for e in await store.list_all() if not e.is_directory]
            section = await self.render_section(store, entries)
            existing = (
                self.target.read_text(encoding="utf-8") if self.target.exists() else ""
            )
            self.target.parent.mkdir(parents=True, exist_ok=True)
            self.target.write_text(merge_section(existing, section), encoding="utf-8")
        except Exception as e:
            logger.error("Failed to sync memories to %s: %s", self.target, e)
            return False
        logger.debug("Synced %d memory files to %s", len(entries), self.target)
        return True

    async def render_section(self, store: MemoryStore, entries: list[MemoryEntry]) -> str:
        header = INSTRUCTIONS_HEADER if self.is_instructions_file else ""
        if not entries:
            return f"{header}{SECTION_OPEN}\n(No memory files yet)\n{SECTION_CLOSE}"

        blocks = []
        for entry in entries:
            try:
                content = await store.read_raw(entry.path)
            except Exception as e:
                logger.warning("Skipping %s in sync: %s", entry.path, e)
                continue
            escaped = content.replace("</memory>", "&lt;/memory&gt;")
            blocks.append(f'<memory path="{entry.path}">\n{escaped}\n</memory>')

        body = "\n\n".join(blocks)
        return f"{header}{SECTION_OPEN}\n{body}\n{SECTION_CLOSE}"


def merge_section(existing: str, section: str) -> str:
    """Replace the memory section in *existing*, or append it."""
    for pattern in (_SECTION_RE, _LEGACY_SECTION_RE):
        if pattern.search(existing):
            return pattern.sub(lambda _: section, existing, count=1)

    if existing and not existing.endswith("\n\n"):
        separator = "\n" if existing.endswith("\n") else "\n\n"
    else:
        separator = ""
    return existing + separator + section + "\n"
