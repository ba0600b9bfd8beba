"""On-disk substrate: /memories maps onto a real directory tree.

Directories are real directories and metadata comes from ``os.stat``.
Summaries live in markdown sidecars with YAML frontmatter, kept in a
separate directory so they never show up in listings.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import frontmatter

from memfiles.paths import MEMORIES_DIR, relative_of
from memfiles.substrates.base import Kind, Meta

logger = logging.getLogger(__name__)


class DiskSubstrate:
    """Files under *root_dir*, summaries under *summary_dir*."""

    def __init__(self, root_dir: Path, summary_dir: Path | None = None) -> None:
        self.root_dir = root_dir
        self.summary_dir = summary_dir or root_dir.parent / f"{root_dir.name}-summaries"
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _fs_path(self, path: str) -> Path:
        return self.root_dir.joinpath(*relative_of(path).strip("/").split("/"))

    def _summary_path(self, path: str) -> Path:
        return self.summary_dir.joinpath(*f"{relative_of(path).strip('/')}.md".split("/"))

    def _virtual_path(self, fs_path: Path) -> str:
        rel = fs_path.relative_to(self.root_dir).as_posix()
        return MEMORIES_DIR if rel == "." else f"{MEMORIES_DIR}/{rel}"

    # ── Substrate ────────────────────────────────────────────

    def kind(self, path: str) -> Kind:
        p = self._fs_path(path)
        if p.is_dir():
            return Kind.DIRECTORY
        if p.is_file():
            return Kind.FILE
        return Kind.MISSING

    def read(self, path: str) -> str | None:
        p = self._fs_path(path)
        if not p.is_file():
            return None
        # Bytes, not read_text: newline translation would alter content
        return p.read_bytes().decode("utf-8")

    def write(self, path: str, content: str) -> None:
        self._fs_path(path).write_bytes(content.encode("utf-8"))

    def make_dir(self, path: str) -> None:
        self._fs_path(path).mkdir(exist_ok=True)

    def remove(self, path: str) -> None:
        p = self._fs_path(path)
        if p == self.root_dir:
            return
        if p.is_dir():
            p.rmdir()
        else:
            p.unlink(missing_ok=True)

    def move(self, old: str, new: str) -> None:
        os.replace(self._fs_path(old), self._fs_path(new))
        old_summary = self._summary_path(old)
        if old_summary.exists():
            new_summary = self._summary_path(new)
            new_summary.parent.mkdir(parents=True, exist_ok=True)
            os.replace(old_summary, new_summary)

    def entries(self) -> Iterable[tuple[str, Kind]]:
        yield MEMORIES_DIR, Kind.DIRECTORY
        for p in self.root_dir.rglob("*"):
            yield self._virtual_path(p), Kind.DIRECTORY if p.is_dir() else Kind.FILE

    def meta(self, path: str) -> Meta:
        p = self._fs_path(path)
        st = p.stat()
        return Meta(
            size=0 if p.is_dir() else st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime),
            accessed_at=datetime.fromtimestamp(st.st_atime),
        )

    def touch(self, path: str) -> None:
        p = self._fs_path(path)
        st = p.stat()
        os.utime(p, (time.time(), st.st_mtime))

    def get_summary(self, path: str) -> str | None:
        p = self._summary_path(path)
        if not p.exists():
            return None
        return frontmatter.load(str(p)).content

    def set_summary(self, path: str, summary: str) -> None:
        p = self._summary_path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        post = frontmatter.Post(
            summary,
            path=path,
            updated=datetime.now().isoformat(timespec="seconds"),
        )
        p.write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")

    def clear_summary(self, path: str) -> None:
        self._summary_path(path).unlink(missing_ok=True)
