"""Process-local substrate: path-keyed maps, lost on exit.

The same maps back the persisted substrate, which snapshots them into a
key-value state file after every mutation.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from memfiles.paths import MEMORIES_DIR
from memfiles.substrates.base import Kind, Meta, content_size


class MetadataTracker:
    """Access/modify times kept beside content, keyed by path."""

    def __init__(
        self,
        accessed: dict[str, datetime] | None = None,
        modified: dict[str, datetime] | None = None,
    ) -> None:
        self.accessed: dict[str, datetime] = accessed or {}
        self.modified: dict[str, datetime] = modified or {}

    def stamp_write(self, path: str) -> None:
        now = datetime.now()
        self.accessed[path] = now
        self.modified[path] = now

    def stamp_access(self, path: str) -> None:
        self.accessed[path] = datetime.now()

    def carry(self, old: str, new: str) -> None:
        for times in (self.accessed, self.modified):
            if old in times:
                times[new] = times.pop(old)

    def drop(self, path: str) -> None:
        self.accessed.pop(path, None)
        self.modified.pop(path, None)

    def meta(self, path: str, size: int) -> Meta:
        modified = self.modified.get(path) or datetime.now()
        return Meta(
            size=size,
            modified_at=modified,
            accessed_at=self.accessed.get(path, modified),
        )


class VolatileSubstrate:
    """Flat maps: file content, known directories, metadata, summaries."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.directories: set[str] = {MEMORIES_DIR}
        self.times = MetadataTracker()
        self.summaries: dict[str, str] = {}

    def kind(self, path: str) -> Kind:
        if path in self.directories:
            return Kind.DIRECTORY
        if path in self.files:
            return Kind.FILE
        return Kind.MISSING

    def read(self, path: str) -> str | None:
        return self.files.get(path)

    def write(self, path: str, content: str) -> None:
        self.files[path] = content
        self.times.stamp_write(path)

    def make_dir(self, path: str) -> None:
        self.directories.add(path)
        self.times.stamp_write(path)

    def remove(self, path: str) -> None:
        self.files.pop(path, None)
        if path != MEMORIES_DIR:
            self.directories.discard(path)
        self.times.drop(path)

    def move(self, old: str, new: str) -> None:
        self.files[new] = self.files.pop(old)
        self.times.carry(old, new)
        if old in self.summaries:
            self.summaries[new] = self.summaries.pop(old)

    def entries(self) -> Iterable[tuple[str, Kind]]:
        for path in list(self.directories):
            yield path, Kind.DIRECTORY
        for path in list(self.files):
            yield path, Kind.FILE

    def meta(self, path: str) -> Meta:
        size = content_size(self.files[path]) if path in self.files else 0
        return self.times.meta(path, size)

    def touch(self, path: str) -> None:
        self.times.stamp_access(path)

    def get_summary(self, path: str) -> str | None:
        return self.summaries.get(path)

    def set_summary(self, path: str, summary: str) -> None:
        self.summaries[path] = summary

    def clear_summary(self, path: str) -> None:
        self.summaries.pop(path, None)

    # ── Snapshots (used by the persisted substrate) ──────────

    def snapshot(self) -> dict[str, object]:
        """The five parallel mappings, JSON-serializable."""
        return {
            "content": dict(self.files),
            "directories": sorted(self.directories),
            "accessed": {p: t.isoformat() for p, t in self.times.accessed.items()},
            "modified": {p: t.isoformat() for p, t in self.times.modified.items()},
            "summaries": dict(self.summaries),
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> VolatileSubstrate:
        substrate = cls()
        substrate.files = dict(data.get("content") or {})
        substrate.directories = set(data.get("directories") or []) | {MEMORIES_DIR}
        substrate.times = MetadataTracker(
            accessed={p: datetime.fromisoformat(t) for p, t in (data.get("accessed") or {}).items()},
            modified={p: datetime.fromisoformat(t) for p, t in (data.get("modified") or {}).items()},
        )
        substrate.summaries = dict(data.get("summaries") or {})
        return substrate
