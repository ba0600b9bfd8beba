"""Substrate protocol: the physical primitives a backend varies by.

The directory model and text editor are shared; a substrate only knows how
to get, put, move and enumerate single entries on its medium.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


class Kind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass
class Meta:
    """Per-entry metadata. Directories report size 0."""

    size: int
    modified_at: datetime
    accessed_at: datetime


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))


@runtime_checkable
class Substrate(Protocol):
    """Protocol that all storage media must implement.

    Paths are canonical keys (see ``memfiles.paths.resolve``). The root
    directory always exists.
    """

    def kind(self, path: str) -> Kind: ...

    def read(self, path: str) -> str | None:
        """Content of the file at *path*, or None when it is not a file."""
        ...

    def write(self, path: str, content: str) -> None:
        """Upsert file content; stamps size, modified and accessed times."""
        ...

    def make_dir(self, path: str) -> None:
        """Record a single directory. Its parent already exists."""
        ...

    def remove(self, path: str) -> None:
        """Remove one file, or one directory that has no children left."""
        ...

    def move(self, old: str, new: str) -> None:
        """Move one file with its metadata. The new parent already exists."""
        ...

    def entries(self) -> Iterable[tuple[str, Kind]]:
        """Every entry, root included, in no particular order."""
        ...

    def meta(self, path: str) -> Meta: ...

    def touch(self, path: str) -> None:
        """Bump the access time of a file."""
        ...

    def get_summary(self, path: str) -> str | None: ...

    def set_summary(self, path: str, summary: str) -> None: ...

    def clear_summary(self, path: str) -> None: ...
