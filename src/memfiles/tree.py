"""Directory model over a flat, path-keyed substrate.

Hierarchy is derived by prefix matching: a directory's children are the
entries whose path starts with ``dir + "/"``. Cascading deletes and renames
walk that prefix set rather than a linked tree.
"""

from __future__ import annotations

import logging
import posixpath

from memfiles.errors import InvalidPath, NotFound
from memfiles.paths import MEMORIES_DIR
from memfiles.substrates.base import Kind, Substrate

logger = logging.getLogger(__name__)

EMPTY_ROOT = "(empty - no files created yet)"


def _depth(path: str) -> int:
    return path.count("/")


def _is_under(path: str, ancestor: str) -> bool:
    return path.startswith(ancestor + "/")


class DirectoryModel:
    """Hierarchy operations shared by every backend."""

    def __init__(self, substrate: Substrate) -> None:
        self.substrate = substrate

    def resolve_kind(self, path: str) -> Kind:
        if path == MEMORIES_DIR:
            return Kind.DIRECTORY
        return self.substrate.kind(path)

    def file_ancestor(self, path: str) -> str | None:
        """Nearest ancestor of *path* below the root that is a file, if any."""
        parent = posixpath.dirname(path)
        while _is_under(parent, MEMORIES_DIR):
            if self.resolve_kind(parent) is Kind.FILE:
                return parent
            parent = posixpath.dirname(parent)
        return None

    def ensure_ancestors(self, path: str) -> None:
        """Materialize every missing parent directory of *path* below the root."""
        parent = posixpath.dirname(path)
        if parent == MEMORIES_DIR or not _is_under(parent, MEMORIES_DIR):
            return
        kind = self.resolve_kind(parent)
        if kind is Kind.DIRECTORY:
            return
        if kind is Kind.FILE:
            raise InvalidPath(
                f"Cannot use '{parent}' as a directory because it is a file. "
                "Choose a different path or rename the file first."
            )
        self.ensure_ancestors(parent)
        self.substrate.make_dir(parent)
        logger.debug("Created directory %s", parent)

    def descendants(self, path: str) -> list[tuple[str, Kind]]:
        return [(p, k) for p, k in self.substrate.entries() if _is_under(p, path)]

    def list_children(self, path: str) -> list[str]:
        """Sorted names of immediate children; directories end in ``/``."""
        items = []
        for child, kind in self.descendants(path):
            rest = child[len(path) + 1 :]
            if "/" not in rest:
                items.append(f"{rest}/" if kind is Kind.DIRECTORY else rest)
        return sorted(items)

    def render_listing(self, path: str) -> str:
        items = self.list_children(path)
        if not items and path == MEMORIES_DIR:
            return f"Directory: {path}\n{EMPTY_ROOT}"
        return f"Directory: {path}\n" + "\n".join(f"- {item}" for item in items)

    def delete_subtree(self, path: str) -> list[str]:
        """Remove *path* and everything under it; returns removed file paths.

        The root is emptied but never removed.
        """
        if self.resolve_kind(path) is Kind.FILE:
            self.substrate.remove(path)
            return [path]

        removed: list[str] = []
        nested = self.descendants(path)
        for child, kind in nested:
            if kind is Kind.FILE:
                self.substrate.remove(child)
                removed.append(child)
        dirs = [child for child, kind in nested if kind is Kind.DIRECTORY]
        for child in sorted(dirs, key=_depth, reverse=True):
            self.substrate.remove(child)
        if path != MEMORIES_DIR:
            self.substrate.remove(path)
        return sorted(removed)

    def rename_subtree(self, old: str, new: str) -> list[tuple[str, str]]:
        """Move a file, or a directory with all descendants, from *old* to *new*.

        Returns ``(old, new)`` pairs for every moved file. Metadata travels
        with each file.
        """
        kind = self.resolve_kind(old)
        if kind is Kind.MISSING:
            raise NotFound(
                f"Cannot rename '{old}' because it does not exist. "
                f"Use 'view' on '{MEMORIES_DIR}' to see what files are available to rename."
            )
        if old == MEMORIES_DIR:
            raise InvalidPath(f"Cannot rename the root directory '{MEMORIES_DIR}'.")
        if new == old or _is_under(new, old):
            raise InvalidPath(f"Cannot move '{old}' into itself ('{new}').")
        if self.resolve_kind(new) is not Kind.MISSING:
            raise InvalidPath(
                f"Cannot rename to '{new}' because it already exists. "
                "Delete it first or choose a different name."
            )

        self.ensure_ancestors(new)

        if kind is Kind.FILE:
            self.substrate.move(old, new)
            return [(old, new)]

        moved: list[tuple[str, str]] = []
        nested = sorted(self.descendants(old), key=lambda item: _depth(item[0]))
        self.substrate.make_dir(new)
        for child, child_kind in nested:
            target = new + child[len(old) :]
            if child_kind is Kind.DIRECTORY:
                self.substrate.make_dir(target)
            else:
                self.substrate.move(child, target)
                moved.append((child, target))
        for child, child_kind in sorted(nested, key=lambda item: _depth(item[0]), reverse=True):
            if child_kind is Kind.DIRECTORY:
                self.substrate.remove(child)
        self.substrate.remove(old)
        return sorted(moved)
