"""Cross-session substrate over a key-value state store.

Each identity (a workspace, or a workspace on one git branch) owns five
parallel mappings in the state store: content, directories, accessed,
modified and summaries. Namespaces are loaded lazily and cached per
identity; switching branch re-derives the identity and never rewrites the
previous branch's data.
"""

from __future__ import annotations

import hashlib
import logging
import re
import subprocess
from collections.abc import Callable, Iterable
from pathlib import Path

from memfiles.state import StateStore
from memfiles.substrates.base import Kind, Meta
from memfiles.substrates.volatile import VolatileSubstrate

logger = logging.getLogger(__name__)

STATE_PREFIX = "memfiles"
FIELDS = ("content", "directories", "accessed", "modified", "summaries")
DEFAULT_BRANCH = "default"

BranchResolver = Callable[[], str | None]


def detect_branch(cwd: Path) -> str | None:
    """Current git branch of *cwd*, or None outside a repo or on a detached HEAD."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Branch detection failed in %s: %s", cwd, e)
        return None
    branch = result.stdout.strip()
    if result.returncode != 0 or not branch or branch == "HEAD":
        return None
    return branch


def branch_key(branch: str) -> str:
    """Storage-safe key for a branch name: readable prefix plus a short hash."""
    readable = re.sub(r"[^A-Za-z0-9._-]", "_", branch)[:40]
    digest = hashlib.sha256(branch.encode("utf-8")).hexdigest()[:8]
    return f"{readable}-{digest}"


class PersistedSubstrate:
    """Volatile maps loaded from, and written through to, a state store."""

    def __init__(
        self,
        state: StateStore,
        workspace_id: str,
        branch_resolver: BranchResolver | None = None,
    ) -> None:
        self._state = state
        self._workspace_id = workspace_id
        self._branch_resolver = branch_resolver
        self._namespaces: dict[str, VolatileSubstrate] = {}
        self.identity = self._derive_identity()

    def _derive_identity(self) -> str:
        if self._branch_resolver is None:
            return self._workspace_id
        branch = self._branch_resolver() or DEFAULT_BRANCH
        return f"{self._workspace_id}@{branch_key(branch)}"

    def on_branch_changed(self) -> str:
        """Re-detect the branch and switch to that branch's namespace."""
        previous = self.identity
        self.identity = self._derive_identity()
        if self.identity != previous:
            logger.info("Memory namespace switched: %s -> %s", previous, self.identity)
        return self.identity

    def _key(self, field: str) -> str:
        return f"{STATE_PREFIX}:{self.identity}:{field}"

    @property
    def _current(self) -> VolatileSubstrate:
        namespace = self._namespaces.get(self.identity)
        if namespace is None:
            namespace = VolatileSubstrate.from_snapshot(
                {field: self._state.get(self._key(field)) for field in FIELDS}
            )
            self._namespaces[self.identity] = namespace
        return namespace

    def _save(self, *fields: str) -> None:
        snapshot = self._current.snapshot()
        for field in fields or FIELDS:
            self._state.update(self._key(field), snapshot[field])

    # ── Reads ────────────────────────────────────────────────

    def kind(self, path: str) -> Kind:
        return self._current.kind(path)

    def read(self, path: str) -> str | None:
        return self._current.read(path)

    def entries(self) -> Iterable[tuple[str, Kind]]:
        return self._current.entries()

    def meta(self, path: str) -> Meta:
        return self._current.meta(path)

    def get_summary(self, path: str) -> str | None:
        return self._current.get_summary(path)

    # ── Writes ───────────────────────────────────────────────

    def write(self, path: str, content: str) -> None:
        self._current.write(path, content)
        self._save("content", "accessed", "modified")

    def make_dir(self, path: str) -> None:
        self._current.make_dir(path)
        self._save("directories", "accessed", "modified")

    def remove(self, path: str) -> None:
        self._current.remove(path)
        self._save("content", "directories", "accessed", "modified")

    def move(self, old: str, new: str) -> None:
        self._current.move(old, new)
        self._save()

    def touch(self, path: str) -> None:
        self._current.touch(path)
        self._save("accessed")

    def set_summary(self, path: str, summary: str) -> None:
        self._current.set_summary(path, summary)
        self._save("summaries")

    def clear_summary(self, path: str) -> None:
        self._current.clear_summary(path)
        self._save("summaries")
