"""Encrypted-at-rest substrate over a secret store.

A secret store cannot enumerate its keys, so this substrate keeps a
side-channel index (one serialized blob) of every entry with its kind, size
and times. Each primitive reads, modifies and rewrites that index; the
content secret is always written before the index entry that points at it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime

from memfiles.paths import MEMORIES_DIR
from memfiles.state import SecretStore
from memfiles.substrates.base import Kind, Meta, content_size

logger = logging.getLogger(__name__)

KEY_PREFIX = "memfiles"

Index = dict[str, dict]


class EncryptedSubstrate:
    """Content, summaries and the metadata index as separate secrets."""

    def __init__(self, secrets: SecretStore, workspace_id: str) -> None:
        self._secrets = secrets
        self._workspace_id = workspace_id

    # ── Keys ─────────────────────────────────────────────────

    @property
    def _index_key(self) -> str:
        return f"{KEY_PREFIX}:index:{self._workspace_id}"

    def _file_key(self, path: str) -> str:
        return f"{KEY_PREFIX}:file:{self._workspace_id}:{path}"

    def _summary_key(self, path: str) -> str:
        return f"{KEY_PREFIX}:summary:{self._workspace_id}:{path}"

    # ── Index ────────────────────────────────────────────────

    def _load_index(self) -> Index:
        raw = self._secrets.get(self._index_key)
        if not raw:
            return {}
        return json.loads(raw)

    def _save_index(self, index: Index) -> None:
        self._secrets.store(self._index_key, json.dumps(index, ensure_ascii=False))

    @staticmethod
    def _entry(is_directory: bool, size: int) -> dict:
        now = datetime.now().isoformat()
        return {"is_directory": is_directory, "size": size, "modified": now, "accessed": now}

    # ── Substrate ────────────────────────────────────────────

    def kind(self, path: str) -> Kind:
        if path == MEMORIES_DIR:
            return Kind.DIRECTORY
        entry = self._load_index().get(path)
        if entry is None:
            return Kind.MISSING
        return Kind.DIRECTORY if entry["is_directory"] else Kind.FILE

    def read(self, path: str) -> str | None:
        entry = self._load_index().get(path)
        if entry is None or entry["is_directory"]:
            return None
        return self._secrets.get(self._file_key(path))

    def write(self, path: str, content: str) -> None:
        self._secrets.store(self._file_key(path), content)
        index = self._load_index()
        index[path] = self._entry(False, content_size(content))
        self._save_index(index)

    def make_dir(self, path: str) -> None:
        index = self._load_index()
        index[path] = self._entry(True, 0)
        self._save_index(index)

    def remove(self, path: str) -> None:
        if path == MEMORIES_DIR:
            return
        index = self._load_index()
        entry = index.pop(path, None)
        if entry is not None and not entry["is_directory"]:
            self._secrets.delete(self._file_key(path))
        self._save_index(index)

    def move(self, old: str, new: str) -> None:
        content = self._secrets.get(self._file_key(old))
        if content is not None:
            self._secrets.store(self._file_key(new), content)
            self._secrets.delete(self._file_key(old))

        summary = self._secrets.get(self._summary_key(old))
        if summary is not None:
            self._secrets.store(self._summary_key(new), summary)
            self._secrets.delete(self._summary_key(old))

        index = self._load_index()
        index[new] = index.pop(old)
        self._save_index(index)

    def entries(self) -> Iterable[tuple[str, Kind]]:
        index = self._load_index()
        yield MEMORIES_DIR, Kind.DIRECTORY
        for path, entry in index.items():
            if path != MEMORIES_DIR:
                yield path, Kind.DIRECTORY if entry["is_directory"] else Kind.FILE

    def meta(self, path: str) -> Meta:
        entry = self._load_index().get(path)
        if entry is None:
            now = datetime.now()
            return Meta(size=0, modified_at=now, accessed_at=now)
        return Meta(
            size=entry["size"],
            modified_at=datetime.fromisoformat(entry["modified"]),
            accessed_at=datetime.fromisoformat(entry["accessed"]),
        )

    def touch(self, path: str) -> None:
        index = self._load_index()
        if path in index:
            index[path]["accessed"] = datetime.now().isoformat()
            self._save_index(index)

    def get_summary(self, path: str) -> str | None:
        return self._secrets.get(self._summary_key(path))

    def set_summary(self, path: str, summary: str) -> None:
        self._secrets.store(self._summary_key(path), summary)

    def clear_summary(self, path: str) -> None:
        self._secrets.delete(self._summary_key(path))
