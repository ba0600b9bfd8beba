"""Path validation for the virtual /memories tree.

Validation always runs before a backend looks anything up, so a malformed
path never reaches storage.
"""

from __future__ import annotations

import posixpath
import re
from urllib.parse import unquote

from memfiles.errors import InvalidPath

MEMORIES_DIR = "/memories"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")


def _decode(path: str) -> str:
    # Malformed escapes fall back to the raw string
    try:
        return unquote(path, errors="strict")
    except UnicodeDecodeError:
        return path


def _collapse(path: str) -> str:
    normalized = posixpath.normpath(path)
    # POSIX keeps a leading "//"; the virtual tree has a single root
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def _within_root(path: str) -> bool:
    return path == MEMORIES_DIR or path.startswith(MEMORIES_DIR + "/")


def validate(path: str) -> None:
    """Raise InvalidPath unless *path* stays inside /memories.

    The percent-decoded, normalized form must start with the root and carry
    no ``..`` segment; the raw form must carry no control character.
    """
    normalized = _collapse(_decode(path))
    if not _within_root(normalized):
        raise InvalidPath(f"Invalid path: must be within {MEMORIES_DIR} directory")
    if ".." in normalized.split("/"):
        raise InvalidPath("Invalid path: directory traversal not allowed")
    if _CONTROL_CHARS.search(path):
        raise InvalidPath("Invalid path: contains illegal characters")


def normalize(path: str) -> str:
    """Strip a trailing separator, except for the filesystem root."""
    if path.endswith("/") and path != "/":
        return path[:-1]
    return path


def root(path: str) -> str:
    """Prefix /memories onto paths that omit it."""
    if _within_root(path):
        return path
    return posixpath.join(MEMORIES_DIR, path.lstrip("/"))


def resolve(path: str) -> str:
    """Return the canonical key for *path*, validating it first.

    Percent escapes are decoded for validation only; the key keeps them
    verbatim, so resolving a key again yields the same key.
    """
    rooted = root(normalize(path))
    validate(rooted)
    return normalize(_collapse(rooted))


def relative_of(path: str) -> str:
    """Strip the /memories prefix, leaving any leading separator."""
    if path.startswith(MEMORIES_DIR):
        return path[len(MEMORIES_DIR):]
    return path


def display_of(path: str) -> str:
    """Path without the ``/memories/`` prefix, for short user messages."""
    return re.sub(r"^/memories/", "", path)
