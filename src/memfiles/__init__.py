"""memfiles: durable, path-addressed memory files for AI agents.

Every path lives under one virtual root::

    /memories/
    ├── notes.txt
    └── projects/
        └── roadmap.md

One contract (``MemoryStore``) runs over four interchangeable substrates:

    memory      process-local, lost on exit
    persisted   JSON state file, per workspace (optionally per git branch)
    secret      Fernet-encrypted secrets plus a metadata index
    disk        a real directory tree inside the workspace
"""

from memfiles.errors import Ambiguous, InvalidLine, InvalidPath, MemoryToolError, NotFound
from memfiles.paths import MEMORIES_DIR
from memfiles.store import MemoryEntry, MemoryStore

__all__ = [
    "MEMORIES_DIR",
    "Ambiguous",
    "InvalidLine",
    "InvalidPath",
    "MemoryEntry",
    "MemoryStore",
    "MemoryToolError",
    "NotFound",
]
