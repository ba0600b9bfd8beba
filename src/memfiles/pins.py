"""Pin tracking: sticky markers on memory files, owned outside the store.

The store only consults and notifies a tracker; it never decides what is
pinned.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from memfiles.state import StateStore

logger = logging.getLogger(__name__)

PIN_STORAGE_KEY = "pinned_memory_files"


@runtime_checkable
class PinTracker(Protocol):
    """Protocol for pin state collaborators."""

    def is_pinned(self, path: str) -> bool: ...

    def pin(self, path: str) -> None: ...

    def unpin(self, path: str) -> None: ...

    def on_rename(self, old: str, new: str) -> None:
        """Carry the pin from *old* to *new*, if *old* was pinned."""
        ...

    def on_remove(self, path: str) -> None:
        """Forget the pin of a removed file."""
        ...


class StatePinTracker:
    """Pinned paths as a list in a state store, per workspace or global."""

    def __init__(self, state: StateStore, workspace_id: str, global_scope: bool = False) -> None:
        self._state = state
        self.workspace_id = workspace_id
        self.global_scope = global_scope

    @property
    def storage_key(self) -> str:
        if self.global_scope:
            return PIN_STORAGE_KEY
        return f"{PIN_STORAGE_KEY}_{self.workspace_id}"

    def pinned(self) -> list[str]:
        return list(self._state.get(self.storage_key, []))

    def is_pinned(self, path: str) -> bool:
        return path in self.pinned()

    def pin(self, path: str) -> None:
        pinned = self.pinned()
        if path not in pinned:
            pinned.append(path)
            self._state.update(self.storage_key, pinned)
            logger.info("Pinned %s", path)

    def unpin(self, path: str) -> None:
        pinned = self.pinned()
        if path in pinned:
            pinned.remove(path)
            self._state.update(self.storage_key, pinned)
            logger.info("Unpinned %s", path)

    def on_rename(self, old: str, new: str) -> None:
        if self.is_pinned(old):
            self.unpin(old)
            self.pin(new)

    def on_remove(self, path: str) -> None:
        self.unpin(path)
