"""The memory tool: six verbs over a per-workspace memory store.

``MemoryTool.invoke`` takes the structured parameters an agent sends
(``{"command": "view", "path": "/memories"}``) and always answers with text:
failures come back as remediation messages rather than exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from memfiles.config import MemfilesConfig
from memfiles.errors import InvalidLine, MemoryToolError, TextNotFound
from memfiles.paths import display_of
from memfiles.pins import PinTracker, StatePinTracker
from memfiles.state import FernetSecretStore, JsonStateStore, SecretStore, StateStore
from memfiles.store import MemoryStore
from memfiles.substrates import (
    DiskSubstrate,
    EncryptedSubstrate,
    PersistedSubstrate,
    Substrate,
    VolatileSubstrate,
    detect_branch,
)
from memfiles.sync import MirrorSync

logger = logging.getLogger(__name__)

COMMANDS = ("view", "create", "str_replace", "insert", "delete", "rename")
MUTATING = frozenset(COMMANDS) - {"view"}

REQUIRED_PARAMS: dict[str, tuple[str, ...]] = {
    "view": ("path",),
    "create": ("path", "file_text"),
    "str_replace": ("path", "old_str", "new_str"),
    "insert": ("path", "insert_line", "insert_text"),
    "delete": ("path",),
    "rename": ("old_path", "new_path"),
}

MEMORY_TOOL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "command": {"type": "string", "enum": list(COMMANDS)},
        "path": {"type": "string", "description": "Path under /memories"},
        "view_range": {
            "type": "array",
            "items": {"type": "integer"},
            "minItems": 2,
            "maxItems": 2,
            "description": "1-based [start, end]; end -1 reads to the end",
        },
        "file_text": {"type": "string"},
        "old_str": {"type": "string"},
        "new_str": {"type": "string"},
        "insert_line": {"type": "integer", "description": "0-based line index"},
        "insert_text": {"type": "string"},
        "old_path": {"type": "string"},
        "new_path": {"type": "string"},
    },
    "required": ["command"],
}

_INSERT_TIP = (
    "\n\nTip: insert_line is 0-based (0 inserts before the first line), while view "
    'ranges start at 1. Use the "view" command first to see the current file structure.'
)
_REPLACE_TIP = (
    "\n\nTip: Text replacement requires exact matches, including whitespace and "
    'capitalization. Use the "view" command to see the current file contents and '
    "ensure your search text is exact."
)


class MemoryTool:
    """Dispatch memory commands to one cached store per workspace."""

    def __init__(
        self,
        config: MemfilesConfig,
        state: StateStore | None = None,
        secrets: SecretStore | None = None,
    ) -> None:
        self.config = config
        self._state = state
        self._secrets = secrets
        self._stores: dict[str, MemoryStore] = {}
        self._syncs: dict[str, MirrorSync] = {}

    # ── Backend construction ─────────────────────────────────

    @property
    def state(self) -> StateStore:
        if self._state is None:
            self._state = JsonStateStore(self.config.storage.state_file)
        return self._state

    @property
    def secrets(self) -> SecretStore:
        if self._secrets is None:
            self._secrets = FernetSecretStore.open(
                self.config.storage.secrets_dir, self.config.storage.secret_password
            )
        return self._secrets

    def _build_substrate(self, workspace: Path) -> Substrate:
        storage = self.config.storage
        if storage.backend == "disk":
            return DiskSubstrate(workspace / storage.disk_dir)
        if storage.backend == "secret":
            return EncryptedSubstrate(self.secrets, workspace.name)
        if storage.backend == "persisted":
            resolver = (lambda: detect_branch(workspace)) if storage.branch_aware else None
            return PersistedSubstrate(self.state, workspace.name, branch_resolver=resolver)
        return VolatileSubstrate()

    def storage_for(self, workspace: Path) -> MemoryStore:
        """The store for *workspace*, built on first use and cached."""
        key = str(workspace.resolve())
        store = self._stores.get(key)
        if store is None:
            pins = StatePinTracker(self.state, workspace.name, self.config.pins.global_scope)
            store = MemoryStore(self._build_substrate(workspace), workspace.name, pins)
            self._stores[key] = store
            if self.config.sync.file:
                self._syncs[key] = MirrorSync(workspace / self.config.sync.file)
            logger.info(
                "Memory backend '%s' ready for workspace %s",
                self.config.storage.backend,
                workspace.name,
            )
        return store

    def pins_for(self, workspace: Path) -> PinTracker | None:
        return self.storage_for(workspace).pins

    def on_branch_changed(self, workspace: Path) -> None:
        """Point a branch-aware workspace at its current branch's namespace."""
        substrate = self.storage_for(workspace).substrate
        if isinstance(substrate, PersistedSubstrate):
            substrate.on_branch_changed()

    def clear_cache(self) -> None:
        """Forget every cached store, e.g. after the backend setting changes."""
        self._stores.clear()
        self._syncs.clear()

    # ── Invocation ───────────────────────────────────────────

    async def invoke(self, params: dict[str, Any], workspace: Path) -> str:
        """Run one command and describe the outcome as text."""
        command = params.get("command", "")
        if command not in COMMANDS:
            logger.warning("Unknown memory command: %s", command)
            return f"Unknown command: {command}"

        target = params.get("path") or params.get("old_path") or ""
        missing = [name for name in REQUIRED_PARAMS[command] if params.get(name) is None]
        if missing:
            message = f"Missing parameter(s) for '{command}': {', '.join(missing)}"
            logger.warning("memory %s %s failed: %s", command, target, message)
            return message

        store = self.storage_for(workspace)
        try:
            result = await self._dispatch(store, command, params)
        except MemoryToolError as e:
            message = str(e)
            if isinstance(e, InvalidLine):
                message += _INSERT_TIP
            elif isinstance(e, TextNotFound):
                message += _REPLACE_TIP
            logger.warning("memory %s %s failed: %s", command, target, e)
            return message

        logger.info("memory %s %s", command, target)
        if command in MUTATING:
            await self._sync(workspace, store)
        return result

    async def _dispatch(self, store: MemoryStore, command: str, params: dict[str, Any]) -> str:
        if command == "view":
            view_range = params.get("view_range")
            if view_range is not None:
                if not isinstance(view_range, (list, tuple)):
                    raise InvalidLine(f"view_range must be [start, end], got {view_range!r}.")
                view_range = [_as_int(value, "view_range") for value in view_range]
            return await store.view(params["path"], view_range)

        if command == "create":
            await store.create(params["path"], params["file_text"])
            return f"File created successfully: {display_of(params['path'])}"

        if command == "str_replace":
            await store.str_replace(params["path"], params["old_str"], params["new_str"])
            return f"String replaced successfully in {display_of(params['path'])}"

        if command == "insert":
            line = _as_int(params["insert_line"], "insert_line")
            await store.insert(params["path"], line, params["insert_text"])
            return f"Text inserted successfully at line {line} in {display_of(params['path'])}"

        if command == "delete":
            return await store.delete(params["path"])

        await store.rename(params["old_path"], params["new_path"])
        return (
            f"Renamed successfully: {display_of(params['old_path'])} → "
            f"{display_of(params['new_path'])}"
        )

    async def _sync(self, workspace: Path, store: MemoryStore) -> None:
        mirror = self._syncs.get(str(workspace.resolve()))
        if mirror:
            await mirror.sync(store)

    # ── Bulk operations ──────────────────────────────────────

    async def clear_all(self, workspace: Path) -> int:
        """Delete every file (directories stay). Returns how many were deleted."""
        store = self.storage_for(workspace)
        deleted = 0
        for entry in await store.list_all():
            if entry.is_directory:
                continue
            try:
                await store.delete(entry.path)
                deleted += 1
            except MemoryToolError as e:
                logger.warning("Clear all: could not delete %s: %s", entry.path, e)
        await self._sync(workspace, store)
        return deleted

    async def delete_memory_file(self, workspace: Path, path: str) -> str:
        """Delete one file, raising on failure."""
        store = self.storage_for(workspace)
        try:
            result = await store.delete(path)
        except MemoryToolError as e:
            logger.warning("delete %s failed: %s", path, e)
            raise
        await self._sync(workspace, store)
        return result


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidLine(f"{name} must be an integer line number, got {value!r}.") from e


def get_memory_tools(
    tool: MemoryTool, workspace: Path
) -> dict[str, Callable[..., Awaitable[str]]]:
    """Return a dict of tool_name -> coroutine function for one workspace.

    These can be registered as agent tools or called directly.
    """

    async def view(path: str, view_range: list[int] | None = None) -> str:
        """Show a directory listing, or a file with line numbers."""
        return await tool.invoke(
            {"command": "view", "path": path, "view_range": view_range}, workspace
        )

    async def create(path: str, file_text: str) -> str:
        """Create or overwrite a file."""
        return await tool.invoke(
            {"command": "create", "path": path, "file_text": file_text}, workspace
        )

    async def str_replace(path: str, old_str: str, new_str: str) -> str:
        """Replace text that occurs exactly once in a file."""
        return await tool.invoke(
            {"command": "str_replace", "path": path, "old_str": old_str, "new_str": new_str},
            workspace,
        )

    async def insert(path: str, insert_line: int, insert_text: str) -> str:
        """Insert a line before 0-based insert_line."""
        return await tool.invoke(
            {
                "command": "insert",
                "path": path,
                "insert_line": insert_line,
                "insert_text": insert_text,
            },
            workspace,
        )

    async def delete(path: str) -> str:
        """Delete a file or directory."""
        return await tool.invoke({"command": "delete", "path": path}, workspace)

    async def rename(old_path: str, new_path: str) -> str:
        """Rename or move a file or directory."""
        return await tool.invoke(
            {"command": "rename", "old_path": old_path, "new_path": new_path}, workspace
        )

    return {
        "view": view,
        "create": create,
        "str_replace": str_replace,
        "insert": insert,
        "delete": delete,
        "rename": rename,
    }
