"""Entry point: python -m memfiles <command> [args]

Runs one memory command against the configured backend for the workspace
in the current directory.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from memfiles.config import load_config

USAGE = """\
Usage: python -m memfiles <command> [args]
  view PATH [START END]         Show a directory or file (1-based range)
  create PATH TEXT              Create or overwrite a file (TEXT "-" reads stdin)
  str_replace PATH OLD NEW      Replace text that occurs exactly once
  insert PATH LINE TEXT         Insert a line at 0-based LINE
  delete PATH                   Delete a file or directory
  rename OLD NEW                Rename or move a file or directory
  list                          List every entry with metadata
  pin PATH / unpin PATH         Mark or unmark a file as pinned"""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_params(cmd: str, args: list[str]) -> dict | None:
    if cmd == "view" and len(args) in (1, 3):
        params: dict = {"command": "view", "path": args[0]}
        if len(args) == 3:
            params["view_range"] = [int(args[1]), int(args[2])]
        return params
    if cmd == "create" and len(args) == 2:
        text = sys.stdin.read() if args[1] == "-" else args[1]
        return {"command": "create", "path": args[0], "file_text": text}
    if cmd == "str_replace" and len(args) == 3:
        return {"command": "str_replace", "path": args[0], "old_str": args[1], "new_str": args[2]}
    if cmd == "insert" and len(args) == 3:
        return {
            "command": "insert",
            "path": args[0],
            "insert_line": int(args[1]),
            "insert_text": args[2],
        }
    if cmd == "delete" and len(args) == 1:
        return {"command": "delete", "path": args[0]}
    if cmd == "rename" and len(args) == 2:
        return {"command": "rename", "old_path": args[0], "new_path": args[1]}
    return None


async def _run(cmd: str, args: list[str]) -> int:
    config = load_config()
    _setup_logging(config.log_level)

    from memfiles.paths import resolve
    from memfiles.tools.memory_tools import MemoryTool

    if config.storage.backend == "memory":
        logging.getLogger(__name__).warning(
            "Backend 'memory' does not outlive this process; set MEMFILES_BACKEND to keep files"
        )

    tool = MemoryTool(config)
    workspace = Path.cwd()

    if cmd == "list":
        for entry in await tool.storage_for(workspace).list_all():
            marker = "/" if entry.is_directory else ""
            pin = " [pinned]" if entry.pinned else ""
            print(
                f"{entry.path}{marker}\t{entry.size}\t"
                f"{entry.modified_at.isoformat(timespec='seconds')}{pin}"
            )
        return 0

    if cmd in ("pin", "unpin") and len(args) == 1:
        pins = tool.pins_for(workspace)
        path = resolve(args[0])
        if cmd == "pin":
            pins.pin(path)
        else:
            pins.unpin(path)
        return 0

    params = _build_params(cmd, args)
    if params is None:
        print(USAGE)
        return 1
    print(await tool.invoke(params, workspace))
    return 0


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help", "help"):
        print(USAGE)
        sys.exit(0 if len(sys.argv) >= 2 else 1)
    sys.exit(asyncio.run(_run(sys.argv[1], sys.argv[2:])))


if __name__ == "__main__":
    main()
