"""Error taxonomy for memory operations.

Every message is written for the agent reading it: it says what went wrong
and which command to run next.
"""

from __future__ import annotations


class MemoryToolError(Exception):
    """Base class for failures that surface to the caller as text."""


class InvalidPath(MemoryToolError):
    """Path is malformed, escapes the root, or conflicts with an entry."""


class NotFound(MemoryToolError):
    """Target file, directory or text does not exist."""


class TextNotFound(NotFound):
    """Replacement target does not occur in the file."""


class Ambiguous(MemoryToolError):
    """Replacement target occurs more than once."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count


class InvalidLine(MemoryToolError):
    """Line number or view range is out of bounds."""
