"""Backend-agnostic text editing primitives.

Line handling here is what makes every backend render identically:
text is split on ``\\n`` only, so ``\\r`` and a trailing empty line survive.
"""

from __future__ import annotations

from memfiles.errors import Ambiguous, InvalidLine, TextNotFound

LINE_NUMBER_WIDTH = 4


def unique_replace(text: str, old_str: str, new_str: str, path: str | None = None) -> str:
    """Replace the single occurrence of *old_str* in *text*.

    Raises TextNotFound for zero occurrences and Ambiguous (carrying the count)
    for two or more.
    """
    count = text.count(old_str)
    context = f" in {path}" if path else ""

    if count == 0:
        raise TextNotFound(
            f"Text not found{context}. Check that the exact text exists, including "
            "whitespace and capitalization. Use 'view' to see the current file contents."
        )
    if count > 1:
        raise Ambiguous(
            f"Text appears {count} times{context}. Must be unique. Use 'view' to see all "
            "occurrences and provide more context to make the match unique.",
            count,
        )
    return text.replace(old_str, new_str, 1)


def insert_at_line(text: str, line_number: int, insert_text: str) -> str:
    """Splice *insert_text* in as a new line at 0-based *line_number*.

    ``line_number == len(lines)`` appends after the last line.
    """
    lines = text.split("\n")
    if line_number < 0 or line_number > len(lines):
        raise InvalidLine(
            f"Line number {line_number} is invalid. The file has {len(lines)} lines "
            f"(valid range: 0-{len(lines)}). Use 'view' to see the current file structure."
        )
    lines.insert(line_number, insert_text)
    return "\n".join(lines)


def extract_lines(text: str, start: int, end: int) -> str:
    """Return 1-based lines *start*..*end* inclusive; *end* clips silently."""
    lines = text.split("\n")
    return "\n".join(lines[max(start, 1) - 1 : end])


def render_view(text: str, view_range: tuple[int, int] | list[int] | None = None) -> str:
    """Prefix each line with its right-aligned 1-based number.

    A range ``[s, e]`` shows lines s..e; ``e == -1`` means to the end.
    """
    lines = text.split("\n")
    start = 0
    end = len(lines)

    if view_range is not None:
        if len(view_range) != 2:
            raise InvalidLine(
                f"view_range must be [start, end], got {list(view_range)}. "
                "Use [1, -1] to view the whole file."
            )
        start = max(1, view_range[0]) - 1
        end = len(lines) if view_range[1] == -1 else view_range[1]

    return "\n".join(
        f"{number:>{LINE_NUMBER_WIDTH}}: {line}"
        for number, line in enumerate(lines[start:end], start=start + 1)
    )
