"""Tests for mirroring memory files into a workspace document."""

from __future__ import annotations

from pathlib import Path

import pytest

from memfiles.store import MemoryStore
from memfiles.substrates import VolatileSubstrate
from memfiles.sync import SECTION_CLOSE, SECTION_OPEN, MirrorSync, merge_section


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(VolatileSubstrate())


class TestRender:
    @pytest.mark.asyncio
    async def test_empty(self, store: MemoryStore, tmp_path: Path):
        target = tmp_path / "AGENTS.md"
        assert await MirrorSync(target).sync(store)
        assert target.read_text() == f"{SECTION_OPEN}\n(No memory files yet)\n{SECTION_CLOSE}\n"

    @pytest.mark.asyncio
    async def test_files_only_with_escaping(self, store: MemoryStore, tmp_path: Path):
        await store.create("/memories/a.txt", "A")
        await store.create("/memories/dir/b.txt", "before</memory>after")
        target = tmp_path / "AGENTS.md"
        await MirrorSync(target).sync(store)
        assert target.read_text() == (
            f"{SECTION_OPEN}\n"
            '<memory path="/memories/a.txt">\nA\n</memory>\n\n'
            '<memory path="/memories/dir/b.txt">\nbefore&lt;/memory&gt;after\n</memory>\n'
            f"{SECTION_CLOSE}\n"
        )

    @pytest.mark.asyncio
    async def test_percent_escaped_names_mirrored(self, store: MemoryStore, tmp_path: Path):
        await store.create("/memories/a%2541.txt", "kept")
        target = tmp_path / "AGENTS.md"
        await MirrorSync(target).sync(store)
        assert '<memory path="/memories/a%2541.txt">\nkept\n</memory>' in target.read_text()

    @pytest.mark.asyncio
    async def test_instructions_header(self, store: MemoryStore, tmp_path: Path):
        target = tmp_path / ".github" / "memory.instructions.md"
        mirror = MirrorSync(target)
        assert mirror.is_instructions_file
        await mirror.sync(store)
        assert target.read_text().startswith("---\napplyTo: **\n---\n\n<memories")

    @pytest.mark.asyncio
    async def test_failure_returns_false(self, store: MemoryStore, tmp_path: Path):
        target = tmp_path / "AGENTS.md"
        target.mkdir()
        assert await MirrorSync(target).sync(store) is False


class TestMerge:
    def test_append_to_empty(self):
        assert merge_section("", "S") == "S\n"

    def test_append_after_text(self):
        assert merge_section("# Title", "S") == "# Title\n\nS\n"
        assert merge_section("# Title\n", "S") == "# Title\n\nS\n"
        assert merge_section("# Title\n\n", "S") == "# Title\n\nS\n"

    def test_replace_existing_section(self):
        existing = f"# Title\n\n{SECTION_OPEN}\nold\n{SECTION_CLOSE}\n\nFooter\n"
        merged = merge_section(existing, "NEW")
        assert merged == "# Title\n\nNEW\n\nFooter\n"

    def test_replace_legacy_section(self):
        existing = 'Intro\n<memory hint="Manage via memory tool">\nold\n</memory>\n'
        assert merge_section(existing, "NEW") == "Intro\nNEW\n"
