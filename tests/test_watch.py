"""Tests for trill.watch — filesystem events to root-relative paths."""

import asyncio
from pathlib import Path

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from trill.watch import FileWatcher, relative_change


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path.resolve()


class TestRelativeChange:
    def test_modified_file(self, root: Path) -> None:
        event = FileModifiedEvent(str(root / "src" / "app.ts"))
        assert relative_change(root, event) == "src/app.ts"

    def test_created_file(self, root: Path) -> None:
        assert relative_change(root, FileCreatedEvent(str(root / "a.js"))) == "a.js"

    def test_moved_file_reports_destination(self, root: Path) -> None:
        event = FileMovedEvent(str(root / "a.ts.tmp"), str(root / "a.ts"))
        assert relative_change(root, event) == "a.ts"

    def test_deleted_file_is_ignored(self, root: Path) -> None:
        assert relative_change(root, FileDeletedEvent(str(root / "a.js"))) is None

    def test_directory_events_are_ignored(self, root: Path) -> None:
        assert relative_change(root, DirModifiedEvent(str(root / "src"))) is None

    @pytest.mark.parametrize(
        "relative",
        ["node_modules/pkg/index.js", ".git/index", "src/.cache/x.js", ".env", "src/.a.swp"],
    )
    def test_hidden_and_skipped_paths(self, root: Path, relative: str) -> None:
        assert relative_change(root, FileModifiedEvent(str(root / relative))) is None

    def test_outside_root(self, root: Path) -> None:
        event = FileModifiedEvent(str(root.parent / "elsewhere.js"))
        assert relative_change(root, event) is None


class TestFileWatcher:
    async def test_reports_changes_on_the_loop(self, root: Path) -> None:
        changes: asyncio.Queue[str] = asyncio.Queue()
        watcher = FileWatcher(root, changes.put_nowait)
        watcher.start()
        try:
            assert watcher.running
            await asyncio.sleep(0.2)
            (root / "app.ts").write_text("export {};")
            path = await asyncio.wait_for(changes.get(), timeout=5.0)
            assert path == "app.ts"
        finally:
            watcher.stop()
        assert not watcher.running

    def test_stop_without_start(self, root: Path) -> None:
        FileWatcher(root, print).stop()
