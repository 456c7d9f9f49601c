"""Tests for the project watcher."""

import threading
from unittest.mock import patch

from watchfiles import Change

from pyclasp.sync.ignore import DEFAULT_IGNORE_LINES
from pyclasp.sync.scanner import DirectoryScanner
from pyclasp.sync.watcher import DEFAULT_DEBOUNCE_MS, ProjectWatcher


class TestProjectWatcher:
    """Tests for ProjectWatcher."""

    def test_relevant_paths(self, tmp_path):
        """Test that only tracked files inside the content directory count."""
        watcher = ProjectWatcher(DirectoryScanner(DEFAULT_IGNORE_LINES), tmp_path)

        paths = watcher.relevant_paths(
            [
                str(tmp_path / "lib" / "Utils.js"),
                str(tmp_path / "Code.js"),
                str(tmp_path / "README.md"),
                str(tmp_path / "node_modules" / "pkg" / "index.js"),
                str(tmp_path.parent / "outside.js"),
            ]
        )

        assert paths == ["Code.js", "lib/Utils.js"]

    def test_deleted_files_are_relevant(self, tmp_path):
        """Test that paths which no longer exist are still reported."""
        watcher = ProjectWatcher(DirectoryScanner([]), tmp_path)
        assert watcher.relevant_paths([str(tmp_path / "Gone.js")]) == ["Gone.js"]

    def test_non_recursive_scanner(self, tmp_path):
        """Test that subdirectory changes are dropped when not recursive."""
        watcher = ProjectWatcher(DirectoryScanner([], recursive=False), tmp_path)
        paths = watcher.relevant_paths(
            [str(tmp_path / "lib" / "Utils.js"), str(tmp_path / "Code.js")]
        )
        assert paths == ["Code.js"]

    @patch("pyclasp.sync.watcher.watch")
    def test_iteration_skips_ignored_batches(self, mock_watch, tmp_path):
        """Test that batches without tracked files are not yielded."""
        stop_event = threading.Event()
        mock_watch.return_value = iter(
            [
                {(Change.added, str(tmp_path / "notes.txt"))},
                {
                    (Change.modified, str(tmp_path / "Code.js")),
                    (Change.deleted, str(tmp_path / "appsscript.json")),
                },
            ]
        )
        watcher = ProjectWatcher(
            DirectoryScanner(DEFAULT_IGNORE_LINES), tmp_path, stop_event=stop_event
        )

        assert list(watcher) == [["Code.js", "appsscript.json"]]
        mock_watch.assert_called_once_with(
            tmp_path, debounce=DEFAULT_DEBOUNCE_MS, stop_event=stop_event
        )
