"""Watching a project directory for changes to tracked files."""

import logging
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from watchfiles import watch

from .ignore import compile_rules
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500


class ProjectWatcher:
    """Yields batches of changed tracked files below a content directory.

    Every batch holds the sorted root-relative paths of tracked files that
    were added, modified or deleted. Changes to ignored files produce no
    batch.

    Examples:
        >>> watcher = ProjectWatcher(DirectoryScanner(["**/**", "!*.js"]), root)
        >>> for paths in watcher:
        ...     print(paths)
    """

    def __init__(
        self,
        scanner: DirectoryScanner,
        content_dir: Path,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        stop_event: Optional[threading.Event] = None,
    ):
        """Initialize project watcher.

        Args:
            scanner: Scanner holding the ignore rules and classifier
            content_dir: Directory to watch
            debounce_ms: Time to group rapid changes into one batch
            stop_event: Event that ends the iteration when set
        """
        self.scanner = scanner
        self.content_dir = Path(content_dir)
        self.debounce_ms = debounce_ms
        self.stop_event = stop_event

    def relevant_paths(self, changed: Iterable[str]) -> list[str]:
        """Filter changed paths down to tracked root-relative paths.

        Args:
            changed: Absolute paths reported by the file system

        Returns:
            Sorted root-relative paths of tracked files
        """
        matcher = compile_rules(self.scanner.ignore_lines)
        root = self.content_dir.resolve()
        relevant: set[str] = set()
        for raw_path in changed:
            try:
                relative_path = Path(raw_path).resolve().relative_to(root).as_posix()
            except ValueError:
                continue
            if self.scanner.is_tracked_path(relative_path, matcher):
                relevant.add(relative_path)
        return sorted(relevant)

    def __iter__(self) -> Iterator[list[str]]:
        logger.debug("Watching %s", self.content_dir)
        for changes in watch(
            self.content_dir,
            debounce=self.debounce_ms,
            stop_event=self.stop_event,
        ):
            paths = self.relevant_paths(path for _, path in changes)
            if paths:
                logger.debug("Detected changes in %d file(s)", len(paths))
                yield paths
