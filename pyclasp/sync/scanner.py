"""Directory scanning for script projects."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from ..exceptions import ClassificationAmbiguityError, ConfigurationError
from ..models import ProjectFile
from .classifier import FileClassifier
from .ignore import IgnoreMatcher, compile_rules

logger = logging.getLogger(__name__)


def display_path(path: Path, cwd: Optional[Path] = None) -> str:
    """Format a path relative to the invocation directory.

    Args:
        path: Absolute path
        cwd: Invocation directory (defaults to the current directory)

    Returns:
        Relative path using forward slashes
    """
    base = (cwd or Path.cwd()).resolve()
    return Path(os.path.relpath(path, base)).as_posix()


class DirectoryScanner:
    """Walks a project directory and tags every file as tracked or ignored.

    A fresh ignore matcher is compiled for every scan, so no rule state
    survives between scans.

    Examples:
        >>> scanner = DirectoryScanner(ignore_lines=["**/**", "!*.js"])
        >>> files = scanner.scan(Path("my-project"))
        >>> tracked, ignored = split_project_files(files)
    """

    def __init__(
        self,
        ignore_lines: Optional[Iterable[str]] = None,
        classifier: Optional[FileClassifier] = None,
        cwd: Optional[Path] = None,
        recursive: bool = True,
    ):
        """Initialize directory scanner.

        Args:
            ignore_lines: Raw ignore file lines (no rules if None)
            classifier: File classifier (default extensions if None)
            cwd: Invocation directory used for display paths
            recursive: Track files in subdirectories; when False they are
                listed as ignored
        """
        self.ignore_lines = list(ignore_lines or [])
        self.classifier = classifier or FileClassifier()
        self.cwd = cwd
        self.recursive = recursive

    def scan(self, root_dir: Path) -> list[ProjectFile]:
        """Recursively scan a project directory.

        Args:
            root_dir: Project root

        Returns:
            All files below the root in discovery order, tracked and
            ignored alike

        Raises:
            ConfigurationError: If the root or a directory holding tracked
                files cannot be read
        """
        root = Path(root_dir).resolve()
        if not root.is_dir():
            raise ConfigurationError(f"Project root is not a directory: {root_dir}")

        matcher = compile_rules(self.ignore_lines)
        files: list[ProjectFile] = []
        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise ConfigurationError(f"Cannot read project root {root}: {e}") from e

        self._scan_entries(entries, root, matcher, files, pruned=False)
        logger.debug(
            "Scanned %s: %d file(s), %d ignored",
            root,
            len(files),
            sum(1 for f in files if f.is_ignored),
        )
        return files

    def _scan_directory(
        self,
        directory: Path,
        root: Path,
        matcher: IgnoreMatcher,
        files: list[ProjectFile],
        pruned: bool,
    ) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            # A pruned subtree holds no tracked files.
            if pruned:
                logger.warning("Skipping unreadable ignored directory: %s", directory)
                return
            raise ConfigurationError(
                f"Cannot read directory {display_path(directory, self.cwd)}: {e}"
            ) from e
        self._scan_entries(entries, root, matcher, files, pruned)

    def _scan_entries(
        self,
        entries: list[Path],
        root: Path,
        matcher: IgnoreMatcher,
        files: list[ProjectFile],
        pruned: bool,
    ) -> None:
        for item in entries:
            relative_path = item.relative_to(root).as_posix()
            if item.is_dir():
                if item.is_symlink():
                    logger.debug("Not following symlinked directory: %s", relative_path)
                    continue
                # Files below a pruned directory are still listed as ignored.
                child_pruned = (
                    pruned
                    or not self.recursive
                    or matcher.is_pruned(relative_path)
                )
                self._scan_directory(item, root, matcher, files, child_pruned)
            elif item.is_file():
                files.append(self._make_file(item, relative_path, matcher, pruned))

    def is_tracked_path(self, relative_path: str, matcher: IgnoreMatcher) -> bool:
        """Check whether a root-relative file path would be pushed.

        Args:
            relative_path: File path relative to the project root
            matcher: Compiled ignore rules of the current walk
        """
        if self.classifier.is_manifest(relative_path):
            return True
        if not self.recursive and "/" in relative_path:
            return False
        if matcher.is_ignored(relative_path):
            return False
        return self.classifier.classify(relative_path).valid

    def _make_file(
        self,
        path: Path,
        relative_path: str,
        matcher: IgnoreMatcher,
        pruned: bool,
    ) -> ProjectFile:
        classification = self.classifier.classify(relative_path)
        local_path = display_path(path, self.cwd)

        if self.classifier.is_manifest(relative_path):
            is_ignored = False
        elif pruned:
            is_ignored = True
        else:
            is_ignored = not self.is_tracked_path(relative_path, matcher)
            if not classification.valid:
                logger.debug(
                    "Not pushable: %s (%s)", relative_path, classification.reason
                )

        return ProjectFile(
            relative_path=relative_path,
            local_path=local_path,
            name=classification.name,
            type=classification.type,
            is_ignored=is_ignored,
        )


def split_project_files(
    files: Iterable[ProjectFile],
) -> tuple[list[ProjectFile], list[ProjectFile]]:
    """Partition scanned files into (tracked, ignored), keeping order."""
    tracked: list[ProjectFile] = []
    ignored: list[ProjectFile] = []
    for project_file in files:
        (ignored if project_file.is_ignored else tracked).append(project_file)
    return tracked, ignored


def check_name_conflicts(files: Iterable[ProjectFile]) -> None:
    """Ensure no two tracked files share a remote name and type.

    Raises:
        ClassificationAmbiguityError: Listing every path of the first
            colliding name
    """
    seen: dict[tuple, list[str]] = {}
    for project_file in files:
        if project_file.is_ignored:
            continue
        key = (project_file.name, project_file.type)
        seen.setdefault(key, []).append(project_file.local_path)

    for (name, file_type), paths in seen.items():
        if len(paths) > 1:
            raise ClassificationAmbiguityError(name, file_type.value, paths)
