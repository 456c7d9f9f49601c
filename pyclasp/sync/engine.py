"""Push and pull orchestration for script projects."""

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import ScriptClient
from ..exceptions import WriteError
from ..models import ProjectFile, RemoteFile
from ..output import OutputFormatter
from .classifier import FileClassifier
from .comparator import FileComparator, FileStatus, SyncDecision
from .operations import DEFAULT_MAX_WORKERS, SyncOperations
from .ordering import get_ordered_project_files
from .scanner import (
    DirectoryScanner,
    check_name_conflicts,
    display_path,
    split_project_files,
)
from .watcher import ProjectWatcher

if TYPE_CHECKING:
    from ..project import ProjectSettings

logger = logging.getLogger(__name__)


@dataclass
class ProjectStatus:
    """Local files split by whether the next push would include them."""

    tracked: list[ProjectFile] = field(default_factory=list)
    """Files that would be pushed, in push order"""

    untracked: list[ProjectFile] = field(default_factory=list)
    """Files excluded by ignore rules or classification"""

    @property
    def tracked_paths(self) -> list[str]:
        return [f.local_path for f in self.tracked]

    @property
    def untracked_paths(self) -> list[str]:
        return [f.local_path for f in self.untracked]


def collect_local_files(
    root_dir: Path,
    ignore_lines: Optional[Iterable[str]] = None,
    classifier: Optional[FileClassifier] = None,
    cwd: Optional[Path] = None,
) -> list[ProjectFile]:
    """Return the tracked files below a project root in discovery order.

    Raises:
        ConfigurationError: If the root is not a readable directory
        ClassificationAmbiguityError: If two tracked files share a remote name
    """
    scanner = DirectoryScanner(ignore_lines, classifier=classifier, cwd=cwd)
    tracked, _ = split_project_files(scanner.scan(root_dir))
    check_name_conflicts(tracked)
    return tracked


def get_untracked_files(
    root_dir: Path,
    ignore_lines: Optional[Iterable[str]] = None,
    classifier: Optional[FileClassifier] = None,
    cwd: Optional[Path] = None,
) -> list[str]:
    """Return the display paths of every file the next push would skip."""
    scanner = DirectoryScanner(ignore_lines, classifier=classifier, cwd=cwd)
    _, ignored = split_project_files(scanner.scan(root_dir))
    return [f.local_path for f in ignored]


def collapse_untracked(
    untracked: Sequence[str], tracked: Sequence[str]
) -> list[str]:
    """Collapse untracked paths into their topmost fully untracked directory.

    A directory is collapsed (shown as ``dir/``) when none of the tracked
    paths lie below it.

    Examples:
        >>> collapse_untracked(["a/x.txt", "a/y.txt", "b.txt"], ["c.js"])
        ['a/', 'b.txt']
    """
    tracked_dirs: set[str] = set()
    for path in tracked:
        parts = path.split("/")[:-1]
        for index in range(1, len(parts) + 1):
            tracked_dirs.add("/".join(parts[:index]))

    result: list[str] = []
    seen: set[str] = set()
    for path in untracked:
        parts = path.split("/")
        collapsed = path
        for index in range(1, len(parts)):
            directory = "/".join(parts[:index])
            # ".." prefixes come from display paths outside the cwd.
            if parts[index - 1] == ".." or directory in tracked_dirs:
                continue
            collapsed = f"{directory}/"
            break
        if collapsed not in seen:
            seen.add(collapsed)
            result.append(collapsed)
    return result


def write_project_files(
    remote_files: Iterable[RemoteFile],
    root_dir: Path,
    classifier: Optional[FileClassifier] = None,
    cwd: Optional[Path] = None,
) -> list[ProjectFile]:
    """Write remote files below a project root.

    Files are written sequentially in name order, overwriting existing
    files and creating intermediate directories. Remote files without
    content are skipped. A failed write stops the pull; files written
    before it are kept.

    Args:
        remote_files: Files fetched from the remote project
        root_dir: Project content directory
        classifier: Classifier for the reverse mapping
        cwd: Invocation directory used for display paths

    Returns:
        Written files, in write order

    Raises:
        WriteError: If a file cannot be written
    """
    classifier = classifier or FileClassifier()
    operations = SyncOperations()
    root = Path(root_dir).resolve()
    written: list[ProjectFile] = []

    for remote_file in sorted(remote_files, key=lambda f: (f.name, f.type.value)):
        if remote_file.source is None:
            logger.debug("Skipping %s: no content", remote_file.name)
            continue
        try:
            relative_path = classifier.to_relative_path(
                remote_file.name, remote_file.type
            )
        except ValueError as e:
            raise WriteError(remote_file.name, str(e)) from e
        project_file = ProjectFile(
            relative_path=relative_path,
            local_path=display_path(root / relative_path, cwd),
            name=remote_file.name,
            type=remote_file.type,
            source=remote_file.source,
        )
        written.append(operations.write_file(root, project_file))

    logger.debug("Wrote %d file(s) to %s", len(written), root)
    return written


class SyncEngine:
    """Runs push, pull and status for one project."""

    def __init__(
        self,
        settings: "ProjectSettings",
        client: Optional[ScriptClient] = None,
        output: Optional[OutputFormatter] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cwd: Optional[Path] = None,
    ):
        """Initialize sync engine.

        Args:
            settings: Resolved project settings
            client: Script API client (required for push, pull and diff)
            output: Output formatter; a spinner is shown when given
            max_workers: Number of parallel file reads during push
            cwd: Invocation directory used for display paths
        """
        self.settings = settings
        self.client = client
        self.output = output
        self.cwd = cwd
        self.classifier = settings.make_classifier()
        self.operations = SyncOperations(client, max_workers=max_workers)

    def _progress(self) -> Progress:
        disabled = (
            self.output is None or self.output.quiet or self.output.json_output
        )
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=disabled,
        )

    def _make_scanner(self) -> DirectoryScanner:
        return DirectoryScanner(
            self.settings.ignore_lines,
            classifier=self.classifier,
            cwd=self.cwd,
            recursive=not self.settings.skip_subdirectories,
        )

    def _scan(self) -> list[ProjectFile]:
        return self._make_scanner().scan(self.settings.content_dir)

    def _ordered_tracked_files(self) -> list[ProjectFile]:
        tracked, _ = split_project_files(self._scan())
        check_name_conflicts(tracked)
        return get_ordered_project_files(tracked, self.settings.file_push_order)

    def _load_push_files(self) -> list[ProjectFile]:
        ordered = self._ordered_tracked_files()
        return self.operations.read_contents(self.settings.content_dir, ordered)

    def build_push_payload(self) -> list[dict]:
        """Return the ordered ``{name, type, source}`` list a push would send."""
        return [f.to_remote().to_dict() for f in self._load_push_files()]

    def push(self, dry_run: bool = False) -> list[ProjectFile]:
        """Replace the remote project content with the local tracked files.

        Args:
            dry_run: Only compute the files, do not upload

        Returns:
            Pushed files with content, in push order

        Raises:
            ConfigurationError: If no script ID is configured
            ClassificationAmbiguityError: If two files share a remote name
            ScriptAPIError: If the upload fails
        """
        script_id = self.settings.require_script_id()

        with self._progress() as progress:
            task = progress.add_task("Scanning project files...", total=None)
            files = self._load_push_files()
            if not files:
                logger.debug("Nothing to push")
                return []
            if dry_run:
                logger.debug("Dry run: would push %d file(s)", len(files))
                return files
            progress.update(task, description=f"Pushing {len(files)} file(s)...")
            self.operations.upload(script_id, files)

        logger.debug("Pushed %d file(s) to %s", len(files), script_id)
        return files

    def pull(
        self,
        remote_files: Optional[Sequence[RemoteFile]] = None,
        version_number: Optional[int] = None,
    ) -> list[ProjectFile]:
        """Write the remote project files into the content directory.

        Args:
            remote_files: Files to write; fetched from the API if None
            version_number: Remote version to fetch (default: latest)

        Returns:
            Written files, in write order

        Raises:
            ConfigurationError: If no script ID is configured
            WriteError: If a file cannot be written
        """
        with self._progress() as progress:
            if remote_files is None:
                script_id = self.settings.require_script_id()
                progress.add_task("Fetching remote files...", total=None)
                remote_files = self.operations.fetch(
                    script_id, version_number=version_number
                )
            return write_project_files(
                remote_files,
                self.settings.content_dir,
                classifier=self.classifier,
                cwd=self.cwd,
            )

    def status(self) -> ProjectStatus:
        """Split the local files into tracked and untracked."""
        tracked, ignored = split_project_files(self._scan())
        return ProjectStatus(
            tracked=get_ordered_project_files(
                tracked, self.settings.file_push_order
            ),
            untracked=ignored,
        )

    def diff(self) -> list[SyncDecision]:
        """Compare the tracked local files with the remote project."""
        script_id = self.settings.require_script_id()
        with self._progress() as progress:
            progress.add_task("Comparing with remote files...", total=None)
            local_files = self._load_push_files()
            remote_files = self.operations.fetch(script_id)
        return FileComparator().compare_files(local_files, remote_files)

    def get_changed_files(self) -> list[ProjectFile]:
        """Return the tracked files that are new or differ from the remote copy.

        Raises:
            ConfigurationError: If no script ID is configured
            ScriptAPIError: If the remote files cannot be fetched
        """
        return [
            decision.local_file
            for decision in self.diff()
            if decision.local_file is not None
            and decision.status in (FileStatus.NEW, FileStatus.MODIFIED)
        ]

    def watch(
        self, stop_event: Optional[threading.Event] = None
    ) -> ProjectWatcher:
        """Create a watcher reporting changes to the tracked files."""
        return ProjectWatcher(
            self._make_scanner(), self.settings.content_dir, stop_event=stop_event
        )
