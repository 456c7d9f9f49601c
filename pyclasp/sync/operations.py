"""File I/O and upload steps used by the sync engine."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Optional

from ..api import ScriptClient
from ..exceptions import PyClaspError, ReadError, WriteError
from ..models import ProjectFile, RemoteFile

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class SyncOperations:
    """Reads, writes and uploads project files."""

    def __init__(
        self,
        client: Optional[ScriptClient] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """Initialize sync operations.

        Args:
            client: Script API client (only needed for uploads)
            max_workers: Maximum number of concurrent file reads
        """
        self.client = client
        self.max_workers = max(1, max_workers)

    def read_file(self, root_dir: Path, project_file: ProjectFile) -> ProjectFile:
        """Return a copy of a file with its content attached.

        Raises:
            ReadError: If the file cannot be read as UTF-8 text
        """
        path = root_dir / project_file.relative_path
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(project_file.local_path, str(e)) from e
        return project_file.with_source(source)

    def read_contents(
        self, root_dir: Path, files: Sequence[ProjectFile]
    ) -> list[ProjectFile]:
        """Attach content to every file, keeping the input order.

        Reads run on a bounded thread pool; results are placed by index so
        completion order never changes the output order.

        Args:
            root_dir: Project root the relative paths refer to
            files: Files to read

        Returns:
            Files with content, in input order
        """
        results: list[Optional[ProjectFile]] = [None] * len(files)

        if self.max_workers == 1 or len(files) <= 1:
            for index, project_file in enumerate(files):
                results[index] = self.read_file(root_dir, project_file)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {
                    executor.submit(self.read_file, root_dir, project_file): index
                    for index, project_file in enumerate(files)
                }
                for future in as_completed(futures):
                    results[futures[future]] = future.result()

        logger.debug("Read %d file(s) from %s", len(files), root_dir)
        return [f for f in results if f is not None]

    def write_file(
        self, root_dir: Path, project_file: ProjectFile
    ) -> ProjectFile:
        """Write a file below the project root, creating parent directories.

        Existing files are overwritten.

        Raises:
            WriteError: If the directory or file cannot be written
        """
        path = root_dir / project_file.relative_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(project_file.source or "", encoding="utf-8")
        except OSError as e:
            raise WriteError(project_file.local_path, e.strerror or str(e)) from e
        logger.debug("Wrote %s", project_file.local_path)
        return project_file

    def upload(self, script_id: str, files: Sequence[ProjectFile]) -> Any:
        """Replace the remote project content with the given files.

        Args:
            script_id: Script project ID
            files: Tracked files with content, in push order

        Returns:
            API response
        """
        if self.client is None:
            raise PyClaspError("No API client configured for upload")
        remote_files: list[RemoteFile] = [f.to_remote() for f in files]
        return self.client.update_content(script_id, remote_files)

    def fetch(
        self, script_id: str, version_number: Optional[int] = None
    ) -> list[RemoteFile]:
        """Fetch the remote project content."""
        if self.client is None:
            raise PyClaspError("No API client configured for download")
        return self.client.get_content(script_id, version_number=version_number)
