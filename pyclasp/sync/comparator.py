"""Comparison of local project files with remote project content."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import ProjectFile, RemoteFile


class FileStatus(str, Enum):
    """How a file differs between the local tree and the remote project."""

    NEW = "new"
    """Only exists locally; the next push creates it"""

    MODIFIED = "modified"
    """Exists in both places with different content"""

    UNCHANGED = "unchanged"
    """Exists in both places with identical content"""

    REMOTE_ONLY = "remote_only"
    """Only exists remotely; the next push removes it"""


@dataclass
class SyncDecision:
    """Comparison result for a single remote file name."""

    status: FileStatus
    """Comparison outcome"""

    reason: str
    """Human-readable explanation"""

    local_file: Optional[ProjectFile]
    """Local file (if exists)"""

    remote_file: Optional[RemoteFile]
    """Remote file (if exists)"""

    @property
    def display_name(self) -> str:
        """Local path if known, remote name otherwise."""
        if self.local_file is not None:
            return self.local_file.local_path
        assert self.remote_file is not None
        return self.remote_file.name


def _normalize(source: Optional[str]) -> str:
    return (source or "").replace("\r\n", "\n")


class FileComparator:
    """Compares tracked local files with remote files by name and type."""

    def compare_files(
        self,
        local_files: Iterable[ProjectFile],
        remote_files: Iterable[RemoteFile],
    ) -> list[SyncDecision]:
        """Compare local files (with content) against remote files.

        Args:
            local_files: Tracked local files with content attached
            remote_files: Remote project files

        Returns:
            Decisions for local files in input order, followed by
            remote-only files sorted by name
        """
        remote_map = {(f.name, f.type): f for f in remote_files}
        decisions: list[SyncDecision] = []
        seen: set[tuple] = set()

        for local_file in local_files:
            key = (local_file.name, local_file.type)
            seen.add(key)
            decisions.append(
                self._compare_single_file(local_file, remote_map.get(key))
            )

        for key in sorted(set(remote_map) - seen, key=lambda k: (k[0], k[1].value)):
            decisions.append(
                SyncDecision(
                    status=FileStatus.REMOTE_ONLY,
                    reason="Not present locally",
                    local_file=None,
                    remote_file=remote_map[key],
                )
            )
        return decisions

    def _compare_single_file(
        self, local_file: ProjectFile, remote_file: Optional[RemoteFile]
    ) -> SyncDecision:
        if remote_file is None:
            return SyncDecision(
                status=FileStatus.NEW,
                reason="New local file",
                local_file=local_file,
                remote_file=None,
            )
        if _normalize(local_file.source) == _normalize(remote_file.source):
            return SyncDecision(
                status=FileStatus.UNCHANGED,
                reason="Content is identical",
                local_file=local_file,
                remote_file=remote_file,
            )
        return SyncDecision(
            status=FileStatus.MODIFIED,
            reason="Content differs",
            local_file=local_file,
            remote_file=remote_file,
        )
