"""Push ordering for project files.

The remote project evaluates server scripts in the order they were pushed,
so projects can list files that must come first in ``filePushOrder``.
"""

import logging
from collections.abc import Sequence
from typing import Optional

from ..models import ProjectFile

logger = logging.getLogger(__name__)


def _matches(project_file: ProjectFile, entry: str) -> bool:
    entry = entry.replace("\\", "/")
    if entry.startswith("./"):
        entry = entry[2:]
    return entry in (project_file.local_path, project_file.relative_path) or (
        entry == project_file.name
    )


def get_ordered_project_files(
    files: Sequence[ProjectFile],
    explicit_order: Optional[Sequence[str]] = None,
) -> list[ProjectFile]:
    """Order files for upload.

    The manifest always comes first. Files named in ``explicit_order``
    follow in the order given, then every other file in discovery order.
    Entries are matched against the display path, the root-relative path
    and the remote name; entries matching no file are skipped.

    Args:
        files: Tracked files in discovery order
        explicit_order: Optional list of files to push first

    Returns:
        New list with every input file exactly once

    Examples:
        >>> [f.name for f in get_ordered_project_files([a, b, c], ["B", "A"])]
        ['B', 'A', 'C']
    """
    manifest = [f for f in files if f.is_manifest]
    remaining = [f for f in files if not f.is_manifest]
    ordered: list[ProjectFile] = []

    for entry in explicit_order or []:
        matched = [f for f in remaining if _matches(f, entry)]
        if not matched:
            logger.debug("Push order entry matches no file: %s", entry)
            continue
        ordered.extend(matched)
        remaining = [f for f in remaining if not _matches(f, entry)]

    return manifest + ordered + remaining


def missing_from_push_order(
    files: Sequence[ProjectFile],
    explicit_order: Optional[Sequence[str]] = None,
) -> list[str]:
    """Return push order entries that match none of the given files."""
    return [
        entry
        for entry in explicit_order or []
        if not any(_matches(f, entry) for f in files)
    ]
