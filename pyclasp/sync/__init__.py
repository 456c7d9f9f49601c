"""Local project model and push/pull engine for pyclasp."""

from .classifier import Classification, FileClassifier
from .comparator import FileComparator, FileStatus, SyncDecision
from .engine import (
    ProjectStatus,
    SyncEngine,
    collapse_untracked,
    collect_local_files,
    get_untracked_files,
    write_project_files,
)
from .ignore import (
    DEFAULT_IGNORE_LINES,
    IGNORE_FILE_NAME,
    IgnoreMatcher,
    IgnoreRule,
    compile_rules,
    load_ignore_file,
)
from .operations import SyncOperations
from .ordering import get_ordered_project_files, missing_from_push_order
from .scanner import DirectoryScanner, check_name_conflicts, split_project_files
from .watcher import ProjectWatcher

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "ProjectWatcher",
    "ProjectStatus",
    "collect_local_files",
    "get_untracked_files",
    "collapse_untracked",
    "write_project_files",
    "get_ordered_project_files",
    "missing_from_push_order",
    "DirectoryScanner",
    "split_project_files",
    "check_name_conflicts",
    "FileClassifier",
    "Classification",
    "FileComparator",
    "FileStatus",
    "SyncDecision",
    "IgnoreMatcher",
    "IgnoreRule",
    "IGNORE_FILE_NAME",
    "DEFAULT_IGNORE_LINES",
    "compile_rules",
    "load_ignore_file",
]
