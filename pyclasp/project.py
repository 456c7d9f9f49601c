"""Project settings from ``.clasp.json`` and ``.claspignore``."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigurationError
from .sync.classifier import (
    DEFAULT_HTML_EXTENSIONS,
    DEFAULT_MANIFEST_NAME,
    DEFAULT_SCRIPT_EXTENSIONS,
    FileClassifier,
    normalize_extension,
)
from .sync.ignore import DEFAULT_IGNORE_LINES, IGNORE_FILE_NAME, load_ignore_file

logger = logging.getLogger(__name__)

PROJECT_FILE_NAME = ".clasp.json"


@dataclass
class ProjectSettings:
    """Resolved settings of a local script project."""

    project_root: Path
    """Directory holding ``.clasp.json`` (or the directory it would be in)"""

    content_dir: Path
    """Directory whose files are synchronized (``rootDir`` setting)"""

    script_id: Optional[str] = None
    """ID of the remote script project"""

    file_push_order: list[str] = field(default_factory=list)
    """Files to push first, in order"""

    script_extensions: tuple[str, ...] = DEFAULT_SCRIPT_EXTENSIONS
    """Extensions pushed as server scripts"""

    html_extensions: tuple[str, ...] = DEFAULT_HTML_EXTENSIONS
    """Extensions pushed as HTML"""

    manifest_name: str = DEFAULT_MANIFEST_NAME
    """Basename of the project manifest"""

    skip_subdirectories: bool = False
    """Only push files directly in the content directory (``ignoreSubdirectories``)"""

    ignore_lines: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_LINES))
    """Raw ignore rules"""

    ignore_file: Optional[Path] = None
    """Ignore file the rules came from, None for the defaults"""

    config_file: Optional[Path] = None
    """The ``.clasp.json`` file, None when the project has none"""

    def make_classifier(self) -> FileClassifier:
        """Create a file classifier for these settings."""
        return FileClassifier(
            script_extensions=self.script_extensions,
            html_extensions=self.html_extensions,
            manifest_name=self.manifest_name,
        )

    def require_script_id(self) -> str:
        """Return the script ID.

        Raises:
            ConfigurationError: If the project has no script ID
        """
        if not self.script_id:
            raise ConfigurationError(
                f"No scriptId configured. Add one to {PROJECT_FILE_NAME} "
                "or pass --script-id."
            )
        return self.script_id


def find_project_file(start: Optional[Path] = None) -> Optional[Path]:
    """Search ``.clasp.json`` from a directory upwards.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        Path of the project file, or None if there is none
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        candidate = directory / PROJECT_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def _string_list(value: Any, key: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigurationError(f"{key} must be a string or a list of strings")


def _read_project_file(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def load_project_settings(
    config_file: Optional[Path] = None,
    ignore_file: Optional[Path] = None,
    root_dir: Optional[Path] = None,
) -> ProjectSettings:
    """Load the settings of the project around the current directory.

    Args:
        config_file: Explicit ``.clasp.json`` path, or a directory holding it.
            Searched upwards from the current directory if None.
        ignore_file: Explicit ignore file, or a directory holding it.
            Defaults to ``.claspignore`` in the project root.
        root_dir: Project root to use when no ``.clasp.json`` exists

    Returns:
        ProjectSettings

    Raises:
        ConfigurationError: If a given file is missing or unreadable, or
            the project file is malformed
    """
    if config_file is not None:
        config_file = Path(config_file)
        if config_file.is_dir():
            config_file = config_file / PROJECT_FILE_NAME
        if not config_file.is_file():
            raise ConfigurationError(f"Project file not found: {config_file}")
    else:
        config_file = find_project_file()

    data: dict = {}
    if config_file is not None:
        logger.debug("Using project file %s", config_file)
        project_root = config_file.resolve().parent
        data = _read_project_file(config_file)
    else:
        project_root = Path(root_dir or Path.cwd()).resolve()
        logger.debug("No %s found, using %s", PROJECT_FILE_NAME, project_root)

    content_setting = data.get("srcDir") or data.get("rootDir") or "."
    if not isinstance(content_setting, str):
        raise ConfigurationError("rootDir must be a string")
    # May not exist yet before the first pull.
    content_dir = (project_root / content_setting).resolve()

    script_extensions = DEFAULT_SCRIPT_EXTENSIONS
    if "fileExtension" in data:
        script_extensions = tuple(
            normalize_extension(e)
            for e in _string_list(data["fileExtension"], "fileExtension")
        )
    if "scriptExtensions" in data:
        script_extensions = tuple(
            normalize_extension(e)
            for e in _string_list(data["scriptExtensions"], "scriptExtensions")
        )
    html_extensions = DEFAULT_HTML_EXTENSIONS
    if "htmlExtensions" in data:
        html_extensions = tuple(
            normalize_extension(e)
            for e in _string_list(data["htmlExtensions"], "htmlExtensions")
        )

    push_order = _string_list(data.get("filePushOrder", []), "filePushOrder")
    skip_subdirectories = data.get("ignoreSubdirectories", False)
    if not isinstance(skip_subdirectories, bool):
        raise ConfigurationError("ignoreSubdirectories must be true or false")

    resolved_ignore = _resolve_ignore_file(project_root, ignore_file)
    if resolved_ignore is not None:
        logger.debug("Using ignore file %s", resolved_ignore)
        ignore_lines = load_ignore_file(resolved_ignore)
    else:
        ignore_lines = list(DEFAULT_IGNORE_LINES)

    return ProjectSettings(
        project_root=project_root,
        content_dir=content_dir,
        script_id=data.get("scriptId"),
        file_push_order=push_order,
        script_extensions=script_extensions,
        html_extensions=html_extensions,
        skip_subdirectories=skip_subdirectories,
        ignore_lines=ignore_lines,
        ignore_file=resolved_ignore,
        config_file=config_file,
    )


def _resolve_ignore_file(
    project_root: Path, ignore_file: Optional[Path]
) -> Optional[Path]:
    if ignore_file is None:
        candidate = project_root / IGNORE_FILE_NAME
        return candidate if candidate.is_file() else None

    ignore_file = Path(ignore_file)
    if ignore_file.is_dir():
        ignore_file = ignore_file / IGNORE_FILE_NAME
    if not ignore_file.is_file():
        raise ConfigurationError(f"Ignore file not found: {ignore_file}")
    return ignore_file


def write_project_file(path: Path, script_id: str, root_dir: str = ".") -> Path:
    """Create a minimal ``.clasp.json``.

    Args:
        path: Directory to create the file in
        script_id: Remote script project ID
        root_dir: Content directory, relative to ``path``

    Returns:
        Path of the written file
    """
    target = Path(path) / PROJECT_FILE_NAME
    payload: dict[str, Any] = {"scriptId": script_id}
    if root_dir and root_dir != ".":
        payload["rootDir"] = root_dir
    target.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return target
