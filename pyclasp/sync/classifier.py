"""Mapping between local file paths and remote project files.

Local files map to remote files through a closed extension table:

    Code.js            -> Code           (SERVER_JS)
    lib/Utils.gs       -> lib.Utils      (SERVER_JS)
    ui/index.html      -> ui.index       (HTML)
    appsscript.json    -> appsscript     (JSON, project root only)

The remote namespace is flat, so directories become ``.``-separated name
segments. Pulling reverses the mapping, turning every ``.`` into a
directory: ``vendor/jquery.min.js`` is pushed as ``vendor.jquery.min`` and
pulled back as ``vendor/jquery/min.js``.
"""

import logging
import posixpath
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..models import RemoteFileType

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "appsscript.json"
DEFAULT_SCRIPT_EXTENSIONS: tuple[str, ...] = (".js", ".gs")
DEFAULT_HTML_EXTENSIONS: tuple[str, ...] = (".html",)
MANIFEST_EXTENSION = ".json"


def normalize_extension(extension: str) -> str:
    """Normalize an extension to lower case with a leading dot.

    Examples:
        >>> normalize_extension("GS")
        '.gs'
        >>> normalize_extension(".html")
        '.html'
    """
    normalized = extension.strip().lower()
    if not normalized.startswith("."):
        normalized = f".{normalized}"
    return normalized


@dataclass(frozen=True)
class Classification:
    """Result of classifying a single local path."""

    valid: bool
    """Whether the file can be pushed"""

    type: Optional[RemoteFileType] = None
    """Remote file type of a valid file"""

    name: Optional[str] = None
    """Remote logical name of a valid file"""

    reason: str = ""
    """Why the file is invalid"""


class FileClassifier:
    """Classifies project paths and maps remote files back to paths.

    Args:
        script_extensions: Extensions pushed as SERVER_JS; the first one is
            used when pulling
        html_extensions: Extensions pushed as HTML; the first one is used
            when pulling
        manifest_name: Basename of the project manifest
    """

    def __init__(
        self,
        script_extensions: Sequence[str] = DEFAULT_SCRIPT_EXTENSIONS,
        html_extensions: Sequence[str] = DEFAULT_HTML_EXTENSIONS,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
    ):
        self.script_extensions = tuple(
            normalize_extension(e) for e in script_extensions
        ) or DEFAULT_SCRIPT_EXTENSIONS
        self.html_extensions = tuple(
            normalize_extension(e) for e in html_extensions
        ) or DEFAULT_HTML_EXTENSIONS
        self.manifest_name = manifest_name

        self._types_by_extension: dict[str, RemoteFileType] = {}
        for ext in self.html_extensions:
            self._types_by_extension[ext] = RemoteFileType.HTML
        for ext in self.script_extensions:
            self._types_by_extension[ext] = RemoteFileType.SERVER_JS

        self._extension_by_type: dict[RemoteFileType, str] = {
            RemoteFileType.SERVER_JS: self.script_extensions[0],
            RemoteFileType.HTML: self.html_extensions[0],
            RemoteFileType.JSON: MANIFEST_EXTENSION,
        }
        missing = set(RemoteFileType) - set(self._extension_by_type)
        if missing:
            raise ValueError(f"No local extension for remote types: {missing}")

    @property
    def manifest_remote_name(self) -> str:
        """Remote name of the manifest (basename without extension)."""
        return posixpath.splitext(self.manifest_name)[0]

    def is_manifest(self, relative_path: str) -> bool:
        """Check whether a root-relative path is the project manifest."""
        return relative_path == self.manifest_name

    def classify(self, relative_path: str) -> Classification:
        """Classify a path relative to the project root.

        Args:
            relative_path: Root-relative path using forward slashes

        Returns:
            Classification with remote type and name for valid files
        """
        parts = relative_path.split("/")
        for index in range(len(parts) - 1):
            if parts[index] == "node_modules" and parts[index + 1] == "@types":
                return Classification(False, reason="type declarations")

        if self.is_manifest(relative_path):
            return Classification(
                True, type=RemoteFileType.JSON, name=self.manifest_remote_name
            )

        stem, extension = posixpath.splitext(relative_path)
        file_type = self._types_by_extension.get(extension.lower())
        if file_type is None:
            return Classification(False, reason=f"unsupported extension {extension!r}")

        segments = stem.split("/")
        if not all(segments):
            return Classification(False, reason="empty path segment")

        return Classification(True, type=file_type, name=".".join(segments))

    def extension_for(self, file_type: RemoteFileType) -> str:
        """Local extension used when pulling a remote file type."""
        return self._extension_by_type[file_type]

    def to_relative_path(self, name: str, file_type: RemoteFileType) -> str:
        """Map a remote file to a path relative to the project root.

        Args:
            name: Remote logical name (``.`` or ``/`` separated)
            file_type: Remote file type

        Returns:
            Root-relative path using forward slashes

        Raises:
            ValueError: If the name has no usable segments
        """
        if file_type == RemoteFileType.JSON:
            return self.manifest_name

        # Empty segments are dropped, which also rules out ".." components.
        segments = [s for s in name.replace("/", ".").split(".") if s]
        if not segments:
            raise ValueError(f"Invalid remote file name: {name!r}")
        return "/".join(segments) + self.extension_for(file_type)
