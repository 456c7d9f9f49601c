"""Data models shared by the sync engine, the API client and the CLI."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from .exceptions import ScriptInvalidResponseError


class RemoteFileType(str, Enum):
    """File types known to the remote script project."""

    SERVER_JS = "SERVER_JS"
    """Server-side script file"""

    HTML = "HTML"
    """HTML markup file"""

    JSON = "JSON"
    """Project manifest (the only JSON file a project may hold)"""

    @classmethod
    def parse(cls, value: Any) -> "RemoteFileType":
        """Parse a type string returned by the API.

        Raises:
            ScriptInvalidResponseError: If the type is not a known file type
        """
        try:
            return cls(value)
        except ValueError as e:
            raise ScriptInvalidResponseError(
                f"Unknown remote file type: {value!r}"
            ) from e


@dataclass(frozen=True)
class RemoteFile:
    """A file as the remote project stores it."""

    name: str
    """Logical file name, without extension"""

    type: RemoteFileType
    """Remote file type"""

    source: Optional[str] = None
    """File content"""

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteFile":
        """Create a RemoteFile from an API file object.

        Args:
            data: Dictionary with ``name``, ``type`` and ``source`` keys

        Returns:
            RemoteFile instance

        Raises:
            ScriptInvalidResponseError: If name or type are missing or invalid
        """
        name = data.get("name")
        if not name:
            raise ScriptInvalidResponseError(f"Remote file without name: {data!r}")
        return cls(
            name=name,
            type=RemoteFileType.parse(data.get("type")),
            source=data.get("source"),
        )

    def to_dict(self) -> dict:
        """Convert to the API's ``{name, type, source}`` representation."""
        return {
            "name": self.name,
            "type": self.type.value,
            "source": self.source if self.source is not None else "",
        }


@dataclass(frozen=True)
class ProjectFile:
    """A local file belonging to (or excluded from) a script project.

    Instances are created by the directory scanner or by the pull mapping
    and never mutated; attaching content returns a new instance.
    """

    relative_path: str
    """Path relative to the project root (forward slashes)"""

    local_path: str
    """Path relative to the invocation directory, as shown to users"""

    name: Optional[str] = None
    """Remote logical name, None for files that cannot be pushed"""

    type: Optional[RemoteFileType] = None
    """Remote file type, None for files that cannot be pushed"""

    source: Optional[str] = None
    """File content, populated right before upload or after pull"""

    is_ignored: bool = False
    """Whether the file is excluded from push"""

    @property
    def is_manifest(self) -> bool:
        """Whether this file is the project manifest."""
        return self.type == RemoteFileType.JSON

    def with_source(self, source: str) -> "ProjectFile":
        """Return a copy of this file with its content attached."""
        return replace(self, source=source)

    def to_remote(self) -> RemoteFile:
        """Convert a tracked file into its remote representation.

        Raises:
            ValueError: If the file has no remote name or type
        """
        if self.name is None or self.type is None:
            raise ValueError(f"{self.local_path} has no remote representation")
        return RemoteFile(name=self.name, type=self.type, source=self.source)
