"""pyclasp - command line tool for syncing local files with script projects."""

from .api import ScriptClient
from .exceptions import (
    ClassificationAmbiguityError,
    ConfigurationError,
    PatternError,
    PyClaspError,
    ReadError,
    ScriptAPIError,
    ScriptAuthenticationError,
    ScriptInvalidResponseError,
    ScriptNetworkError,
    ScriptNotFoundError,
    ScriptPermissionError,
    ScriptRateLimitError,
    WriteError,
)
from .models import ProjectFile, RemoteFile, RemoteFileType

__version__ = "0.1.0"

__all__ = [
    "ScriptClient",
    "ProjectFile",
    "RemoteFile",
    "RemoteFileType",
    "PyClaspError",
    "ConfigurationError",
    "PatternError",
    "ClassificationAmbiguityError",
    "ReadError",
    "WriteError",
    "ScriptAPIError",
    "ScriptAuthenticationError",
    "ScriptInvalidResponseError",
    "ScriptNetworkError",
    "ScriptNotFoundError",
    "ScriptPermissionError",
    "ScriptRateLimitError",
]
