"""Exceptions raised by pyclasp."""

from typing import Optional


class PyClaspError(Exception):
    """Base class for all pyclasp errors."""


class ConfigurationError(PyClaspError):
    """Project configuration could not be resolved or read."""


class PatternError(PyClaspError):
    """A single ignore file line could not be compiled.

    Raised while compiling one rule and handled by the matcher, which
    degrades the line to "matches nothing".
    """

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Invalid ignore pattern {line!r}: {reason}")


class ClassificationAmbiguityError(PyClaspError):
    """Two or more local files resolve to the same remote name and type."""

    def __init__(self, name: str, file_type: str, paths: list[str]):
        self.name = name
        self.file_type = file_type
        self.paths = list(paths)
        joined = ", ".join(self.paths)
        super().__init__(
            f"File conflict: {len(self.paths)} files would be pushed as "
            f'"{name}" ({file_type}): {joined}'
        )


class ReadError(PyClaspError):
    """A local file could not be read for a push."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        message = f"Failed to read {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class WriteError(PyClaspError):
    """A pulled file could not be written to disk."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        message = f"Failed to write {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ScriptAPIError(PyClaspError):
    """Base exception for remote script API errors."""


class ScriptAuthenticationError(ScriptAPIError):
    """Access token is missing, expired or rejected."""


class ScriptPermissionError(ScriptAPIError):
    """The authenticated user may not access the script project."""


class ScriptNotFoundError(ScriptAPIError):
    """Script project or version does not exist."""


class ScriptRateLimitError(ScriptAPIError):
    """Too many requests were sent to the API."""


class ScriptNetworkError(ScriptAPIError):
    """The API could not be reached."""


class ScriptInvalidResponseError(ScriptAPIError):
    """The API answered with something that is not a valid response."""
