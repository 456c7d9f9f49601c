"""Gitignore-style rules for deciding which project files are pushed.

Rules come from the project's ``.claspignore`` file (or the built-in
defaults) and are evaluated against paths relative to the project root.

Semantics:

- Rules apply in file order; the last rule matching a path decides.
- ``!pattern`` re-includes a path that an earlier rule ignored.
- A trailing ``/`` restricts a rule to directories.
- A pattern without ``/`` matches at any depth; a leading or embedded
  ``/`` anchors it to the project root.
- ``**`` spans any number of segments, ``*`` and ``?`` stay within one.
- Blank lines and lines starting with ``#`` are ignored.

A directory matched by a non-negated directory rule (``build/``) is
*pruned*: nothing below it can be re-included, whatever file negations
follow. Only a later negation of the directory itself (``!build/``) lifts
that. A directory ignored by any other rule (``**/**``, ``build/**``) stays
open while a later anchored negation can still reach a path inside it
(``!build/main.js`` keeps it open, ``!main.js`` does not).

Examples:
    >>> matcher = compile_rules(["**/**", "!build/main.js"])
    >>> matcher.is_ignored("build/main.js")
    False
    >>> matcher.is_ignored("docs/readme.md")
    True
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from re import Pattern
from typing import Optional

from pathspec.patterns import GitWildMatchPattern

from ..exceptions import ConfigurationError, PatternError

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".claspignore"

# Used when a project has no ignore file: push scripts, markup and the
# manifest, skip everything else.
DEFAULT_IGNORE_LINES: list[str] = [
    "**/**",
    "!**/appsscript.json",
    "!**/*.gs",
    "!**/*.js",
    "!**/*.html",
    ".git/**",
    "node_modules/**",
]


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled ignore file line."""

    pattern: str
    """Pattern text without the leading ``!``"""

    is_negation: bool
    """Whether the rule re-includes matching paths"""

    directory_only: bool
    """Whether the rule only matches directories (trailing ``/``)"""

    anchored: bool
    """Whether the rule is anchored to the project root"""

    regex: Pattern
    """Compiled gitwildmatch expression"""

    line_number: int = 0
    """1-based line number in the source file"""

    @classmethod
    def parse(cls, line: str, line_number: int = 0) -> Optional["IgnoreRule"]:
        """Compile one ignore file line.

        Args:
            line: Raw line from the ignore file
            line_number: Line number, for diagnostics

        Returns:
            IgnoreRule, or None for blank lines and comments

        Raises:
            PatternError: If the line is not a valid pattern
        """
        text = line.rstrip("\r\n").strip()
        if not text or text.startswith("#"):
            return None

        is_negation = text.startswith("!")
        body = text[1:] if is_negation else text
        if not body.strip("/"):
            raise PatternError(line, "empty pattern")

        try:
            compiled = GitWildMatchPattern(text)
        except ValueError as e:
            raise PatternError(line, str(e)) from e
        if compiled.include is None or compiled.regex is None:
            return None

        return cls(
            pattern=body,
            is_negation=is_negation,
            directory_only=body.endswith("/"),
            anchored="/" in body.rstrip("/"),
            regex=compiled.regex,
            line_number=line_number,
        )

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """Check whether this rule matches a path.

        Args:
            relative_path: Path relative to the project root (forward slashes)
            is_dir: Whether the path is a directory
        """
        candidate = f"{relative_path}/" if is_dir else relative_path
        return self.regex.match(candidate) is not None

    def reaches_into(self, relative_dir: str) -> bool:
        """Check whether this rule could match a path below a directory.

        Only anchored rules reach into directories: their leading segments
        must match the directory's segments, with ``**`` matching any depth.
        """
        if not self.anchored:
            return False

        segments = [s for s in self.pattern.strip("/").split("/") if s]
        if not self.directory_only:
            segments = segments[:-1]

        for index, part in enumerate(relative_dir.split("/")):
            if index >= len(segments):
                return False
            if segments[index] == "**":
                return True
            if not fnmatchcase(part, segments[index]):
                return False
        return True


class IgnoreMatcher:
    """Evaluates compiled ignore rules against project paths.

    Directory prune decisions are cached per instance. Create a new
    matcher for every walk; instances are not meant to be shared between
    commands.
    """

    def __init__(self, rules: Iterable[IgnoreRule]):
        self.rules: list[IgnoreRule] = list(rules)
        self._prune_cache: dict[str, bool] = {}

    def __len__(self) -> int:
        return len(self.rules)

    def _last_match(self, relative_path: str, is_dir: bool) -> int:
        """Index of the last rule matching a path, or -1."""
        last = -1
        for index, rule in enumerate(self.rules):
            if rule.matches(relative_path, is_dir=is_dir):
                last = index
        return last

    def _has_pruned_parent(self, relative_path: str) -> bool:
        parts = relative_path.split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            if self.is_pruned("/".join(parts[:depth])):
                return True
        return False

    def _directory_rule_applies(self, relative_dir: str) -> bool:
        """Whether a directory-only rule ignores the directory.

        A later negation matching the directory itself cancels it.
        """
        applies = False
        for rule in self.rules:
            if not rule.matches(relative_dir, is_dir=True):
                continue
            if rule.is_negation:
                applies = False
            elif rule.directory_only:
                applies = True
        return applies

    def is_pruned(self, relative_dir: str) -> bool:
        """Check whether a directory subtree is excluded as a whole.

        Args:
            relative_dir: Directory path relative to the project root

        Returns:
            True if no path below the directory can be tracked
        """
        relative_dir = relative_dir.strip("/")
        if not relative_dir:
            return False

        cached = self._prune_cache.get(relative_dir)
        if cached is not None:
            return cached

        pruned = self._has_pruned_parent(relative_dir)
        if not pruned:
            last = self._last_match(relative_dir, is_dir=True)
            if last >= 0 and not self.rules[last].is_negation:
                pruned = self._directory_rule_applies(relative_dir) or not any(
                    rule.is_negation and rule.reaches_into(relative_dir)
                    for rule in self.rules[last + 1 :]
                )

        if pruned:
            logger.debug("Pruning directory: %s", relative_dir)
        self._prune_cache[relative_dir] = pruned
        return pruned

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """Check whether a path is excluded by the rules.

        Args:
            relative_path: Path relative to the project root (forward slashes)
            is_dir: Whether the path is a directory

        Returns:
            True if the path is ignored
        """
        relative_path = relative_path.strip("/")
        if not relative_path:
            return False
        if self._has_pruned_parent(relative_path):
            return True
        last = self._last_match(relative_path, is_dir=is_dir)
        return last >= 0 and not self.rules[last].is_negation


def compile_rules(lines: Iterable[str]) -> IgnoreMatcher:
    """Compile ignore file lines into a matcher.

    Invalid lines are logged and skipped; they never abort compilation.

    Args:
        lines: Raw ignore file lines, in file order

    Returns:
        IgnoreMatcher for the valid rules
    """
    rules: list[IgnoreRule] = []
    for line_number, line in enumerate(lines, start=1):
        try:
            rule = IgnoreRule.parse(line, line_number)
        except PatternError as e:
            logger.warning("Skipping line %d of ignore rules: %s", line_number, e)
            continue
        if rule is not None:
            rules.append(rule)
    logger.debug("Compiled %d ignore rule(s)", len(rules))
    return IgnoreMatcher(rules)


def load_ignore_file(path: Path) -> list[str]:
    """Read the lines of an ignore file.

    A leading byte order mark is dropped.

    Args:
        path: Path to the ignore file

    Returns:
        List of raw lines

    Raises:
        ConfigurationError: If the file exists but cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read ignore file {path}: {e}") from e
    return text.splitlines()
