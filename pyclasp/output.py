"""Console output helpers for the CLI."""

import json
from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Formats CLI output as styled text or JSON."""

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: Emit machine readable JSON instead of text
            quiet: Suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if not self.json_output:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message (hidden in quiet mode)."""
        if not self.quiet and not self.json_output:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self.quiet and not self.json_output:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        if not self.quiet:
            self.err_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error to stderr, even in quiet mode."""
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as indented JSON."""
        self.console.print_json(json.dumps(data))

    def print_file_list(self, paths: Iterable[str]) -> None:
        """Print a list of file paths as a tree branch."""
        if self.json_output:
            return
        for path in paths:
            self.console.print(f"└─ {path}", markup=False)

    def print_summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        """Print a two column summary table."""
        if self.json_output:
            self.output_json({key: value for key, value in rows})
            return
        table = Table(title=title, show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in rows:
            table.add_row(key, value)
        self.console.print(table)
