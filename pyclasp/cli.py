"""CLI interface for pyclasp."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import click

from .api import ScriptClient
from .config import config
from .exceptions import PyClaspError, ScriptAPIError
from .models import ProjectFile
from .output import OutputFormatter
from .project import (
    PROJECT_FILE_NAME,
    ProjectSettings,
    load_project_settings,
    write_project_file,
)
from .sync import (
    FileStatus,
    SyncEngine,
    collapse_untracked,
    missing_from_push_order,
)
from .sync.operations import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    FileStatus.NEW: "+",
    FileStatus.MODIFIED: "~",
    FileStatus.UNCHANGED: "=",
    FileStatus.REMOTE_ONLY: "-",
}

MANIFEST_PROMPT = "Manifest file has been updated. Do you want to push and overwrite?"


def _load_settings(ctx: Any, script_id: Optional[str] = None) -> ProjectSettings:
    """Load project settings using the global options of the command group."""
    settings = load_project_settings(
        config_file=ctx.obj["project"],
        ignore_file=ctx.obj["ignore_file"],
    )
    if script_id:
        settings.script_id = script_id
    return settings


def _make_client(ctx: Any) -> ScriptClient:
    return ScriptClient(access_token=ctx.obj["token"])


@click.group()
@click.option(
    "--token", "-t", envvar="PYCLASP_ACCESS_TOKEN", help="OAuth access token"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--project",
    "-P",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to {PROJECT_FILE_NAME} (or the directory holding it)",
)
@click.option(
    "--ignore-file",
    "-I",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the ignore file (default: .claspignore in the project root)",
)
@click.version_option(package_name="pyclasp")
@click.pass_context
def main(
    ctx: Any,
    token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
    project: Optional[Path],
    ignore_file: Optional[Path],
) -> None:
    """pyclasp - Push and pull script project files."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["project"] = project
    ctx.obj["ignore_file"] = ignore_file

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyclasp").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--token",
    "-t",
    prompt="Enter your access token",
    hide_input=True,
    help="OAuth access token",
)
@click.option("--script-id", "-s", default=None, help="Create a project file")
@click.option(
    "--root-dir",
    "-r",
    default=".",
    show_default=True,
    help="Content directory written to the project file",
)
@click.pass_context
def init(ctx: Any, token: str, script_id: Optional[str], root_dir: str) -> None:
    """Store the access token and optionally create a project file.

    The token is saved in ~/.config/pyclasp/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    token = token.strip()
    if not token:
        out.error("Access token must not be empty")
        ctx.exit(1)

    try:
        config.save_access_token(token)
    except OSError as e:
        out.error(f"Cannot save configuration: {e}")
        ctx.exit(1)

    rows = [
        ("Status", "Configuration saved"),
        ("Config file", str(config.get_config_path())),
    ]

    if script_id:
        target = Path.cwd() / PROJECT_FILE_NAME
        if target.exists():
            out.warning(f"{PROJECT_FILE_NAME} already exists, not overwriting")
        else:
            written = write_project_file(Path.cwd(), script_id, root_dir)
            rows.append(("Project file", str(written)))

    out.print_summary("Initialization Complete", rows)


@main.command()
@click.option(
    "--all",
    "-a",
    "show_all",
    is_flag=True,
    help="List every untracked file instead of collapsing directories",
)
@click.pass_context
def status(ctx: Any, show_all: bool) -> None:
    """Show which files the next push would include."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        settings = _load_settings(ctx)
        project_status = SyncEngine(settings, output=out).status()
    except PyClaspError as e:
        out.error(str(e))
        ctx.exit(1)

    tracked = project_status.tracked_paths
    untracked = project_status.untracked_paths
    if not show_all:
        untracked = collapse_untracked(untracked, tracked)

    if out.json_output:
        out.output_json({"tracked": tracked, "untracked": untracked})
        return

    out.print("Tracked files:")
    out.print_file_list(tracked)
    out.print("Untracked files:")
    out.print_file_list(untracked)


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _confirm_manifest_push(out: OutputFormatter) -> bool:
    """Ask before overwriting the remote manifest; never asks without a TTY."""
    if out.json_output or not _is_interactive():
        return False
    return click.confirm(MANIFEST_PROMPT, default=False)


def _report_push(
    out: OutputFormatter,
    settings: ProjectSettings,
    files: list[ProjectFile],
    dry_run: bool = False,
    timestamp: Optional[str] = None,
) -> None:
    if files:
        for entry in missing_from_push_order(files, settings.file_push_order):
            out.warning(f"filePushOrder entry matches no file: {entry}")

    paths = [f.local_path for f in files]
    if out.json_output:
        out.output_json({"dry_run": dry_run, "files": paths})
        return
    if not files:
        out.info("No files to push.")
        return

    if dry_run:
        out.info(f"Would push {len(files)} file(s):")
    elif timestamp:
        out.success(f"Pushed {len(files)} file(s) at {timestamp}.")
    else:
        out.success(f"Pushed {len(files)} file(s).")
    out.print_file_list(paths)


@main.command()
@click.option("--script-id", "-s", default=None, help="Override the script ID")
@click.option(
    "--dry-run", is_flag=True, help="Show the files without uploading them"
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite the remote manifest without asking",
)
@click.option(
    "--watch",
    is_flag=True,
    help="Keep running and push whenever a tracked file changes",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Number of parallel file reads",
)
@click.pass_context
def push(
    ctx: Any,
    script_id: Optional[str],
    dry_run: bool,
    force: bool,
    watch: bool,
    workers: int,
) -> None:
    """Replace the remote project files with the local files.

    Nothing is uploaded when no tracked file differs from the remote
    project. A changed manifest is only pushed after confirmation or with
    --force.
    """
    out: OutputFormatter = ctx.obj["out"]

    if dry_run and watch:
        out.error("--watch cannot be combined with --dry-run")
        ctx.exit(1)

    def push_changes(changed_paths: list[str], timestamp: Optional[str]) -> bool:
        nonlocal force
        if not force and any(
            engine.classifier.is_manifest(path) for path in changed_paths
        ):
            force = _confirm_manifest_push(out)
            if not force:
                out.info("Skipping push.")
                if out.json_output:
                    out.output_json({"dry_run": False, "files": [], "skipped": True})
                return False
        _report_push(out, settings, engine.push(), timestamp=timestamp)
        return True

    try:
        settings = _load_settings(ctx, script_id)
        client = None if dry_run else _make_client(ctx)
        engine = SyncEngine(settings, client=client, output=out, max_workers=workers)

        if dry_run:
            _report_push(out, settings, engine.push(dry_run=True), dry_run=True)
            return

        changed = engine.get_changed_files()
        if changed:
            if not push_changes([f.relative_path for f in changed], None):
                return
        elif out.json_output:
            out.output_json({"dry_run": False, "files": []})
        else:
            out.info("Script is already up to date.")

        if not watch:
            return

        out.info("Waiting for changes...")
        try:
            for paths in engine.watch():
                timestamp = datetime.now().strftime("%H:%M:%S")
                if not push_changes(paths, timestamp):
                    break
        except KeyboardInterrupt:
            out.info("\nStopped watching.")
    except KeyboardInterrupt:
        out.warning("\nPush cancelled by user")
        ctx.exit(130)
    except ScriptAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
    except PyClaspError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.option("--script-id", "-s", default=None, help="Override the script ID")
@click.option(
    "--version",
    "version_number",
    type=click.IntRange(min=1),
    default=None,
    help="Version to pull (default: latest)",
)
@click.pass_context
def pull(ctx: Any, script_id: Optional[str], version_number: Optional[int]) -> None:
    """Write the remote project files into the local directory."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        settings = _load_settings(ctx, script_id)
        engine = SyncEngine(settings, client=_make_client(ctx), output=out)
        files = engine.pull(version_number=version_number)
    except KeyboardInterrupt:
        out.warning("\nPull cancelled by user")
        ctx.exit(130)
    except ScriptAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
    except PyClaspError as e:
        out.error(str(e))
        ctx.exit(1)

    paths = [f.local_path for f in files]
    if out.json_output:
        out.output_json({"files": paths})
        return
    out.success(f"Pulled {len(files)} file(s).")
    out.print_file_list(paths)


@main.command()
@click.option("--script-id", "-s", default=None, help="Override the script ID")
@click.option(
    "--show-unchanged", is_flag=True, help="Also list files without changes"
)
@click.pass_context
def diff(ctx: Any, script_id: Optional[str], show_unchanged: bool) -> None:
    """Compare the local files with the remote project."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        settings = _load_settings(ctx, script_id)
        engine = SyncEngine(settings, client=_make_client(ctx), output=out)
        decisions = engine.diff()
    except KeyboardInterrupt:
        out.warning("\nDiff cancelled by user")
        ctx.exit(130)
    except ScriptAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
    except PyClaspError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            [
                {"path": d.display_name, "status": d.status.value}
                for d in decisions
            ]
        )
        return

    changed = [d for d in decisions if d.status != FileStatus.UNCHANGED]
    shown = decisions if show_unchanged else changed
    if not changed:
        out.info("Local files match the remote project.")
    for decision in shown:
        out.print(f"{STATUS_SYMBOLS[decision.status]} {decision.display_name}")


if __name__ == "__main__":
    main()
