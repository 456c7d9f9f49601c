"""Unit tests for the pyclasp CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

from watchfiles import Change

import pytest
from click.testing import CliRunner

from pyclasp.cli import main
from pyclasp.exceptions import ScriptAPIError
from pyclasp.models import RemoteFile, RemoteFileType


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_client_class():
    """Mock the API client used by the commands."""
    with patch("pyclasp.cli.ScriptClient") as mock:
        mock.return_value.get_content.return_value = [
            RemoteFile("appsscript", RemoteFileType.JSON, "{}"),
        ]
        yield mock


def write_project(root: Path, settings: dict, files: dict) -> None:
    """Create a .clasp.json and project files."""
    (root / ".clasp.json").write_text(json.dumps(settings), encoding="utf-8")
    for path, content in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


PROJECT_FILES = {
    "appsscript.json": "{}",
    "Code.js": "function main() {}",
    "docs/notes.md": "notes",
}


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Test main help shows all commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--token" in result.output
        for command in ["init", "status", "push", "pull", "diff"]:
            assert command in result.output

    def test_verbose_flag(self, runner):
        """Test that --verbose is accepted."""
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["--verbose", "status"])
        assert result.exit_code == 0


class TestInitCommand:
    """Tests for the init command."""

    @patch("pyclasp.cli.config")
    def test_init_saves_token_and_project(self, mock_config, runner):
        """Test that init stores the token and writes .clasp.json."""
        mock_config.get_config_path.return_value = Path("/home/user/config")
        with runner.isolated_filesystem():
            result = runner.invoke(
                main, ["init", "--token", "secret", "--script-id", "abc"]
            )
            data = json.loads(Path(".clasp.json").read_text())

        assert result.exit_code == 0
        mock_config.save_access_token.assert_called_once_with("secret")
        assert data == {"scriptId": "abc"}
        assert "Initialization Complete" in result.output

    @patch("pyclasp.cli.config")
    def test_init_prompts_for_token(self, mock_config, runner):
        """Test that init asks for the token when not given."""
        mock_config.get_config_path.return_value = Path("/home/user/config")
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init"], input="prompted\n")

        assert result.exit_code == 0
        mock_config.save_access_token.assert_called_once_with("prompted")

    @patch("pyclasp.cli.config")
    def test_init_keeps_existing_project(self, mock_config, runner):
        """Test that an existing .clasp.json is not overwritten."""
        mock_config.get_config_path.return_value = Path("/home/user/config")
        with runner.isolated_filesystem():
            Path(".clasp.json").write_text('{"scriptId": "old"}')
            result = runner.invoke(
                main, ["init", "--token", "secret", "--script-id", "new"]
            )
            data = json.loads(Path(".clasp.json").read_text())

        assert result.exit_code == 0
        assert data == {"scriptId": "old"}
        assert "already exists" in result.output


class TestStatusCommand:
    """Tests for the status command."""

    def test_status(self, runner):
        """Test listing tracked and untracked files."""
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["status"])

        assert result.exit_code == 0
        assert "Tracked files:" in result.output
        assert "└─ appsscript.json" in result.output
        assert "└─ Code.js" in result.output
        assert "└─ docs/" in result.output
        assert "docs/notes.md" not in result.output

    def test_status_all(self, runner):
        """Test listing every untracked file."""
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["status", "--all"])

        assert result.exit_code == 0
        assert "└─ docs/notes.md" in result.output

    def test_status_json(self, runner):
        """Test JSON output."""
        with runner.isolated_filesystem():
            write_project(
                Path.cwd(),
                {"scriptId": "abc", "rootDir": "src"},
                {
                    "src/appsscript.json": "{}",
                    "src/Code.js": "var a;",
                    "src/notes.txt": "x",
                },
            )
            result = runner.invoke(main, ["--json", "status"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "tracked": ["src/appsscript.json", "src/Code.js"],
            "untracked": ["src/notes.txt"],
        }

    def test_status_invalid_project_file(self, runner):
        """Test that a malformed .clasp.json is reported."""
        with runner.isolated_filesystem():
            Path(".clasp.json").write_text("{not json")
            result = runner.invoke(main, ["status"])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestPushCommand:
    """Tests for the push command."""

    def test_push(self, runner, mock_client_class):
        """Test pushing the tracked files."""
        client = mock_client_class.return_value
        client.update_content.return_value = {}
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 0, result.output
        assert "Pushed 2 file(s)." in result.output
        script_id, files = client.update_content.call_args[0]
        assert script_id == "abc"
        assert [f.name for f in files] == ["appsscript", "Code"]

    def test_push_dry_run(self, runner, mock_client_class):
        """Test that a dry run does not create a client."""
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push", "--dry-run"])

        assert result.exit_code == 0
        assert "Would push 2 file(s):" in result.output
        mock_client_class.assert_not_called()

    def test_push_warns_about_stale_order(self, runner, mock_client_class):
        """Test that unknown push order entries are reported."""
        with runner.isolated_filesystem():
            write_project(
                Path.cwd(),
                {"scriptId": "abc", "filePushOrder": ["Missing.js", "Code.js"]},
                PROJECT_FILES,
            )
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 0
        assert "filePushOrder entry matches no file: Missing.js" in result.output

    def test_push_without_script_id(self, runner, mock_client_class):
        """Test that push fails without a script ID."""
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {}, PROJECT_FILES)
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 1
        assert "No scriptId configured" in result.output

    def test_push_script_id_option(self, runner, mock_client_class):
        """Test overriding the script ID on the command line."""
        client = mock_client_class.return_value
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {}, PROJECT_FILES)
            result = runner.invoke(main, ["push", "--script-id", "xyz"])

        assert result.exit_code == 0
        assert client.update_content.call_args[0][0] == "xyz"

    def test_push_api_error(self, runner, mock_client_class):
        """Test that API errors exit with status 1."""
        client = mock_client_class.return_value
        client.update_content.side_effect = ScriptAPIError("quota exceeded")
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 1
        assert "API error: quota exceeded" in result.output

    def test_push_name_conflict(self, runner, mock_client_class):
        """Test that conflicting files abort the push."""
        with runner.isolated_filesystem():
            write_project(
                Path.cwd(), {"scriptId": "abc"}, {"Code.gs": "a", "Code.js": "b"}
            )
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 1
        assert "File conflict" in result.output
        mock_client_class.return_value.update_content.assert_not_called()

    def test_push_up_to_date(self, runner, mock_client_class):
        """Test that nothing is uploaded when the remote matches."""
        client = mock_client_class.return_value
        client.get_content.return_value = [
            RemoteFile("appsscript", RemoteFileType.JSON, "{}"),
            RemoteFile("Code", RemoteFileType.SERVER_JS, "function main() {}"),
        ]
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 0
        assert "Script is already up to date." in result.output
        client.update_content.assert_not_called()

    def test_push_changed_manifest_is_skipped(self, runner, mock_client_class):
        """Test that a changed manifest is not pushed without confirmation."""
        client = mock_client_class.return_value
        client.get_content.return_value = []
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push"])

        assert result.exit_code == 0
        assert "Skipping push." in result.output
        client.update_content.assert_not_called()

    def test_push_changed_manifest_with_force(self, runner, mock_client_class):
        """Test that --force pushes a changed manifest."""
        client = mock_client_class.return_value
        client.get_content.return_value = []
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push", "--force"])

        assert result.exit_code == 0
        assert "Pushed 2 file(s)." in result.output
        client.update_content.assert_called_once()

    @patch("pyclasp.cli._is_interactive", return_value=True)
    def test_push_changed_manifest_confirmed(
        self, mock_interactive, runner, mock_client_class
    ):
        """Test that a confirmed manifest change is pushed."""
        client = mock_client_class.return_value
        client.get_content.return_value = []
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["push"], input="y\n")

        assert result.exit_code == 0
        assert "Do you want to push and overwrite?" in result.output
        client.update_content.assert_called_once()

    @patch("pyclasp.sync.watcher.watch")
    def test_push_watch(self, mock_watch, runner, mock_client_class):
        """Test that watch mode pushes again after a tracked file changes."""
        client = mock_client_class.return_value
        with runner.isolated_filesystem():
            root = Path.cwd()
            write_project(root, {"scriptId": "abc"}, PROJECT_FILES)
            mock_watch.return_value = iter(
                [
                    {(Change.modified, str(root / "docs" / "notes.md"))},
                    {(Change.modified, str(root / "Code.js"))},
                ]
            )
            result = runner.invoke(main, ["push", "--watch"])

        assert result.exit_code == 0, result.output
        assert "Waiting for changes..." in result.output
        assert "Pushed 2 file(s) at " in result.output
        assert client.update_content.call_count == 2

    def test_push_watch_with_dry_run(self, runner, mock_client_class):
        """Test that watching cannot be combined with a dry run."""
        result = runner.invoke(main, ["push", "--watch", "--dry-run"])

        assert result.exit_code == 1
        assert "--watch cannot be combined with --dry-run" in result.output


class TestPullCommand:
    """Tests for the pull command."""

    def test_pull(self, runner, mock_client_class):
        """Test writing the remote files."""
        client = mock_client_class.return_value
        client.get_content.return_value = [
            RemoteFile("lib.Utils", RemoteFileType.SERVER_JS, "var u;"),
        ]
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc", "rootDir": "src"}, {})
            result = runner.invoke(main, ["pull", "--version", "2"])
            content = Path("src/lib/Utils.js").read_text()

        assert result.exit_code == 0, result.output
        assert content == "var u;"
        assert "Pulled 1 file(s)." in result.output
        client.get_content.assert_called_once_with("abc", version_number=2)


class TestDiffCommand:
    """Tests for the diff command."""

    def test_diff(self, runner, mock_client_class):
        """Test listing differences with the remote project."""
        client = mock_client_class.return_value
        client.get_content.return_value = [
            RemoteFile("appsscript", RemoteFileType.JSON, "{}"),
            RemoteFile("Code", RemoteFileType.SERVER_JS, "changed"),
            RemoteFile("Old", RemoteFileType.HTML, "<p></p>"),
        ]
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, PROJECT_FILES)
            result = runner.invoke(main, ["diff"])

        assert result.exit_code == 0
        assert "~ Code.js" in result.output
        assert "- Old" in result.output
        assert "appsscript.json" not in result.output

    def test_diff_json(self, runner, mock_client_class):
        """Test JSON output of diff."""
        client = mock_client_class.return_value
        client.get_content.return_value = []
        with runner.isolated_filesystem():
            write_project(Path.cwd(), {"scriptId": "abc"}, {"Code.js": "x"})
            result = runner.invoke(main, ["--json", "diff"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [{"path": "Code.js", "status": "new"}]
