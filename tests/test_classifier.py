"""Tests for mapping local paths to remote files and back."""

import pytest

from pyclasp.models import RemoteFileType
from pyclasp.sync.classifier import FileClassifier, normalize_extension


class TestNormalizeExtension:
    """Tests for extension normalization."""

    def test_adds_dot_and_lowercases(self):
        """Test that extensions get a leading dot and lower case."""
        assert normalize_extension("GS") == ".gs"
        assert normalize_extension(".html") == ".html"
        assert normalize_extension(" .JS ") == ".js"


class TestClassify:
    """Tests for FileClassifier.classify."""

    @pytest.fixture
    def classifier(self):
        return FileClassifier()

    def test_script_files(self, classifier):
        """Test that .js and .gs files become server scripts."""
        result = classifier.classify("Code.js")
        assert result.valid
        assert result.type == RemoteFileType.SERVER_JS
        assert result.name == "Code"

        result = classifier.classify("lib/Utils.gs")
        assert result.type == RemoteFileType.SERVER_JS
        assert result.name == "lib.Utils"

    def test_extension_is_case_insensitive(self, classifier):
        """Test that upper case extensions are recognized."""
        assert classifier.classify("Code.JS").type == RemoteFileType.SERVER_JS

    def test_html_files(self, classifier):
        """Test that markup files become HTML."""
        result = classifier.classify("ui/sidebar/index.html")
        assert result.type == RemoteFileType.HTML
        assert result.name == "ui.sidebar.index"

    def test_manifest(self, classifier):
        """Test that the root manifest becomes JSON named appsscript."""
        result = classifier.classify("appsscript.json")
        assert result.type == RemoteFileType.JSON
        assert result.name == "appsscript"
        assert classifier.is_manifest("appsscript.json")

    def test_nested_manifest_is_invalid(self, classifier):
        """Test that a manifest outside the root has no remote type."""
        assert not classifier.classify("sub/appsscript.json").valid
        assert not classifier.is_manifest("sub/appsscript.json")

    def test_other_json_is_invalid(self, classifier):
        """Test that other JSON files have no remote type."""
        assert not classifier.classify("package.json").valid

    def test_unknown_extension_is_invalid(self, classifier):
        """Test that unknown extensions are rejected with a reason."""
        result = classifier.classify("README.md")
        assert not result.valid
        assert result.type is None
        assert ".md" in result.reason

    def test_type_declarations_are_rejected(self, classifier):
        """Test that node_modules/@types is never pushed."""
        result = classifier.classify("node_modules/@types/google/index.js")
        assert not result.valid
        assert result.reason == "type declarations"

    def test_dotted_names_are_pushed(self, classifier):
        """Test that dots in file and directory names are kept in the name."""
        result = classifier.classify("vendor/jquery.min.js")
        assert result.valid
        assert result.name == "vendor.jquery.min"
        assert result.type == RemoteFileType.SERVER_JS
        assert classifier.classify("v1.2/Code.js").name == "v1.2.Code"

    def test_dotted_name_pulls_into_directories(self, classifier):
        """Test that every dot of a pulled name becomes a directory."""
        result = classifier.classify("vendor/jquery.min.js")
        path = classifier.to_relative_path(result.name, result.type)
        assert path == "vendor/jquery/min.js"
        assert classifier.classify(path).name == result.name

    def test_custom_extensions(self):
        """Test configured script and HTML extensions."""
        classifier = FileClassifier(
            script_extensions=["ts"], html_extensions=[".htm"]
        )
        assert classifier.classify("main.ts").type == RemoteFileType.SERVER_JS
        assert classifier.classify("page.htm").type == RemoteFileType.HTML
        assert not classifier.classify("main.js").valid


class TestReverseMapping:
    """Tests for FileClassifier.to_relative_path."""

    @pytest.fixture
    def classifier(self):
        return FileClassifier()

    def test_script_uses_first_extension(self, classifier):
        """Test that server scripts are written with the first extension."""
        path = classifier.to_relative_path("lib.Utils", RemoteFileType.SERVER_JS)
        assert path == "lib/Utils.js"

    def test_html(self, classifier):
        """Test that HTML files get the markup extension."""
        assert classifier.to_relative_path("ui.index", RemoteFileType.HTML) == (
            "ui/index.html"
        )

    def test_slashes_become_directories(self, classifier):
        """Test that slash separated names map to directories."""
        path = classifier.to_relative_path("lib/Utils", RemoteFileType.SERVER_JS)
        assert path == "lib/Utils.js"

    def test_manifest_goes_to_root(self, classifier):
        """Test that the manifest always maps to the root manifest file."""
        path = classifier.to_relative_path("appsscript", RemoteFileType.JSON)
        assert path == "appsscript.json"

    def test_extension_table_is_exhaustive(self, classifier):
        """Test that every remote type has a local extension."""
        for file_type in RemoteFileType:
            assert classifier.extension_for(file_type).startswith(".")

    def test_empty_name_raises(self, classifier):
        """Test that a name without segments is rejected."""
        with pytest.raises(ValueError, match="Invalid remote file name"):
            classifier.to_relative_path("..", RemoteFileType.SERVER_JS)

    def test_round_trip(self, classifier):
        """Test that classified names map back to the same path."""
        for path in ["Code.js", "lib/Utils.js", "ui/index.html", "appsscript.json"]:
            result = classifier.classify(path)
            assert classifier.to_relative_path(result.name, result.type) == path
