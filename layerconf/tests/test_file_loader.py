"""Tests for the file configuration loaders."""

import json
from pathlib import Path

import pytest

from layerconf.errors import FileLoadError, FormatError
from layerconf.loader.file import (
    EnvFileLoader,
    IniLoader,
    JsonLoader,
    YamlLoader,
    detect_format,
    flatten,
    loader_for_format,
)
from layerconf.models.schemas import ConfigFormat


class TestJsonLoader:
    """Test JSON loading and flattening."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loader = JsonLoader()

    def test_nested_objects_flatten(self, tmp_path):
        """Test that nested objects become separator-joined keys."""
        path = tmp_path / "appsettings.json"
        path.write_text(
            json.dumps(
                {
                    "Server": {"Port": 5000, "Host": "localhost"},
                    "Logging": {"Level": {"Default": "Information"}},
                }
            )
        )

        data = self.loader.load(str(path))

        assert data["Server:Port"] == "5000"
        assert data["server:host"] == "localhost"
        assert data["Logging:Level:Default"] == "Information"
        assert len(data) == 3

    def test_scalar_rendering(self, tmp_path):
        """Test that non-string scalars keep their JSON text."""
        path = tmp_path / "scalars.json"
        path.write_text(
            '{"Debug": true, "Off": false, "Nothing": null, "Ratio": 1.5, '
            '"Tags": ["a", "b"], "Empty": ""}'
        )

        data = self.loader.load(str(path))

        assert data["Debug"] == "true"
        assert data["Off"] == "false"
        assert data["Nothing"] == "null"
        assert data["Ratio"] == "1.5"
        assert data["Tags"] == '["a","b"]'
        assert data["Empty"] == ""

    def test_number_text_preserved(self, tmp_path):
        """Test that numbers keep the exact text written in the document."""
        path = tmp_path / "numbers.json"
        path.write_text(
            '{"Price": 1.50, "Big": 1e3, "Huge": 1e400, "Long": '
            + "7" * 5000
            + ', "Values": [1.50, -0, {"Rate": 2E-3}]}'
        )

        data = self.loader.load(str(path))

        assert data["Price"] == "1.50"
        assert data["Big"] == "1e3"
        assert data["Huge"] == "1e400"
        assert data["Long"] == "7" * 5000
        assert data["Values"] == '[1.50,-0,{"Rate":2E-3}]'
        assert type(data["Price"]) is str

    def test_custom_separator(self, tmp_path):
        """Test flattening with a different separator."""
        path = tmp_path / "sep.json"
        path.write_text('{"A": {"B": "c"}}')

        data = JsonLoader(separator=".").load(str(path))

        assert list(data) == ["A.B"]

    def test_root_must_be_object(self, tmp_path):
        """Test that a non-object root is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(FormatError, match="root must be an object"):
            self.loader.load(str(path))

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON content."""
        path = tmp_path / "broken.json"
        path.write_text('{"Server": ')

        with pytest.raises(FormatError) as exc_info:
            self.loader.load(str(path))

        assert exc_info.value.location == str(path)
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_missing_file(self, tmp_path):
        """Test loading a file that does not exist."""
        with pytest.raises(FileLoadError, match="not found"):
            self.loader.load(str(tmp_path / "missing.json"))

    def test_directory_is_not_a_file(self, tmp_path):
        """Test loading a directory path."""
        with pytest.raises(FileLoadError, match="not a file"):
            self.loader.load(str(tmp_path))

    def test_invalid_encoding(self, tmp_path):
        """Test content that is not valid UTF-8."""
        path = tmp_path / "latin.json"
        path.write_bytes(b'{"Name": "\xff\xfe"}')

        with pytest.raises(FormatError):
            self.loader.load(str(path))


class TestYamlLoader:
    """Test YAML loading."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loader = YamlLoader()

    def test_mapping(self, tmp_path):
        """Test nested mappings and scalar rendering."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "database:\n"
            "  host: localhost\n"
            "  port: 5432\n"
            "  enabled: true\n"
            "  replica: null\n"
            "features: [search, export]\n"
        )

        data = self.loader.load(str(path))

        assert data["database:host"] == "localhost"
        assert data["database:port"] == "5432"
        assert data["database:enabled"] == "true"
        assert data["database:replica"] == "null"
        assert data["features"] == '["search","export"]'

    def test_empty_document(self, tmp_path):
        """Test that an empty document is an empty layer."""
        path = tmp_path / "empty.yaml"
        path.write_text("# nothing here\n")

        assert len(self.loader.load(str(path))) == 0

    def test_root_must_be_mapping(self, tmp_path):
        """Test that a sequence root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(FormatError, match="root must be a mapping"):
            self.loader.load(str(path))

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML content."""
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed\n")

        with pytest.raises(FormatError, match="Invalid YAML"):
            self.loader.load(str(path))


class TestIniLoader:
    """Test INI loading."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loader = IniLoader()

    def test_sections_and_top_level_keys(self, tmp_path):
        """Test that sections prefix keys and leading keys stay top-level."""
        path = tmp_path / "settings.ini"
        path.write_text(
            "Environment = Staging\n"
            "\n"
            "[Database]\n"
            "; a comment\n"
            "# another comment\n"
            "Host = db.local\n"
            "  Port=5432\n"
            "Empty =\n"
        )

        data = self.loader.load(str(path))

        assert data["Environment"] == "Staging"
        assert data["Database:Host"] == "db.local"
        assert data["Database:Port"] == "5432"
        assert data["Database:Empty"] == ""
        assert list(data)[0] == "Environment"

    def test_key_case_preserved(self, tmp_path):
        """Test that key casing is kept as written."""
        path = tmp_path / "case.ini"
        path.write_text("[Server]\nMaxConnections = 10\n")

        data = self.loader.load(str(path))

        assert list(data) == ["Server:MaxConnections"]

    def test_duplicates_overwrite(self, tmp_path):
        """Test that a repeated key keeps the last value."""
        path = tmp_path / "dup.ini"
        path.write_text("[A]\nKey = 1\nKey = 2\n[A]\nOther = 3\n")

        data = self.loader.load(str(path))

        assert data["A:Key"] == "2"
        assert data["A:Other"] == "3"

    def test_no_interpolation_and_colon_in_key(self, tmp_path):
        """Test that values are raw and only '=' separates key and value."""
        path = tmp_path / "raw.ini"
        path.write_text("[Paths]\nHome = %(root)s/home\nurl:part = x\n")

        data = self.loader.load(str(path))

        assert data["Paths:Home"] == "%(root)s/home"
        assert data["Paths:url:part"] == "x"

    def test_default_section_is_ordinary(self, tmp_path):
        """Test that [DEFAULT] does not leak into other sections."""
        path = tmp_path / "default.ini"
        path.write_text("[DEFAULT]\nLevel = 1\n[Other]\nName = x\n")

        data = self.loader.load(str(path))

        assert data["DEFAULT:Level"] == "1"
        assert "Other:Level" not in data

    def test_invalid_ini(self, tmp_path):
        """Test a value line without a key."""
        path = tmp_path / "broken.ini"
        path.write_text("[Section]\n= orphan value\n")

        with pytest.raises(FormatError, match="Invalid INI"):
            self.loader.load(str(path))


class TestEnvFileLoader:
    """Test dotenv file loading."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loader = EnvFileLoader()

    def test_dotenv_syntax(self, tmp_path):
        """Test comments, export, quoting and nested keys."""
        path = tmp_path / ".env"
        path.write_text(
            "# local overrides\n"
            "export API_KEY=\"abc def\"\n"
            "Database__Host=localhost\n"
            "PORT=5432 # inline comment\n"
            "EMPTY=\n"
            "NOVALUE\n"
            "REF=${HOME}/data\n"
        )

        data = self.loader.load(str(path))

        assert data["API_KEY"] == "abc def"
        assert data["Database:Host"] == "localhost"
        assert data["PORT"] == "5432"
        assert data["EMPTY"] == ""
        assert "NOVALUE" not in data
        assert data["REF"] == "${HOME}/data"


class TestFormatDetection:
    """Test format detection and loader lookup."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("appsettings.json", ConfigFormat.JSON),
            ("config.YAML", ConfigFormat.YAML),
            ("config.yml", ConfigFormat.YAML),
            ("setup.cfg", ConfigFormat.INI),
            ("app.ini", ConfigFormat.INI),
            (".env", ConfigFormat.ENV),
            (".env.local", ConfigFormat.ENV),
            ("prod.env", ConfigFormat.ENV),
        ],
    )
    def test_detect_format(self, name, expected):
        """Test detection from the file name."""
        assert detect_format(Path("/etc/app") / name) == expected

    def test_unknown_extension(self):
        """Test that unknown extensions are rejected."""
        with pytest.raises(FormatError, match="Unsupported file format"):
            detect_format("notes.txt")

    def test_loader_for_format(self):
        """Test loader construction by format."""
        loader = loader_for_format(ConfigFormat.YAML, separator=".")

        assert isinstance(loader, YamlLoader)
        assert loader.separator == "."
        assert loader.supports_hot_reload
        assert isinstance(loader_for_format("ini"), IniLoader)

    def test_loader_for_unknown_format(self):
        """Test that an unknown format name is rejected."""
        with pytest.raises(FormatError):
            loader_for_format("toml")


class TestFlatten:
    """Test the flatten helper."""

    def test_flatten(self):
        """Test flattening of a nested mapping."""
        data = flatten({"A": {"B": {"C": 1}}, "D": False})

        assert dict(data) == {"A:B:C": "1", "D": "false"}
