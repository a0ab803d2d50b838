"""Tests for configuration loading."""

import json

import pytest

from mcp_timelog.config import (
    DEFAULT_CSV_FIELDS,
    TimelogConfig,
    dict_to_config,
    find_config_file,
    load_config,
    load_json_config,
    load_python_config,
)


class TestFindConfigFile:
    """Tests for find_config_file."""

    def test_finds_python_config(self, temp_project):
        """Python config is found first."""
        (temp_project / "timelog_config.py").write_text("CONFIG = {}")
        (temp_project / "timelog_config.toml").write_text("")

        found = find_config_file(temp_project)
        assert found.name == "timelog_config.py"

    def test_finds_toml_config(self, temp_project):
        """TOML config is found if no Python config."""
        (temp_project / "timelog_config.toml").write_text("")

        found = find_config_file(temp_project)
        assert found.name == "timelog_config.toml"

    def test_finds_json_config(self, temp_project):
        """JSON config is found if no Python/TOML."""
        (temp_project / "timelog_config.json").write_text("{}")

        found = find_config_file(temp_project)
        assert found.name == "timelog_config.json"

    def test_finds_dotfile_config(self, temp_project):
        """Dotfile configs are found."""
        (temp_project / ".timelog.toml").write_text("")

        found = find_config_file(temp_project)
        assert found.name == ".timelog.toml"

    def test_returns_none_if_no_config(self, temp_project):
        """Returns None if no config file found."""
        assert find_config_file(temp_project) is None


class TestDefaults:
    """Tests for TimelogConfig defaults."""

    def test_defaults(self, temp_project):
        config = TimelogConfig(project_root=temp_project, host="box")
        assert config.get_log_path() == temp_project / "timelog"
        assert config.get_export_path() == temp_project / "timelog" / "exports"
        assert config.get_active_document() == temp_project / "timelog" / "box.org"
        assert config.csv_fields == DEFAULT_CSV_FIELDS
        assert config.group_by == []

    def test_csv_fields_not_shared(self):
        a = TimelogConfig()
        a.csv_fields.append("X")
        assert TimelogConfig().csv_fields == DEFAULT_CSV_FIELDS

    def test_host_defaults_to_machine(self):
        assert TimelogConfig().host


class TestDictToConfig:
    """Tests for dict_to_config."""

    def test_full(self, temp_project):
        config = dict_to_config({
            "project": {"name": "consulting"},
            "directories": {"log": "var/log", "export": "var/out"},
            "log": {"document": "{host}/{date}.org", "host": "box", "level": "debug", "lock_timeout": 3},
            "report": {"csv_fields": ["TITLE"], "group_by": "PROJECT"},
        }, temp_project)

        assert config.project_name == "consulting"
        assert config.get_log_path() == temp_project / "var" / "log"
        assert config.get_export_path() == temp_project / "var" / "out"
        assert config.document_name == "{host}/{date}.org"
        assert config.host == "box"
        assert config.log_level == "DEBUG"
        assert config.lock_timeout == 3.0
        assert config.csv_fields == ["TITLE"]
        assert config.group_by == ["PROJECT"]

    def test_empty(self, temp_project):
        config = dict_to_config({}, temp_project)
        assert config.project_name == "unnamed"


class TestLoadConfig:
    """Tests for load_config."""

    def test_no_file_uses_defaults(self, temp_project):
        config = load_config(temp_project)
        assert config.project_root == temp_project
        assert config.log_dir == "timelog"

    def test_toml(self, temp_project):
        (temp_project / "timelog_config.toml").write_text(
            '[project]\nname = "tomlproj"\n\n[report]\ngroup_by = ["day", "PROJECT"]\n'
        )
        config = load_config(temp_project)
        assert config.project_name == "tomlproj"
        assert config.group_by == ["day", "PROJECT"]

    def test_json(self, temp_project):
        path = temp_project / "cfg.json"
        path.write_text(json.dumps({"log": {"host": "jsonhost"}}))
        assert load_json_config(path) == {"log": {"host": "jsonhost"}}
        assert load_config(temp_project, path).host == "jsonhost"

    def test_python(self, temp_project):
        (temp_project / "timelog_config.py").write_text(
            "CONFIG = {'project': {'name': 'pyproj'}}\n"
            "def hook_pre_append(entry):\n    return entry\n"
            "def group_client(entry):\n    return entry.get('CLIENT')\n"
            "def custom_tool_ping(engine, params):\n    return {'pong': True}\n"
        )
        config = load_config(temp_project)

        assert config.project_name == "pyproj"
        assert set(config.hooks) == {"pre_append"}
        assert set(config.derivations) == {"client"}
        assert set(config.custom_tools) == {"ping"}

    def test_python_lowercase_config(self, temp_project):
        path = temp_project / "timelog_config.py"
        path.write_text("config = {'project': {'name': 'lower'}}\n")
        config_dict, hooks, derivations, tools = load_python_config(path)
        assert config_dict == {"project": {"name": "lower"}}
        assert hooks == derivations == tools == {}

    def test_unsupported_suffix(self, temp_project):
        path = temp_project / "timelog.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(temp_project, path)
