"""
Configuration tests.

Tests cover:
- Packaged defaults
- Overlay by path argument and by INVENTORY_CONFIG
- Rejection of unknown keys and invalid values
- Deterministic checksum and the INVENTORY_CONFIG_TRACE log entry
"""

import pytest
import yaml

from inventory_config import CONFIG_ENV_VAR, ConfigError, get_active_config
from inventory_config.loader import compute_checksum, load_yaml_file, parse_settings


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def write_config(tmp_path):
    def _write(data, name="inventory.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


class TestDefaults:
    def test_packaged_defaults(self):
        settings = get_active_config()
        assert settings.database_url == "sqlite:///inventory.db"
        assert settings.csv_separator == ";"
        assert settings.decimal_separator == ","
        assert settings.import_date_format == "%d-%m-%Y"
        assert settings.default_import_note == "Geïmporteerd via CSV"
        assert settings.booking_note_template == "Afgeboekt naar project {project_name}"
        assert settings.log_level == "INFO"
        assert settings.source == "defaults"

    def test_checksum_is_deterministic(self):
        assert get_active_config().checksum == get_active_config().checksum
        assert len(get_active_config().checksum) == 64


class TestOverlay:
    def test_path_argument(self, write_config):
        path = write_config({"csv_separator": ",", "log_level": "debug"})
        settings = get_active_config(path)
        assert settings.csv_separator == ","
        assert settings.decimal_separator == "."
        assert settings.log_level == "DEBUG"
        assert settings.database_url == "sqlite:///inventory.db"
        assert settings.source == str(path)

    def test_environment_variable(self, write_config, monkeypatch):
        path = write_config({"database_url": "postgresql://inventory@localhost/inventory"})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert get_active_config().database_url == "postgresql://inventory@localhost/inventory"

    def test_path_argument_beats_environment(self, write_config, monkeypatch):
        env_path = write_config({"pool_size": 5}, "env.yaml")
        arg_path = write_config({"pool_size": 7}, "arg.yaml")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))
        assert get_active_config(arg_path).pool_size == 7

    def test_overlay_changes_checksum(self, write_config):
        path = write_config({"pool_size": 5})
        assert get_active_config(path).checksum != get_active_config().checksum

    def test_empty_overlay(self, write_config, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert get_active_config(path).checksum == get_active_config().checksum

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")


class TestValidation:
    @pytest.mark.parametrize(
        "data, key",
        [
            ({"databse_url": "sqlite://"}, "databse_url"),
            ({"csv_separator": "|"}, "csv_separator"),
            ({"csv_separator": "\t"}, "csv_separator"),
            ({"log_level": "chatty"}, "log_level"),
            ({"pool_size": -1}, "pool_size"),
            ({"pool_size": "20"}, "pool_size"),
            ({"max_overflow": True}, "max_overflow"),
            ({"sqlite_busy_timeout": 0}, "sqlite_busy_timeout"),
            ({"booking_note_template": "Project {klant}"}, "booking_note_template"),
            ({"database_url": ""}, "database_url"),
        ],
    )
    def test_invalid_values(self, write_config, data, key):
        with pytest.raises(ConfigError) as exc_info:
            get_active_config(write_config(data))
        assert exc_info.value.key == key

    def test_database_url_required(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_settings({"csv_separator": ";"})
        assert exc_info.value.key == "database_url"

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("csv_separator: [unclosed\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            get_active_config(path)

    def test_template_may_use_project_number(self, write_config):
        path = write_config({"booking_note_template": "Project #{project_number}: {project_name}"})
        assert "{project_number}" in get_active_config(path).booking_note_template


def test_checksum_ignores_key_order():
    assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


def test_config_trace_logged(captured_logs, write_config):
    path = write_config({"csv_separator": ","})
    settings = get_active_config(path)

    traces = [r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE"]
    assert len(traces) == 1
    assert traces[0]["checksum"] == settings.checksum
    assert traces[0]["config_source"] == str(path)
    assert traces[0]["csv_separator"] == ","
