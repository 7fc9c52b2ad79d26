"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    DEFAULT_DATA_DIR_NAME,
    EnvConfig,
    EnvVar,
    get_busy_timeout_ms,
    get_data_dir,
    get_db_path,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
    load_env_file,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("QUINTRY_BUSY_TIMEOUT", raising=False)
        assert get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT) == 5000

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("QUINTRY_BUSY_TIMEOUT", "9999")
        assert get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT, override=100) == 100

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("QUINTRY_BUSY_TIMEOUT", "12345")
        result = get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT)
        assert result == 12345
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_falls_back_to_default(self, monkeypatch):
        """Unparseable integers use the default."""
        monkeypatch.setenv("QUINTRY_BUSY_TIMEOUT", "soon")
        assert get_environment(EnvVar.QUINTRY_BUSY_TIMEOUT) == 5000

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch, tmp_path):
        """Path variables are returned as Path objects."""
        monkeypatch.setenv("QUINTRY_DATA_DIR", str(tmp_path))
        result = get_environment(EnvVar.QUINTRY_DATA_DIR)
        assert isinstance(result, Path)
        assert result == tmp_path

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("QUINTRY_DB_NAME", "history.sqlite")
        assert get_environment(EnvVar.QUINTRY_DB_NAME) == "history.sqlite"


class TestEnvironmentInfo:
    """Tests for metadata and introspection."""

    @pytest.mark.unit
    def test_info_returns_env_config(self):
        info = get_environment_info(EnvVar.QUINTRY_DB_NAME)
        assert isinstance(info, EnvConfig)
        assert info.name == "QUINTRY_DB_NAME"
        assert info.default == "quintry.db"
        assert info.category == "storage"

    @pytest.mark.unit
    def test_list_all_variables(self):
        assert set(list_environment_variables()) == set(EnvVar)

    @pytest.mark.unit
    def test_list_by_category(self):
        assert list_environment_variables("logging") == [EnvVar.QUINTRY_LOG_LEVEL]
        assert EnvVar.QUINTRY_DATA_DIR in list_environment_variables("storage")

    @pytest.mark.unit
    def test_names_match_members(self):
        for var in EnvVar:
            assert var.value.name == var.name


# =============================================================================
# Tests for convenience functions
# =============================================================================


class TestPaths:
    """Tests for data directory and database path resolution."""

    @pytest.mark.unit
    def test_data_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("QUINTRY_DATA_DIR", "/elsewhere")
        assert get_data_dir(tmp_path) == tmp_path

    @pytest.mark.unit
    def test_data_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("QUINTRY_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path

    @pytest.mark.unit
    def test_data_dir_default_under_home(self, monkeypatch):
        monkeypatch.delenv("QUINTRY_DATA_DIR", raising=False)
        assert get_data_dir() == Path.home() / DEFAULT_DATA_DIR_NAME

    @pytest.mark.unit
    def test_db_path(self, monkeypatch, tmp_path):
        monkeypatch.delenv("QUINTRY_DB_NAME", raising=False)
        assert get_db_path(tmp_path) == tmp_path / "quintry.db"

    @pytest.mark.unit
    def test_db_name_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("QUINTRY_DB_NAME", "other.db")
        assert get_db_path(tmp_path) == tmp_path / "other.db"


class TestSettings:
    """Tests for scalar settings."""

    @pytest.mark.unit
    def test_busy_timeout(self, monkeypatch):
        monkeypatch.setenv("QUINTRY_BUSY_TIMEOUT", "250")
        assert get_busy_timeout_ms() == 250

    @pytest.mark.unit
    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("QUINTRY_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"

    @pytest.mark.unit
    def test_log_level_default(self, monkeypatch):
        monkeypatch.delenv("QUINTRY_LOG_LEVEL", raising=False)
        assert get_log_level() == "INFO"


class TestEnvFile:
    """Tests for .env loading."""

    @pytest.mark.unit
    def test_loads_values(self, monkeypatch, tmp_path):
        # setenv first so teardown removes whatever the .env file adds
        monkeypatch.setenv("QUINTRY_DB_NAME", "placeholder")
        monkeypatch.delenv("QUINTRY_DB_NAME")
        env_file = tmp_path / ".env"
        env_file.write_text("QUINTRY_DB_NAME=from-dotenv.db\n")

        assert load_env_file(env_file) is True
        assert get_environment(EnvVar.QUINTRY_DB_NAME) == "from-dotenv.db"

    @pytest.mark.unit
    def test_does_not_override_existing(self, monkeypatch, tmp_path):
        monkeypatch.setenv("QUINTRY_DB_NAME", "explicit.db")
        env_file = tmp_path / ".env"
        env_file.write_text("QUINTRY_DB_NAME=from-dotenv.db\n")

        load_env_file(env_file)
        assert get_environment(EnvVar.QUINTRY_DB_NAME) == "explicit.db"
