"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest

from slotquery.config import AppConfig, QueryDefaults
from slotquery.domain.time_slots import TimePeriod


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.data_file == Path("availability.json")
        assert config.timezone == "UTC"
        assert config.defaults.count == 10
        assert config.defaults.time_preference is TimePeriod.ANY
        assert config.defaults.max_range_days == 90

    def test_load_from_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "data_file: data/cal.json\n"
            "timezone: Europe/Berlin\n"
            "log_level: debug\n"
            "defaults:\n"
            "  count: 5\n"
            "  time_preference: evening\n"
            "  max_range_days: null\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.timezone == "Europe/Berlin"
        assert config.log_level == "DEBUG"
        assert config.defaults.count == 5
        assert config.defaults.time_preference is TimePeriod.EVENING
        assert config.defaults.max_range_days is None
        assert config.resolve_data_file(tmp_path) == tmp_path / "data" / "cal.json"

    def test_empty_yaml_uses_defaults(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("", encoding="utf-8")

        assert AppConfig.load_from_yaml(config_path) == AppConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("timezone: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_root_must_be_mapping(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_path)

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            AppConfig(timezone="Mars/Olympus_Mons")

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            AppConfig(log_level="chatty")

    def test_absolute_data_file_kept(self, tmp_path):
        config = AppConfig(data_file=tmp_path / "cal.json")
        assert config.resolve_data_file(Path("/elsewhere")) == tmp_path / "cal.json"


class TestQueryDefaults:
    """Tests for QueryDefaults validation."""

    def test_count_must_be_positive(self):
        with pytest.raises(ValueError, match="count must be greater than zero"):
            QueryDefaults(count=0)

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            QueryDefaults(time_preference="night")

    def test_negative_range_limit(self):
        with pytest.raises(ValueError, match="max_range_days"):
            QueryDefaults(max_range_days=-1)
