"""Tests for .apexscan.yml loading and validation."""

from __future__ import annotations

import pytest

from apexscan.config import ScanConfig, config_from_dict, find_config_file, load_config
from apexscan.exit_codes import EXIT_USAGE, ConfigError
from apexscan.models import AntipatternKind, Severity


class TestConfigFromDict:
    def test_defaults(self):
        config = config_from_dict(None)
        assert config == ScanConfig()
        assert config.context_lines == 3
        assert config.max_query_length == 200
        assert config.min_severity is Severity.LOW
        assert config.fail_on is None
        assert config.file_extensions == (".cls", ".trigger")

    def test_full_mapping(self):
        config = config_from_dict(
            {
                "context_lines": 5,
                "max_query_length": 80,
                "disabled_rules": ["soql-unused-fields", "GGD"],
                "min_severity": "Medium",
                "fail_on": "critical",
                "strict_parse": True,
                "file_extensions": ["cls"],
            },
            source="x.yml",
        )
        assert config.context_lines == 5
        assert config.max_query_length == 80
        assert config.disabled_rules == {AntipatternKind.SOQL_UNUSED_FIELDS, AntipatternKind.GGD}
        assert not config.is_enabled(AntipatternKind.GGD)
        assert config.is_enabled(AntipatternKind.SOQL_NO_WHERE_LIMIT)
        assert config.min_severity is Severity.MEDIUM
        assert config.fail_on is Severity.CRITICAL
        assert config.strict_parse is True
        assert config.file_extensions == (".cls",)
        assert config.source == "x.yml"

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"context_lines": -1}, "context_lines"),
            ({"context_lines": True}, "context_lines"),
            ({"max_query_length": 0}, "max_query_length"),
            ({"min_severity": "urgent"}, "min_severity"),
            ({"disabled_rules": ["n-plus-one"]}, "Unknown antipattern kind"),
            ({"disabled_rules": {"a": 1}}, "disabled_rules"),
            ({"strict_parse": "yes"}, "strict_parse"),
            ({"colour": "blue"}, "unknown option"),
        ],
    )
    def test_invalid_values(self, data, message):
        with pytest.raises(ConfigError, match=message) as excinfo:
            config_from_dict(data)
        assert excinfo.value.exit_code == EXIT_USAGE

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            config_from_dict(["context_lines"])


class TestLoadConfig:
    def test_no_file_gives_defaults(self, isolated_config, monkeypatch):
        monkeypatch.chdir(isolated_config)
        assert find_config_file() is None
        assert load_config() == ScanConfig()

    def test_discovered_in_cwd(self, isolated_config, monkeypatch):
        (isolated_config / ".apexscan.yml").write_text("context_lines: 1\n")
        monkeypatch.chdir(isolated_config)
        config = load_config()
        assert config.context_lines == 1
        assert config.source.endswith(".apexscan.yml")

    def test_env_var_wins_over_cwd(self, isolated_config, monkeypatch):
        (isolated_config / ".apexscan.yml").write_text("context_lines: 1\n")
        other = isolated_config / "ci.yaml"
        other.write_text("context_lines: 7\n")
        monkeypatch.chdir(isolated_config)
        monkeypatch.setenv("APEXSCAN_CONFIG", str(other))
        assert load_config().context_lines == 7

    def test_explicit_path(self, isolated_config):
        path = isolated_config / "custom.yml"
        path.write_text("fail_on: high\n")
        assert load_config(path).fail_on is Severity.HIGH

    def test_empty_file(self, isolated_config):
        path = isolated_config / "empty.yml"
        path.write_text("")
        assert load_config(path) == ScanConfig(source=str(path))

    def test_invalid_yaml(self, isolated_config):
        path = isolated_config / "bad.yml"
        path.write_text("context_lines: [1,\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(path)

    def test_missing_explicit_file(self, isolated_config):
        with pytest.raises(ConfigError, match="cannot read config"):
            load_config(isolated_config / "nope.yml")
