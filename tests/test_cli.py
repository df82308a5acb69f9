"""CLI tests for `apexscan scan` and `apexscan rules` via CliRunner."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))
from conftest import (
    CLEAN_CLASS,
    GGD_CLASS,
    assert_json_envelope,
    invoke_cli,
    parse_json_output,
)

from apexscan.exit_codes import EXIT_GATE_FAILURE, EXIT_PARTIAL, EXIT_USAGE
from apexscan.index.discovery import class_name_for, discover_apex_files


# ===========================================================================
# Discovery
# ===========================================================================


class TestDiscovery:
    def test_only_apex_sources(self, apex_project):
        found = [p.name for p in discover_apex_files(apex_project)]
        assert found == ["AccountService.cls", "CleanService.cls", "DescribeUtil.cls"]

    def test_file_argument(self, apex_project):
        target = apex_project / "force-app" / "main" / "default" / "classes" / "DescribeUtil.cls"
        assert discover_apex_files(target) == [target.resolve()]
        assert discover_apex_files(apex_project / "README.md") == []

    def test_extension_filter(self, apex_project):
        trigger = apex_project / "force-app" / "main" / "default" / "triggers"
        trigger.mkdir()
        (trigger / "AccountTrigger.trigger").write_text("trigger AccountTrigger on Account (before insert) {}\n")
        assert [p.name for p in discover_apex_files(apex_project, (".trigger",))] == ["AccountTrigger.trigger"]

    def test_oversized_files_skipped(self, apex_project):
        big = apex_project / "Huge.cls"
        big.write_text("// x\n" * 300_000)
        assert "Huge.cls" not in [p.name for p in discover_apex_files(apex_project)]

    def test_class_name_is_stem(self):
        assert class_name_for("force-app/classes/AccountService.cls") == "AccountService"


# ===========================================================================
# scan
# ===========================================================================


class TestScanText:
    def test_verdict_and_sections(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "."], cwd=apex_project)
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0].startswith("VERDICT: WARN - 3 finding(s) in 3 file(s)")
        assert "=== schema-global-describe (2) ===" in result.stdout
        assert "=== soql-missing-where-or-limit (1) ===" in result.stdout
        assert "DescribeUtil.cls:9" in result.stdout
        assert "AccountService.cls:3" in result.stdout

    def test_remediation_printed_once_per_rule(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "--detail", "."], cwd=apex_project)
        assert result.stdout.count("Replace Schema.getGlobalDescribe() with a targeted describe.") == 1
        assert "Schema.SObjectType t = Schema.getGlobalDescribe().get(n);" in result.stdout

    def test_clean_project_passes(self, cli_runner, isolated_config):
        (isolated_config / "CleanService.cls").write_text(CLEAN_CLASS)
        result = invoke_cli(cli_runner, ["scan", "."], cwd=isolated_config)
        assert result.exit_code == 0
        assert result.stdout.startswith("VERDICT: PASS - no antipatterns in 1 file(s)")

    def test_no_files(self, cli_runner, isolated_config):
        result = invoke_cli(cli_runner, ["scan", "."], cwd=isolated_config)
        assert result.exit_code == 0
        assert "VERDICT: no Apex files found" in result.stdout


class TestScanJson:
    def test_envelope(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan")
        assert_json_envelope(data, "scan")
        assert data["schema"] == "apexscan-envelope-v1"
        summary = data["summary"]
        assert summary["files_scanned"] == 3
        assert summary["findings"] == 3
        assert summary["max_severity"] == "critical"
        assert summary["by_severity"] == {"low": 0, "medium": 1, "high": 1, "critical": 1}
        kinds = [r["kind"] for r in data["results"]]
        assert kinds == ["schema-global-describe", "soql-missing-where-or-limit", "soql-unused-fields"]
        ggd = data["results"][0]
        assert ggd["finding_count"] == 2
        assert ggd["findings"][0]["file"].endswith("DescribeUtil.cls")
        assert ggd["findings"][0]["method_name"] == "typeOf"
        assert "remediation_text" not in ggd["findings"][0]

    def test_rule_filter(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "--rule", "ggd", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan")
        assert [r["kind"] for r in data["results"]] == ["schema-global-describe"]

    def test_unknown_rule_is_usage_error(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "--rule", "nope", "."], cwd=apex_project)
        assert result.exit_code == EXIT_USAGE

    def test_min_severity_filter(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "--min-severity", "high", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan")
        assert data["summary"]["by_severity"] == {"low": 0, "medium": 0, "high": 1, "critical": 1}

    def test_fail_on_gate(self, cli_runner, apex_project):
        result = invoke_cli(cli_runner, ["scan", "--fail-on", "critical", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan", exit_code=EXIT_GATE_FAILURE)
        assert data["summary"]["verdict"].startswith("FAIL")

    def test_fail_on_not_reached(self, cli_runner, apex_project):
        target = apex_project / "force-app" / "main" / "default" / "classes" / "DescribeUtil.cls"
        result = invoke_cli(cli_runner, ["scan", "--fail-on", "critical", str(target)], cwd=apex_project)
        assert result.exit_code == 0
        assert "VERDICT: WARN" in result.stdout


class TestConfigIntegration:
    def test_config_disables_rule_and_sets_gate(self, cli_runner, apex_project):
        (apex_project / ".apexscan.yml").write_text(
            "disabled_rules: [soql-missing-where-or-limit]\nfail_on: medium\n"
        )
        result = invoke_cli(cli_runner, ["scan", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan", exit_code=EXIT_GATE_FAILURE)
        assert "soql-missing-where-or-limit" not in [r["kind"] for r in data["results"]]

    def test_explicit_config_option(self, cli_runner, apex_project, tmp_path):
        cfg = tmp_path / "strict.yml"
        cfg.write_text("min_severity: critical\n")
        result = invoke_cli(cli_runner, ["--config", str(cfg), "scan", "."], cwd=apex_project, json_mode=True)
        data = parse_json_output(result, "scan")
        assert data["summary"]["findings"] == 1

    def test_bad_config_exits_usage(self, cli_runner, apex_project):
        (apex_project / ".apexscan.yml").write_text("min_severity: urgent\n")
        result = invoke_cli(cli_runner, ["scan", "."], cwd=apex_project)
        assert result.exit_code == EXIT_USAGE
        assert "min_severity" in result.output

    def test_disabled_rule_requested(self, cli_runner, apex_project):
        (apex_project / ".apexscan.yml").write_text("disabled_rules: [ggd]\n")
        result = invoke_cli(cli_runner, ["scan", "--rule", "ggd", "."], cwd=apex_project)
        assert result.exit_code == EXIT_USAGE


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_unreadable_file_gives_partial_exit(cli_runner, isolated_config):
    import os

    if hasattr(os, "geteuid") and os.geteuid() == 0:
        pytest.skip("root can read any file")
    (isolated_config / "DescribeUtil.cls").write_text(GGD_CLASS)
    locked = isolated_config / "Locked.cls"
    locked.write_text(CLEAN_CLASS)
    locked.chmod(0)
    try:
        result = invoke_cli(cli_runner, ["scan", "."], cwd=isolated_config)
    finally:
        locked.chmod(0o644)
    assert result.exit_code == EXIT_PARTIAL
    assert "Unreadable (1):" in result.stdout


# ===========================================================================
# rules / version
# ===========================================================================


class TestRulesCommand:
    def test_text_listing(self, cli_runner, isolated_config):
        result = invoke_cli(cli_runner, ["rules"], cwd=isolated_config)
        assert result.exit_code == 0
        assert "Rules (3):" in result.stdout
        assert "schema-global-describe" in result.stdout
        assert "soql-unused-fields" in result.stdout

    def test_detail(self, cli_runner, isolated_config):
        result = invoke_cli(cli_runner, ["rules", "--detail"], cwd=isolated_config)
        assert "Bound every SOQL query with a WHERE filter" in result.stdout

    def test_json(self, cli_runner, isolated_config):
        result = invoke_cli(cli_runner, ["rules"], cwd=isolated_config, json_mode=True)
        data = parse_json_output(result, "rules")
        assert_json_envelope(data, "rules")
        assert data["summary"]["count"] == 3
        assert all(r["has_recommender"] for r in data["rules"])


def test_help_lists_commands(cli_runner):
    result = invoke_cli(cli_runner, ["--help"])
    assert result.exit_code == 0
    for name in ("scan", "rules", "mcp"):
        assert name in result.output
