"""Shared test fixtures and helpers for apexscan tests.

Provides:
- CliRunner fixtures: cli_runner, invoke_cli()
- JSON validation helpers: parse_json_output(), assert_json_envelope()
- Apex sources: GGD_CLASS, SOQL_CLASS, UNUSED_FIELDS_CLASS, CLEAN_CLASS
- Project fixture: apex_project (a force-app tree on disk)
"""

from __future__ import annotations

import json
import os

import pytest
from click.testing import CliRunner

# ===========================================================================
# Apex sources
# ===========================================================================

GGD_CLASS = (
    "public with sharing class DescribeUtil {\n"                        # 1
    "    public static Schema.SObjectType typeOf(String name) {\n"      # 2
    "        Map<String, Schema.SObjectType> gd = Schema.getGlobalDescribe();\n"  # 3
    "        return gd.get(name);\n"                                    # 4
    "    }\n"                                                           # 5
    "\n"                                                                # 6
    "    public static void describeAll(List<String> names) {\n"        # 7
    "        for (String n : names) {\n"                                # 8
    "            Schema.SObjectType t = Schema.getGlobalDescribe().get(n);\n"  # 9
    "            System.debug(t);\n"                                    # 10
    "        }\n"                                                       # 11
    "    }\n"                                                           # 12
    "}\n"                                                               # 13
)

SOQL_CLASS = (
    "public class AccountService {\n"                                   # 1
    "    public List<Account> loadAll() {\n"                            # 2
    "        List<Account> accs = [SELECT Id, Name FROM Account];\n"    # 3
    "        return accs;\n"                                            # 4
    "    }\n"                                                           # 5
    "\n"                                                                # 6
    "    public Account loadOne(Id accId) {\n"                          # 7
    "        return [SELECT Id, Name FROM Account WHERE Id = :accId];\n"  # 8
    "    }\n"                                                           # 9
    "\n"                                                                # 10
    "    public List<Contact> sample() {\n"                             # 11
    "        return [SELECT Id FROM Contact LIMIT 10];\n"               # 12
    "    }\n"                                                           # 13
    "}\n"                                                               # 14
)

UNUSED_FIELDS_CLASS = (
    "public class ContactMailer {\n"                                    # 1
    "    public void notify(Set<Id> ids) {\n"                           # 2
    "        List<Contact> cons = [SELECT Id, Email, Phone, Fax FROM Contact WHERE Id IN :ids];\n"  # 3
    "        for (Contact c : cons) {\n"                                # 4
    "            System.debug(c.Email);\n"                              # 5
    "        }\n"                                                       # 6
    "    }\n"                                                           # 7
    "}\n"                                                               # 8
)

CLEAN_CLASS = (
    "public class CleanService {\n"
    "    public Integer add(Integer a, Integer b) {\n"
    "        return a + b;\n"
    "    }\n"
    "}\n"
)


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, cwd=None, json_mode=False):
    """Invoke the apexscan CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["scan", "."])
        cwd: directory to run in
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from apexscan.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)

    old_cwd = os.getcwd()
    try:
        if cwd:
            os.chdir(str(cwd))
        result = runner.invoke(cli, full_args, catch_exceptions=False)
    finally:
        os.chdir(old_cwd)

    return result


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None, exit_code=0):
    """Parse JSON from a CliRunner result, checking the exit code first."""
    assert result.exit_code == exit_code, (
        f"Command {command or '?'} exited {result.exit_code} (expected {exit_code}):\n{result.output}"
    )
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.output[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the apexscan envelope contract."""
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    for key in ("schema", "schema_version", "command", "version", "summary"):
        assert key in data, f"Missing '{key}' key in envelope"
    assert "timestamp" in data.get("_meta", {}), "Missing 'timestamp' in _meta"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    assert isinstance(data["summary"], dict)


# ===========================================================================
# Project fixtures
# ===========================================================================


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Keep a developer's $APEXSCAN_CONFIG or ./.apexscan.yml out of tests."""
    monkeypatch.delenv("APEXSCAN_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def apex_project(isolated_config):
    """A small SFDX-style tree: two flagged classes, one clean class, one non-Apex file."""
    root = isolated_config / "proj"
    classes = root / "force-app" / "main" / "default" / "classes"
    classes.mkdir(parents=True)
    (classes / "DescribeUtil.cls").write_text(GGD_CLASS)
    (classes / "AccountService.cls").write_text(SOQL_CLASS)
    (classes / "CleanService.cls").write_text(CLEAN_CLASS)
    (classes / "CleanService.cls-meta.xml").write_text("<ApexClass/>\n")
    (root / "README.md").write_text("# demo\n")
    return root
