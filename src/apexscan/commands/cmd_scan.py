"""Scan Apex classes and triggers for antipatterns."""

from __future__ import annotations

import click

from apexscan.antipatterns.registry import build_default_registry
from apexscan.cli import get_config
from apexscan.exit_codes import EXIT_PARTIAL, ConfigError, GateFailureError
from apexscan.models import AntipatternKind, Severity
from apexscan.output.formatter import format_table, indent, json_envelope, loc, to_json
from apexscan.scanner import collect_files, scan_files

_SEVERITY_CHOICES = [s.value for s in Severity]


def _parse_kinds(values) -> set[AntipatternKind] | None:
    if not values:
        return None
    kinds = set()
    for value in values:
        try:
            kinds.add(AntipatternKind.parse(value))
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--rule") from None
    return kinds


def _verdict(report, fail_on: Severity | None) -> str:
    if not report.files and not report.unreadable:
        return "no Apex files found"
    total = report.finding_count
    if total == 0:
        return "PASS - no antipatterns in {} file(s)".format(len(report.files))
    counts = ", ".join(
        "{} {}".format(n, sev) for sev, n in reversed(list(report.severity_counts().items())) if n
    )
    label = "FAIL" if fail_on is not None and report.max_severity >= fail_on else "WARN"
    return "{} - {} finding(s) in {} file(s) ({})".format(label, total, len(report.files), counts)


def _summary(report, verdict: str) -> dict:
    return {
        "verdict": verdict,
        "files_scanned": len(report.files),
        "files_unreadable": len(report.unreadable),
        "findings": report.finding_count,
        "max_severity": report.max_severity.value if report.max_severity else None,
        "by_severity": report.severity_counts(),
    }


def _print_text(report, verdict: str, detail: bool) -> None:
    click.echo("VERDICT: {}".format(verdict))
    for rule in report.rules:
        if not rule.findings:
            continue
        click.echo()
        click.echo("=== {} ({}) ===".format(rule.kind.value, len(rule.findings)))
        click.echo(indent(rule.remediation_text) if detail else indent(rule.remediation_text.splitlines()[0]))
        click.echo()
        rows = [
            [f.severity.value.upper(), loc(path, f.line_number), f.method_name or "-"]
            for path, f in rule.findings
        ]
        click.echo(indent(format_table(["SEVERITY", "LOCATION", "METHOD"], rows)))
        if detail:
            for path, f in rule.findings:
                click.echo()
                click.echo("  {}".format(loc(path, f.line_number)))
                click.echo(indent(f.code_snippet, 2))
                if f.code_after:
                    click.echo("    -> {}".format(f.code_after))
    if report.unreadable:
        click.echo()
        click.echo("Unreadable ({}):".format(len(report.unreadable)))
        for path in report.unreadable:
            click.echo("  {}".format(path))


@click.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--rule", "rule_names", multiple=True,
              help="Only run this rule (kind value or name). Repeatable.")
@click.option("--min-severity", type=click.Choice(_SEVERITY_CHOICES, case_sensitive=False), default=None,
              help="Hide findings below this severity.")
@click.option("--fail-on", type=click.Choice(_SEVERITY_CHOICES, case_sensitive=False), default=None,
              help="Exit 5 when any finding is at or above this severity (CI gate).")
@click.option("--detail", is_flag=True, help="Show full remediation text and code snippets.")
@click.pass_context
def scan(ctx, paths, rule_names, min_severity, fail_on, detail):
    """Scan Apex files (or directories) for antipatterns.

    Findings are grouped per rule: the fix instruction is printed once,
    followed by one row per occurrence.  Defaults to the current directory.
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False
    config = get_config(ctx)

    kinds = _parse_kinds(rule_names)
    for kind in kinds or ():
        if not config.is_enabled(kind):
            raise ConfigError("rule {} is disabled in {}".format(kind.value, config.source or "config"))
    min_sev = Severity.parse(min_severity) if min_severity else config.min_severity
    gate = Severity.parse(fail_on) if fail_on else config.fail_on

    registry = build_default_registry(config)
    files = collect_files(paths or (".",), config.file_extensions)
    report = scan_files(registry, files, kinds=kinds, min_severity=min_sev)
    verdict = _verdict(report, gate)

    if json_mode:
        click.echo(to_json(json_envelope(
            "scan",
            summary=_summary(report, verdict),
            results=[r.to_dict() for r in report.rules],
            unreadable=report.unreadable,
        )))
    else:
        _print_text(report, verdict, detail)

    if gate is not None and report.max_severity is not None and report.max_severity >= gate:
        raise GateFailureError("findings at or above {} severity".format(gate.value))
    if report.unreadable:
        ctx.exit(EXIT_PARTIAL)
