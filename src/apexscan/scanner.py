"""Scan a set of Apex files against a registry and aggregate per rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from apexscan.antipatterns.registry import AntipatternRegistry
from apexscan.index.discovery import class_name_for, discover_apex_files
from apexscan.models import AntipatternKind, Finding, Severity

log = logging.getLogger(__name__)


@dataclass
class RuleReport:
    """All findings of one rule across the scanned files."""

    kind: AntipatternKind
    remediation_text: str
    findings: list[tuple[str, Finding]] = field(default_factory=list)

    @property
    def max_severity(self) -> Severity | None:
        if not self.findings:
            return None
        return max(f.severity for _, f in self.findings)

    def to_dict(self) -> dict:
        items = []
        for path, finding in self.findings:
            d = finding.to_dict()
            d["file"] = path
            items.append(d)
        return {
            "kind": self.kind.value,
            "remediation_text": self.remediation_text,
            "finding_count": len(items),
            "findings": items,
        }


@dataclass
class ScanReport:
    files: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    rules: list[RuleReport] = field(default_factory=list)

    @property
    def finding_count(self) -> int:
        return sum(len(r.findings) for r in self.rules)

    @property
    def max_severity(self) -> Severity | None:
        levels = [r.max_severity for r in self.rules if r.max_severity is not None]
        return max(levels) if levels else None

    def severity_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in Severity}
        for rule in self.rules:
            for _, finding in rule.findings:
                counts[finding.severity.value] += 1
        return counts


def _display_path(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


def collect_files(paths, extensions) -> list[Path]:
    """Expand file and directory arguments into a de-duplicated, ordered file list."""
    seen = set()
    files = []
    for p in paths:
        for f in discover_apex_files(p, extensions):
            if f not in seen:
                seen.add(f)
                files.append(f)
    return files


def scan_files(
    registry: AntipatternRegistry,
    files,
    *,
    kinds=None,
    min_severity: Severity = Severity.LOW,
    base: Path | None = None,
) -> ScanReport:
    """Scan *files* and merge the per-file results into one report per rule.

    Rules appear in registry order, findings in file then source order.
    Files that cannot be read are recorded in ``unreadable``.
    """
    base = Path(base).resolve() if base else Path.cwd().resolve()
    report = ScanReport()
    by_kind: dict[AntipatternKind, RuleReport] = {}
    for module in registry:
        if kinds and module.kind not in kinds:
            continue
        rule = RuleReport(module.kind, module.fix_instruction())
        by_kind[module.kind] = rule
        report.rules.append(rule)

    for path in files:
        path = Path(path)
        shown = _display_path(path, base)
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log.warning("Cannot read %s: %s", shown, exc)
            report.unreadable.append(shown)
            continue
        report.files.append(shown)
        for result in registry.scan(class_name_for(path), text, kinds):
            rule = by_kind.get(result.kind)
            if rule is None:
                continue
            for finding in result.findings:
                if finding.severity >= min_severity:
                    rule.findings.append((shown, finding))
    return report
