"""Core data model: severities, antipattern kinds, findings and results.

Severity and AntipatternKind are process-wide constants.  QueryInfo,
Finding and AntipatternResult are created fresh for every scan call and are
immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Ordered finding severity: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Case-insensitive lookup by value; raises ValueError when unknown."""
        if isinstance(value, Severity):
            return value
        return cls(str(value).strip().lower())

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


_SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


class AntipatternKind(str, Enum):
    """Stable identifier of one detection rule."""

    GGD = "schema-global-describe"
    SOQL_NO_WHERE_LIMIT = "soql-missing-where-or-limit"
    SOQL_UNUSED_FIELDS = "soql-unused-fields"

    @classmethod
    def parse(cls, value: str | AntipatternKind) -> AntipatternKind:
        """Resolve a kind from its value (``soql-unused-fields``) or member name (``GGD``)."""
        if isinstance(value, AntipatternKind):
            return value
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            pass
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"Unknown antipattern kind: {value}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class QueryInfo:
    """Structural facts about one embedded SOQL literal."""

    text: str
    method_name: str | None
    line_number: int
    has_where: bool
    has_limit: bool
    loop_depth: int = 0
    assigned_to: str | None = None
    scope_lines: tuple[int, int] | None = None


@dataclass(frozen=True)
class Finding:
    """One located occurrence of an antipattern.

    Never carries remediation text; that lives on AntipatternResult.
    ``code_after`` is an optional occurrence-level rewrite proposal.
    """

    class_name: str
    method_name: str | None
    line_number: int
    code_snippet: str
    severity: Severity
    code_after: str | None = None

    def to_dict(self) -> dict:
        out = {
            "class_name": self.class_name,
            "method_name": self.method_name,
            "line_number": self.line_number,
            "code_snippet": self.code_snippet,
            "severity": self.severity.value,
        }
        if self.code_after is not None:
            out["code_after"] = self.code_after
        return out


@dataclass(frozen=True)
class AntipatternResult:
    """Findings of one rule grouped under a single remediation text."""

    kind: AntipatternKind
    remediation_text: str
    findings: tuple[Finding, ...] = field(default_factory=tuple)

    @property
    def max_severity(self) -> Severity | None:
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "remediation_text": self.remediation_text,
            "findings": [f.to_dict() for f in self.findings],
        }
