"""Detector for SOQL literals that select fields the method never reads.

Each extra field costs heap, CPU and view-state.  Only queries whose result
variable stays inside its method are judged; a proposed trimmed query is
attached when it can be produced safely.
"""

from __future__ import annotations

import logging

from apexscan.detectors.base import Detector
from apexscan.detectors.field_usage import collect_field_usage, is_field_used
from apexscan.index.parser import ApexParseError
from apexscan.models import AntipatternKind, Finding, QueryInfo, Severity
from apexscan.soql.extraction import extract_queries
from apexscan.soql.parser import (
    DEFAULT_DISPLAY_LENGTH,
    exclude_system_fields,
    extract_fields,
    format_query_for_display,
    has_nested_queries,
    remove_unused_fields,
)

log = logging.getLogger(__name__)


class SOQLUnusedFieldsDetector(Detector):
    def __init__(self, max_query_length: int = DEFAULT_DISPLAY_LENGTH, *, strict_parse: bool = False):
        self.max_query_length = max_query_length
        self.strict_parse = strict_parse

    @property
    def kind(self) -> AntipatternKind:
        return AntipatternKind.SOQL_UNUSED_FIELDS

    def detect(self, class_name: str, source_text: str) -> list[Finding]:
        try:
            queries = extract_queries(source_text, strict=self.strict_parse)
        except ApexParseError as exc:
            log.warning("%s: skipping %s: %s", self.kind.value, class_name, exc)
            return []
        except Exception:
            log.exception("%s: query extraction failed for %s", self.kind.value, class_name)
            return []

        lines = source_text.split("\n")
        findings = []
        for query in queries:
            finding = self._check(class_name, query, lines)
            if finding is not None:
                findings.append(finding)
        return findings

    def _check(self, class_name: str, query: QueryInfo, lines: list[str]) -> Finding | None:
        if query.assigned_to is None or query.scope_lines is None:
            return None
        if has_nested_queries(query.text):
            return None
        fields = extract_fields(query.text)
        # aggregates, functions and TYPEOF blocks are read through aliases
        if not fields or any("(" in f or " " in f for f in fields):
            return None

        start, end = query.scope_lines
        usage = collect_field_usage("\n".join(lines[start - 1 : end]), query.assigned_to)
        if usage is None:
            log.debug("%s: %s escapes %s, not judged", class_name, query.assigned_to, query.method_name)
            return None

        candidates = exclude_system_fields(set(fields))
        unused = [f for f in fields if f in candidates and not is_field_used(f, usage)]
        if not unused:
            return None
        rewritten = remove_unused_fields(query.text, unused, fields)
        if not rewritten:
            return None

        return Finding(
            class_name=class_name,
            method_name=query.method_name,
            line_number=query.line_number,
            code_snippet=format_query_for_display(query.text, self.max_query_length),
            severity=Severity.LOW,
            code_after=format_query_for_display(rewritten, self.max_query_length),
        )
