"""Detector for SOQL literals that have neither a WHERE nor a LIMIT clause.

Such a query reads every row of the object and fails outright once the org
crosses the governor limit on query rows.
"""

from __future__ import annotations

import logging

from apexscan.detectors.base import Detector
from apexscan.index.parser import ApexParseError
from apexscan.models import AntipatternKind, Finding, Severity
from apexscan.soql.extraction import extract_queries
from apexscan.soql.parser import DEFAULT_DISPLAY_LENGTH, format_query_for_display

log = logging.getLogger(__name__)


class SOQLNoWhereLimitDetector(Detector):
    def __init__(self, max_query_length: int = DEFAULT_DISPLAY_LENGTH, *, strict_parse: bool = False):
        self.max_query_length = max_query_length
        self.strict_parse = strict_parse

    @property
    def kind(self) -> AntipatternKind:
        return AntipatternKind.SOQL_NO_WHERE_LIMIT

    def detect(self, class_name: str, source_text: str) -> list[Finding]:
        try:
            queries = extract_queries(source_text, strict=self.strict_parse)
        except ApexParseError as exc:
            log.warning("%s: skipping %s: %s", self.kind.value, class_name, exc)
            return []
        except Exception:
            log.exception("%s: query extraction failed for %s", self.kind.value, class_name)
            return []

        return [
            Finding(
                class_name=class_name,
                method_name=q.method_name,
                line_number=q.line_number,
                code_snippet=format_query_for_display(q.text, self.max_query_length),
                severity=Severity.CRITICAL,
            )
            for q in queries
            if not q.has_where and not q.has_limit
        ]
