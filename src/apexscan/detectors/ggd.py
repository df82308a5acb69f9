"""Detector for ``Schema.getGlobalDescribe()`` calls.

The global describe materializes a token for every sObject in the org; its
cost grows with org size and is multiplied when the call sits in a loop.
"""

from __future__ import annotations

import logging

from apexscan.detectors.base import Detector, context_lines
from apexscan.detectors.traversal import CALL_NODE_TYPES, call_parts, walk
from apexscan.index.parser import ApexParseError, parse_source
from apexscan.models import AntipatternKind, Finding, Severity

log = logging.getLogger(__name__)

DISALLOWED_RECEIVER = "schema"
DISALLOWED_MEMBER = "getGlobalDescribe"


class GGDDetector(Detector):
    def __init__(self, context_radius: int = 3, *, strict_parse: bool = False):
        self.context_radius = context_radius
        self.strict_parse = strict_parse

    @property
    def kind(self) -> AntipatternKind:
        return AntipatternKind.GGD

    def detect(self, class_name: str, source_text: str) -> list[Finding]:
        try:
            parsed = parse_source(source_text, strict=self.strict_parse)
            return self._collect(class_name, source_text, parsed)
        except ApexParseError as exc:
            log.warning("%s: skipping %s: %s", self.kind.value, class_name, exc)
            return []
        except Exception:
            log.exception("%s: tree walk failed for %s", self.kind.value, class_name)
            return []

    def _collect(self, class_name, source_text, parsed) -> list[Finding]:
        findings = []
        for node, ctx in walk(parsed.root, parsed.source):
            if node.type not in CALL_NODE_TYPES:
                continue
            parts = call_parts(node, parsed.source)
            if parts is None:
                continue
            qualifier, member = parts
            if member != DISALLOWED_MEMBER:
                continue
            if not f"{qualifier}.".lower().startswith(f"{DISALLOWED_RECEIVER}."):
                continue
            line = node.start_point[0] + 1
            findings.append(
                Finding(
                    class_name=class_name,
                    method_name=ctx.method_name,
                    line_number=line,
                    code_snippet=context_lines(source_text, line, self.context_radius),
                    severity=Severity.HIGH if ctx.loop_depth > 0 else Severity.MEDIUM,
                )
            )
        return findings
