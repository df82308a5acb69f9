"""Binding of a detector to its remediation text.

A module is the seam that enforces "many findings, one fix": the
remediation belongs to the rule, and is attached once per scan result.
"""

from __future__ import annotations

from apexscan.catalog.remediations import Recommender, generic_fix_instruction
from apexscan.detectors.base import Detector
from apexscan.models import AntipatternKind, AntipatternResult


class AntipatternConfigError(ValueError):
    """Raised when a module is wired with a recommender for another kind."""


class AntipatternModule:
    def __init__(self, detector: Detector, recommender: Recommender | None = None):
        if recommender is not None and recommender.kind != detector.kind:
            raise AntipatternConfigError(
                "Detector and recommender antipattern kinds must match: "
                f"detector={detector.kind.value}, recommender={getattr(recommender.kind, 'value', recommender.kind)}"
            )
        self._detector = detector
        self._recommender = recommender

    @property
    def kind(self) -> AntipatternKind:
        return self._detector.kind

    @property
    def detector(self) -> Detector:
        return self._detector

    def has_recommender(self) -> bool:
        return self._recommender is not None

    def fix_instruction(self) -> str:
        if self._recommender is not None:
            text = self._recommender.fix_instruction()
            if text:
                return text
        return generic_fix_instruction(self.kind)

    def scan(self, class_name: str, source_text: str) -> AntipatternResult:
        findings = self._detector.detect(class_name, source_text)
        return AntipatternResult(
            kind=self.kind,
            remediation_text=self.fix_instruction(),
            findings=tuple(findings),
        )

    def __repr__(self) -> str:
        return f"AntipatternModule({self.kind.value}, recommender={self.has_recommender()})"
