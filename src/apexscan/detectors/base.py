from __future__ import annotations

from abc import ABC, abstractmethod

from apexscan.models import AntipatternKind, Finding


class Detector(ABC):
    """Base class for antipattern detectors.

    ``detect`` must be pure: the same inputs give the same findings, and no
    state survives between calls.  Parse failures are handled inside
    ``detect`` and yield an empty list.
    """

    @property
    @abstractmethod
    def kind(self) -> AntipatternKind: ...

    @abstractmethod
    def detect(self, class_name: str, source_text: str) -> list[Finding]:
        """Return findings for one file, in source order."""
        ...


def context_lines(source_text: str, line_number: int, radius: int = 3) -> str:
    """Raw source lines around *line_number* (1-indexed), clipped to the file."""
    lines = source_text.split("\n")
    target = line_number - 1
    start = max(0, target - radius)
    end = min(len(lines) - 1, target + radius)
    return "\n".join(lines[start : end + 1])
