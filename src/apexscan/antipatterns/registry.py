"""Ordered collection of antipattern modules.

The registry is built once at startup (see ``build_default_registry``) and
treated as read-only afterwards.  ``register`` is not synchronized: calling
it while another thread scans is a caller error.
"""

from __future__ import annotations

from apexscan.antipatterns.module import AntipatternModule
from apexscan.catalog.remediations import get_recommender
from apexscan.config import ScanConfig
from apexscan.detectors.ggd import GGDDetector
from apexscan.detectors.soql_no_where_limit import SOQLNoWhereLimitDetector
from apexscan.detectors.soql_unused_fields import SOQLUnusedFieldsDetector
from apexscan.models import AntipatternKind, AntipatternResult


class AntipatternRegistry:
    def __init__(self, modules=()):
        self._modules: dict[AntipatternKind, AntipatternModule] = {}
        for module in modules:
            self.register(module)

    def register(self, module: AntipatternModule) -> None:
        """Insert *module*, replacing (in place) any module of the same kind."""
        self._modules[module.kind] = module

    def get(self, kind: AntipatternKind) -> AntipatternModule | None:
        return self._modules.get(kind)

    def kinds(self) -> list[AntipatternKind]:
        return list(self._modules)

    def __iter__(self):
        return iter(list(self._modules.values()))

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, kind) -> bool:
        return kind in self._modules

    def scan(self, class_name: str, source_text: str, kinds=None) -> list[AntipatternResult]:
        """Scan one file against every (or the selected) module, in registration order."""
        selected = set(kinds) if kinds else None
        return [
            module.scan(class_name, source_text)
            for module in self
            if selected is None or module.kind in selected
        ]


def default_modules(config: ScanConfig | None = None) -> list[AntipatternModule]:
    config = config or ScanConfig()
    detectors = [
        GGDDetector(config.context_lines, strict_parse=config.strict_parse),
        SOQLNoWhereLimitDetector(config.max_query_length, strict_parse=config.strict_parse),
        SOQLUnusedFieldsDetector(config.max_query_length, strict_parse=config.strict_parse),
    ]
    return [
        AntipatternModule(detector, get_recommender(detector.kind))
        for detector in detectors
        if config.is_enabled(detector.kind)
    ]


def build_default_registry(config: ScanConfig | None = None) -> AntipatternRegistry:
    """Registry with every built-in rule enabled by *config*."""
    return AntipatternRegistry(default_modules(config))
