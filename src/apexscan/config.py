"""Scan configuration loaded from ``.apexscan.yml``.

Lookup order: explicit path, ``$APEXSCAN_CONFIG``, ``.apexscan.yml`` or
``.apexscan.yaml`` in the working directory, built-in defaults.

Example::

    context_lines: 3
    max_query_length: 200
    disabled_rules: [soql-unused-fields]
    min_severity: medium
    fail_on: critical
    strict_parse: false
    file_extensions: [.cls, .trigger]
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from apexscan.exit_codes import ConfigError
from apexscan.models import AntipatternKind, Severity

log = logging.getLogger(__name__)

CONFIG_ENV_VAR = "APEXSCAN_CONFIG"
CONFIG_FILENAMES = (".apexscan.yml", ".apexscan.yaml")


@dataclass(frozen=True)
class ScanConfig:
    context_lines: int = 3
    max_query_length: int = 200
    disabled_rules: frozenset[AntipatternKind] = field(default_factory=frozenset)
    min_severity: Severity = Severity.LOW
    fail_on: Severity | None = None
    strict_parse: bool = False
    file_extensions: tuple[str, ...] = (".cls", ".trigger")
    source: str | None = None

    def is_enabled(self, kind: AntipatternKind) -> bool:
        return kind not in self.disabled_rules


_KEYS = frozenset(
    {"context_lines", "max_query_length", "disabled_rules", "min_severity", "fail_on", "strict_parse", "file_extensions"}
)


def _int_option(data: dict, key: str, default: int, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{key} must be an integer >= {minimum}, got {value!r}")
    return value


def _severity_option(data: dict, key: str, default):
    value = data.get(key, default)
    if value is None or isinstance(value, Severity):
        return value
    try:
        return Severity.parse(value)
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        raise ConfigError(f"{key} must be one of {choices}, got {value!r}") from None


def _list_option(data: dict, key: str) -> list:
    value = data.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list, got {type(value).__name__}")
    return value


def config_from_dict(data: dict | None, source: str | None = None) -> ScanConfig:
    """Validate a parsed mapping and build a ScanConfig."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source or 'config'}: top level must be a mapping")
    unknown = sorted(set(data) - _KEYS)
    if unknown:
        raise ConfigError(f"{source or 'config'}: unknown option(s): {', '.join(unknown)}")

    disabled = set()
    for name in _list_option(data, "disabled_rules"):
        try:
            disabled.add(AntipatternKind.parse(name))
        except ValueError as exc:
            raise ConfigError(str(exc)) from None

    extensions = []
    for ext in _list_option(data, "file_extensions") or [".cls", ".trigger"]:
        ext = str(ext).strip().lower()
        extensions.append(ext if ext.startswith(".") else f".{ext}")

    strict = data.get("strict_parse", False)
    if not isinstance(strict, bool):
        raise ConfigError(f"strict_parse must be true or false, got {strict!r}")

    return ScanConfig(
        context_lines=_int_option(data, "context_lines", 3, 0),
        max_query_length=_int_option(data, "max_query_length", 200, 1),
        disabled_rules=frozenset(disabled),
        min_severity=_severity_option(data, "min_severity", Severity.LOW),
        fail_on=_severity_option(data, "fail_on", None),
        strict_parse=strict,
        file_extensions=tuple(extensions),
        source=source,
    )


def find_config_file(cwd: Path | None = None) -> Path | None:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    base = Path(cwd) if cwd else Path.cwd()
    for name in CONFIG_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | Path | None = None) -> ScanConfig:
    """Load and validate the scan configuration; defaults when no file exists."""
    config_path = Path(path) if path else find_config_file()
    if config_path is None:
        return ScanConfig()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc
    log.debug("Loaded config from %s", config_path)
    return config_from_dict(data, source=str(config_path))
