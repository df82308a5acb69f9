"""Apex file discovery using git ls-files with fallback to os.walk."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".cls", ".trigger")

# Directories to skip during os.walk fallback
SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "node_modules", "__pycache__",
    ".sfdx", ".sf", ".localdevserver",
    "venv", ".venv", "dist", "build", "coverage",
})

MAX_FILE_SIZE = 1_000_000  # 1MB


def _git_ls_files(root: Path) -> list[str] | None:
    """Try to list files using git ls-files. Returns None if git unavailable."""
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=str(root),
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return None
        return [p.strip() for p in result.stdout.splitlines() if p.strip()]
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _walk_files(root: Path) -> list[str]:
    result = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for fname in filenames:
            full = os.path.join(dirpath, fname)
            try:
                rel = os.path.relpath(full, root).replace("\\", "/")
            except (ValueError, OSError):
                continue
            result.append(rel)
    return result


def _filter_files(paths: list[str], root: Path, extensions) -> list[str]:
    """Keep Apex sources under the size limit."""
    wanted = tuple(e.lower() for e in extensions)
    kept = []
    for rel_path in paths:
        if not rel_path.lower().endswith(wanted):
            continue
        full_path = root / rel_path
        try:
            if full_path.stat().st_size > MAX_FILE_SIZE:
                log.warning("Skipping %s: larger than %d bytes", rel_path, MAX_FILE_SIZE)
                continue
        except OSError:
            continue
        kept.append(rel_path)
    return kept


def discover_apex_files(root, extensions=DEFAULT_EXTENSIONS) -> list[Path]:
    """Discover Apex class and trigger files under *root*.

    Uses git ls-files when available, falls back to os.walk.
    A file path is returned as-is when it has a matching extension.
    Returns a sorted list of absolute paths.
    """
    root = Path(root).resolve()
    if root.is_file():
        return [root] if root.name.lower().endswith(tuple(e.lower() for e in extensions)) else []

    raw = _git_ls_files(root)
    if raw is None:
        raw = _walk_files(root)
    raw = [p.replace("\\", "/") for p in raw]

    filtered = _filter_files(raw, root, extensions)
    filtered.sort()
    return [root / rel for rel in filtered]


def class_name_for(path) -> str:
    """The Apex class (or trigger) name is the file stem."""
    return Path(path).stem
