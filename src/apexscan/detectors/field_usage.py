"""Which fields of a queried record variable does a method body read?

Heuristic and conservative: when the variable is used in any way other than
plain field access, iteration, null checks or ``size()``/``isEmpty()``, the
answer is ``None`` ("cannot tell") and callers must not report anything.
"""

from __future__ import annotations

import re

_SAFE_TERMINAL_CALLS = frozenset({"size", "isempty"})

_QUERY_OPEN_RE = re.compile(r"\[\s*(?:SELECT|FIND)\b", re.IGNORECASE)


def mask_code(text: str) -> str:
    """Blank out string literals and comments, keeping offsets and newlines."""
    out = list(text)
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue
        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            end = n if end < 0 else end + 2
            for j in range(i, end):
                if text[j] != "\n":
                    out[j] = " "
            i = end
            continue
        if ch == "'":
            i += 1
            while i < n and text[i] != "'" and text[i] != "\n":
                if text[i] == "\\" and i + 1 < n:
                    out[i] = " "
                    i += 1
                out[i] = " "
                i += 1
            i += 1
            continue
        i += 1
    return "".join(out)


def query_regions(masked: str) -> list[tuple[int, int]]:
    regions = []
    for m in _QUERY_OPEN_RE.finditer(masked):
        depth = 0
        for j in range(m.start(), len(masked)):
            if masked[j] == "[":
                depth += 1
            elif masked[j] == "]":
                depth -= 1
                if depth == 0:
                    regions.append((m.start(), j + 1))
                    break
        else:
            regions.append((m.start(), len(masked)))
    return regions


def _in_regions(pos: int, regions) -> bool:
    return any(start <= pos < end for start, end in regions)


def _access_re(name: str) -> re.Pattern:
    return re.compile(
        rf"(?<![\w.]){re.escape(name)}"
        r"(?:\s*\[[^\]]*\]|\s*\.\s*get\s*\([^()]*\))?"
        r"\s*\.\s*(?P<path>\w+(?:\s*\.\s*\w+)*)(?P<call>\s*\()?",
        re.IGNORECASE,
    )


def _loop_vars(masked: str, name: str) -> list[str]:
    pattern = re.compile(
        rf"\bfor\s*\(\s*[\w.<>,\s]+?\s(\w+)\s*:\s*{re.escape(name)}\s*\)",
        re.IGNORECASE,
    )
    return [m.group(1) for m in pattern.finditer(masked)]


def _is_type_position(masked: str, start: int, end: int) -> bool:
    before = masked[:start].rstrip()
    after = masked[end:]
    if re.match(r"\s+[A-Za-z_]", after) and not re.match(r"\s+(?:instanceof)\b", after, re.IGNORECASE):
        return True
    if before.endswith("<") or after.lstrip().startswith(">"):
        return True
    return bool(re.search(r"\bnew$", before, re.IGNORECASE))


def _uses_of(masked: str, name: str, regions, paths: set[str]) -> bool:
    """Record field paths read through *name*; False when *name* escapes."""
    safe_starts: set[int] = set()

    for m in _access_re(name).finditer(masked):
        segments = [s.strip() for s in m.group("path").split(".")]
        if m.group("call"):
            method = segments.pop()
            if not segments and method.lower() not in _SAFE_TERMINAL_CALLS:
                continue
        if segments:
            paths.add(".".join(segments).lower())
        safe_starts.add(m.start())

    escaped = re.escape(name)
    for pattern in (
        rf"(?<![\w.]){escaped}\s*=(?!=)",
        rf"(?<![\w.]){escaped}\s*[!=]=\s*null\b",
        rf"\bnull\s*[!=]=\s*({escaped})(?![\w])",
        rf":\s*({escaped})\s*\)",
        rf"\bfor\s*\([^;:)]*?\s({escaped})\s*:",
    ):
        for m in re.finditer(pattern, masked, re.IGNORECASE):
            safe_starts.add(m.start(1) if m.groups() else m.start())

    for m in re.finditer(rf"(?<![\w.]){escaped}(?![\w])", masked, re.IGNORECASE):
        pos = m.start()
        if pos in safe_starts:
            continue
        if _in_regions(pos, regions):
            if not masked[:pos].rstrip().endswith(":"):
                continue
            # bind variable without a field path: the query reads Ids only
            if not re.match(r"\s*\.", masked[m.end() :]):
                continue
            return False
        if _is_type_position(masked, pos, m.end()):
            continue
        return False
    return True


def collect_field_usage(scope_text: str, variable: str) -> set[str] | None:
    """Lower-cased field paths read from *variable* inside *scope_text*.

    Loop variables iterating *variable* are followed too.  Returns ``None``
    when the variable escapes, so unused fields cannot be established.
    """
    masked = mask_code(scope_text)
    regions = query_regions(masked)
    paths: set[str] = set()
    names = [variable]
    seen = {variable.lower()}
    while names:
        name = names.pop()
        if not _uses_of(masked, name, regions, paths):
            return None
        for loop_var in _loop_vars(masked, name):
            if loop_var.lower() not in seen:
                seen.add(loop_var.lower())
                names.append(loop_var)
    return paths


def is_field_used(field_name: str, paths: set[str]) -> bool:
    """A field counts as read when an access path equals, extends or prefixes it."""
    target = field_name.lower()
    for path in paths:
        if path == target or path.startswith(target + ".") or target.startswith(path + "."):
            return True
    return False
