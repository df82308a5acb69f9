"""Structural analysis and conservative rewriting of SOQL query literals.

All functions are pure and accept the literal exactly as it appears in Apex
source, with or without the surrounding ``[`` ``]`` delimiters.  Malformed
input never raises: every function answers with its own "no result" value
(``[]``, ``""``, ``False`` or ``None``).

Keyword searches run over a masked copy of the text in which the contents of
string literals are blanked out, so ``WHERE Name = 'select from'`` never looks
like a nested query.  Parenthesis depth is tracked so that commas and
keywords inside subqueries or function calls are not mistaken for the outer
query's structure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

ELLIPSIS = "..."
DEFAULT_DISPLAY_LENGTH = 200
# Below this normalized length the head/tail preview is never used.
HEAD_TAIL_MIN_LENGTH = 500

_WHITESPACE_RE = re.compile(r"\s+")
_SELECT_RE = re.compile(r"(?<![\w])SELECT(?![\w])", re.IGNORECASE)
_FROM_RE = re.compile(r"(?<![\w])FROM(?![\w])", re.IGNORECASE)
_FROM_OBJECT_RE = re.compile(r"(?<![\w])FROM\s+([A-Za-z_]\w*)", re.IGNORECASE)
_ALIAS_AS_RE = re.compile(r"^(?P<expr>.+?)\s+AS\s+(?P<alias>[A-Za-z_]\w*)$", re.IGNORECASE)
_BARE_ALIAS_RE = re.compile(r"^(?P<expr>\S+)\s+(?P<alias>[A-Za-z_]\w*)$")
_PAREN_SPACE_RE = re.compile(r"\(\s+|\s+\)")

_SYSTEM_FIELDS = frozenset({"id", "count()"})


# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _mask_literals(text: str) -> str:
    """Blank out the contents of single-quoted literals, preserving offsets."""
    out = list(text)
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\":
                out[i] = " "
                if i + 1 < n:
                    out[i + 1] = " "
                i += 2
                continue
            if ch == "'":
                in_string = False
            else:
                out[i] = " "
        elif ch == "'":
            in_string = True
        i += 1
    return "".join(out)


class _Scan:
    """Masked, lower-cased view of a query with per-offset paren depth."""

    __slots__ = ("text", "masked", "lower", "depths")

    def __init__(self, text: str):
        self.text = text
        self.masked = _mask_literals(text)
        self.lower = self.masked.lower()
        depths = []
        depth = 0
        for ch in self.masked:
            if ch == ")":
                depth -= 1
            depths.append(depth)
            if ch == "(":
                depth += 1
        depths.append(depth)
        self.depths = depths

    def find_keyword(
        self,
        keyword: str,
        start: int = 0,
        *,
        depth: int | None = None,
        bounded: bool = True,
    ) -> int:
        """Index of *keyword* at or after *start*, or -1.

        With ``bounded`` the match must be a whole word, case-insensitively.
        Without it the keyword must be written in upper case and may touch
        neighbouring identifier characters (``SELECTId,NameFROMAccount``).
        """
        haystack = self.lower if bounded else self.masked
        needle = keyword.lower() if bounded else keyword.upper()
        pos = start
        while True:
            idx = haystack.find(needle, pos)
            if idx < 0:
                return -1
            pos = idx + 1
            if depth is not None and self.depths[idx] != depth:
                continue
            if bounded:
                before = self.masked[idx - 1] if idx > 0 else ""
                end = idx + len(needle)
                after = self.masked[end] if end < len(self.masked) else ""
                if (before and _is_ident_char(before)) or (after and _is_ident_char(after)):
                    continue
            return idx


@dataclass(frozen=True)
class _Shape:
    """Offsets of the outer SELECT keyword and its matching FROM keyword."""

    select_start: int
    select_end: int
    from_start: int
    from_end: int
    depth: int


def _locate(scan: _Scan) -> _Shape | None:
    select_start = scan.find_keyword("select")
    if select_start < 0:
        select_start = scan.find_keyword("select", bounded=False)
        if select_start < 0:
            return None
        if select_start > 0 and _is_ident_char(scan.masked[select_start - 1]):
            return None
    select_end = select_start + len("select")
    depth = scan.depths[select_start]

    from_start = scan.find_keyword("from", select_end, depth=depth)
    if from_start < 0:
        from_start = scan.find_keyword("from", select_end, depth=depth, bounded=False)
        if from_start < 0:
            return None
    return _Shape(select_start, select_end, from_start, from_start + len("from"), depth)


def _split_top_level(text: str, masked: str) -> list[str]:
    """Split on commas at parenthesis depth zero; items are whitespace-collapsed."""
    items: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(masked):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            items.append(text[start:i])
            start = i + 1
    items.append(text[start:])
    normalized = (_WHITESPACE_RE.sub(" ", item).strip() for item in items)
    return [item for item in normalized if item]


def _select_items(scan: _Scan, shape: _Shape) -> list[str]:
    segment = slice(shape.select_end, shape.from_start)
    return _split_top_level(scan.text[segment], scan.masked[segment])


def _item_expression(item: str) -> tuple[str, str | None]:
    """Split one select-list item into ``(expression, alias)``."""
    if item.startswith("(") or item.lower().startswith("typeof "):
        return item, None
    m = _ALIAS_AS_RE.match(item)
    if m:
        return _PAREN_SPACE_RE.sub(lambda p: p.group(0).strip(), m.group("expr")), m.group("alias")
    tightened = _PAREN_SPACE_RE.sub(lambda p: p.group(0).strip(), item)
    m = _BARE_ALIAS_RE.match(tightened)
    if m:
        return m.group("expr"), m.group("alias")
    return tightened, None


def _field_name(item: str) -> str:
    expression, alias = _item_expression(item)
    return alias or expression


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_fields(text: str) -> list[str]:
    """Return the outer SELECT list in order.

    Aliased items (``COUNT(Id) total``, ``Name AS AccountName``) are reported
    by their alias.  Aggregate calls, relationship paths and subquery items
    each stay a single entry.  Returns ``[]`` unless the text has the
    ``SELECT ... FROM`` shape.
    """
    if not text:
        return []
    scan = _Scan(text)
    shape = _locate(scan)
    if shape is None:
        return []
    return [_field_name(item) for item in _select_items(scan, shape)]


def _count_pairs(events) -> int:
    open_selects = 0
    pairs = 0
    for _pos, kind in sorted(set(events)):
        if kind == "select":
            open_selects += 1
        elif open_selects:
            open_selects -= 1
            pairs += 1
    return pairs


def has_nested_queries(text: str) -> bool:
    """True when more than one SELECT ... FROM pairing occurs in the text.

    Upper-case keywords that run into identifiers (``(SELECTNameFROMContacts)``)
    count as well, matching what ``extract_fields`` accepts.
    """
    if not text:
        return False
    masked = _mask_literals(text)
    events = [(m.start(), "select") for m in _SELECT_RE.finditer(masked)]
    events.extend((m.start(), "from") for m in _FROM_RE.finditer(masked))
    if _count_pairs(events) > 1:
        return True
    events.extend((m.start(), "select") for m in re.finditer("SELECT", masked))
    events.extend((m.start(), "from") for m in re.finditer("FROM", masked))
    return _count_pairs(events) > 1


def has_where_clause(text: str) -> bool:
    """True when the outer query has a WHERE clause (subquery filters do not count)."""
    return _has_outer_clause(text, "where")


def has_limit_clause(text: str) -> bool:
    """True when the outer query has a LIMIT clause (subquery limits do not count)."""
    return _has_outer_clause(text, "limit")


def _has_outer_clause(text: str, keyword: str) -> bool:
    if not text:
        return False
    scan = _Scan(text)
    shape = _locate(scan)
    if shape is None:
        return False
    return scan.find_keyword(keyword, shape.from_end, depth=shape.depth) >= 0


def remove_unused_fields(
    text: str,
    fields_to_remove,
    known_fields=None,
) -> str:
    """Rewrite the outer field list without *fields_to_remove*.

    Everything from the FROM keyword onwards is copied byte for byte.  Only
    fields present in *known_fields* are eligible for removal when it is
    given.  Returns ``""`` when the query contains a subquery, does not have
    the ``SELECT ... FROM`` shape, or would be left with no fields.
    """
    if not text or has_nested_queries(text):
        return ""
    scan = _Scan(text)
    shape = _locate(scan)
    if shape is None:
        return ""

    remove = {f.strip().lower() for f in fields_to_remove or () if f and f.strip()}
    if known_fields:
        known = {f.strip().lower() for f in known_fields if f and f.strip()}
        remove &= known

    items = _select_items(scan, shape)
    kept = []
    for item in items:
        expression, alias = _item_expression(item)
        names = {expression.lower()}
        if alias:
            names.add(alias.lower())
        if names & remove:
            continue
        kept.append(item)
    if not kept:
        return ""

    head = text[: shape.select_end]
    tail = text[shape.from_start :]
    return f"{head} {', '.join(kept)} {tail}"


def exclude_system_fields(fields: set[str]) -> set[str]:
    """Drop ``Id`` and ``COUNT()`` (any case) from *fields* in place and return it."""
    for name in list(fields):
        if _WHITESPACE_RE.sub("", name).lower() in _SYSTEM_FIELDS:
            fields.discard(name)
    return fields


def is_valid_soql(text: str) -> bool:
    """Minimal shape check: a SELECT keyword followed by a FROM keyword."""
    if not text:
        return False
    return _locate(_Scan(text)) is not None


def extract_object_name(text: str) -> str | None:
    """Identifier after the first FROM, scanning left to right.

    For ``SELECT Id, (SELECT Name FROM Contacts) FROM Account`` this is
    ``Contacts``: strip subqueries first when the outer object is needed.
    """
    if not text:
        return None
    masked = _mask_literals(text)
    m = _FROM_OBJECT_RE.search(masked)
    if not m:
        return None
    return text[m.start(1) : m.end(1)]


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def format_query_for_display(text: str, max_length: int = DEFAULT_DISPLAY_LENGTH) -> str:
    """Collapse whitespace and bound the length for display.

    - fits in *max_length*: returned as is
    - *max_length* below the ellipsis length: the ellipsis alone
    - longer than ``max(2 * max_length, HEAD_TAIL_MIN_LENGTH)``: first and
      last *max_length* characters around the ellipsis
    - otherwise: cut to exactly *max_length* characters ending in the ellipsis
    """
    normalized = normalize_whitespace(text)
    if len(normalized) <= max_length:
        return normalized
    if max_length < len(ELLIPSIS):
        return ELLIPSIS
    if len(normalized) > max(2 * max_length, HEAD_TAIL_MIN_LENGTH):
        return normalized[:max_length] + ELLIPSIS + normalized[-max_length:]
    return normalized[: max_length - len(ELLIPSIS)] + ELLIPSIS
