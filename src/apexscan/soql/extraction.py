"""Locate SOQL literals in an Apex parse tree.

A literal is any query node the grammar exposes whose text has the
``SELECT ... FROM`` shape (SOSL ``FIND`` literals are skipped).  Each literal
becomes one QueryInfo, in source order, with the surrounding brackets
stripped from its text.

Grammars without query nodes (the Java alias) get the literals from the
source text instead; method and loop context still come from the tree.
"""

from __future__ import annotations

import logging
import re

from apexscan.detectors.field_usage import mask_code, query_regions
from apexscan.detectors.traversal import WalkContext, walk
from apexscan.index.parser import ApexParseError, node_text, parse_source
from apexscan.models import QueryInfo
from apexscan.soql.parser import has_limit_clause, has_where_clause, is_valid_soql

log = logging.getLogger(__name__)

QUERY_NODE_TYPES = frozenset({"query_expression", "soql_query_expression", "soql_query_body", "soql_literal"})

_ASSIGN_TAIL_RE = re.compile(r"(?<![=!<>])\b([A-Za-z_]\w*)\s*=\s*$")
_FOR_TAIL_RE = re.compile(r"\bfor\s*\(\s*[\w.<>,\s]+?\s([A-Za-z_]\w*)\s*:\s*$", re.IGNORECASE)


def _is_query_node(node) -> bool:
    return node.type in QUERY_NODE_TYPES or node.type.endswith("query_expression")


def _strip_brackets(text: str) -> str:
    text = text.strip()
    if text.startswith("[") and text.endswith("]"):
        return text[1:-1].strip()
    return text


def _assigned_name(node, source: bytes) -> str | None:
    """Variable receiving the literal's rows, if any."""
    parent = node.parent
    if parent is None:
        return None
    if parent.type == "variable_declarator":
        target = parent.child_by_field_name("name")
    elif parent.type == "assignment_expression":
        target = parent.child_by_field_name("left")
    elif parent.type == "enhanced_for_statement":
        target = parent.child_by_field_name("name")
    else:
        return None
    if target is None or target.type != "identifier":
        return None
    return node_text(target, source).strip() or None


def _assigned_name_from_text(masked: str, start: int) -> str | None:
    line_start = masked.rfind(";", 0, start)
    brace = masked.rfind("{", 0, start)
    head = masked[max(line_start, brace) + 1 : start]
    m = _FOR_TAIL_RE.search(head) or _ASSIGN_TAIL_RE.search(head)
    return m.group(1) if m else None


def _query_info(text, ctx: WalkContext, line: int, assigned: str | None) -> QueryInfo:
    return QueryInfo(
        text=text,
        method_name=ctx.method_name,
        line_number=line,
        has_where=has_where_clause(text),
        has_limit=has_limit_clause(text),
        loop_depth=ctx.loop_depth,
        assigned_to=assigned,
        scope_lines=ctx.method_lines,
    )


def queries_from_tree(parsed) -> list[QueryInfo]:
    queries = []
    source = parsed.source
    for node, ctx in walk(parsed.root, source, stop_at=_is_query_node):
        if not _is_query_node(node):
            continue
        text = _strip_brackets(node_text(node, source))
        if not is_valid_soql(text):
            continue
        queries.append(_query_info(text, ctx, node.start_point[0] + 1, _assigned_name(node, source)))
    return queries


def _contexts_at(parsed, offsets: list[int]) -> list[WalkContext]:
    """Context of the deepest node covering each byte offset."""
    found = [WalkContext() for _ in offsets]
    for node, ctx in walk(parsed.root, parsed.source):
        for i, off in enumerate(offsets):
            if node.start_byte <= off < node.end_byte:
                found[i] = ctx
    return found


def queries_from_text(parsed) -> list[QueryInfo]:
    """Bracketed SELECT literals found lexically, placed using the tree."""
    text = parsed.source.decode("utf-8", errors="replace")
    masked = mask_code(text)
    literals = []
    for start, end in query_regions(masked):
        body = _strip_brackets(text[start:end])
        if is_valid_soql(body):
            literals.append((start, body))
    if not literals:
        return []
    offsets = [len(text[:start].encode("utf-8")) for start, _ in literals]
    contexts = _contexts_at(parsed, offsets)
    return [
        _query_info(body, ctx, text.count("\n", 0, start) + 1, _assigned_name_from_text(masked, start))
        for (start, body), ctx in zip(literals, contexts)
    ]


def extract_queries(source_text: str, *, strict: bool = False) -> list[QueryInfo]:
    """Parse *source_text* and return every SOQL literal in it.

    Raises ApexParseError when the file cannot be parsed or walked.
    """
    parsed = parse_source(source_text, strict=strict)
    try:
        queries = queries_from_tree(parsed)
        if not queries and parsed.grammar != "apex":
            log.debug("No query nodes under the %s grammar, scanning source text", parsed.grammar)
            queries = queries_from_text(parsed)
        return queries
    except (AttributeError, TypeError, ValueError) as exc:
        raise ApexParseError(f"query extraction failed: {exc}") from exc
