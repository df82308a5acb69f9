"""Context-threaded walk over an Apex parse tree.

Every yielded node carries a ``WalkContext`` describing where it sits: the
innermost enclosing method and the number of loops around it.  The context is
an immutable value handed down to children, so leaving a method or loop
restores the outer context without any bookkeeping, and concurrent walks on
different files never share state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from apexscan.index.parser import node_text

METHOD_NODE_TYPES = frozenset({"method_declaration", "constructor_declaration"})
LOOP_NODE_TYPES = frozenset({"for_statement", "enhanced_for_statement", "while_statement", "do_statement"})
CALL_NODE_TYPES = frozenset({"method_invocation"})

_LEADING_NAME_RE = re.compile(r"^(\w+)\(")


@dataclass(frozen=True)
class WalkContext:
    method_name: str | None = None
    method_lines: tuple[int, int] | None = None
    loop_depth: int = 0


def method_name_of(node, source: bytes) -> str | None:
    """Best-effort name of a method/constructor declaration.

    The ``name`` field is authoritative.  When it is missing or empty, the
    parameter list is inspected: some trees fold the name into it
    (``doWork(...)``), others leave it as the identifier just before it.
    """
    name_node = node.child_by_field_name("name")
    name = node_text(name_node, source).strip()
    if name:
        return name
    for child in node.children:
        if child.type != "formal_parameters":
            continue
        m = _LEADING_NAME_RE.match(node_text(child, source).strip())
        if m:
            return m.group(1)
        prev = child.prev_sibling
        if prev is not None and prev.type == "identifier":
            return node_text(prev, source).strip() or None
    return None


def enter(node, source: bytes, ctx: WalkContext) -> WalkContext:
    """Context that applies inside *node*."""
    if node.type in METHOD_NODE_TYPES:
        return replace(
            ctx,
            method_name=method_name_of(node, source),
            method_lines=(node.start_point[0] + 1, node.end_point[0] + 1),
        )
    if node.type in LOOP_NODE_TYPES:
        return replace(ctx, loop_depth=ctx.loop_depth + 1)
    return ctx


def walk(root, source: bytes, *, stop_at=lambda node: False):
    """Yield ``(node, context)`` pairs in source order.

    The context yielded with a method or loop node already includes that node.
    Nodes for which *stop_at* returns true are yielded but not descended into.
    """
    stack = [(root, WalkContext())]
    while stack:
        node, ctx = stack.pop()
        inner = enter(node, source, ctx)
        yield node, inner
        if stop_at(node):
            continue
        for child in reversed(node.children):
            stack.append((child, inner))


def call_parts(node, source: bytes) -> tuple[str, str] | None:
    """``(qualifier, member)`` of a method invocation, qualifier without the dot.

    ``Schema.getGlobalDescribe()`` gives ``("Schema", "getGlobalDescribe")``;
    an unqualified call gives an empty qualifier.
    """
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    member = node_text(name_node, source).strip()
    qualifier = source[node.start_byte : name_node.start_byte].decode("utf-8", errors="replace")
    qualifier = "".join(qualifier.split())
    if qualifier.endswith("."):
        qualifier = qualifier[:-1]
    return qualifier, member
