"""Tree-sitter parsing for Apex sources.

The native ``apex`` grammar from tree-sitter-language-pack is preferred.
When the installed pack does not ship it, Apex is parsed through the Java
grammar alias; structural checks keep working, but SOQL literals are not
exposed as nodes under that grammar.  Java has no trigger declarations
either: the header (``trigger T on Account (before insert)``) is blanked
before parsing so the body reads as a top-level block with no enclosing
method.  Offsets and line numbers are unchanged.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass

log = logging.getLogger(__name__)

# Grammars tried in order for each language.
GRAMMAR_ALIASES: dict[str, tuple[str, ...]] = {
    "apex": ("apex", "java"),
}

_TRIGGER_HEADER_RE = re.compile(
    rb"^[ \t]*trigger\s+\w+\s+on\s+\w+\s*\([^)]*\)", re.IGNORECASE | re.MULTILINE
)

_resolved: dict[str, str] = {}
_resolve_lock = threading.Lock()


class ApexParseError(Exception):
    """Raised when a source file cannot be turned into a usable parse tree."""


@dataclass(frozen=True)
class ParsedSource:
    tree: object
    source: bytes
    grammar: str

    @property
    def root(self):
        return self.tree.root_node


def resolve_grammar(language: str = "apex") -> str:
    """Return the first grammar name for *language* the language pack can load."""
    cached = _resolved.get(language)
    if cached is not None:
        return cached

    from tree_sitter_language_pack import get_language

    candidates = GRAMMAR_ALIASES.get(language, (language,))
    with _resolve_lock:
        if language in _resolved:
            return _resolved[language]
        errors = []
        for grammar in candidates:
            try:
                get_language(grammar)
            except (LookupError, ValueError) as exc:
                errors.append(f"{grammar}: {exc}")
                continue
            if grammar != candidates[0]:
                log.warning(
                    "Grammar %r unavailable, parsing %s through the %r grammar",
                    candidates[0],
                    language,
                    grammar,
                )
            _resolved[language] = grammar
            return grammar
    raise ApexParseError(f"No tree-sitter grammar available for {language}: {'; '.join(errors)}")


def blank_trigger_header(source: bytes) -> bytes:
    """Replace a trigger header with spaces, keeping newlines and byte offsets."""
    m = _TRIGGER_HEADER_RE.search(source)
    if m is None:
        return source
    header = bytes(b if b in b"\r\n" else 0x20 for b in m.group(0))
    return source[: m.start()] + header + source[m.end() :]


def parse_source(source_text: str, *, language: str = "apex", strict: bool = False) -> ParsedSource:
    """Parse *source_text* into a tree.

    A new parser is created per call so concurrent scans never share one.
    With *strict*, a tree that contains error nodes is rejected.
    """
    from tree_sitter_language_pack import get_parser

    grammar = resolve_grammar(language)
    source = source_text.encode("utf-8")
    try:
        text = source if grammar == language else blank_trigger_header(source)
        tree = get_parser(grammar).parse(text)
    except (TypeError, ValueError) as exc:
        raise ApexParseError(f"{grammar} parser failed: {exc}") from exc
    if tree is None or tree.root_node is None:
        raise ApexParseError(f"{grammar} parser produced no tree")
    if tree.root_node.has_error:
        if strict:
            raise ApexParseError(f"syntax errors near line {_first_error_line(tree.root_node)}")
        log.debug("Parse tree has error nodes near line %d", _first_error_line(tree.root_node))
    return ParsedSource(tree=tree, source=source, grammar=grammar)


def _first_error_line(root) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1


def node_text(node, source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
