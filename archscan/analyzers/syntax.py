"""Opportunistic structured parsing with a textual fallback.

``parse_source`` returns either ``Parsed`` (a syntax tree) or ``Heuristic``
(the raw text plus the reason parsing was abandoned). Analyzers must produce
the same kind of contribution from both branches.
"""

from __future__ import annotations

import ast
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Union

from ..languages import Language
from ..logging import get_logger

try:  # pragma: no cover - optional dependency
    from tree_sitter import Parser
    from tree_sitter_languages import get_language

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Parser = None  # type: ignore[assignment]
    get_language = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False

logger = get_logger("analyzers.syntax")

_TREE_SITTER_KEYS = {
    Language.JAVA: "java",
    Language.KOTLIN: "kotlin",
    Language.RUST: "rust",
    Language.CSHARP: "c_sharp",
}


@dataclass(frozen=True)
class Parsed:
    tree: Any
    source: bytes


@dataclass(frozen=True)
class Heuristic:
    text: str
    reason: str


ParseOutcome = Union[Parsed, Heuristic]

# Parser instances are not safe to share between worker threads.
_local = threading.local()


def parse_source(language: Language, content: str, *, enabled: bool = True) -> ParseOutcome:
    """Try to build a syntax tree for ``content``; never raises on bad input."""
    if not enabled:
        return Heuristic(content, "structured parsing disabled")
    if language is Language.PYTHON:
        return _parse_python(content)
    key = _TREE_SITTER_KEYS.get(language)
    if key is None:
        return Heuristic(content, f"no parser for {language.display_name}")
    return _parse_tree_sitter(key, content)


def _parse_python(content: str) -> ParseOutcome:
    try:
        tree = ast.parse(content)
    except (SyntaxError, ValueError, RecursionError) as exc:
        return Heuristic(content, f"python parse failed: {exc}")
    return Parsed(tree=tree, source=content.encode("utf-8", errors="ignore"))


def _parse_tree_sitter(key: str, content: str) -> ParseOutcome:
    parser = _get_parser(key)
    if parser is None:
        return Heuristic(content, f"tree-sitter parser for {key} unavailable")
    source = content.encode("utf-8", errors="ignore")
    try:
        tree = parser.parse(source)
    except Exception as exc:  # pragma: no cover - native parser failure
        return Heuristic(content, f"tree-sitter parse failed: {exc}")
    if tree.root_node.has_error:
        return Heuristic(content, "syntax errors in source")
    return Parsed(tree=tree, source=source)


def _get_parser(key: str) -> Optional[Any]:
    if not TREE_SITTER_AVAILABLE:
        return None
    parsers: Dict[str, Any] = getattr(_local, "parsers", None) or {}
    _local.parsers = parsers
    if key in parsers:
        return parsers[key]
    try:
        parser = Parser()
        parser.set_language(get_language(key))
    except Exception as exc:  # pragma: no cover - incompatible grammar bundle
        logger.debug("tree-sitter grammar %s could not be loaded: %s", key, exc)
        parser = None
    parsers[key] = parser
    return parser


def iter_nodes(node: Any) -> Iterator[Any]:
    """Depth-first walk over a tree-sitter node and its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


__all__ = [
    "Heuristic",
    "ParseOutcome",
    "Parsed",
    "TREE_SITTER_AVAILABLE",
    "iter_nodes",
    "parse_source",
]
