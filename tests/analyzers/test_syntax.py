from __future__ import annotations

import ast

import pytest

from archscan.analyzers import base, build_registry, syntax
from archscan.analyzers.csharp import CSharpAnalyzer
from archscan.analyzers.java import JavaAnalyzer
from archscan.analyzers.kotlin import KotlinAnalyzer
from archscan.analyzers.rust import RustAnalyzer
from archscan.analyzers.syntax import Heuristic, Parsed, parse_source
from archscan.languages import Language
from archscan.models import AnalysisModel


def test_python_sources_parse_with_ast() -> None:
    outcome = parse_source(Language.PYTHON, "class A:\n    pass\n")

    assert isinstance(outcome, Parsed)
    assert isinstance(outcome.tree, ast.Module)


def test_python_syntax_error_yields_heuristic() -> None:
    outcome = parse_source(Language.PYTHON, "def broken(:\n")

    assert isinstance(outcome, Heuristic)
    assert outcome.text == "def broken(:\n"
    assert "python parse failed" in outcome.reason


def test_disabled_parsing_always_yields_heuristic() -> None:
    outcome = parse_source(Language.PYTHON, "x = 1\n", enabled=False)

    assert isinstance(outcome, Heuristic)
    assert outcome.reason == "structured parsing disabled"


def test_languages_without_grammar_yield_heuristic() -> None:
    outcome = parse_source(Language.RUBY, "class A; end\n")

    assert isinstance(outcome, Heuristic)
    assert outcome.reason == "no parser for Ruby"


def test_missing_tree_sitter_falls_back(monkeypatch) -> None:
    monkeypatch.setattr(syntax, "TREE_SITTER_AVAILABLE", False)

    outcome = parse_source(Language.JAVA, "class A {}")

    assert isinstance(outcome, Heuristic)
    assert "unavailable" in outcome.reason


def test_java_analyzer_matches_between_parser_modes() -> None:
    source = (
        "package com.acme;\n"
        "import org.slf4j.Logger;\n"
        "public class Service {\n"
        "  interface Callback {}\n"
        "}\n"
    )
    structured = AnalysisModel()
    textual = AnalysisModel()

    JavaAnalyzer(use_parser=True).analyze("Service.java", source, structured)
    JavaAnalyzer(use_parser=False).analyze("Service.java", source, textual)

    assert structured.packages == textual.packages == {"com.acme"}
    assert structured.dependencies == textual.dependencies
    assert structured.class_count == textual.class_count == 2


@pytest.mark.skipif(not syntax.TREE_SITTER_AVAILABLE, reason="tree-sitter not installed")
def test_tree_sitter_flags_broken_java() -> None:
    outcome = parse_source(Language.JAVA, "class A { void broken( }")

    assert isinstance(outcome, Heuristic)


class _Node:
    def __init__(self, type_: str, *children: "_Node") -> None:
        self.type = type_
        self.children = list(children)


class _Tree:
    def __init__(self, root: _Node) -> None:
        self.root_node = root


def test_every_grammar_backs_an_analyzer_type_count() -> None:
    registry = build_registry()

    for language in syntax._TREE_SITTER_KEYS:
        assert registry[language].type_nodes, language


def test_type_count_walks_syntax_tree_when_parsed(monkeypatch) -> None:
    tree = _Tree(
        _Node(
            "compilation_unit",
            _Node("namespace_declaration", _Node("class_declaration"), _Node("struct_declaration")),
            _Node("using_directive"),
        )
    )
    monkeypatch.setattr(base, "parse_source", lambda language, content, enabled: Parsed(tree, b""))

    # The text holds no declarations, so only the tree can produce this count.
    assert CSharpAnalyzer().count_types("Shapes.cs", "// generated") == 2


@pytest.mark.parametrize(
    ("analyzer_type", "unit_name", "source", "expected"),
    [
        (CSharpAnalyzer, "Shapes.cs", "namespace Geo {\n  public class Circle {}\n  public struct Point {}\n}\n", 2),
        (KotlinAnalyzer, "Shapes.kt", "package geo\n\nclass Circle\ninterface Shape\nobject Origin\n", 3),
        (RustAnalyzer, "shapes.rs", "pub struct Circle {}\nenum Kind { A }\ntrait Shape {}\n", 3),
    ],
)
def test_type_counts_match_between_parser_modes(analyzer_type, unit_name, source, expected) -> None:
    structured = AnalysisModel()
    textual = AnalysisModel()

    analyzer_type(use_parser=True).analyze(unit_name, source, structured)
    analyzer_type(use_parser=False).analyze(unit_name, source, textual)

    assert structured.class_count == textual.class_count == expected
