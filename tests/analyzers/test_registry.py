"""Tests for the analyzer registry."""

from __future__ import annotations

import pytest

from archscan import analyzers
from archscan.analyzers import LanguageAnalyzer, build_registry, supported_languages
from archscan.analyzers.javascript import JavaScriptAnalyzer, TypeScriptAnalyzer
from archscan.analyzers.python import PythonAnalyzer
from archscan.languages import Language


def test_build_registry_covers_every_known_language() -> None:
    registry = build_registry()

    assert set(registry) == {language for language in Language if language is not Language.UNKNOWN}
    assert all(isinstance(analyzer, LanguageAnalyzer) for analyzer in registry.values())
    assert supported_languages() == list(registry)


def test_each_analyzer_declares_its_language() -> None:
    for language, analyzer in build_registry().items():
        assert language in analyzer.languages


def test_javascript_and_typescript_have_distinct_analyzers() -> None:
    registry = build_registry()

    assert type(registry[Language.JAVASCRIPT]) is JavaScriptAnalyzer
    assert type(registry[Language.TYPESCRIPT]) is TypeScriptAnalyzer


def test_build_registry_respects_enabled_filter() -> None:
    registry = build_registry(["Python", "c#", "CSHARP"])

    assert list(registry) == [Language.PYTHON, Language.CSHARP]
    assert isinstance(registry[Language.PYTHON], PythonAnalyzer)


def test_build_registry_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError) as excinfo:
        build_registry(["python", "cobol", "unknown"])
    assert "cobol" in str(excinfo.value)
    assert "unknown" in str(excinfo.value)


def test_empty_enabled_list_disables_everything() -> None:
    assert build_registry([]) == {}


def test_build_registry_rejects_analyzer_for_another_language(monkeypatch) -> None:
    monkeypatch.setitem(
        analyzers._BUILTIN_FACTORIES, Language.RUBY, lambda use_parser: PythonAnalyzer(use_parser=use_parser)
    )

    with pytest.raises(TypeError) as excinfo:
        build_registry(["ruby"])
    assert "PythonAnalyzer" in str(excinfo.value)
    assert "Ruby" in str(excinfo.value)
