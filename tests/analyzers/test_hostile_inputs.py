"""Analyzers must stay linear on large, adversarial source files."""

from __future__ import annotations

import time

import pytest

from archscan.analyzers import build_registry
from archscan.models import AnalysisModel

# Each source is roughly one megabyte.
HOSTILE_SOURCES = {
    "blank-lines": "\n" * 1_000_000,
    "exported-functions": "export function a() { return 1 }\n" * 30_000,
    "entity-then-blank-lines": "@Entity\n" + " \n" * 500_000,
    "mapping-then-long-line": '@GetMapping("/x")\n' + "a " * 500_000,
    "route-attributes": "[HttpGet]\n" * 100_000,
    "unclosed-bases": "class A(Model\n" * 70_000,
    "unterminated-imports": "import '\n" * 120_000,
    "single-word": "a" * 1_000_000,
    "distinct-imports": "".join(f"import m{index}\n" for index in range(100_000)),
}
TIME_LIMIT_SECONDS = 5.0


@pytest.mark.parametrize("label", sorted(HOSTILE_SOURCES))
def test_every_analyzer_finishes_quickly(label: str) -> None:
    source = HOSTILE_SOURCES[label]
    for language, analyzer in build_registry(use_parser=False).items():
        started = time.perf_counter()
        analyzer.analyze("Hostile.src", source, AnalysisModel())
        elapsed = time.perf_counter() - started

        assert elapsed < TIME_LIMIT_SECONDS, f"{language.display_name} took {elapsed:.1f}s on {label}"
