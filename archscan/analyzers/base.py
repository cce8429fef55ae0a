"""Base classes for language analyzers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, FrozenSet, Iterable, Iterator, Optional, Pattern, Sequence, Tuple

from ..languages import Language
from ..logging import get_logger
from ..models import AnalysisModel
from .patterns import PatternRule, detect_patterns
from .syntax import Parsed, iter_nodes, parse_source

logger = get_logger("analyzers.base")


class LanguageAnalyzer(ABC):
    """Contract for analyzers that fold facts about one source unit into a model.

    Implementations must be stateless across calls and must only ever add to
    the model they are given.
    """

    languages: ClassVar[Tuple[Language, ...]] = ()

    @abstractmethod
    def analyze(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        """Record packages, dependencies, frameworks, patterns and mentions for one unit."""


@dataclass(frozen=True)
class FrameworkRule:
    """Names a framework when ``marker`` appears in a unit (substring or regex)."""

    marker: str | Pattern[str]
    framework: str

    def matches(self, content: str) -> bool:
        if isinstance(self.marker, str):
            return self.marker in content
        return self.marker.search(content) is not None


@dataclass(frozen=True)
class ImportRule:
    pattern: Pattern[str]
    kind: str
    normalize: Optional[Callable[[str], str]] = None


@dataclass(frozen=True)
class MentionRule:
    """Renders one schema or endpoint mention per regex match."""

    pattern: Pattern[str]
    render: Callable[["re.Match[str]"], str]


def frameworks(*pairs: Tuple[str | Pattern[str], str]) -> Tuple[FrameworkRule, ...]:
    return tuple(FrameworkRule(marker, name) for marker, name in pairs)


def unit_stem(unit_name: str) -> str:
    """Return the unit name without its final extension."""
    dot = unit_name.rfind(".")
    return unit_name[:dot] if dot > 0 else unit_name


def count_matches(pattern: Pattern[str], content: str) -> int:
    return sum(1 for _ in pattern.finditer(content))


def http_verb(value: str) -> str:
    return value.replace("Mapping", "").replace("Http", "").upper()


def declared_name(lines: Iterable[str], annotation_prefix: str) -> str:
    """Name of the first method declared in ``lines``, skipping annotation lines.

    A declaration is a line whose text before ``(`` has at least a type and a
    name, e.g. ``public User find(Long id)``.
    """
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith(annotation_prefix):
            continue
        head, paren, _ = stripped.partition("(")
        words = head.split()
        if paren and len(words) >= 2 and words[-1].isidentifier():
            return words[-1]
    return "unknown"


class RuleBasedAnalyzer(LanguageAnalyzer):
    """Table-driven textual analyzer shared by most language variants.

    Subclasses describe a language with class-level rule tables and override
    the hooks below where the language needs more than a regex.
    """

    package_pattern: ClassVar[Optional[Pattern[str]]] = None
    import_rules: ClassVar[Tuple[ImportRule, ...]] = ()
    type_pattern: ClassVar[Optional[Pattern[str]]] = None
    # Syntax-tree node types counted instead of type_pattern when a grammar parses the unit.
    type_nodes: ClassVar[FrozenSet[str]] = frozenset()
    framework_rules: ClassVar[Tuple[FrameworkRule, ...]] = ()
    pattern_rules: ClassVar[Tuple[PatternRule, ...]] = ()
    schema_rules: ClassVar[Tuple[MentionRule, ...]] = ()
    endpoint_rules: ClassVar[Tuple[MentionRule, ...]] = ()
    ignored_imports: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, use_parser: bool = True) -> None:
        self._use_parser = use_parser

    def analyze(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        if self.analyze_manifest(unit_name, content, model):
            return

        for package in self.find_packages(unit_name, content):
            model.add_package(package)
        model.add_classes(self.count_types(unit_name, content))

        source = self.dependency_source(unit_name, content)
        for target, kind in self.find_imports(content):
            if target and target != source:
                model.add_dependency(source, target, kind)

        for framework in self.detect_frameworks(content):
            model.add_framework(framework)
        self.record_patterns(unit_name, content, model)

        for schema in self.find_schemas(content):
            model.add_database_schema(schema)
        for endpoint in self.find_endpoints(content):
            model.add_api_endpoint(endpoint)

    # ------------------------------------------------------------------
    # Hooks

    def analyze_manifest(self, unit_name: str, content: str, model: AnalysisModel) -> bool:
        """Handle build/manifest files; return True when ``unit_name`` was one."""
        return False

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        if self.package_pattern is None:
            return []
        return _unique(match.group(1) for match in self.package_pattern.finditer(content))

    def dependency_source(self, unit_name: str, content: str) -> str:
        if self.package_pattern is not None:
            match = self.package_pattern.search(content)
            if match:
                return match.group(1)
        return unit_stem(unit_name)

    def find_imports(self, content: str) -> Iterator[Tuple[str, str]]:
        for rule in self.import_rules:
            for match in rule.pattern.finditer(content):
                target = match.group(1).strip()
                if rule.normalize is not None:
                    target = rule.normalize(target)
                if self._is_ignored_import(target):
                    continue
                yield target, rule.kind

    def count_types(self, unit_name: str, content: str) -> int:
        if self.type_nodes:
            outcome = parse_source(self.languages[0], content, enabled=self._use_parser)
            if isinstance(outcome, Parsed):
                return sum(1 for node in iter_nodes(outcome.tree.root_node) if node.type in self.type_nodes)
            logger.debug("Heuristic type count for %s: %s", unit_name, outcome.reason)
        if self.type_pattern is None:
            return 0
        return count_matches(self.type_pattern, content)

    def detect_frameworks(self, content: str) -> list[str]:
        detected: list[str] = []
        for rule in self.framework_rules:
            if rule.framework not in detected and rule.matches(content):
                detected.append(rule.framework)
        return detected

    def record_patterns(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        detect_patterns(unit_name, content, self.pattern_rules, model)

    def find_schemas(self, content: str) -> Iterable[str]:
        return _render(self.schema_rules, content)

    def find_endpoints(self, content: str) -> Iterable[str]:
        return _render(self.endpoint_rules, content)

    def _is_ignored_import(self, target: str) -> bool:
        return any(
            target == prefix.rstrip(".") or target.startswith(prefix)
            for prefix in self.ignored_imports
        )


def _render(rules: Sequence[MentionRule], content: str) -> list[str]:
    mentions: list[str] = []
    for rule in rules:
        for match in rule.pattern.finditer(content):
            mentions.append(rule.render(match))
    return mentions


def _unique(values: Iterable[str]) -> list[str]:
    unique: list[str] = []
    seen: set[str] = set()
    for value in values:
        if value and value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


SQL_CREATE_TABLE = MentionRule(
    re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[`\"\[]?(\w+)", re.IGNORECASE),
    lambda m: f"Table: {m.group(1)} (SQL DDL)",
)


__all__ = [
    "FrameworkRule",
    "ImportRule",
    "LanguageAnalyzer",
    "MentionRule",
    "RuleBasedAnalyzer",
    "SQL_CREATE_TABLE",
    "count_matches",
    "frameworks",
    "http_verb",
    "unit_stem",
]
