"""Design pattern heuristics shared by the language analyzers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..models import AnalysisModel


@dataclass(frozen=True)
class PatternRule:
    """Flags a design pattern from file-name tokens, content markers or a predicate.

    File tokens are compared against the lower-cased unit name; content
    markers are case-sensitive substrings. ``all_markers`` requires every
    content marker rather than any of them.
    """

    name: str
    file_tokens: Tuple[str, ...] = ()
    markers: Tuple[str, ...] = ()
    all_markers: bool = False
    predicate: Optional[Callable[[str], bool]] = None

    def matches(self, unit_name: str, content: str) -> bool:
        lowered = unit_name.lower()
        if any(token in lowered for token in self.file_tokens):
            return True
        if self.markers:
            hits = [marker in content for marker in self.markers]
            if all(hits) if self.all_markers else any(hits):
                return True
        if self.predicate is not None and self.predicate(content):
            return True
        return False


def detect_patterns(
    unit_name: str, content: str, rules: Sequence[PatternRule], model: AnalysisModel
) -> list[str]:
    """Append one hit per matching rule and return the matched pattern names."""
    label = _unit_label(unit_name)
    matched: list[str] = []
    for rule in rules:
        if rule.name in matched:
            continue
        if rule.matches(unit_name, content):
            model.add_design_pattern(rule.name, label)
            matched.append(rule.name)
    return matched


def _unit_label(unit_name: str) -> str:
    dot = unit_name.rfind(".")
    return unit_name[:dot] if dot > 0 else unit_name


def looks_like_data_class(content: str) -> bool:
    """Accessor-heavy units with little else are treated as DTO/VO carriers."""
    return content.count("get") + content.count("set") > 3


SINGLETON = PatternRule("Singleton", markers=("private static", "getInstance()"), all_markers=True)
FACTORY = PatternRule("Factory", file_tokens=("factory",), markers=("createInstance", "Factory("))
BUILDER = PatternRule("Builder", file_tokens=("builder",), markers=("public Builder", ".builder()"))
OBSERVER = PatternRule(
    "Observer",
    file_tokens=("listener", "observer"),
    markers=("addListener", "addObserver", "addEventListener", "subscribe("),
)
ADAPTER = PatternRule("Adapter", file_tokens=("adapter",))
DECORATOR = PatternRule("Decorator", file_tokens=("decorator",))
REPOSITORY = PatternRule("Repository", file_tokens=("repository",), markers=("@Repository",))
SERVICE_LAYER = PatternRule("Service Layer", file_tokens=("service",), markers=("@Service",))
CONTROLLER = PatternRule("MVC Controller", file_tokens=("controller",), markers=("@Controller", "@RestController"))
MIDDLEWARE = PatternRule("Middleware", file_tokens=("middleware",))
STRATEGY = PatternRule("Strategy", file_tokens=("strategy",))
COMMAND = PatternRule("Command", file_tokens=("command",))

COMMON_RULES: Tuple[PatternRule, ...] = (
    FACTORY,
    BUILDER,
    OBSERVER,
    STRATEGY,
    ADAPTER,
    DECORATOR,
    REPOSITORY,
    SERVICE_LAYER,
)


__all__ = [
    "ADAPTER",
    "BUILDER",
    "COMMAND",
    "COMMON_RULES",
    "CONTROLLER",
    "DECORATOR",
    "FACTORY",
    "MIDDLEWARE",
    "OBSERVER",
    "PatternRule",
    "REPOSITORY",
    "SERVICE_LAYER",
    "SINGLETON",
    "STRATEGY",
    "detect_patterns",
    "looks_like_data_class",
]
