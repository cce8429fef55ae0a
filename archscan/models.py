"""Core data models shared across archscan components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from .languages import Language

_PACKAGE_SEPARATORS = re.compile(r"::|\\|/|\.")


@dataclass(frozen=True)
class SourceUnit:
    """One classified file handed to exactly one language analyzer."""

    relative_path: str
    language: Language
    content: str

    @property
    def name(self) -> str:
        """Return the unit name (file name without directories)."""
        return self.relative_path.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Dependency:
    """Directed edge from a module or unit to a referenced symbol."""

    source: str
    target: str
    kind: str


@dataclass
class ModuleInfo:
    """Coarse bucket of packages that share a trailing name segment."""

    name: str
    package_name: str
    package_count: int = 0


@dataclass
class AnalysisModel:
    """Aggregate of all structural facts discovered during one run.

    Every mutator is additive. Sets and counters merge commutatively, while
    the list fields keep the order in which units contributed to them.
    """

    project_name: str = ""
    packages: Set[str] = field(default_factory=set)
    dependencies: List[Dependency] = field(default_factory=list)
    framework_usage: Dict[str, int] = field(default_factory=dict)
    design_patterns: Dict[str, List[str]] = field(default_factory=dict)
    database_schemas: List[str] = field(default_factory=list)
    api_endpoints: List[str] = field(default_factory=list)
    language_files: Dict[Language, int] = field(default_factory=dict)
    class_count: int = 0
    modules: List[ModuleInfo] = field(default_factory=list)

    def add_package(self, name: str) -> None:
        name = name.strip()
        if name:
            self.packages.add(name)

    def add_dependency(self, source: str, target: str, kind: str) -> None:
        self.dependencies.append(Dependency(source=source, target=target, kind=kind))

    def add_framework(self, framework: str, count: int = 1) -> None:
        self.framework_usage[framework] = self.framework_usage.get(framework, 0) + count

    def add_design_pattern(self, pattern: str, unit_name: str) -> None:
        self.design_patterns.setdefault(pattern, []).append(unit_name)

    def add_database_schema(self, schema: str) -> None:
        self.database_schemas.append(schema)

    def add_api_endpoint(self, endpoint: str) -> None:
        self.api_endpoints.append(endpoint)

    def add_language_file(self, language: Language, count: int = 1) -> None:
        self.language_files[language] = self.language_files.get(language, 0) + count

    def add_classes(self, count: int) -> None:
        if count < 0:
            raise ValueError("class count increments must be non-negative")
        self.class_count += count

    def package_count(self) -> int:
        return len(self.packages)

    def total_file_count(self) -> int:
        return sum(self.language_files.values())

    def merge(self, other: "AnalysisModel") -> None:
        """Fold a partial model produced for one or more units into this one."""
        self.packages.update(other.packages)
        self.dependencies.extend(other.dependencies)
        for framework, count in other.framework_usage.items():
            self.add_framework(framework, count)
        for pattern, units in other.design_patterns.items():
            self.design_patterns.setdefault(pattern, []).extend(units)
        self.database_schemas.extend(other.database_schemas)
        self.api_endpoints.extend(other.api_endpoints)
        for language, count in other.language_files.items():
            self.add_language_file(language, count)
        self.class_count += other.class_count

    def build_modules(self) -> List[ModuleInfo]:
        """Group packages into buckets keyed by their last name segment."""
        buckets: Dict[str, ModuleInfo] = {}
        for package in sorted(self.packages):
            segments = [part for part in _PACKAGE_SEPARATORS.split(package) if part]
            if not segments:
                continue
            name = segments[-1]
            module = buckets.get(name)
            if module is None:
                module = ModuleInfo(name=name, package_name=package)
                buckets[name] = module
            module.package_count += 1
        self.modules = [buckets[name] for name in sorted(buckets)]
        return self.modules

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready snapshot for report and risk collaborators."""
        return {
            "project_name": self.project_name,
            "packages": sorted(self.packages),
            "dependencies": [
                {"from": dep.source, "to": dep.target, "kind": dep.kind}
                for dep in self.dependencies
            ],
            "framework_usage": dict(sorted(self.framework_usage.items())),
            "design_patterns": {
                pattern: list(units) for pattern, units in sorted(self.design_patterns.items())
            },
            "database_schemas": list(self.database_schemas),
            "api_endpoints": list(self.api_endpoints),
            "language_files": {
                language.display_name: count
                for language, count in sorted(
                    self.language_files.items(), key=lambda item: item[0].display_name
                )
            },
            "total_files": self.total_file_count(),
            "class_count": self.class_count,
            "modules": [
                {
                    "name": module.name,
                    "package_name": module.package_name,
                    "package_count": module.package_count,
                }
                for module in self.modules
            ],
        }


__all__ = ["AnalysisModel", "Dependency", "ModuleInfo", "SourceUnit"]
