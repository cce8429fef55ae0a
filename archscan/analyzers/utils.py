"""Shared helpers for reading dependency manifests from file contents."""

from __future__ import annotations

import json
import re
import tomllib
from typing import Any, Dict, List

_REQUIREMENT_NAME = re.compile(r"^[ \t]*([A-Za-z0-9][A-Za-z0-9._-]*)")
_VERSION_SPLIT = re.compile(r"[<>=!~;\[\s@]")
_GEM_PATTERN = re.compile(r"^[ \t]*gem\s+['\"]([^'\"\n]+)['\"]", re.MULTILINE)
_GEMSPEC_PATTERN = re.compile(
    r"\.add_(?:runtime_|development_)?dependency\s*\(?\s*['\"]([^'\"\n]+)['\"]"
)
_SETUP_PY_REQUIRES = re.compile(r"install_requires\s*=\s*\[([^\]]*)\]", re.DOTALL)
_QUOTED = re.compile(r"['\"]([^'\"\n]+)['\"]")


def _requirement_name(spec: str) -> str:
    return _VERSION_SPLIT.split(spec.strip(), 1)[0].strip()


# Python manifests


def parse_requirements(content: str) -> List[str]:
    """Return package names listed in a requirements file."""
    packages: List[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        match = _REQUIREMENT_NAME.match(stripped)
        if match:
            name = _requirement_name(match.group(1))
            if name:
                packages.append(name)
    return packages


def parse_pyproject(content: str) -> List[str]:
    """Return dependencies declared in PEP 621 or Poetry tables."""
    data = _load_toml(content)
    if not data:
        return []

    dependencies: List[Any] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        if isinstance(optional, dict):
            for values in optional.values():
                dependencies.extend(values or [])

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies", {}) or {}
        if isinstance(poetry_deps, dict):
            dependencies.extend(poetry_deps.keys())

    packages: List[str] = []
    for dep in dependencies:
        if not isinstance(dep, str):
            continue
        name = _requirement_name(dep)
        if name and name.lower() != "python" and name not in packages:
            packages.append(name)
    return packages


def parse_pipfile(content: str) -> List[str]:
    data = _load_toml(content)
    packages: List[str] = []
    for section in ("packages", "dev-packages"):
        table = data.get(section)
        if isinstance(table, dict):
            packages.extend(name for name in table if name not in packages)
    return packages


def parse_setup_file(content: str) -> List[str]:
    """Return ``install_requires`` entries from setup.py or setup.cfg."""
    packages: List[str] = []
    match = _SETUP_PY_REQUIRES.search(content)
    if match:
        for spec in _QUOTED.findall(match.group(1)):
            name = _requirement_name(spec)
            if name:
                packages.append(name)
        return packages

    in_requires = False
    for line in content.splitlines():
        if re.match(r"^[ \t]*install_requires\s*=", line):
            in_requires = True
            remainder = line.split("=", 1)[1].strip()
            if remainder:
                packages.append(_requirement_name(remainder))
            continue
        if in_requires:
            if line and not line[0].isspace():
                break
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                name = _requirement_name(stripped)
                if name:
                    packages.append(name)
    return packages


# Ruby manifests


def parse_gemfile(content: str) -> List[str]:
    return _GEM_PATTERN.findall(content)


def parse_gemspec(content: str) -> List[str]:
    return _GEMSPEC_PATTERN.findall(content)


# Rust manifests


def parse_cargo_toml(content: str) -> List[str]:
    data = _load_toml(content)
    crates: List[str] = []
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        table = data.get(section)
        if isinstance(table, dict):
            crates.extend(name for name in table if name not in crates)
    return crates


# PHP manifests


def parse_composer_json(content: str) -> List[str]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return []
    if not isinstance(data, dict):
        return []
    packages: List[str] = []
    for key in ("require", "require-dev"):
        table = data.get(key)
        if isinstance(table, dict):
            packages.extend(name for name in table if name not in packages)
    return packages


def parse_composer_lock(content: str) -> List[str]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return []
    if not isinstance(data, dict):
        return []
    packages: List[str] = []
    for key in ("packages", "packages-dev"):
        entries = data.get(key)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                packages.append(entry["name"])
    return packages


def _load_toml(content: str) -> Dict[str, Any]:
    try:
        data = tomllib.loads(content)
    except (tomllib.TOMLDecodeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


__all__ = [
    "parse_cargo_toml",
    "parse_composer_json",
    "parse_composer_lock",
    "parse_gemfile",
    "parse_gemspec",
    "parse_pipfile",
    "parse_pyproject",
    "parse_requirements",
    "parse_setup_file",
]
