"""Java analyzer."""

from __future__ import annotations

import re
from typing import ClassVar, Iterable, Iterator, List, Tuple

from ..languages import Language
from .base import (
    SQL_CREATE_TABLE,
    ImportRule,
    MentionRule,
    RuleBasedAnalyzer,
    declared_name,
    frameworks,
    http_verb,
)
from .patterns import (
    COMMON_RULES,
    CONTROLLER,
    SINGLETON,
    PatternRule,
    looks_like_data_class,
)

_PACKAGE = re.compile(r"^[ \t]*package\s+([A-Za-z0-9_.]+)\s*;", re.MULTILINE)
_IMPORT = re.compile(r"^[ \t]*import\s+(?:static\s+)?([A-Za-z0-9_.]+)(?:\.\*)?\s*;", re.MULTILINE)
_TYPE_LINE = re.compile(r"^[^\n]*?\b(?:class|interface|enum|record)[ \t]+\w+", re.MULTILINE)
_TYPE_NODES = frozenset(
    {"class_declaration", "interface_declaration", "enum_declaration", "record_declaration"}
)

_MAPPING = re.compile(
    r"@(GetMapping|PostMapping|PutMapping|DeleteMapping|PatchMapping|RequestMapping)"
    r"\s*\(\s*(?:value\s*=\s*|path\s*=\s*)?[\"']([^\"'\n]+)[\"']"
)
_REQUEST_METHOD = re.compile(r"RequestMethod\.(GET|POST|PUT|DELETE|PATCH)")
_TABLE = re.compile(r"@Table\s*\(\s*name\s*=\s*\"([^\"\n]+)\"")
_CLASS_NAME = re.compile(r"\bclass\s+([A-Za-z0-9_]+)")
_CLASS_WORD = re.compile(r"\bclass\b")


def _package_of(imported: str) -> str:
    dot = imported.rfind(".")
    return imported[:dot] if dot > 0 else imported


def _snake_case(name: str) -> str:
    return re.sub(r"([a-z])([A-Z])", r"\1_\2", name).lower()


class JavaAnalyzer(RuleBasedAnalyzer):
    """Package, import, framework and Spring endpoint heuristics for Java."""

    languages = (Language.JAVA,)

    package_pattern = _PACKAGE
    import_rules = (ImportRule(_IMPORT, "import", _package_of),)
    type_pattern = _TYPE_LINE
    type_nodes = _TYPE_NODES
    ignored_imports: ClassVar[Tuple[str, ...]] = ("java.", "javax.")
    framework_rules = frameworks(
        ("org.springframework", "Spring Framework"),
        ("@SpringBootApplication", "Spring Boot"),
        ("@RestController", "Spring MVC"),
        ("@Service", "Spring Service"),
        ("@Repository", "Spring Data"),
        ("jakarta.servlet", "Jakarta Servlet"),
        ("jakarta.persistence", "Jakarta Persistence (JPA)"),
        ("javax.servlet", "Java Servlet"),
        ("javax.persistence", "Java Persistence (JPA)"),
        ("org.hibernate", "Hibernate"),
        ("org.slf4j", "SLF4J"),
        ("org.apache.logging.log4j", "Log4j"),
        ("java.util.logging", "Java Util Logging"),
        ("org.junit", "JUnit"),
        ("org.testng", "TestNG"),
        ("org.mockito", "Mockito"),
        ("com.fasterxml.jackson", "Jackson"),
        ("com.google.gson", "Gson"),
        ("java.sql", "JDBC"),
        ("org.apache.commons", "Apache Commons"),
    )
    pattern_rules = (
        SINGLETON,
        *COMMON_RULES,
        CONTROLLER,
        PatternRule(
            "Strategy",
            predicate=lambda content: "interface" in content and "execute" in content.lower(),
        ),
        PatternRule(
            "DTO/VO",
            file_tokens=("dto", "vo"),
            predicate=lambda content: "class" in content and looks_like_data_class(content),
        ),
    )
    schema_rules = (SQL_CREATE_TABLE,)

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        match = _PACKAGE.search(content)
        return [match.group(1)] if match else []

    def find_imports(self, content: str) -> Iterator[Tuple[str, str]]:
        if not _PACKAGE.search(content):
            return
        yield from super().find_imports(content)

    def find_schemas(self, content: str) -> List[str]:
        schemas: List[str] = []
        if "@Entity" in content:
            table = _TABLE.search(content)
            if table:
                schemas.append(f"Table: {table.group(1)} (JPA Entity)")
            else:
                class_name = _CLASS_NAME.search(content)
                if class_name:
                    schemas.append(f"Table: {_snake_case(class_name.group(1))} (JPA Entity)")
        schemas.extend(super().find_schemas(content))
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        lines = content.split("\n")
        class_path = _class_level_path(lines)
        first_class = _first_class_line(lines)
        endpoints: List[str] = []
        for index, line in enumerate(lines):
            match = _MAPPING.search(line)
            if not match:
                continue
            if match.group(1) == "RequestMapping" and index <= first_class:
                continue
            method = http_verb(match.group(1))
            if method == "REQUEST":
                method = _request_method(lines, index)
            handler = declared_name(lines[index + 1 : index + 5], "@")
            endpoints.append(f"{method} {class_path}{match.group(2)} ({handler})")
        return endpoints


def _first_class_line(lines: List[str]) -> int:
    for index, line in enumerate(lines):
        if _CLASS_WORD.search(line):
            return index
    return len(lines)


def _class_level_path(lines: List[str]) -> str:
    for line in lines:
        if _CLASS_WORD.search(line):
            break
        match = _MAPPING.search(line)
        if match and match.group(1) == "RequestMapping":
            return match.group(2)
    return ""


def _request_method(lines: List[str], index: int) -> str:
    for line in lines[index : index + 3]:
        match = _REQUEST_METHOD.search(line)
        if match:
            return match.group(1)
    return "GET"


__all__ = ["JavaAnalyzer"]
