"""C analyzer."""

from __future__ import annotations

import re
from typing import List, Tuple

from ..languages import Language
from ..models import AnalysisModel
from .base import ImportRule, RuleBasedAnalyzer, count_matches, frameworks, unit_stem
from .patterns import PatternRule

_INCLUDE_LOCAL = re.compile(r"^[ \t]*#\s*include\s*\"([^\"\n]+)\"", re.MULTILINE)
_AGGREGATES = re.compile(r"\b(?:struct|enum|union)\s+\w+\s*\{")
_TYPEDEF = re.compile(r"\btypedef\b")
_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)", re.IGNORECASE)
_CURL_URL = re.compile(r"CURLOPT_URL,\s*\"([^\"\n]+)\"")

# Patterns shared with the C++ analyzer.
C_SINGLETON = PatternRule(
    "Singleton",
    markers=("static ", "getInstance"),
    all_markers=True,
    predicate=lambda content: re.search(r"static\s+\w+\s*\*\s*instance\s*=", content) is not None,
)
OBSERVER_CALLBACK = PatternRule(
    "Observer/Callback",
    markers=("(*callback)", "callback_fn"),
    predicate=lambda content: re.search(r"void\s*\(\*\w+\)\s*\(", content) is not None,
)
UTILITY = PatternRule("Utility", file_tokens=("util", "helper"))
TEST = PatternRule("Test", file_tokens=("test", "spec"))


def record_header_guard(
    unit_name: str, content: str, model: AnalysisModel, suffixes: Tuple[str, ...] = (".h",)
) -> None:
    if unit_name.lower().endswith(suffixes) and "#ifndef" in content and "#define" in content:
        model.add_design_pattern("Header Guard / Module", unit_stem(unit_name))


class CAnalyzer(RuleBasedAnalyzer):
    languages = (Language.C,)

    import_rules = (ImportRule(_INCLUDE_LOCAL, "#include"),)
    framework_rules = frameworks(
        ("<stdio.h>", "C Standard I/O (stdio.h)"),
        ("<stdlib.h>", "C Standard Library (stdlib.h)"),
        ("<string.h>", "C String Library (string.h)"),
        ("<math.h>", "C Math Library (math.h)"),
        ("<pthread.h>", "POSIX Threads (pthread)"),
        ("<unistd.h>", "POSIX API (unistd.h)"),
        ("<sys/socket.h>", "Socket API"),
        ("<winsock2.h>", "Socket API"),
        ("<curl/curl.h>", "libcurl"),
        ("<uv.h>", "libuv"),
        ("<sqlite3.h>", "SQLite3"),
        ("<mysql.h>", "MySQL C API"),
        ("mysql_", "MySQL C API"),
        ("<libpq-fe.h>", "PostgreSQL (libpq)"),
        ("<CUnit/", "CUnit"),
        ("<cmocka.h>", "cmocka"),
        ("START_TEST", "Check"),
        ("<omp.h>", "OpenMP"),
        ("#pragma omp", "OpenMP"),
        ("<mpi.h>", "MPI"),
        ("MPI_Init", "MPI"),
        ("<GL/gl.h>", "OpenGL"),
        ("<OpenGL/gl.h>", "OpenGL"),
        ("<vulkan/vulkan.h>", "Vulkan"),
    )
    pattern_rules = (
        C_SINGLETON,
        PatternRule(
            "Factory",
            predicate=lambda content: re.search(r"\b\w+\s*\*\s*create_\w+\s*\(", content) is not None,
        ),
        OBSERVER_CALLBACK,
        PatternRule(
            "State Machine",
            predicate=lambda content: "switch" in content
            and "state" in content
            and re.search(r"case\s+\w+_STATE", content) is not None,
        ),
        UTILITY,
        TEST,
    )

    def count_types(self, unit_name: str, content: str) -> int:
        return count_matches(_AGGREGATES, content) + count_matches(_TYPEDEF, content)

    def record_patterns(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        super().record_patterns(unit_name, content, model)
        record_header_guard(unit_name, content, model)

    def find_schemas(self, content: str) -> List[str]:
        if "sqlite3_exec" in content or "sqlite3_prepare" in content:
            source = "SQLite3"
        elif "mysql_query" in content or "PQexec" in content:
            source = "C DB API"
        else:
            return []
        return [f"Table: {name} ({source})" for name in _CREATE_TABLE.findall(content)]

    def find_endpoints(self, content: str) -> List[str]:
        endpoints: List[str] = []
        if "curl_easy_setopt" in content:
            endpoints.extend(f"HTTP: {url} (libcurl)" for url in _CURL_URL.findall(content))
        if "bind(" in content and "listen(" in content:
            endpoints.append("TCP Socket Server (C Socket API)")
        if "mg_http_listen" in content or "mg_listen" in content:
            endpoints.append("HTTP Server (Mongoose C)")
        return endpoints


__all__ = ["CAnalyzer"]
