"""C++ analyzer."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..languages import Language
from ..models import AnalysisModel
from .base import ImportRule, RuleBasedAnalyzer, frameworks
from .c import OBSERVER_CALLBACK, TEST, UTILITY, record_header_guard
from .patterns import DECORATOR, PatternRule

_NAMESPACE = re.compile(r"\bnamespace\s+(\w+)\s*\{")
_INCLUDE_LOCAL = re.compile(r"^[ \t]*#\s*include\s*\"([^\"\n]+)\"", re.MULTILINE)
_TYPES = re.compile(r"\b(?:class|struct|enum\s+class|enum|union)\s+\w+\s*(?:final\s*)?[:{]")
_CREATE_TABLE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)", re.IGNORECASE)
_CROW_ROUTE = re.compile(r"CROW_ROUTE\s*\(\s*\w+\s*,\s*\"([^\"\n]+)\"\s*\)")
_PISTACHE_ROUTE = re.compile(r"Routes::(Get|Post|Put|Delete|Patch)\s*\(\s*\w+\s*,\s*\"([^\"\n]+)\"")

_INTERNAL_NAMESPACES = frozenset({"std", "detail", "impl", "internal"})

_SERVERS = (
    (("boost::beast::http", "beast::http::"), "HTTP Server (Boost.Beast)"),
    (("Poco::Net::HTTPServer", "Poco::Net::ServerSocket"), "HTTP Server (POCO)"),
    (("grpc::Server", "ServerBuilder"), "gRPC Server (gRPC)"),
)


class CppAnalyzer(RuleBasedAnalyzer):
    languages = (Language.CPP,)

    package_pattern = _NAMESPACE
    import_rules = (ImportRule(_INCLUDE_LOCAL, "#include"),)
    type_pattern = _TYPES
    framework_rules = frameworks(
        (re.compile(r"<(?:vector|map|unordered_map|list)>"), "C++ STL (Standard Template Library)"),
        (re.compile(r"<(?:iostream|fstream)>"), "C++ I/O Streams"),
        (re.compile(r"<(?:thread|mutex|future)>"), "C++ Concurrency (std::thread)"),
        ("<algorithm>", "C++ Algorithms (std::algorithm)"),
        (re.compile(r"\b(?:shared_ptr|unique_ptr)\s*<"), "C++ Smart Pointers"),
        (re.compile(r"boost(?:/|::)"), "Boost"),
        ("boost::asio", "Boost.Asio (Networking)"),
        ("boost::filesystem", "Boost.Filesystem"),
        (re.compile(r"\b(?:QApplication|QObject|Q_OBJECT)\b|#include\s*<Q"), "Qt Framework"),
        (re.compile(r"\b(?:QWidget|QMainWindow)\b"), "Qt Widgets"),
        (re.compile(r"\bQQuick\w+"), "Qt QML"),
        (re.compile(r"<opencv|\bcv::"), "OpenCV"),
        (re.compile(r"<Eigen/|\bEigen::"), "Eigen"),
        (re.compile(r"<grpc\+\+/|\bgrpc::"), "gRPC"),
        ("google::protobuf", "Protocol Buffers"),
        (re.compile(r"<sqlite3\.h>|\bsqlite3_"), "SQLite3"),
        (re.compile(r"\bmysqlx::|<mysql_driver\.h>"), "MySQL Connector/C++"),
        (re.compile(r"\bpqxx::|<pqxx/"), "libpqxx (PostgreSQL)"),
        (re.compile(r"gtest/gtest\.h|\bTEST(?:_F)?\(|\bEXPECT_"), "Google Test (gtest)"),
        (re.compile(r"catch2/|CATCH_CONFIG_MAIN|\bTEST_CASE\("), "Catch2"),
        (re.compile(r"doctest\.h|DOCTEST_CONFIG"), "doctest"),
        ("spdlog", "spdlog"),
        (re.compile(r"log4cpp|log4cxx"), "log4cpp / log4cxx"),
        (re.compile(r"nlohmann(?:/|::)json"), "nlohmann/json"),
        ("rapidjson", "RapidJSON"),
        (re.compile(r"\bPoco::|<Poco/"), "POCO C++ Libraries"),
        (re.compile(r"\bcpr::|<cpr/"), "CPR (C++ Requests)"),
        (re.compile(r"<SFML/|\bsf::"), "SFML"),
        (re.compile(r"<SDL2/|\bSDL_\w+"), "SDL2"),
        (re.compile(r"\bOgre::|<Ogre/"), "OGRE 3D"),
        (re.compile(r"<omp\.h>|#pragma omp"), "OpenMP"),
        (re.compile(r"<mpi\.h>|\bMPI_Init"), "MPI"),
        (re.compile(r"<GL/gl\.h>|\bglBegin\b"), "OpenGL"),
        (re.compile(r"<vulkan/vulkan\.h>|\bvkCreateInstance\b"), "Vulkan"),
        (re.compile(r"<cuda_runtime\.h>|__global__"), "CUDA"),
        (re.compile(r"\btemplate\s*<"), "C++ Templates / Metaprogramming"),
    )
    pattern_rules = (
        PatternRule("Singleton", markers=("static", "getInstance", "private:"), all_markers=True),
        PatternRule(
            "Factory",
            file_tokens=("factory",),
            predicate=lambda content: re.search(r"\bCreate\w+\s*\(", content) is not None,
        ),
        PatternRule("Builder", file_tokens=("builder",), markers=(".build()",)),
        PatternRule(
            "Observer",
            file_tokens=("observer", "listener"),
            markers=("notify(", "subscribe("),
        ),
        OBSERVER_CALLBACK,
        PatternRule("Strategy", file_tokens=("strategy", "policy")),
        PatternRule(DECORATOR.name, file_tokens=("decorator", "wrapper")),
        PatternRule(
            "Command",
            predicate=lambda content: "execute(" in content and re.search(r"class\s+\w*Command", content) is not None,
        ),
        PatternRule(
            "PIMPL (Pointer to Implementation)",
            markers=("Impl", "unique_ptr", "private:"),
            all_markers=True,
        ),
        PatternRule(
            "CRTP (Template Pattern)",
            predicate=lambda content: re.search(r"class\s+(\w+)\s*:\s*public\s+\w+<\1>", content) is not None,
        ),
        PatternRule("Repository", file_tokens=("repository", "repo")),
        PatternRule("Service Layer", file_tokens=("service",)),
        PatternRule("MVC Controller", file_tokens=("controller",)),
        UTILITY,
        TEST,
    )

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        return [ns for ns in super().find_packages(unit_name, content) if ns not in _INTERNAL_NAMESPACES]

    def record_patterns(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        super().record_patterns(unit_name, content, model)
        record_header_guard(unit_name, content, model, suffixes=(".hpp",))

    def find_schemas(self, content: str) -> List[str]:
        if "sqlite3_exec" in content or "sqlite3_prepare" in content:
            source = "SQLite3"
        elif "pqxx::" in content:
            source = "PostgreSQL"
        else:
            return []
        return [f"Table: {name} ({source})" for name in _CREATE_TABLE.findall(content)]

    def find_endpoints(self, content: str) -> List[str]:
        endpoints: List[str] = []
        for match in _CROW_ROUTE.finditer(content):
            endpoints.append(f"ROUTE {match.group(1)} (Crow)")
        for match in _PISTACHE_ROUTE.finditer(content):
            endpoints.append(f"{match.group(1).upper()} {match.group(2)} (Pistache)")
        for markers, label in _SERVERS:
            if any(marker in content for marker in markers):
                endpoints.append(label)
        if "bind(" in content and "listen(" in content:
            endpoints.append("TCP Socket Server (Socket API)")
        return endpoints


__all__ = ["CppAnalyzer"]
