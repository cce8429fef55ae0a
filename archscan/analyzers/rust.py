"""Rust analyzer."""

from __future__ import annotations

import re
from typing import Iterable, List

from ..languages import Language
from ..models import AnalysisModel
from .base import ImportRule, RuleBasedAnalyzer, frameworks, unit_stem
from .patterns import REPOSITORY, SERVICE_LAYER, PatternRule
from .utils import parse_cargo_toml

_USE = re.compile(r"^[ \t]*(?:pub\s+)?use\s+(?:::)?([\w:]+)", re.MULTILINE)
_EXTERN_CRATE = re.compile(r"^[ \t]*extern\s+crate\s+(\w+)", re.MULTILINE)
_MOD = re.compile(r"^[ \t]*(?:pub(?:\([\w\s]+\))?\s+)?mod\s+(\w+)", re.MULTILINE)
_TYPES = re.compile(r"^[ \t]*(?:pub(?:\([\w\s]+\))?\s+)?(?:struct|enum|trait)\s+\w+", re.MULTILINE)
_TYPE_NODES = frozenset({"struct_item", "enum_item", "trait_item"})
_ATTRIBUTE_ROUTE = re.compile(r"#\[(get|post|put|patch|delete)\(\s*\"([^\"\n]+)\"")
_AXUM_ROUTE = re.compile(r"\.route\(\s*\"([^\"\n]+)\"\s*,\s*(get|post|put|patch|delete)\(")
_WARP_PATH = re.compile(r"warp::path\(\s*\"([^\"\n]+)\"\s*\)")
_DIESEL_TABLE = re.compile(r"\btable!\s*\{\s*(?:[\w:]+::)?(\w+)\s*\(")
_MIGRATION_TABLE = re.compile(r"create_table\s*\(\s*[\"']?(\w+)")
_SQL_TABLE = re.compile(r"\b(?:FROM|INTO|UPDATE)\s+(\w+)")

_BUILTIN_CRATES = frozenset({"std", "core", "alloc", "self", "super", "crate"})


def _crate(name: str) -> re.Pattern[str]:
    return re.compile(r"\b" + name + r"\b")


def _crate_root(path: str) -> str:
    return path.split("::", 1)[0]


class RustAnalyzer(RuleBasedAnalyzer):
    languages = (Language.RUST,)

    import_rules = (
        ImportRule(_USE, "use", _crate_root),
        ImportRule(_EXTERN_CRATE, "extern_crate"),
    )
    type_pattern = _TYPES
    type_nodes = _TYPE_NODES
    framework_rules = frameworks(
        (_crate("tokio"), "Tokio (Async Runtime)"),
        (_crate("async_std"), "async-std"),
        (_crate("smol"), "Smol (Async Runtime)"),
        (_crate("actix_web"), "Actix-Web"),
        (_crate("axum"), "Axum"),
        (_crate("rocket"), "Rocket"),
        (_crate("warp"), "Warp"),
        (_crate("hyper"), "Hyper (HTTP)"),
        (re.compile(r"\btide::"), "Tide"),
        (re.compile(r"\bserde\b|#\[derive\([^)]*\b(?:Serialize|Deserialize)\b"), "Serde (Serialization)"),
        (_crate("serde_json"), "serde_json"),
        (_crate("diesel"), "Diesel (ORM)"),
        (_crate("sqlx"), "SQLx"),
        (_crate("sea_orm"), "SeaORM"),
        (_crate("rusqlite"), "Rusqlite (SQLite)"),
        (_crate("mongodb"), "MongoDB (Rust)"),
        ("redis::", "Redis (Rust)"),
        (_crate("reqwest"), "Reqwest (HTTP Client)"),
        (_crate("ureq"), "Ureq (HTTP Client)"),
        (re.compile(r"\bclap\b|#\[derive\([^)]*\bParser\b"), "Clap (CLI)"),
        (re.compile(r"\bstructopt\b|\bStructOpt\b"), "StructOpt (CLI)"),
        (_crate("rayon"), "Rayon (Parallelism)"),
        (_crate("crossbeam"), "Crossbeam (Concurrency)"),
        (_crate("tonic"), "Tonic (gRPC)"),
        (_crate("prost"), "Prost (Protocol Buffers)"),
        (re.compile(r"#\[test\]|#\[cfg\(test\)\]"), "Rust Built-in Test"),
        (_crate("mockall"), "Mockall (Mocking)"),
        (_crate("proptest"), "Proptest (Property Testing)"),
        (re.compile(r"\blog::|\buse log;"), "log (Logging Facade)"),
        (_crate("tracing"), "Tracing (Observability)"),
        (_crate("env_logger"), "env_logger"),
        (_crate("bevy"), "Bevy (Game Engine)"),
        ("#![no_std]", "no_std (Embedded/Bare Metal)"),
        (_crate("embedded_hal"), "embedded-hal"),
        (_crate("wasm_bindgen"), "wasm-bindgen (WebAssembly)"),
        (_crate("web_sys"), "web-sys"),
    )
    pattern_rules = (
        PatternRule("Builder", file_tokens=("builder",), markers=("fn builder(", "fn build(")),
        PatternRule("Strategy (Trait Object)", file_tokens=("strategy",), markers=("dyn ",)),
        PatternRule("Command", file_tokens=("command", "cmd")),
        PatternRule(
            "State / Typestate",
            file_tokens=("state",),
            predicate=lambda content: re.search(r"enum\s+\w+State\b", content) is not None,
        ),
        PatternRule("Observer / Event", file_tokens=("event", "listener"), markers=("EventEmitter",)),
        PatternRule(
            "Singleton (OnceLock/once_cell)",
            markers=("once_cell", "lazy_static", "OnceCell", "OnceLock"),
        ),
        PatternRule(
            "Factory",
            file_tokens=("factory",),
            predicate=lambda content: "fn new(" in content and "-> Self" in content,
        ),
        PatternRule(REPOSITORY.name, file_tokens=("repository", "repo")),
        SERVICE_LAYER,
        PatternRule("Middleware", file_tokens=("middleware",), markers=("from_fn", "impl Transform")),
        PatternRule("Iterator", markers=("impl Iterator", "fn next(")),
        PatternRule(
            "Error Handling (thiserror/anyhow)",
            markers=("thiserror", "anyhow", "impl Error", "impl std::error::Error"),
        ),
    )

    def analyze_manifest(self, unit_name: str, content: str, model: AnalysisModel) -> bool:
        if unit_name.lower() != "cargo.toml":
            return False
        for crate in parse_cargo_toml(content):
            model.add_dependency(unit_name, crate, "dependency")
        return True

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        modules = [match.group(1) for match in _MOD.finditer(content)]
        return modules or [unit_stem(unit_name)]

    def dependency_source(self, unit_name: str, content: str) -> str:
        return unit_stem(unit_name)

    def _is_ignored_import(self, target: str) -> bool:
        return target in _BUILTIN_CRATES

    def find_schemas(self, content: str) -> List[str]:
        schemas = [f"Table: {name} (Diesel)" for name in _DIESEL_TABLE.findall(content)]
        schemas.extend(f"Table: {name} (Diesel Migration)" for name in _MIGRATION_TABLE.findall(content))
        if "sqlx::" in content:
            for name in _SQL_TABLE.findall(content):
                if name.upper() not in {"SELECT", "WHERE", "SET"}:
                    schemas.append(f"Table: {name} (SQLx)")
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        framework = "Actix-Web" if "actix_web" in content else "Rocket"
        endpoints = [
            f"{method.upper()} {path} ({framework})" for method, path in _ATTRIBUTE_ROUTE.findall(content)
        ]
        endpoints.extend(f"{method.upper()} {path} (Axum)" for path, method in _AXUM_ROUTE.findall(content))
        endpoints.extend(f"ROUTE /{path} (Warp)" for path in _WARP_PATH.findall(content))
        return endpoints


__all__ = ["RustAnalyzer"]
