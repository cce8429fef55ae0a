"""C# analyzer."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Tuple

from ..languages import Language
from .base import ImportRule, RuleBasedAnalyzer, declared_name, frameworks, http_verb
from .patterns import BUILDER, CONTROLLER, PatternRule

_NAMESPACE = re.compile(r"^[ \t]*namespace\s+([A-Za-z0-9_.]+)", re.MULTILINE)
_USING = re.compile(r"^[ \t]*using\s+(?:static\s+)?([A-Za-z0-9_.]+)\s*;", re.MULTILINE)
_TYPES = re.compile(r"\b(?:class|interface|struct|enum|record)\s+\w+")
_TYPE_NODES = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "struct_declaration",
        "enum_declaration",
        "record_declaration",
        "record_struct_declaration",
    }
)
_CLASS_NAME = re.compile(r"\bclass\s+([A-Za-z0-9_]+)")
_TABLE = re.compile(r"\[Table\(\"([^\"\n]+)\"\)")
_ROUTE = re.compile(r"\[Route\(\"([^\"\n]+)\"\)\]")
_HTTP = re.compile(r"\[(HttpGet|HttpPost|HttpPut|HttpDelete|HttpPatch)(?:\(\"([^\"\n]*)\"\))?\]")
# Handlers follow their route attribute within a few lines.
_HANDLER_WINDOW = 400


class CSharpAnalyzer(RuleBasedAnalyzer):
    languages = (Language.CSHARP,)

    package_pattern = _NAMESPACE
    import_rules = (ImportRule(_USING, "using"),)
    ignored_imports = ("System",)
    type_pattern = _TYPES
    type_nodes = _TYPE_NODES
    framework_rules = frameworks(
        ("Microsoft.AspNetCore", "ASP.NET Core"),
        ("[ApiController]", "ASP.NET Core Web API"),
        ("[Route", "ASP.NET Core Web API"),
        ("Microsoft.EntityFrameworkCore", "Entity Framework Core"),
        ("DbContext", "Entity Framework Core"),
        ("System.Web", ".NET Framework"),
        ("IServiceCollection", "Dependency Injection"),
        ("[Inject]", "Dependency Injection"),
        ("using Xunit", "xUnit"),
        ("[Fact]", "xUnit"),
        ("using NUnit", "NUnit"),
        ("[Test]", "NUnit"),
        ("using Moq", "Moq"),
        ("ILogger", "Microsoft.Extensions.Logging"),
        ("Newtonsoft.Json", "Json.NET (Newtonsoft)"),
        ("System.Text.Json", "System.Text.Json"),
    )
    pattern_rules = (
        PatternRule(
            "Singleton",
            predicate=lambda c: "private static" in c and re.search(r"\bInstance\b", c) is not None,
        ),
        PatternRule("Factory", file_tokens=("factory",), markers=("Create(",)),
        BUILDER,
        PatternRule("Repository", file_tokens=("repository",), markers=("IRepository",)),
        PatternRule("Service Layer", file_tokens=("service",), markers=("IService",)),
        PatternRule("DTO/VO", file_tokens=("dto", "model")),
        PatternRule(CONTROLLER.name, file_tokens=("controller",), markers=("[ApiController]",)),
    )

    def find_packages(self, unit_name: str, content: str) -> Iterable[str]:
        match = _NAMESPACE.search(content)
        return [match.group(1)] if match else []

    def find_imports(self, content: str) -> Iterator[Tuple[str, str]]:
        if not _NAMESPACE.search(content):
            return
        yield from super().find_imports(content)

    def find_schemas(self, content: str) -> List[str]:
        if "DbSet<" not in content and "[Table(" not in content:
            return []
        table = _TABLE.search(content)
        if table:
            return [f"Table: {table.group(1)} (EF Core Entity)"]
        class_name = _CLASS_NAME.search(content)
        if class_name:
            return [f"Table: {class_name.group(1)} (EF Core Entity)"]
        return []

    def find_endpoints(self, content: str) -> List[str]:
        route = _ROUTE.search(content)
        class_route = route.group(1) if route else ""
        endpoints: List[str] = []
        for match in _HTTP.finditer(content):
            method = http_verb(match.group(1))
            path = match.group(2) or ""
            full_path = "/".join(part.strip("/") for part in (class_route, path) if part)
            following = content[match.end() : match.end() + _HANDLER_WINDOW].split("\n", 5)[:5]
            name = declared_name(following, "[")
            endpoints.append(f"{method} /{full_path} ({name})")
        return endpoints


__all__ = ["CSharpAnalyzer"]
