"""JavaScript and TypeScript analyzer."""

from __future__ import annotations

import re
from typing import ClassVar, List

from ..languages import Language
from ..models import AnalysisModel
from .base import (
    ImportRule,
    MentionRule,
    RuleBasedAnalyzer,
    count_matches,
    frameworks,
    unit_stem,
)
from .patterns import CONTROLLER, MIDDLEWARE, REPOSITORY, SERVICE_LAYER, PatternRule

_IMPORT = re.compile(
    r"^[ \t]*import(?:[^'\";]{0,500}?\bfrom)?[ \t]*['\"]([^'\"\n]+)['\"]", re.MULTILINE
)
_REQUIRE = re.compile(r"\brequire\(\s*['\"]([^'\"\n]+)['\"]\s*\)")
_TYPES = re.compile(r"\b(?:class|interface|type|enum)\s+\w+")
_FUNCTION_VALUES = re.compile(r"\b(?:const|let|var)\s+\w+\s*=\s*(?:async\s+)?\(")
_EXPORTED_FUNCTION = re.compile(r"export\s+(?:default\s+)?function\s+\w+")
# How far past the signature a component's JSX return is looked for.
_COMPONENT_WINDOW = 2000
_MONGOOSE_SCHEMA = re.compile(r"const\s+(\w+)Schema\s*=")
_EXPRESS_ROUTE = re.compile(r"\b(?:app|router)\.(get|post|put|delete|patch)\(\s*['\"`]([^'\"`\n]+)['\"`]")
_NEST_ROUTE = re.compile(r"@(Get|Post|Put|Delete|Patch)\(\s*['\"]([^'\"\n]*)['\"]\s*\)")


def _from(module: str) -> re.Pattern[str]:
    return re.compile(r"from\s+['\"]" + re.escape(module) + r"['\"]")


def _require(module: str) -> re.Pattern[str]:
    return re.compile(r"require\(\s*['\"]" + re.escape(module) + r"['\"]\s*\)")


def _exports_component(content: str) -> bool:
    """True when an exported function returns JSX shortly after its signature."""
    for match in _EXPORTED_FUNCTION.finditer(content):
        body = content[match.end() : match.end() + _COMPONENT_WINDOW]
        returned = body.find("return")
        if returned == -1:
            continue
        opened = body.find("<", returned)
        if opened != -1 and body.find(">", opened) != -1:
            return True
    return False


class JavaScriptAnalyzer(RuleBasedAnalyzer):
    """Module-level heuristics shared by JavaScript and TypeScript sources."""

    languages = (Language.JAVASCRIPT,)
    typescript: ClassVar[bool] = False

    import_rules = (
        ImportRule(_IMPORT, "import"),
        ImportRule(_REQUIRE, "require"),
    )
    type_pattern = _TYPES
    framework_rules = frameworks(
        (_from("react"), "React"),
        ("useState", "React Hooks"),
        ("useEffect", "React Hooks"),
        (_from("vue"), "Vue.js"),
        ("@angular/core", "Angular"),
        ("@Component", "Angular"),
        (_from("express"), "Express.js"),
        (_require("express"), "Express.js"),
        (re.compile(r"from\s+['\"]next[/'\"]"), "Next.js"),
        ("@nestjs/", "NestJS"),
        (_from("jest"), "Jest"),
        ("describe(", "Jest"),
        (_from("mocha"), "Mocha"),
        (_from("redux"), "Redux"),
        ("useDispatch", "Redux"),
        (_from("zustand"), "Zustand"),
        (_from("mongoose"), "Mongoose"),
        (_require("mongoose"), "Mongoose"),
        (_from("typeorm"), "TypeORM"),
        ("@prisma/client", "Prisma"),
    )
    pattern_rules = (
        PatternRule("Singleton", markers=("getInstance", "static"), all_markers=True),
        PatternRule("Factory", file_tokens=("factory",), markers=("create(",)),
        PatternRule(REPOSITORY.name, file_tokens=("repository", "repo")),
        SERVICE_LAYER,
        PatternRule(CONTROLLER.name, file_tokens=("controller",)),
        PatternRule(
            "Component",
            file_tokens=("component",),
            markers=("@Component",),
            predicate=_exports_component,
        ),
        PatternRule(
            MIDDLEWARE.name,
            file_tokens=MIDDLEWARE.file_tokens,
            predicate=lambda content: re.search(r"\(\s*req,\s*res,\s*next\s*\)", content) is not None,
        ),
    )
    schema_rules = (
        MentionRule(
            re.compile(r"@Entity\(\s*['\"]([^'\"\n]+)['\"]\s*\)"),
            lambda m: f"Table: {m.group(1)} (TypeORM)",
        ),
    )
    endpoint_rules = (
        MentionRule(_EXPRESS_ROUTE, lambda m: f"{m.group(1).upper()} {m.group(2)} (Express)"),
        MentionRule(_NEST_ROUTE, lambda m: f"{m.group(1).upper()} /{m.group(2).lstrip('/')} (NestJS)"),
    )

    def dependency_source(self, unit_name: str, content: str) -> str:
        return unit_stem(unit_name)

    def _is_ignored_import(self, target: str) -> bool:
        # Relative imports point inside the project and are not dependencies.
        return target.startswith(".") or target.startswith("/")

    def count_types(self, unit_name: str, content: str) -> int:
        return count_matches(_TYPES, content) + count_matches(_FUNCTION_VALUES, content)

    def detect_frameworks(self, content: str) -> List[str]:
        detected = super().detect_frameworks(content)
        if self.typescript and "TypeScript" not in detected:
            detected.append("TypeScript")
        return detected

    def record_patterns(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        super().record_patterns(unit_name, content, model)
        if unit_name.lower().startswith("use") and ("useState" in content or "useEffect" in content):
            model.add_design_pattern("Custom Hook", unit_stem(unit_name))

    def find_schemas(self, content: str) -> List[str]:
        schemas: List[str] = []
        if "new Schema(" in content or "mongoose.Schema" in content:
            match = _MONGOOSE_SCHEMA.search(content)
            if match:
                schemas.append(f"Collection: {match.group(1)} (Mongoose)")
        schemas.extend(super().find_schemas(content))
        if "PrismaClient" in content:
            schemas.append("Database: Prisma Client")
        return schemas


class TypeScriptAnalyzer(JavaScriptAnalyzer):
    languages = (Language.TYPESCRIPT,)
    typescript = True


__all__ = ["JavaScriptAnalyzer", "TypeScriptAnalyzer"]
