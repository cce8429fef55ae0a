"""Python analyzer.

Imports and class counts come from the ``ast`` tree when the module parses
and from line patterns when it does not; both paths feed the same model
mutations. Framework usage is inferred from the top-level modules a unit
imports and, for manifests, from the distributions they declare.
"""

from __future__ import annotations

import ast
import re
import sys
from typing import Dict, Iterable, List, Tuple

from ..languages import Language
from ..logging import get_logger
from ..models import AnalysisModel
from .base import MentionRule, RuleBasedAnalyzer, count_matches, unit_stem
from .patterns import PatternRule
from .syntax import Heuristic, parse_source
from .utils import parse_pipfile, parse_pyproject, parse_requirements, parse_setup_file

logger = get_logger("analyzers.python")

_IMPORT = re.compile(r"^[ \t]*import\s+([\w.]+(?:\s*,\s*[\w.]+)*)", re.MULTILINE)
_FROM_IMPORT = re.compile(r"^[ \t]*from\s+([A-Za-z_][\w.]*)\s+import\b", re.MULTILINE)
_CLASS = re.compile(r"^[ \t]*class\s+\w+\s*[:(]", re.MULTILINE)

_ROUTE = re.compile(r"@\w+\.route\(\s*[\"']([^\"'\n]+)[\"']")
_VERB_ROUTE = re.compile(r"@\w+\.(get|post|put|patch|delete)\(\s*[\"']([^\"'\n]+)[\"']")
_DJANGO_URL = re.compile(r"\b(?:re_path|path|url)\(\s*r?[\"']([^\"'\n]*)[\"']")
_DRF_ACTION = re.compile(
    r"@action\([^)]{0,300}?methods\s*=\s*\[([^\]]{1,200})\][^)]{0,300}?url_path\s*=\s*[\"']([^\"'\n]+)[\"']"
)
_AIOHTTP_ROUTE = re.compile(r"\.add_(get|post|put|patch|delete)\(\s*[\"']([^\"'\n]+)[\"']")

_DJANGO_MODEL = re.compile(r"^[ \t]*class\s+(\w+)\s*\([^)\n]*\bmodels\.Model\b", re.MULTILINE)
_PEEWEE_MODEL = re.compile(
    r"^[ \t]*class\s+(\w+)\s*\([^)\n]{0,200}?\b(?:peewee\.)?Model\b[^)\n]{0,200}\)", re.MULTILINE
)
_TORTOISE_TABLE = re.compile(
    r"^class[ \t]+\w+[ \t]*\([^)\n]{0,200}?Model[^)\n]{0,200}\):"
    r"[\s\S]{0,2000}?\bclass[ \t]+Meta:[\s\S]{0,500}?\btable[ \t]*=[ \t]*[\"'](\w+)[\"']",
    re.MULTILINE,
)
_RAW_SQL_TABLE = re.compile(r"[\"'][^\"'\n]*\b(?:FROM|INTO|UPDATE)\s+(\w+)")
_SQL_KEYWORDS = frozenset({"SELECT", "WHERE", "JOIN", "SET", "VALUES", "TABLE"})

_STDLIB = frozenset(sys.stdlib_module_names)

# Top-level import name -> framework label.
_FRAMEWORKS_BY_MODULE: Dict[str, str] = {
    "django": "Django",
    "flask": "Flask",
    "fastapi": "FastAPI",
    "tornado": "Tornado",
    "sanic": "Sanic",
    "starlette": "Starlette",
    "aiohttp": "aiohttp",
    "falcon": "Falcon",
    "bottle": "Bottle",
    "cherrypy": "CherryPy",
    "rest_framework": "Django REST Framework (DRF)",
    "pydantic": "Pydantic",
    "sqlalchemy": "SQLAlchemy",
    "peewee": "Peewee (ORM)",
    "tortoise": "Tortoise ORM",
    "alembic": "Alembic (DB Migration)",
    "pymongo": "PyMongo (MongoDB)",
    "motor": "Motor (Async MongoDB)",
    "redis": "Redis-py",
    "psycopg": "psycopg (PostgreSQL)",
    "psycopg2": "psycopg (PostgreSQL)",
    "aiomysql": "MySQL Connector",
    "mysql": "MySQL Connector",
    "MySQLdb": "MySQL Connector",
    "elasticsearch": "Elasticsearch (Python)",
    "asyncio": "asyncio",
    "celery": "Celery",
    "dramatiq": "Dramatiq",
    "rq": "RQ (Redis Queue)",
    "kafka": "Kafka-python",
    "pika": "Pika (RabbitMQ)",
    "tensorflow": "TensorFlow",
    "torch": "PyTorch",
    "sklearn": "scikit-learn",
    "keras": "Keras",
    "transformers": "Hugging Face Transformers",
    "langchain": "LangChain",
    "openai": "OpenAI SDK",
    "numpy": "NumPy",
    "pandas": "Pandas",
    "matplotlib": "Matplotlib",
    "scipy": "SciPy",
    "xgboost": "Gradient Boosting (XGBoost/LightGBM/CatBoost)",
    "lightgbm": "Gradient Boosting (XGBoost/LightGBM/CatBoost)",
    "catboost": "Gradient Boosting (XGBoost/LightGBM/CatBoost)",
    "graphene": "Graphene (GraphQL)",
    "strawberry": "Strawberry (GraphQL)",
    "grpc": "gRPC (Python)",
    "scrapy": "Scrapy",
    "bs4": "BeautifulSoup",
    "requests": "Requests (HTTP)",
    "httpx": "HTTPX (Async HTTP)",
    "click": "Click (CLI)",
    "typer": "Typer (CLI)",
    "argparse": "argparse",
    "fire": "Fire (CLI)",
    "pytest": "pytest",
    "unittest": "unittest",
    "hypothesis": "Hypothesis (Property Testing)",
    "mock": "unittest.mock",
    "logging": "logging (stdlib)",
    "structlog": "structlog",
    "loguru": "Loguru",
    "dotenv": "python-dotenv",
    "decouple": "python-decouple",
    "dynaconf": "Dynaconf",
    "apscheduler": "APScheduler",
    "marshmallow": "Marshmallow",
    "attr": "attrs",
    "attrs": "attrs",
    "dataclasses": "dataclasses (stdlib)",
    "cachetools": "Caching (cachetools/lru_cache)",
    "yaml": "PyYAML",
    "jinja2": "Jinja2",
    "uvicorn": "Uvicorn",
}

# Distribution names whose import name differs.
_MODULE_BY_DISTRIBUTION: Dict[str, str] = {
    "djangorestframework": "rest_framework",
    "scikit-learn": "sklearn",
    "beautifulsoup4": "bs4",
    "python-dotenv": "dotenv",
    "python-decouple": "decouple",
    "psycopg2-binary": "psycopg2",
    "psycopg-binary": "psycopg",
    "tortoise-orm": "tortoise",
    "kafka-python": "kafka",
    "mysqlclient": "MySQLdb",
    "mysql-connector-python": "mysql",
    "pyyaml": "yaml",
    "grpcio": "grpc",
    "tensorflow-cpu": "tensorflow",
}

_MANIFEST_PARSERS = {
    "pipfile": parse_pipfile,
    "pyproject.toml": parse_pyproject,
    "setup.py": parse_setup_file,
    "setup.cfg": parse_setup_file,
}


def _top_level(module: str) -> str:
    return module.split(".", 1)[0]


def _imports_from_tree(tree: ast.AST) -> List[Tuple[str, str]]:
    found: List[Tuple[str, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.extend((_top_level(alias.name), "import") for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            found.append((_top_level(node.module), "from-import"))
    return found


def _imports_from_text(content: str) -> List[Tuple[str, str]]:
    found: List[Tuple[str, str]] = []
    for match in _IMPORT.finditer(content):
        for name in match.group(1).split(","):
            found.append((_top_level(name.strip()), "import"))
    for match in _FROM_IMPORT.finditer(content):
        found.append((_top_level(match.group(1)), "from-import"))
    return found


def _unique(pairs: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    unique: List[Tuple[str, str]] = []
    seen: set[Tuple[str, str]] = set()
    for pair in pairs:
        if pair[0] and pair not in seen:
            seen.add(pair)
            unique.append(pair)
    return unique


def _module_for_distribution(name: str) -> str:
    lowered = name.lower()
    return _MODULE_BY_DISTRIBUTION.get(lowered, lowered.replace("-", "_"))


class PythonAnalyzer(RuleBasedAnalyzer):
    """Imports, frameworks, web routes and ORM models for Python sources."""

    languages = (Language.PYTHON,)

    pattern_rules = (
        PatternRule(
            "Singleton",
            file_tokens=("singleton",),
            markers=("_instance = None",),
            predicate=lambda content: "__new__" in content and "cls._instance" in content,
        ),
        PatternRule("Factory", file_tokens=("factory",), markers=("def create(", "def make(")),
        PatternRule("Abstract Factory", file_tokens=("abstract_factory", "abstractfactory")),
        PatternRule("Builder", file_tokens=("builder",), markers=("def build(", "def with_")),
        PatternRule("Strategy", file_tokens=("strategy", "policy")),
        PatternRule(
            "Observer / Event",
            file_tokens=("observer", "listener", "event"),
            markers=("def notify(", "def subscribe(", "def publish("),
        ),
        PatternRule("Command", file_tokens=("command", "cmd"), markers=("def execute(",)),
        PatternRule("Decorator", file_tokens=("decorator",), markers=("functools.wraps", "@wraps(")),
        PatternRule("Repository", file_tokens=("repository", "repo")),
        PatternRule("Service Layer", file_tokens=("service",)),
        PatternRule(
            "MVC Controller / View",
            file_tokens=("controller", "view"),
            markers=("@app.route", "APIView"),
        ),
        PatternRule("Adapter", file_tokens=("adapter",)),
        PatternRule("Facade", file_tokens=("facade",)),
        PatternRule("Proxy", file_tokens=("proxy",)),
        PatternRule("Iterator", markers=("def __iter__(", "def __next__(")),
        PatternRule("Context Manager", markers=("def __enter__(", "def __exit__(")),
        PatternRule("Mixin", file_tokens=("mixin",)),
        PatternRule("Use Case", file_tokens=("usecase", "use_case")),
        PatternRule("DTO / Schema", file_tokens=("dto", "schema"), markers=("@dataclass",)),
        PatternRule("Mapper", file_tokens=("mapper",)),
    )
    schema_rules = (
        MentionRule(_DJANGO_MODEL, lambda m: f"Table: {m.group(1)} (Django Model)"),
        MentionRule(
            re.compile(r"__tablename__\s*=\s*[\"'](\w+)[\"']"),
            lambda m: f"Table: {m.group(1)} (SQLAlchemy)",
        ),
        MentionRule(
            re.compile(r"op\.create_table\(\s*[\"'](\w+)[\"']"),
            lambda m: f"Table: {m.group(1)} (Alembic Migration)",
        ),
        MentionRule(_TORTOISE_TABLE, lambda m: f"Table: {m.group(1)} (Tortoise ORM)"),
    )
    endpoint_rules = (
        MentionRule(_ROUTE, lambda m: f"ROUTE {m.group(1)} (Flask)"),
        MentionRule(_VERB_ROUTE, lambda m: f"{m.group(1).upper()} {m.group(2)} (FastAPI)"),
        MentionRule(_AIOHTTP_ROUTE, lambda m: f"{m.group(1).upper()} {m.group(2)} (aiohttp)"),
        MentionRule(
            _DRF_ACTION,
            lambda m: f"{re.sub(r'[^A-Za-z,]', '', m.group(1)).upper()} /{m.group(2)} (DRF @action)",
        ),
    )

    def analyze(self, unit_name: str, content: str, model: AnalysisModel) -> None:
        if self.analyze_manifest(unit_name, content, model):
            return

        outcome = parse_source(Language.PYTHON, content, enabled=self._use_parser)
        if isinstance(outcome, Heuristic):
            logger.debug("Heuristic scan for %s: %s", unit_name, outcome.reason)
            imports = _unique(_imports_from_text(content))
            class_count = count_matches(_CLASS, content)
        else:
            imports = _unique(_imports_from_tree(outcome.tree))
            class_count = sum(1 for node in ast.walk(outcome.tree) if isinstance(node, ast.ClassDef))

        module = unit_stem(unit_name)
        if module not in ("__init__", "__main__"):
            model.add_package(module)
        model.add_classes(class_count)

        for target, kind in imports:
            if target not in _STDLIB and target != module:
                model.add_dependency(module, target, kind)

        for framework in self._frameworks(name for name, _ in imports):
            model.add_framework(framework)
        if "async def" in content and "asyncio" not in (name for name, _ in imports):
            model.add_framework("asyncio")

        self.record_patterns(unit_name, content, model)
        for schema in self.find_schemas(content):
            model.add_database_schema(schema)
        for endpoint in self.find_endpoints(content):
            model.add_api_endpoint(endpoint)

    def analyze_manifest(self, unit_name: str, content: str, model: AnalysisModel) -> bool:
        lowered = unit_name.lower()
        if lowered.startswith("requirements") and lowered.endswith(".txt"):
            packages = parse_requirements(content)
        elif lowered in _MANIFEST_PARSERS:
            packages = _MANIFEST_PARSERS[lowered](content)
        else:
            return False
        for package in packages:
            model.add_dependency(unit_name, package, "dependency")
        for framework in self._frameworks(_module_for_distribution(name) for name in packages):
            model.add_framework(framework)
        return True

    def _frameworks(self, modules: Iterable[str]) -> List[str]:
        detected: List[str] = []
        for module in modules:
            framework = _FRAMEWORKS_BY_MODULE.get(module)
            if framework and framework not in detected:
                detected.append(framework)
        return detected

    def find_schemas(self, content: str) -> List[str]:
        schemas = list(super().find_schemas(content))
        if "peewee" in content:
            schemas.extend(f"Table: {name} (Peewee Model)" for name in _PEEWEE_MODEL.findall(content))
        for name in _RAW_SQL_TABLE.findall(content):
            if name.upper() not in _SQL_KEYWORDS:
                schemas.append(f"Table: {name} (Raw SQL)")
        return schemas

    def find_endpoints(self, content: str) -> List[str]:
        endpoints = list(super().find_endpoints(content))
        if "urlpatterns" in content:
            endpoints.extend(f"URL /{path} (Django)" for path in _DJANGO_URL.findall(content))
        return endpoints


__all__ = ["PythonAnalyzer"]
