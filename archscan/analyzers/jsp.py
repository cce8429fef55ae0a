"""JSP analyzer."""

from __future__ import annotations

import re
from typing import Iterator, List, Tuple

from ..languages import Language
from .base import MentionRule, RuleBasedAnalyzer, frameworks, unit_stem
from .patterns import PatternRule

_PAGE_DIRECTIVE = re.compile(r"<%@\s*page\s([^%]+)%>", re.IGNORECASE | re.DOTALL)
_PAGE_IMPORT = re.compile(r"import\s*=\s*\"([^\"\n]+)\"", re.IGNORECASE)
_TAGLIB = re.compile(r"<%@\s*taglib\s[^%]*?\buri\s*=\s*\"([^\"\n]+)\"", re.IGNORECASE)
_INCLUDE_DIRECTIVE = re.compile(r"<%@\s*include\s+file\s*=\s*\"([^\"\n]+)\"", re.IGNORECASE)
_JSP_ACTION = re.compile(r"<jsp:(include|forward)\s[^>]*?\bpage\s*=\s*\"([^\"\n]+)\"", re.IGNORECASE)
_FORM = re.compile(r"<form\b([^>]*)>", re.IGNORECASE)
_FORM_ACTION = re.compile(r"\baction\s*=\s*[\"']([^\"'\n]*)[\"']", re.IGNORECASE)
_FORM_METHOD = re.compile(r"\bmethod\s*=\s*[\"']?(\w+)", re.IGNORECASE)
_SCRIPTLET = re.compile(r"<%[^@=\-][^%]*%>", re.DOTALL)
_SQL_QUERY_TABLE = re.compile(r"<sql:(?:query|update)[^>]*>[^<]*?\b(?:FROM|INTO|UPDATE)\s+(\w+)", re.IGNORECASE)

_PLATFORM_PREFIXES = ("java.", "javax.", "jakarta.", "sun.", "com.sun.")


def _text(*values: str) -> re.Pattern[str]:
    return re.compile("|".join(re.escape(value) for value in values), re.IGNORECASE)


class JspAnalyzer(RuleBasedAnalyzer):
    languages = (Language.JSP,)

    ignored_imports = _PLATFORM_PREFIXES
    framework_rules = frameworks(
        (_text("java.sun.com/jsp/jstl", "java.sun.com/jstl", "jakarta.tags.core", "<c:", "<fmt:", "<fn:"), "JSTL"),
        (_text("<sql:", "jstl/sql"), "JSTL SQL"),
        (_text("<x:", "jstl/xml"), "JSTL XML"),
        (_text("<spring:", "www.springframework.org/tags"), "Spring MVC (View)"),
        (_text("<form:", "www.springframework.org/tags/form"), "Spring MVC Form Tags"),
        (_text("<sec:", "www.springframework.org/security/tags"), "Spring Security (JSP)"),
        (_text("/struts-tags", "org.apache.struts."), "Struts (View)"),
        (_text("org.apache.struts2", "struts2"), "Struts 2 (View)"),
        (_text("<tiles:", "org.apache.tiles"), "Apache Tiles"),
        (_text("sitemesh", "<decorator:"), "SiteMesh"),
        (_text("javax.servlet", "jakarta.servlet"), "Jakarta EE Servlet"),
        (_text("javax.faces", "jakarta.faces", "<h:", "<f:"), "JavaServer Faces (JSF)"),
        (_text("jquery"), "jQuery"),
        (_text("bootstrap"), "Bootstrap"),
        (re.compile(r"\bReactDOM\b"), "React.js"),
        (_text("<shiro:", "org.apache.shiro"), "Apache Shiro (JSP)"),
        (_text("org.mybatis", "mybatis"), "MyBatis"),
    )
    pattern_rules = (
        PatternRule("MVC View", markers=("<%@ page", "<c:", "${")),
        PatternRule("Front Controller", markers=("RequestDispatcher", "jsp:forward")),
        PatternRule("Template Method (JSP include)", markers=("<%@ include", "jsp:include")),
        PatternRule("Filter/Decorator", file_tokens=("filter",), markers=("FilterChain", "<decorator:")),
        PatternRule("Scriptlet (Anti-pattern)", predicate=lambda content: _SCRIPTLET.search(content) is not None),
        PatternRule(
            "Model Binding",
            predicate=lambda content: "${" in content and re.search(r"\$\{\s*(?:model|requestScope)\.", content) is not None,
        ),
        PatternRule("Security (Authentication)", markers=("<sec:",), predicate=lambda content: "authentication" in content.lower()),
        PatternRule("AJAX", predicate=lambda content: re.search(r"XMLHttpRequest|\$\.ajax|\bfetch\(", content) is not None),
    )
    schema_rules = (
        MentionRule(
            re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[`'\"]?(\w+)", re.IGNORECASE),
            lambda m: f"Table: {m.group(1)} (Raw SQL in JSP)",
        ),
        MentionRule(_SQL_QUERY_TABLE, lambda m: f"Table: {m.group(1)} (JSTL SQL)"),
    )

    def find_imports(self, content: str) -> Iterator[Tuple[str, str]]:
        for directive in _PAGE_DIRECTIVE.finditer(content):
            for imports in _PAGE_IMPORT.findall(directive.group(1)):
                for name in imports.split(","):
                    target = name.strip()
                    if target and not self._is_ignored_import(target):
                        yield target, "jsp-import"
        for uri in _TAGLIB.findall(content):
            yield uri.lower(), "taglib"
        for path in _INCLUDE_DIRECTIVE.findall(content):
            yield path, "include"
        for action, page in _JSP_ACTION.findall(content):
            yield page, action.lower()

    def dependency_source(self, unit_name: str, content: str) -> str:
        return unit_stem(unit_name)

    def count_types(self, unit_name: str, content: str) -> int:
        # A page with scriptlets compiles into servlet code of its own.
        return 1 if _SCRIPTLET.search(content) else 0

    def find_endpoints(self, content: str) -> List[str]:
        endpoints: List[str] = []
        for attributes in _FORM.findall(content):
            action = _FORM_ACTION.search(attributes)
            if not action:
                continue
            target = action.group(1).strip()
            if not target or target.startswith("#"):
                continue
            method = _FORM_METHOD.search(attributes)
            verb = method.group(1).upper() if method else "GET"
            endpoints.append(f"{verb} {target} (JSP form)")
        return endpoints


__all__ = ["JspAnalyzer"]
