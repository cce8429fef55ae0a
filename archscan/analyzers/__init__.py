"""Language analyzer implementations and the registry that dispatches to them."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from ..languages import Language
from .base import LanguageAnalyzer
from .c import CAnalyzer
from .cpp import CppAnalyzer
from .csharp import CSharpAnalyzer
from .java import JavaAnalyzer
from .javascript import JavaScriptAnalyzer, TypeScriptAnalyzer
from .jsp import JspAnalyzer
from .kotlin import KotlinAnalyzer
from .php import PhpAnalyzer
from .python import PythonAnalyzer
from .ruby import RubyAnalyzer
from .rust import RustAnalyzer

_BUILTIN_FACTORIES: dict[Language, Callable[[bool], LanguageAnalyzer]] = {
    Language.JAVA: lambda use_parser: JavaAnalyzer(use_parser=use_parser),
    Language.CSHARP: lambda use_parser: CSharpAnalyzer(use_parser=use_parser),
    Language.JAVASCRIPT: lambda use_parser: JavaScriptAnalyzer(use_parser=use_parser),
    Language.TYPESCRIPT: lambda use_parser: TypeScriptAnalyzer(use_parser=use_parser),
    Language.C: lambda use_parser: CAnalyzer(use_parser=use_parser),
    Language.CPP: lambda use_parser: CppAnalyzer(use_parser=use_parser),
    Language.RUBY: lambda use_parser: RubyAnalyzer(use_parser=use_parser),
    Language.RUST: lambda use_parser: RustAnalyzer(use_parser=use_parser),
    Language.KOTLIN: lambda use_parser: KotlinAnalyzer(use_parser=use_parser),
    Language.PYTHON: lambda use_parser: PythonAnalyzer(use_parser=use_parser),
    Language.PHP: lambda use_parser: PhpAnalyzer(use_parser=use_parser),
    Language.JSP: lambda use_parser: JspAnalyzer(use_parser=use_parser),
}


def supported_languages() -> List[Language]:
    return list(_BUILTIN_FACTORIES)


def build_registry(
    enabled: Sequence[str] | None = None, *, use_parser: bool = True
) -> Dict[Language, LanguageAnalyzer]:
    """Return one analyzer instance per language, honoring optional enabled names.

    ``enabled`` accepts display names (``"C#"``) or member names (``"csharp"``)
    in any case. Unknown names raise ValueError.
    """
    selected: List[Language]
    if enabled is None:
        selected = supported_languages()
    else:
        selected = []
        missing: List[str] = []
        for name in enabled:
            try:
                language = Language.from_name(name)
            except ValueError:
                missing.append(name)
                continue
            if language not in _BUILTIN_FACTORIES:
                missing.append(name)
                continue
            if language not in selected:
                selected.append(language)
        if missing:
            raise ValueError(f"Unknown languages requested: {', '.join(sorted(missing))}")

    registry: Dict[Language, LanguageAnalyzer] = {}
    for language in selected:
        instance = _BUILTIN_FACTORIES[language](use_parser)
        if not isinstance(instance, LanguageAnalyzer):
            raise TypeError(
                f"Analyzer factory for '{language.display_name}' did not return a LanguageAnalyzer"
            )
        if language not in instance.languages:
            raise TypeError(
                f"{type(instance).__name__} does not declare support for '{language.display_name}'"
            )
        registry[language] = instance
    return registry


__all__ = [
    "LanguageAnalyzer",
    "build_registry",
    "supported_languages",
]
