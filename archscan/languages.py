"""Language classification by file name and extension."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath, PurePosixPath
from typing import Dict


class Language(Enum):
    """Languages recognised by the analyzer registry."""

    JAVA = "Java"
    CSHARP = "C#"
    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"
    C = "C"
    CPP = "C++"
    RUBY = "Ruby"
    RUST = "Rust"
    KOTLIN = "Kotlin"
    PYTHON = "Python"
    PHP = "PHP"
    JSP = "JSP"
    UNKNOWN = "Unknown"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "Language":
        """Resolve a display name or member name, case-insensitively."""
        lowered = name.strip().lower()
        for member in cls:
            if lowered in {member.value.lower(), member.name.lower()}:
                return member
        raise ValueError(f"Unknown language: {name}")


_LANGUAGE_BY_SUFFIX: Dict[str, Language] = {
    ".java": Language.JAVA,
    ".cs": Language.CSHARP,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".c": Language.C,
    ".h": Language.C,
    ".cpp": Language.CPP,
    ".cc": Language.CPP,
    ".cxx": Language.CPP,
    ".c++": Language.CPP,
    ".hpp": Language.CPP,
    ".rb": Language.RUBY,
    ".rake": Language.RUBY,
    ".gemspec": Language.RUBY,
    ".rs": Language.RUST,
    ".kt": Language.KOTLIN,
    ".kts": Language.KOTLIN,
    ".py": Language.PYTHON,
    ".pyw": Language.PYTHON,
    ".php": Language.PHP,
    ".phtml": Language.PHP,
    ".php3": Language.PHP,
    ".php4": Language.PHP,
    ".php5": Language.PHP,
    ".phps": Language.PHP,
    ".jsp": Language.JSP,
    ".jspf": Language.JSP,
    ".jspx": Language.JSP,
}


# Build and manifest files owned by a language; checked before the suffix.
_LANGUAGE_BY_NAME: Dict[str, Language] = {
    "gemfile": Language.RUBY,
    "rakefile": Language.RUBY,
    "cargo.toml": Language.RUST,
    "build.rs": Language.RUST,
    "requirements.txt": Language.PYTHON,
    "pipfile": Language.PYTHON,
    "pyproject.toml": Language.PYTHON,
    "setup.py": Language.PYTHON,
    "setup.cfg": Language.PYTHON,
    "composer.json": Language.PHP,
    "composer.lock": Language.PHP,
}


def classify(path: str | PurePath) -> Language:
    """Return the language of ``path`` judged purely from its name."""
    name = PurePosixPath(str(path).replace("\\", "/")).name
    lowered = name.lower()
    if lowered in _LANGUAGE_BY_NAME:
        return _LANGUAGE_BY_NAME[lowered]
    if lowered.startswith("requirements") and lowered.endswith(".txt"):
        return Language.PYTHON
    dot = lowered.rfind(".")
    if dot <= 0:
        return Language.UNKNOWN
    return _LANGUAGE_BY_SUFFIX.get(lowered[dot:], Language.UNKNOWN)


__all__ = ["Language", "classify"]
