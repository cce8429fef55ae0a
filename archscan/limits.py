"""Resource ceilings applied to untrusted archives and source trees."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

_MB = 1024 * 1024
_GB = 1024 * _MB

ARCHIVE_EXTENSIONS: FrozenSet[str] = frozenset({".zip", ".jar"})

SOURCE_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        # Java
        ".java",
        # C / C++
        ".c", ".h", ".cpp", ".cc", ".cxx", ".hpp", ".c++",
        # C#
        ".cs",
        # JavaScript / TypeScript
        ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
        # Ruby
        ".rb", ".rake", ".gemspec",
        # Rust
        ".rs",
        # Kotlin
        ".kt", ".kts",
        # Python
        ".py", ".pyw",
        # PHP
        ".php", ".phtml", ".php3", ".php4", ".php5", ".phps",
        # JSP
        ".jsp", ".jspf", ".jspx",
        # build and configuration files, read for content only
        ".gradle", ".xml", ".json", ".yaml", ".yml",
        ".toml", ".properties", ".md", ".cfg",
    }
)

# Extension-less (or otherwise non-whitelisted) build and manifest names.
BUILD_FILE_NAMES: FrozenSet[str] = frozenset(
    {
        "gemfile",
        "rakefile",
        "makefile",
        "dockerfile",
        "cmakelists.txt",
        "readme.md",
        "pipfile",
        "requirements.txt",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "composer.json",
        "composer.lock",
    }
)


@dataclass(frozen=True)
class ResourceLimits:
    """Immutable set of ceilings enforced during ingestion and analysis."""

    max_archive_size: int = 500 * _MB
    max_total_uncompressed_bytes: int = 2 * _GB
    max_file_count: int = 10_000
    max_source_file_size: int = 10 * _MB
    max_compression_ratio: int = 100
    archive_extensions: FrozenSet[str] = field(default=ARCHIVE_EXTENSIONS)
    source_extensions: FrozenSet[str] = field(default=SOURCE_EXTENSIONS)
    build_file_names: FrozenSet[str] = field(default=BUILD_FILE_NAMES)

    def tightened(self, **overrides: int | None) -> "ResourceLimits":
        """Return a copy where each given override may only lower a ceiling."""
        values = {}
        for name, value in overrides.items():
            if value is None:
                continue
            current = getattr(self, name)
            if not isinstance(current, int):
                raise TypeError(f"'{name}' is not a numeric limit")
            if value <= 0:
                raise ValueError(f"Limit '{name}' must be positive, got {value}")
            values[name] = min(current, int(value))
        if not values:
            return self
        return ResourceLimits(
            max_archive_size=values.get("max_archive_size", self.max_archive_size),
            max_total_uncompressed_bytes=values.get(
                "max_total_uncompressed_bytes", self.max_total_uncompressed_bytes
            ),
            max_file_count=values.get("max_file_count", self.max_file_count),
            max_source_file_size=values.get("max_source_file_size", self.max_source_file_size),
            max_compression_ratio=values.get("max_compression_ratio", self.max_compression_ratio),
            archive_extensions=self.archive_extensions,
            source_extensions=self.source_extensions,
            build_file_names=self.build_file_names,
        )

    def describe(self) -> dict[str, str]:
        """Return human readable ceilings for diagnostics output."""
        return {
            "max_archive_size": f"{self.max_archive_size // _MB} MB",
            "max_total_uncompressed_bytes": f"{self.max_total_uncompressed_bytes / _GB:g} GB",
            "max_file_count": f"{self.max_file_count:,}",
            "max_source_file_size": f"{self.max_source_file_size // _MB} MB",
            "max_compression_ratio": f"{self.max_compression_ratio}:1",
        }


DEFAULT_LIMITS = ResourceLimits()


__all__ = [
    "ARCHIVE_EXTENSIONS",
    "BUILD_FILE_NAMES",
    "DEFAULT_LIMITS",
    "ResourceLimits",
    "SOURCE_EXTENSIONS",
]
