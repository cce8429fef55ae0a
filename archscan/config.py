"""Configuration loading for archscan (.archscan.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .limits import DEFAULT_LIMITS, ResourceLimits

CONFIG_FILE_NAME = ".archscan.yml"

_LIMIT_KEYS = (
    "max_archive_size",
    "max_total_uncompressed_bytes",
    "max_file_count",
    "max_source_file_size",
    "max_compression_ratio",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Analyzer selection, worker pool size and walk exclusions."""

    languages: Optional[List[str]] = None
    workers: int = 1
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class LimitsConfig:
    """Optional ceilings that can only tighten the built-in resource limits."""

    max_archive_size: Optional[int] = None
    max_total_uncompressed_bytes: Optional[int] = None
    max_file_count: Optional[int] = None
    max_source_file_size: Optional[int] = None
    max_compression_ratio: Optional[int] = None

    def apply(self, base: ResourceLimits = DEFAULT_LIMITS) -> ResourceLimits:
        return base.tightened(**{key: getattr(self, key) for key in _LIMIT_KEYS})


@dataclass
class ArchscanConfig:
    """Represents the settings defined in .archscan.yml."""

    source: Optional[Path] = None
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    def resource_limits(self) -> ResourceLimits:
        return self.limits.apply(DEFAULT_LIMITS)


def load_config(config_path: Path | None = None) -> ArchscanConfig:
    """Load configuration from ``config_path`` or the working directory.

    The analyzed input is never consulted. A missing .archscan.yml yields defaults.
    """
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        if config_path is not None and not config_path.expanduser().is_dir():
            raise ConfigError(f"Configuration file not found: {config_path}")
        return ArchscanConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    analysis_data = _as_dict(data.get("analysis"))
    analysis = AnalysisConfig()
    if analysis_data:
        if "languages" in analysis_data and analysis_data["languages"] is not None:
            analysis.languages = _as_str_list(analysis_data.get("languages"))
        workers = analysis_data.get("workers")
        if workers is not None:
            parsed = _as_int(workers)
            if parsed is None or parsed < 1:
                raise ConfigError(f"analysis.workers must be a positive integer, got {workers!r}")
            analysis.workers = parsed
        analysis.exclude_paths = _as_str_list(analysis_data.get("exclude_paths"))

    limits_data = _as_dict(data.get("limits"))
    limits = LimitsConfig()
    for key, value in limits_data.items():
        if key not in _LIMIT_KEYS:
            raise ConfigError(f"Unknown limit '{key}' in {config_file.name}")
        parsed = _as_int(value)
        if parsed is None or parsed <= 0:
            raise ConfigError(f"Limit '{key}' must be a positive integer, got {value!r}")
        setattr(limits, key, parsed)

    return ArchscanConfig(source=config_file, analysis=analysis, limits=limits)


def _resolve_config_path(config_path: Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / CONFIG_FILE_NAME).resolve()
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.replace("_", ""))
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "ArchscanConfig",
    "CONFIG_FILE_NAME",
    "ConfigError",
    "LimitsConfig",
    "load_config",
]
