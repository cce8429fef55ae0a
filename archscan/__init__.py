"""Secure source ingestion and multi-language architecture analysis."""

from .errors import CorruptArchive, IngestError, InvalidInput, InvalidOutputPath
from .languages import Language, classify
from .limits import DEFAULT_LIMITS, ResourceLimits
from .models import AnalysisModel, Dependency, ModuleInfo, SourceUnit
from .pipeline import run_analysis

__version__ = "0.1.0"

__all__ = [
    "AnalysisModel",
    "CorruptArchive",
    "DEFAULT_LIMITS",
    "Dependency",
    "IngestError",
    "InvalidInput",
    "InvalidOutputPath",
    "Language",
    "ModuleInfo",
    "ResourceLimits",
    "SourceUnit",
    "classify",
    "run_analysis",
]
