"""End-to-end run: validate the input, extract when needed, analyze."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .analyzers import build_registry
from .config import ArchscanConfig
from .extractor import ExtractionStats, SecureExtractor
from .logging import get_logger
from .models import AnalysisModel
from .orchestrator import AnalysisOrchestrator, ScanStats
from .validation import InputKind, validate_input_path

logger = get_logger("pipeline")


@dataclass
class RunResult:
    """The model produced by one run together with its diagnostics."""

    model: AnalysisModel
    scan: ScanStats = field(default_factory=ScanStats)
    extraction: Optional[ExtractionStats] = None


def run_analysis(
    path: str | os.PathLike[str],
    *,
    config: ArchscanConfig | None = None,
    workers: int | None = None,
    use_parser: bool = True,
) -> RunResult:
    """Analyze a directory or archive and return the populated model.

    Archives are extracted into a temporary workspace that is removed before
    this function returns, whether analysis succeeded or not. Raises
    InvalidInput or CorruptArchive for fatal input problems.
    """
    config = config or ArchscanConfig()
    limits = config.resource_limits()
    validated = validate_input_path(path, limits)

    registry = build_registry(config.analysis.languages, use_parser=use_parser)
    orchestrator = AnalysisOrchestrator(
        registry,
        limits=limits,
        workers=workers if workers is not None else config.analysis.workers,
        exclude_paths=config.analysis.exclude_paths,
    )

    if validated.kind is InputKind.DIRECTORY:
        logger.info("Analyzing directory %s", validated.path)
        model = orchestrator.analyze(validated.path, project_name=validated.path.name)
        return RunResult(model=model, scan=orchestrator.stats)

    project_name = Path(validated.path).stem
    extractor = SecureExtractor(limits)
    with extractor.extract(validated.path) as workspace:
        model = orchestrator.analyze(workspace.root, project_name=project_name)
        return RunResult(model=model, scan=orchestrator.stats, extraction=workspace.stats)


__all__ = ["RunResult", "run_analysis"]
