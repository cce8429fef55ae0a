"""Dispatch classified source units to language analyzers and aggregate results."""

from __future__ import annotations

from collections import Counter, deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .analyzers import LanguageAnalyzer, build_registry
from .languages import Language
from .limits import DEFAULT_LIMITS, ResourceLimits
from .logging import get_logger
from .models import AnalysisModel, SourceUnit
from .repo_scanner import CandidateFile, RepoScanner
from .validation import check_source_file_size

# Units in flight per worker; bounds how much file content is held in memory.
_PENDING_PER_WORKER = 4


@dataclass
class ScanStats:
    """Counts of analyzed and skipped files for one orchestrator run."""

    analyzed: int = 0
    skipped: Counter = field(default_factory=Counter)

    def skip(self, reason: str) -> None:
        self.skipped[reason] += 1

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


class AnalysisOrchestrator:
    """Walks an input root and folds every analyzable file into one AnalysisModel.

    Each unit is analyzed into its own partial model. Partials are merged by
    the calling thread in visitation order, so ordered fields come out the
    same whether one worker or many are used. A unit whose analyzer raises
    contributes nothing.
    """

    def __init__(
        self,
        registry: Optional[Mapping[Language, LanguageAnalyzer]] = None,
        *,
        limits: ResourceLimits = DEFAULT_LIMITS,
        workers: int = 1,
        exclude_paths: Sequence[str] = (),
        use_parser: bool = True,
        scanner: RepoScanner | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.registry: Dict[Language, LanguageAnalyzer] = (
            dict(registry) if registry is not None else build_registry(use_parser=use_parser)
        )
        self.limits = limits
        self.workers = workers
        self.scanner = scanner or RepoScanner(exclude_paths)
        self.stats = ScanStats()
        self.logger = get_logger("orchestrator")

    def analyze(self, root: Path | str, project_name: str | None = None) -> AnalysisModel:
        """Analyze every supported file under ``root`` and return the aggregate."""
        root_path = Path(root)
        self.stats = ScanStats()
        model = AnalysisModel(project_name=project_name or root_path.name)
        self.logger.info(
            "Analyzing %s with %d worker%s", root_path, self.workers, "" if self.workers == 1 else "s"
        )

        if self.workers == 1:
            for unit, analyzer in self._iter_units(root_path):
                self._merge(model, unit, self._analyze_unit(unit, analyzer))
        else:
            self._analyze_concurrently(root_path, model)

        model.build_modules()
        self.logger.info(
            "Analyzed %d file(s) across %d language(s); %d skipped",
            self.stats.analyzed,
            len(model.language_files),
            self.stats.skipped_total,
        )
        return model

    def _analyze_concurrently(self, root: Path, model: AnalysisModel) -> None:
        pending: Deque[Tuple[SourceUnit, Future[Optional[AnalysisModel]]]] = deque()
        window = self.workers * _PENDING_PER_WORKER
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="archscan") as pool:
            for unit, analyzer in self._iter_units(root):
                pending.append((unit, pool.submit(self._analyze_unit, unit, analyzer)))
                if len(pending) >= window:
                    done_unit, future = pending.popleft()
                    self._merge(model, done_unit, future.result())
            while pending:
                done_unit, future = pending.popleft()
                self._merge(model, done_unit, future.result())

    def _iter_units(self, root: Path) -> Iterator[Tuple[SourceUnit, LanguageAnalyzer]]:
        for candidate in self.scanner.iter_candidates(root):
            analyzer = self.registry.get(candidate.language)
            if analyzer is None:
                self.logger.debug(
                    "No analyzer enabled for %s (%s)",
                    candidate.relative_path,
                    candidate.language.display_name,
                )
                self.stats.skip("disabled-language")
                continue
            content = self._read(candidate)
            if content is None:
                continue
            yield SourceUnit(candidate.relative_path, candidate.language, content), analyzer

    def _read(self, candidate: CandidateFile) -> str | None:
        try:
            check_source_file_size(candidate.path, self.limits)
        except ValueError as exc:
            self.logger.warning("Skipping %s: %s", candidate.relative_path, exc)
            self.stats.skip("oversized")
            return None
        except OSError as exc:
            self.logger.warning("Cannot stat %s: %s", candidate.relative_path, exc)
            self.stats.skip("unreadable")
            return None

        limit = self.limits.max_source_file_size
        try:
            with candidate.path.open("rb") as handle:
                data = handle.read(limit + 1)
        except OSError as exc:
            self.logger.warning("Cannot read %s: %s", candidate.relative_path, exc)
            self.stats.skip("unreadable")
            return None
        if len(data) > limit:
            # The file grew after the size check.
            self.logger.warning("Skipping %s: file grew past %d bytes", candidate.relative_path, limit)
            self.stats.skip("oversized")
            return None
        return data.decode("utf-8", errors="replace")

    def _analyze_unit(self, unit: SourceUnit, analyzer: LanguageAnalyzer) -> Optional[AnalysisModel]:
        partial = AnalysisModel()
        try:
            analyzer.analyze(unit.name, unit.content, partial)
        except Exception as exc:
            self.logger.warning(
                "%s failed on %s: %s", analyzer.__class__.__name__, unit.relative_path, exc
            )
            self.logger.debug("Analyzer traceback for %s", unit.relative_path, exc_info=True)
            return None
        partial.add_language_file(unit.language)
        return partial

    def _merge(self, model: AnalysisModel, unit: SourceUnit, partial: Optional[AnalysisModel]) -> None:
        if partial is None:
            self.stats.skip("analyzer-error")
            return
        model.merge(partial)
        self.stats.analyzed += 1
        self.logger.debug("Analyzed %s as %s", unit.relative_path, unit.language.display_name)


__all__ = ["AnalysisOrchestrator", "ScanStats"]
