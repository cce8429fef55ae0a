"""Source tree walking and candidate file enumeration."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .languages import Language, classify
from .logging import get_logger

# Tooling directories never hold analyzable sources.
_SKIPPED_DIRS = frozenset({".git", ".hg", ".svn", "__pycache__"})

logger = get_logger("scanner")


@dataclass(frozen=True)
class ExcludePattern:
    """One ``analysis.exclude_paths`` entry with gitignore-like semantics.

    ``dir/`` only matches directories, a leading ``/`` (or any inner ``/``)
    anchors the glob at the input root, and ``!`` re-includes a path that an
    earlier pattern excluded. Unanchored globs match any single path segment.
    """

    glob: str
    negated: bool = False
    dirs_only: bool = False
    rooted: bool = False

    @classmethod
    def parse(cls, raw: str) -> Optional["ExcludePattern"]:
        text = raw.strip()
        if not text or text.startswith("#"):
            return None
        negated = text.startswith("!")
        text = text[1:] if negated else text
        dirs_only = text.endswith("/")
        text = text.rstrip("/")
        rooted = text.startswith("/") or "/" in text.strip("/")
        text = text.lstrip("/")
        if not text:
            return None
        return cls(glob=text, negated=negated, dirs_only=dirs_only, rooted=rooted)

    def hits(self, rel_path: str, is_dir: bool) -> bool:
        if self.dirs_only and not is_dir:
            return False
        if self.rooted:
            return fnmatchcase(rel_path, self.glob)
        return any(fnmatchcase(segment, self.glob) for segment in rel_path.split("/"))


def parse_exclude_patterns(raw_patterns: Sequence[str]) -> List[ExcludePattern]:
    parsed = (ExcludePattern.parse(raw) for raw in raw_patterns)
    return [pattern for pattern in parsed if pattern is not None]


def is_excluded(rel_path: str, is_dir: bool, patterns: Sequence[ExcludePattern]) -> bool:
    """Apply ``patterns`` in order; the last one that hits decides."""
    excluded = False
    for pattern in patterns:
        if pattern.hits(rel_path, is_dir):
            excluded = not pattern.negated
    return excluded


@dataclass(frozen=True)
class CandidateFile:
    """A regular file found by the walk, with its classified language."""

    path: Path
    relative_path: str
    language: Language


class RepoScanner:
    """Walks an input root and yields classified candidate files in visitation order.

    Directories and files are visited in sorted order so that two walks of
    the same tree always agree. Symlinks are never followed.
    """

    def __init__(self, exclude_paths: Sequence[str] = ()) -> None:
        self._patterns = parse_exclude_patterns(exclude_paths)

    def iter_candidates(self, root: Path) -> Iterator[CandidateFile]:
        for path, rel_path in self._walk(root):
            language = classify(rel_path)
            if language is not Language.UNKNOWN:
                yield CandidateFile(path=path, relative_path=rel_path, language=language)

    def _walk(self, root: Path) -> Iterator[Tuple[Path, str]]:
        def _report(exc: OSError) -> None:
            logger.warning("Cannot read directory %s: %s", exc.filename, exc.strerror)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_report):
            here = Path(dirpath)
            prefix = "" if here == root else here.relative_to(root).as_posix() + "/"

            dirnames[:] = [
                name
                for name in sorted(dirnames)
                if name not in _SKIPPED_DIRS and not is_excluded(prefix + name, True, self._patterns)
            ]

            for filename in sorted(filenames):
                rel_path = prefix + filename
                if is_excluded(rel_path, False, self._patterns):
                    continue
                path = here / filename
                try:
                    mode = path.lstat().st_mode
                except OSError as exc:
                    logger.warning("Cannot stat %s: %s", rel_path, exc)
                    continue
                if stat.S_ISLNK(mode):
                    logger.warning("Skipping symlinked file %s", rel_path)
                    continue
                if stat.S_ISREG(mode):
                    yield path, rel_path


__all__ = ["CandidateFile", "ExcludePattern", "RepoScanner", "is_excluded", "parse_exclude_patterns"]
