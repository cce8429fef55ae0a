"""Secure archive extraction into a disposable workspace."""

from __future__ import annotations

import shutil
import stat
import tempfile
import zipfile
import zlib
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Dict, Optional, Type

from .errors import CorruptArchive
from .limits import DEFAULT_LIMITS, ResourceLimits
from .logging import get_logger
from .validation import is_allowed_source_file, is_safe_entry_name

_CHUNK_SIZE = 8192
_WORKSPACE_PREFIX = "archscan-"

logger = get_logger("extractor")


class EntryTooLarge(Exception):
    """Raised while streaming an entry whose written bytes pass the file ceiling."""

    def __init__(self, written: int, limit: int) -> None:
        self.written = written
        self.limit = limit
        super().__init__(f"entry exceeded {limit} bytes after writing {written} bytes")


class StopReason(Enum):
    FILE_COUNT = "file-count"
    TOTAL_BYTES = "total-bytes"


@dataclass
class ExtractionStats:
    """Summary of one extraction pass, used for logging and diagnostics."""

    files_written: int = 0
    bytes_written: int = 0
    directories_created: int = 0
    skipped: Counter = field(default_factory=Counter)
    stopped: Optional[StopReason] = None

    def skip(self, reason: str) -> None:
        self.skipped[reason] += 1

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


class ExtractionBudget:
    """Single authority over the archive-wide file-count and byte ceilings.

    Both counters only grow. ``admit`` is checked before each entry and
    ``commit`` after each successful write; once either ceiling trips the
    budget is exhausted for the rest of the archive.
    """

    def __init__(self, limits: ResourceLimits = DEFAULT_LIMITS) -> None:
        self._limits = limits
        self.file_count = 0
        self.total_bytes = 0
        self.stopped: Optional[StopReason] = None

    @property
    def exhausted(self) -> bool:
        return self.stopped is not None

    @property
    def remaining_bytes(self) -> int:
        return max(0, self._limits.max_total_uncompressed_bytes - self.total_bytes)

    def admit(self) -> bool:
        """Return True when another entry may be processed."""
        if self.stopped is not None:
            return False
        if self.file_count >= self._limits.max_file_count:
            self.stopped = StopReason.FILE_COUNT
            return False
        return True

    def overflow(self) -> None:
        """Record that an entry streamed past the remaining byte allowance."""
        if self.stopped is None:
            self.stopped = StopReason.TOTAL_BYTES

    def commit(self, written: int) -> bool:
        """Account for a written file; False means it would breach the byte ceiling."""
        if written < 0:
            raise ValueError("written byte count must be non-negative")
        if self.stopped is not None:
            return False
        if self.total_bytes + written > self._limits.max_total_uncompressed_bytes:
            self.stopped = StopReason.TOTAL_BYTES
            return False
        self.total_bytes += written
        self.file_count += 1
        return True


class ExtractedWorkspace:
    """Temporary directory owned by a single run; deleted on exit."""

    def __init__(self, root: Path, stats: ExtractionStats | None = None) -> None:
        self.root = root
        self.stats = stats or ExtractionStats()
        self._closed = False

    @classmethod
    def create(cls) -> "ExtractedWorkspace":
        root = Path(tempfile.mkdtemp(prefix=_WORKSPACE_PREFIX)).resolve()
        return cls(root)

    @property
    def closed(self) -> bool:
        return self._closed

    def cleanup(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove workspace %s: %s", self.root, exc)

    def __enter__(self) -> "ExtractedWorkspace":
        return self

    def __exit__(
        self,
        exc_type: Type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()


def copy_bounded(source: BinaryIO, destination: Path, limit: int) -> int:
    """Stream ``source`` into ``destination`` in chunks, never keeping more than ``limit`` bytes.

    The partially written file is removed before EntryTooLarge propagates.
    """
    written = 0
    try:
        with destination.open("wb") as handle:
            for chunk in iter(lambda: source.read(_CHUNK_SIZE), b""):
                written += len(chunk)
                if written > limit:
                    raise EntryTooLarge(written, limit)
                handle.write(chunk)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    return written


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    mode = info.external_attr >> 16
    return bool(mode) and stat.S_ISLNK(mode)


class SecureExtractor:
    """Extracts one validated archive, treating every entry as adversarial."""

    def __init__(self, limits: ResourceLimits = DEFAULT_LIMITS) -> None:
        self.limits = limits

    def extract(self, archive_path: Path) -> ExtractedWorkspace:
        """Return a populated workspace; the caller must clean it up (use ``with``)."""
        workspace = ExtractedWorkspace.create()
        try:
            self._extract_into(Path(archive_path), workspace)
        except BaseException:
            workspace.cleanup()
            raise
        return workspace

    def _extract_into(self, archive_path: Path, workspace: ExtractedWorkspace) -> None:
        try:
            archive = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
            raise CorruptArchive(archive_path, str(exc)) from exc

        budget = ExtractionBudget(self.limits)
        stats = workspace.stats
        logger.info("Extracting %s into %s", archive_path.name, workspace.root)
        with archive:
            for info in archive.infolist():
                if not budget.admit():
                    logger.warning(
                        "File count ceiling (%d) reached; skipping remaining entries",
                        self.limits.max_file_count,
                    )
                    break
                self._extract_entry(archive, info, workspace.root, budget, stats)
                if budget.exhausted:
                    logger.warning(
                        "Total uncompressed ceiling (%d bytes) reached; stopping extraction",
                        self.limits.max_total_uncompressed_bytes,
                    )
                    break

        stats.files_written = budget.file_count
        stats.bytes_written = budget.total_bytes
        stats.stopped = budget.stopped
        logger.info(
            "Extracted %d file(s), %d byte(s); %d entr%s skipped",
            stats.files_written,
            stats.bytes_written,
            stats.skipped_total,
            "y" if stats.skipped_total == 1 else "ies",
        )

    def _extract_entry(
        self,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        root: Path,
        budget: ExtractionBudget,
        stats: ExtractionStats,
    ) -> None:
        # ZipInfo.filename is cut at the first NUL; orig_filename keeps the stored name.
        name = info.orig_filename
        if not is_safe_entry_name(name, root):
            logger.warning("Skipping unsafe entry path: %r", name)
            stats.skip("unsafe-path")
            return

        target = root.joinpath(*[part for part in name.replace("\\", "/").split("/") if part])

        if info.is_dir():
            try:
                target.mkdir(parents=True, exist_ok=True)
                stats.directories_created += 1
            except OSError as exc:
                logger.warning("Could not create directory %s: %s", name, exc)
                stats.skip("io-error")
            return

        if _is_symlink(info):
            logger.warning("Skipping symlink entry: %s", name)
            stats.skip("symlink")
            return

        if not is_allowed_source_file(target.name, self.limits):
            logger.debug("Skipping non-whitelisted entry: %s", name)
            stats.skip("extension")
            return

        if info.file_size > self.limits.max_source_file_size:
            logger.warning(
                "Skipping oversized entry %s (%d bytes declared)", name, info.file_size
            )
            stats.skip("oversized")
            return

        if info.compress_size > 0 and info.file_size > 0:
            ratio = info.file_size / info.compress_size
            if ratio > self.limits.max_compression_ratio:
                logger.warning(
                    "Skipping entry %s: compression ratio %.0f:1 suggests an archive bomb",
                    name,
                    ratio,
                )
                stats.skip("compression-ratio")
                return

        if target.exists() and not target.is_file():
            logger.warning("Skipping entry %s: target exists and is not a file", name)
            stats.skip("conflict")
            return

        room = budget.remaining_bytes
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as source:
                written = copy_bounded(source, target, min(self.limits.max_source_file_size, room))
        except EntryTooLarge as exc:
            if room < self.limits.max_source_file_size:
                logger.warning("Discarded entry %s: archive byte ceiling reached", name)
                budget.overflow()
                stats.skip("total-bytes")
                return
            logger.warning("Discarded entry %s: %s", name, exc)
            stats.skip("oversized")
            return
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
            target.unlink(missing_ok=True)
            logger.warning("Failed to extract entry %s: %s", name, exc)
            stats.skip("corrupt-entry")
            return
        except OSError as exc:
            target.unlink(missing_ok=True)
            logger.warning("Failed to write entry %s: %s", name, exc)
            stats.skip("io-error")
            return

        if not budget.commit(written):
            target.unlink(missing_ok=True)
            stats.skip("total-bytes")


__all__ = [
    "EntryTooLarge",
    "ExtractedWorkspace",
    "ExtractionBudget",
    "ExtractionStats",
    "SecureExtractor",
    "StopReason",
    "copy_bounded",
]
