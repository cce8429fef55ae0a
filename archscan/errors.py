"""Fatal error kinds surfaced to callers of the ingestion pipeline."""

from __future__ import annotations

from pathlib import Path


class IngestError(RuntimeError):
    """Base class for errors that abort an analysis run."""


class InvalidInput(IngestError):
    """Raised when the top-level input path cannot be used."""

    def __init__(self, path: Path | str | None, reason: str, detail: str) -> None:
        self.path = path
        self.reason = reason
        self.detail = detail
        super().__init__(detail)


class CorruptArchive(IngestError):
    """Raised when an archive cannot be opened as a valid container."""

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Archive could not be opened: {path} ({detail})")


class InvalidOutputPath(IngestError):
    """Raised when an output directory fails sanitization."""


__all__ = ["CorruptArchive", "IngestError", "InvalidInput", "InvalidOutputPath"]
