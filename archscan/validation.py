"""Input, output and archive-entry validation rules."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from .errors import InvalidInput, InvalidOutputPath
from .limits import DEFAULT_LIMITS, ResourceLimits

_MB = 1024 * 1024
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")
_ROOT_EQUIVALENTS = {"/", "c:/", "c:/windows"}


class InputKind(Enum):
    DIRECTORY = "directory"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class ValidatedInput:
    """Canonical input path together with how it should be consumed."""

    path: Path
    kind: InputKind
    size: int = 0


def validate_input_path(
    path: str | os.PathLike[str] | None, limits: ResourceLimits = DEFAULT_LIMITS
) -> ValidatedInput:
    """Decide whether ``path`` is a usable directory or archive, or raise InvalidInput."""
    if path is None or not str(path).strip():
        raise InvalidInput(path, "missing", "Input path is empty")
    if "\0" in str(path):
        raise InvalidInput(path, "unresolvable", "Input path contains a NUL byte")

    candidate = Path(path).expanduser()
    if not candidate.exists():
        raise InvalidInput(candidate, "missing", f"Input path does not exist: {candidate}")
    if candidate.is_dir():
        return validate_directory_input(candidate)
    return validate_archive_input(candidate, limits)


def validate_directory_input(path: Path) -> ValidatedInput:
    """Validate a live directory input and return its canonical path."""
    if not path.exists():
        raise InvalidInput(path, "missing", f"Directory does not exist: {path}")
    if not path.is_dir():
        raise InvalidInput(path, "not-a-directory", f"Input path is not a directory: {path}")
    try:
        resolved = path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise InvalidInput(path, "unresolvable", f"Cannot resolve directory {path}: {exc}") from exc
    return ValidatedInput(path=resolved, kind=InputKind.DIRECTORY)


def validate_archive_input(
    path: Path, limits: ResourceLimits = DEFAULT_LIMITS
) -> ValidatedInput:
    """Validate an archive input before any extraction work begins."""
    if not path.exists():
        raise InvalidInput(path, "missing", f"Archive does not exist: {path}")
    if not path.is_file():
        raise InvalidInput(path, "not-a-file", f"Input path is not a regular file: {path}")

    suffix = path.suffix.lower()
    if suffix not in limits.archive_extensions:
        allowed = ", ".join(sorted(limits.archive_extensions))
        raise InvalidInput(
            path,
            "wrong-extension",
            f"Unsupported archive type '{path.name}'; expected one of: {allowed}",
        )

    size = path.stat().st_size
    if size == 0:
        raise InvalidInput(path, "empty", f"Archive is empty: {path}")
    if size > limits.max_archive_size:
        raise InvalidInput(
            path,
            "oversized",
            "Archive is too large: {actual:.1f} MB exceeds the {limit} MB limit ({path})".format(
                actual=size / _MB,
                limit=limits.max_archive_size // _MB,
                path=path,
            ),
        )

    try:
        resolved = path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise InvalidInput(path, "unresolvable", f"Cannot resolve archive {path}: {exc}") from exc
    return ValidatedInput(path=resolved, kind=InputKind.ARCHIVE, size=size)


def validate_output_dir(output_dir: str | os.PathLike[str] | None) -> Path:
    """Sanitize an output directory path; nested directories are allowed."""
    if output_dir is None or not str(output_dir).strip():
        raise InvalidOutputPath("Output directory path is empty")
    raw = str(output_dir)
    if "\0" in raw:
        raise InvalidOutputPath("Output directory path contains a NUL byte")

    try:
        normalized = Path(os.path.normpath(os.path.abspath(raw)))
    except (OSError, ValueError) as exc:
        raise InvalidOutputPath(f"Output directory path is invalid: {raw} ({exc})") from exc

    comparable = str(normalized).replace("\\", "/").rstrip("/").lower() or "/"
    if comparable in _ROOT_EQUIVALENTS or comparable + "/" in _ROOT_EQUIVALENTS:
        raise InvalidOutputPath(f"Refusing to write into a filesystem root: {raw}")
    if normalized.anchor and str(normalized) == normalized.anchor:
        raise InvalidOutputPath(f"Refusing to write into a filesystem root: {raw}")
    return normalized


def is_safe_entry_name(entry_name: str | None, root: Path) -> bool:
    """Return True when an archive entry stays inside ``root`` once extracted."""
    if entry_name is None or not entry_name.strip():
        return False
    if "\0" in entry_name:
        return False
    if entry_name.startswith(("/", "\\")):
        return False
    if _DRIVE_PREFIX.match(entry_name):
        return False

    segments = re.split(r"[\\/]", entry_name)
    if any(segment == ".." for segment in segments):
        return False

    resolved_root = Path(os.path.normpath(os.path.abspath(root)))
    target = Path(os.path.normpath(os.path.join(resolved_root, *[s for s in segments if s])))
    try:
        target.relative_to(resolved_root)
    except ValueError:
        return False
    return target != resolved_root


def is_allowed_source_file(file_name: str, limits: ResourceLimits = DEFAULT_LIMITS) -> bool:
    """Return True for whitelisted source, config and build-manifest names."""
    base = PurePosixPath(file_name.replace("\\", "/")).name
    lowered = base.lower()
    if lowered in limits.build_file_names:
        return True
    dot = lowered.rfind(".")
    if dot < 0:
        return False
    return lowered[dot:] in limits.source_extensions


def check_source_file_size(path: Path, limits: ResourceLimits = DEFAULT_LIMITS) -> int:
    """Return the on-disk size of ``path`` or raise ValueError when it is too large."""
    size = path.stat().st_size
    if size > limits.max_source_file_size:
        raise ValueError(
            "Source file is too large ({actual:.1f} MB > {limit} MB): {name}".format(
                actual=size / _MB,
                limit=limits.max_source_file_size // _MB,
                name=path.name,
            )
        )
    return size


__all__ = [
    "InputKind",
    "ValidatedInput",
    "check_source_file_size",
    "is_allowed_source_file",
    "is_safe_entry_name",
    "validate_archive_input",
    "validate_directory_input",
    "validate_input_path",
    "validate_output_dir",
]
