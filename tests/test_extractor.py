"""Tests for archscan.extractor, including hostile archives."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from archscan.errors import CorruptArchive
from archscan.extractor import (
    EntryTooLarge,
    ExtractedWorkspace,
    ExtractionBudget,
    SecureExtractor,
    StopReason,
    copy_bounded,
)
from archscan.limits import DEFAULT_LIMITS


def _files(root: Path) -> set[str]:
    return {path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()}


def test_benign_archive_extracts_all_whitelisted_files(archive_builder) -> None:
    archive = archive_builder.build(
        {
            "app/Main.java": "package app;\npublic class Main {}\n",
            "app/Service.java": "package app;\npublic class Service {}\n",
            "README.md": "# Demo\n",
        }
    )

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"app/Main.java", "app/Service.java", "README.md"}
        assert workspace.stats.files_written == 3
        assert workspace.stats.skipped_total == 0
        assert workspace.stats.stopped is None


def test_workspace_is_removed_on_exit(archive_builder) -> None:
    archive = archive_builder.build({"a.py": "print('x')\n"})

    with SecureExtractor().extract(archive) as workspace:
        root = workspace.root
        assert root.exists()
    assert not root.exists()
    assert workspace.closed


def test_workspace_is_removed_when_analysis_raises(archive_builder) -> None:
    archive = archive_builder.build({"a.py": "print('x')\n"})

    with pytest.raises(RuntimeError):
        with SecureExtractor().extract(archive) as workspace:
            root = workspace.root
            raise RuntimeError("boom")
    assert not root.exists()


def test_zip_slip_entries_are_never_written(tmp_path: Path, archive_builder) -> None:
    archive = archive_builder.build(
        {
            "../../etc/passwd.py": "owned = True\n",
            "/abs/escape.py": "owned = True\n",
            "C:/temp/escape.py": "owned = True\n",
            "safe/ok.py": "ok = True\n",
        }
    )

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"safe/ok.py"}
        assert workspace.stats.skipped["unsafe-path"] == 3
        assert not (workspace.root.parent.parent / "etc" / "passwd.py").exists()
    assert not (tmp_path / "etc").exists()


def test_non_whitelisted_entries_are_skipped(archive_builder) -> None:
    archive = archive_builder.build(
        {
            "payload.exe": b"MZ\x90\x00",
            "bin/script.sh": "#!/bin/sh\nrm -rf /\n",
            "Gemfile": "source 'https://rubygems.org'\ngem 'rails'\n",
        }
    )

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"Gemfile"}
        assert workspace.stats.skipped["extension"] == 2


def test_directory_entries_are_created(archive_builder) -> None:
    archive = archive_builder.build({"src/": b"", "src/main.rs": "fn main() {}\n"})

    with SecureExtractor().extract(archive) as workspace:
        assert (workspace.root / "src").is_dir()
        assert workspace.stats.directories_created == 1


def test_high_ratio_entry_is_treated_as_archive_bomb(archive_builder) -> None:
    archive = archive_builder.build(
        {
            "bomb.json": b"\0" * (2 * 1024 * 1024),
            "ok.py": "value = 1\n",
        }
    )

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"ok.py"}
        assert workspace.stats.skipped["compression-ratio"] == 1


def test_declared_oversized_entry_is_skipped(archive_builder) -> None:
    archive = archive_builder.build(
        {"big.py": "x = 1\n" * 100, "small.py": "y = 2\n"},
        compression=zipfile.ZIP_STORED,
    )
    limits = DEFAULT_LIMITS.tightened(max_source_file_size=100)

    with SecureExtractor(limits).extract(archive) as workspace:
        assert _files(workspace.root) == {"small.py"}
        assert workspace.stats.skipped["oversized"] == 1


def test_file_count_ceiling_keeps_first_entries(archive_builder) -> None:
    entries = {f"src/f{index}.py": f"v = {index}\n" for index in range(5)}
    archive = archive_builder.build(entries)
    limits = DEFAULT_LIMITS.tightened(max_file_count=2)

    with SecureExtractor(limits).extract(archive) as workspace:
        assert _files(workspace.root) == {"src/f0.py", "src/f1.py"}
        assert workspace.stats.stopped is StopReason.FILE_COUNT


def test_total_bytes_ceiling_stops_extraction(archive_builder) -> None:
    entries = {f"f{index}.py": "a" * 40 for index in range(5)}
    archive = archive_builder.build(entries, compression=zipfile.ZIP_STORED)
    limits = DEFAULT_LIMITS.tightened(max_total_uncompressed_bytes=100)

    with SecureExtractor(limits).extract(archive) as workspace:
        assert _files(workspace.root) == {"f0.py", "f1.py"}
        assert workspace.stats.bytes_written == 80
        assert workspace.stats.stopped is StopReason.TOTAL_BYTES


def test_each_entry_is_streamed_within_the_remaining_byte_allowance(archive_builder, monkeypatch) -> None:
    entries = {f"f{index}.py": "a" * 40 for index in range(4)}
    archive = archive_builder.build(entries, compression=zipfile.ZIP_STORED)
    limits = DEFAULT_LIMITS.tightened(max_total_uncompressed_bytes=100)
    seen_limits: list[int] = []

    def recording_copy(source, destination, limit):
        seen_limits.append(limit)
        return copy_bounded(source, destination, limit)

    monkeypatch.setattr("archscan.extractor.copy_bounded", recording_copy)

    with SecureExtractor(limits).extract(archive) as workspace:
        assert seen_limits == [100, 60, 20]
        assert not (workspace.root / "f2.py").exists()
        assert workspace.stats.skipped["total-bytes"] == 1
        assert workspace.stats.stopped is StopReason.TOTAL_BYTES


def test_symlink_entries_are_skipped(archive_builder) -> None:
    archive = archive_builder.build_with_symlink("src/link.java", "/etc/passwd")

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"src/Main.java"}
        assert not (workspace.root / "src" / "link.java").is_symlink()
        assert workspace.stats.skipped["symlink"] == 1


def test_entry_name_with_embedded_nul_is_rejected(archive_builder) -> None:
    archive = archive_builder.build_with_raw_name("evil.pyX.exe", b"evil.py\x00.exe", "import os\n")

    with SecureExtractor().extract(archive) as workspace:
        assert _files(workspace.root) == {"src/app.py"}
        assert not (workspace.root / "evil.py").exists()
        assert workspace.stats.skipped["unsafe-path"] == 1


def test_corrupt_archive_raises(tmp_path: Path) -> None:
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"this is not a zip file at all")

    with pytest.raises(CorruptArchive):
        SecureExtractor().extract(archive)


def test_corrupt_archive_leaves_no_workspace(tmp_path: Path, monkeypatch) -> None:
    created: list[ExtractedWorkspace] = []
    original = ExtractedWorkspace.create

    def _tracking_create() -> ExtractedWorkspace:
        workspace = original()
        created.append(workspace)
        return workspace

    monkeypatch.setattr(ExtractedWorkspace, "create", staticmethod(_tracking_create))
    archive = tmp_path / "broken.jar"
    archive.write_bytes(b"garbage")

    with pytest.raises(CorruptArchive):
        SecureExtractor().extract(archive)
    assert created and not created[0].root.exists()


def test_copy_bounded_removes_partial_file(tmp_path: Path) -> None:
    destination = tmp_path / "out.py"

    with pytest.raises(EntryTooLarge):
        copy_bounded(io.BytesIO(b"x" * 20_000), destination, limit=10_000)
    assert not destination.exists()


def test_copy_bounded_writes_within_limit(tmp_path: Path) -> None:
    destination = tmp_path / "out.py"

    written = copy_bounded(io.BytesIO(b"abc" * 10), destination, limit=30)

    assert written == 30
    assert destination.read_bytes() == b"abc" * 10


def test_budget_counters_are_monotonic_and_single_stop() -> None:
    budget = ExtractionBudget(DEFAULT_LIMITS.tightened(max_file_count=3, max_total_uncompressed_bytes=10))

    assert budget.admit()
    assert budget.commit(4)
    assert budget.admit()
    assert budget.commit(6)
    assert budget.remaining_bytes == 0
    assert budget.admit()
    assert not budget.commit(1)
    assert budget.stopped is StopReason.TOTAL_BYTES
    assert not budget.admit()
    assert budget.file_count == 2
    assert budget.total_bytes == 10


def test_budget_overflow_stops_once() -> None:
    budget = ExtractionBudget(DEFAULT_LIMITS.tightened(max_total_uncompressed_bytes=10))

    budget.overflow()
    budget.overflow()

    assert budget.stopped is StopReason.TOTAL_BYTES
    assert not budget.admit()
    assert budget.remaining_bytes == 10


def test_budget_stops_on_file_count() -> None:
    budget = ExtractionBudget(DEFAULT_LIMITS.tightened(max_file_count=1))

    assert budget.admit()
    assert budget.commit(1)
    assert not budget.admit()
    assert budget.stopped is StopReason.FILE_COUNT
    assert budget.exhausted


def test_budget_rejects_negative_writes() -> None:
    with pytest.raises(ValueError):
        ExtractionBudget().commit(-1)
