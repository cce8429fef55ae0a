"""Tests for archscan.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from archscan.config import ArchscanConfig, ConfigError, load_config
from archscan.limits import DEFAULT_LIMITS


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ArchscanConfig)
    assert config.source is None
    assert config.analysis.languages is None
    assert config.analysis.workers == 1
    assert config.analysis.exclude_paths == []
    assert config.resource_limits() is DEFAULT_LIMITS


def test_load_config_reads_working_directory_by_default(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / ".archscan.yml").write_text("analysis:\n  workers: 3\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.analysis.workers == 3
    assert config.source == (tmp_path / ".archscan.yml").resolve()


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text(
        """
analysis:
  languages: [java, "C#", python]
  workers: 4
  exclude_paths:
    - "vendor/"
    - "*.min.js"
limits:
  max_file_count: 500
  max_source_file_size: 1_048_576
  max_compression_ratio: 1000
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.analysis.languages == ["java", "C#", "python"]
    assert config.analysis.workers == 4
    assert config.analysis.exclude_paths == ["vendor/", "*.min.js"]

    limits = config.resource_limits()
    assert limits.max_file_count == 500
    assert limits.max_source_file_size == 1_048_576
    # Overrides can only tighten a ceiling.
    assert limits.max_compression_ratio == DEFAULT_LIMITS.max_compression_ratio
    assert limits.max_archive_size == DEFAULT_LIMITS.max_archive_size


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / ".archscan.yml"
    config_file.write_text("\n", encoding="utf-8")

    assert load_config(config_file).analysis.workers == 1


def test_explicit_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yml")


@pytest.mark.parametrize(
    "text",
    [
        "analysis: [unclosed",
        "- just\n- a list\n",
        "limits:\n  max_file_count: -1\n",
        "limits:\n  max_file_count: lots\n",
        "limits:\n  max_everything: 1\n",
        "analysis:\n  workers: 0\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, text: str) -> None:
    config_file = tmp_path / ".archscan.yml"
    config_file.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)
